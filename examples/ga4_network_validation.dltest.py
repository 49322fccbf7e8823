"""GA4 hit checks against the network log."""


def register(api):

    @api.describe("GA4 collection hits")
    def ga4_hits():

        @api.test("page_view hit is sent and valid")
        async def page_view_hit(t):
            await t.page.goto(t.url("/"))

            await t.expect(t.network).to_have_ga4_event("page_view", valid=True)

        @api.test("purchase hit carries transaction parameters")
        async def purchase_hit(t):
            await t.page.goto(t.url("/order-complete"))

            await t.expect(t.network).to_have_ga4_event(
                "purchase",
                {"currency": "USD", "transaction_id": t.expect.any(str)},
                valid=True,
                timeout_ms=10000,
            )

            hit = t.network.get_ga4_events_by_name("purchase")[-1]
            t.expect(hit.measurement_id).to_match(r"^G-[A-Z0-9]+$")
            t.expect(hit.items).to_be_defined()

        @api.test("no refund hit on the order page")
        async def no_refund(t):
            await t.page.goto(t.url("/order-complete"))

            await t.expect(t.network).not_.to_have_ga4_event("refund")

    @api.after_all
    def dump_network(t):
        t.network.log_debug()
