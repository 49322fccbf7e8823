"""Data-layer checks for a typical e-commerce checkout.

Run with::

    dlcheck run examples/checkout.dltest.py --config examples/dlcheck.yaml

The data-layer log is cleared after ``before_each`` and right before each
test body, so every test navigates itself; pushes made during a navigation in
a hook would already be gone when the body starts.
"""


def register(api):

    @api.before_each
    async def fresh_session(t):
        await t.page.context.clear_cookies()

    @api.describe("Page views")
    def page_views():

        @api.test("home page pushes page_view")
        async def home_page_view(t):
            await t.page.goto(t.url("/"))

            await t.expect(t.data_layer).to_have_event("page_view", {
                "page_path": "/",
                "page_title": t.expect.any(str),
            })

        @api.test("no purchase before checkout")
        async def no_early_purchase(t):
            await t.page.goto(t.url("/"))
            await t.data_layer.wait_for_event("page_view")

            await t.expect(t.data_layer).not_.to_have_event("purchase")

    @api.describe("Checkout funnel")
    def funnel():

        @api.test("add to cart pushes product details")
        async def add_to_cart(t):
            await t.page.goto(t.url("/"))
            await t.page.click("#add-to-cart")
            await t.data_layer.wait_for_event("add_to_cart")

            await t.expect(t.data_layer).to_have_event("add_to_cart", {
                "ecommerce": t.expect.object_containing({
                    "currency": "USD",
                    "items": t.expect.array_containing([
                        t.expect.object_containing({"item_id": t.expect.any(str)}),
                    ]),
                }),
            })
            await t.expect(t.data_layer).to_have_event_count("add_to_cart", 1)

        @api.test("checkout events fire in order")
        async def checkout_sequence(t):
            await t.page.goto(t.url("/"))
            await t.page.click("#add-to-cart")
            await t.page.click("#checkout")
            await t.page.click("#place-order")
            await t.data_layer.wait_for_event("purchase", timeout_ms=10000)

            await t.expect(t.data_layer).to_have_event_sequence(
                ["add_to_cart", "begin_checkout", "purchase"]
            )
            await t.expect(t.data_layer).to_have_event_data({
                "transaction_id": t.expect.string_containing("T-"),
            })

    @api.test("purchase value is positive")
    async def purchase_value(t):
        await t.page.goto(t.url("/order-complete"))
        event = await t.data_layer.wait_for_event("purchase")

        t.expect(event.get("value")).to_be_greater_than(0)
        t.expect(event.data).to_have_property("currency", "USD")
