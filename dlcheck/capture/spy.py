"""In-page data-layer interception.

This module builds the JavaScript that wraps the page's data-layer queue and
records every push, and the ``DataLayerSpy`` that installs it into a browser
context (before any page script runs) or into an already-loaded page.
"""

import json
import logging
import re

from playwright.async_api import BrowserContext, Page

logger = logging.getLogger(__name__)

# Global under which the in-page helpers and capture state live
HELPERS_GLOBAL = "__dlcheck"

# Clone depth after which nested values are replaced by a marker
MAX_CLONE_DEPTH = 10

_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_$][a-zA-Z0-9_$]*$")


def _sanitize_js_identifier(identifier: str) -> str:
    if not identifier or not isinstance(identifier, str):
        raise ValueError("Data-layer variable name must be a non-empty string")
    if not _IDENTIFIER_PATTERN.match(identifier):
        raise ValueError(f"Invalid JavaScript identifier: {identifier}")
    return identifier


def build_spy_script(variable_name: str = "dataLayer") -> str:
    """Build the interception script for the named data-layer queue.

    The script is an immediately invoked function so it can be used both as a
    context init script and as a ``page.evaluate`` expression. Entries are
    recorded as ``{payload, insertionIndex, capturedAtMs, preExisting}``.

    Args:
        variable_name: Global name of the queue (``dataLayer`` by default)

    Returns:
        JavaScript source

    Raises:
        ValueError: If ``variable_name`` is not a plain JavaScript identifier
    """
    name = _sanitize_js_identifier(variable_name)

    return """
(function(variableName, helpersName, maxDepth) {
    var state = window[helpersName];
    if (!state || typeof state !== 'object') {
        state = { events: [], nextIndex: 0, installed: {} };
        window[helpersName] = state;
    }
    if (state.installed[variableName]) {
        return;
    }
    state.installed[variableName] = true;

    function isArguments(value) {
        return Object.prototype.toString.call(value) === '[object Arguments]';
    }

    function safeClone(value, depth, seen) {
        if (value === null || value === undefined) {
            return value;
        }
        if (typeof value === 'function') {
            return '[Function]';
        }
        if (typeof value !== 'object') {
            return value;
        }
        if (depth > maxDepth) {
            return '[MaxDepth]';
        }
        if (value.nodeType || value.window === value) {
            return '[DOMNode]';
        }
        if (seen.has(value)) {
            return '[Circular]';
        }

        seen.add(value);
        var result;
        try {
            if (Array.isArray(value) || isArguments(value)) {
                result = [];
                for (var i = 0; i < value.length; i++) {
                    result.push(safeClone(value[i], depth + 1, seen));
                }
            } else if (value instanceof Date) {
                result = isNaN(value.getTime()) ? null : value.toISOString();
            } else {
                result = {};
                for (var key in value) {
                    if (!Object.prototype.hasOwnProperty.call(value, key)) {
                        continue;
                    }
                    try {
                        result[key] = safeClone(value[key], depth + 1, seen);
                    } catch (e) {
                        result[key] = '[Error: ' + e.message + ']';
                    }
                }
            }
        } finally {
            seen.delete(value);
        }
        return result;
    }

    function record(payload, preExisting) {
        state.events.push({
            payload: safeClone(payload, 0, new WeakSet()),
            insertionIndex: state.nextIndex++,
            capturedAtMs: Date.now(),
            preExisting: preExisting
        });
    }

    function matchesName(payload, eventName) {
        if (!payload || typeof payload !== 'object') {
            return false;
        }
        if (Array.isArray(payload)) {
            return payload[0] === 'event' && payload[1] === eventName;
        }
        return payload.event === eventName ||
            payload.eventName === eventName ||
            payload.name === eventName;
    }

    state.getEvents = function() {
        return state.events.slice();
    };
    state.getEventsByName = function(eventName) {
        return state.events.filter(function(entry) {
            return matchesName(entry.payload, eventName);
        });
    };
    state.getEventCount = function(eventName) {
        if (!eventName) {
            return state.events.length;
        }
        return state.getEventsByName(eventName).length;
    };
    state.clearEvents = function() {
        state.events = [];
        state.nextIndex = 0;
    };

    var queue = window[variableName];
    if (!queue) {
        queue = [];
        window[variableName] = queue;
    }

    for (var i = 0; i < queue.length; i++) {
        var existing = queue[i];
        if (existing !== null && typeof existing === 'object') {
            try {
                record(existing, true);
            } catch (e) {}
        }
    }

    var originalPush = queue.push || Array.prototype.push;
    queue.push = function() {
        for (var i = 0; i < arguments.length; i++) {
            var item = arguments[i];
            if (item !== null && typeof item === 'object') {
                try {
                    record(item, false);
                } catch (e) {}
            }
        }
        return originalPush.apply(this, arguments);
    };
})(%s, %s, %d);
""" % (json.dumps(name), json.dumps(HELPERS_GLOBAL), MAX_CLONE_DEPTH)


class DataLayerSpy:
    """Installs the interception script for one data-layer queue."""

    def __init__(self, variable_name: str = "dataLayer"):
        self.variable_name = _sanitize_js_identifier(variable_name)
        self.script = build_spy_script(self.variable_name)

    async def attach(self, context: BrowserContext) -> None:
        """Register the script so it runs before page scripts on every navigation."""
        await context.add_init_script(script=self.script)
        logger.debug(f"Data-layer spy attached to context for '{self.variable_name}'")

    async def install(self, page: Page) -> None:
        """Install into a page that has already loaded.

        Entries already in the queue are recorded as pre-existing. Calling this
        on a page where the init script ran is a no-op.
        """
        await page.evaluate(self.script)
        logger.debug(f"Data-layer spy installed on {page.url}")

    def __repr__(self) -> str:
        return f"DataLayerSpy(variable_name={self.variable_name!r})"
