"""Test collection and execution.

The engine lives in ``dlcheck.runner.engine``; only the polling primitive is
re-exported here because the capture layer depends on it.
"""

from .polling import poll_until

__all__ = [
    "poll_until",
]
