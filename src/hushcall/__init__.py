"""hushcall: debounce and throttle for asyncio callbacks.

Collapses bursts of calls to an expensive function, such as a recompute
triggered by every change notification of a live listener, into fewer
actual invocations.

Basic usage:

    from hushcall import debounce

    refresh = debounce(recompute_scores, 0.5)

    refresh("circle-1")
    refresh("circle-1")  # restarts the 0.5s window
    # recompute_scores("circle-1") runs once, 0.5s after the last call

    refresh.flush()   # run a pending call now
    refresh.cancel()  # drop it at teardown

Decorator usage:

    from hushcall import throttle

    @throttle(delay=1.0)
    def on_snapshot(snapshot):
        ...
"""

import logging

from hushcall.config import DebounceOptions
from hushcall.core import Debounced
from hushcall.decorator import debounce, throttle
from hushcall.keyed import KeyedDebouncer
from hushcall.ratelimit import RateLimiter, RateLimitExceeded

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "DebounceOptions",
    "Debounced",
    "KeyedDebouncer",
    "RateLimitExceeded",
    "RateLimiter",
    "debounce",
    "throttle",
]

__version__ = "0.1.0"
