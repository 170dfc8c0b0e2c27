"""Fixed-window rate limiting keyed by an opaque string."""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class RateLimitExceeded(Exception):
    """Raised by :meth:`RateLimiter.hit` once a key exceeds its limit."""

    def __init__(self, key: str, limit: int, window: float, reset_at: float) -> None:
        self.key = key
        self.limit = limit
        self.window = window
        self.reset_at = reset_at
        super().__init__(f"Rate limit exceeded. Maximum {limit} requests per {window:.15g} seconds.")


@dataclass(slots=True)
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Counts hits per key in fixed windows.

    A key's window opens on its first hit and lasts ``window`` seconds; the
    count does not decay within it. Unlike :func:`~hushcall.decorator.throttle`
    this caps the number of admitted calls per interval.

    Expired entries are purged lazily: after each admitted hit, with probability
    ``cleanup_probability``, or explicitly via :meth:`cleanup`.

    Args:
        limit: Maximum hits per window.
        window: Window length in seconds.
        cleanup_probability: Chance of purging expired keys after an admitted hit.
        clock: Wall-clock source in epoch seconds.
    """

    __slots__ = ("_clock", "_windows", "cleanup_probability", "limit", "window")

    def __init__(
        self,
        limit: int = 10,
        window: float = 60.0,
        *,
        cleanup_probability: float = 0.01,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not isinstance(limit, int) or limit <= 0:
            raise ValueError(f"limit must be a positive int, got {limit!r}")

        if window <= 0:
            raise ValueError(f"window must be positive, got {window}")

        if not 0.0 <= cleanup_probability <= 1.0:
            raise ValueError(f"cleanup_probability must be within [0, 1], got {cleanup_probability}")

        self.limit = limit
        self.window = window
        self.cleanup_probability = cleanup_probability
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def __len__(self) -> int:
        return len(self._windows)

    def hit(self, key: str) -> int:
        """Count a hit for *key* and return the count in the current window.

        Raises:
            RateLimitExceeded: The count went over ``limit``.
        """
        now = self._clock()
        entry = self._windows.get(key)

        if entry is None or now > entry.reset_at:
            entry = _Window(count=1, reset_at=now + self.window)
            self._windows[key] = entry
        else:
            entry.count += 1

        if entry.count > self.limit:
            logger.warning("Rate limit exceeded for %r (%d/%d)", key, entry.count, self.limit)
            raise RateLimitExceeded(key, self.limit, self.window, entry.reset_at)

        if self.cleanup_probability and random.random() < self.cleanup_probability:
            self.cleanup()

        return entry.count

    def allow(self, key: str) -> bool:
        """Like :meth:`hit`, but returns False instead of raising."""
        try:
            self.hit(key)
        except RateLimitExceeded:
            return False
        return True

    def _live(self, key: str) -> _Window | None:
        entry = self._windows.get(key)
        if entry is None or self._clock() > entry.reset_at:
            return None
        return entry

    def remaining(self, key: str) -> int:
        entry = self._live(key)
        if entry is None:
            return self.limit
        return max(0, self.limit - entry.count)

    def reset_at(self, key: str) -> float:
        """Epoch seconds at which *key*'s window closes."""
        entry = self._live(key)
        if entry is None:
            return self._clock() + self.window
        return entry.reset_at

    def headers(self, key: str) -> dict[str, str]:
        """``X-RateLimit-*`` response headers for *key*; reset is in epoch milliseconds."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining(key)),
            "X-RateLimit-Reset": str(int(self.reset_at(key) * 1000)),
        }

    def cleanup(self) -> int:
        """Drop expired windows and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._windows.items() if now > entry.reset_at]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug("Purged %d expired rate limit window(s)", len(expired))
        return len(expired)

    def reset(self, key: str | None = None) -> None:
        """Forget *key*, or every key when None."""
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)

    def __repr__(self) -> str:
        return f"RateLimiter(limit={self.limit}, window={self.window}, keys={len(self._windows)})"
