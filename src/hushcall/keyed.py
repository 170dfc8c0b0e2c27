"""Per-key debouncing for live subscriptions."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass, field
from typing import Any

from hushcall.config import DebounceOptions
from hushcall.core import Debounced

logger = logging.getLogger(__name__)


@dataclass
class _KeyHandle:
    debounced: Debounced[..., Any]
    last_activity: float = field(default_factory=time.monotonic)


class KeyedDebouncer:
    """Manages one :class:`Debounced` per key.

    Each key (typically one live listener subscription) gets its own
    scheduler wrapping *func*, so bursts on one key never coalesce with
    another. Tear a key down with :meth:`cancel` when its subscription goes
    away. When ``idle_timeout`` is set, keys with no armed timer and no
    activity for that long are reaped by a background task.

    Args:
        func: The function every key's scheduler wraps.
        delay: Quiet-period delay in seconds.
        options: Edge options shared by all keys.
        idle_timeout: Seconds of inactivity before an idle key is reaped,
            or None to keep keys until cancelled.

    Example::

        scores = KeyedDebouncer(recompute_circle, delay=0.5, idle_timeout=300.0)
        await scores.start()

        scores.call("circle-friends", "circle-friends")
        scores.call("circle-work", "circle-work")

        scores.cancel("circle-work")  # subscription closed
        await scores.close()
    """

    __slots__ = (
        "_func",
        "_keys",
        "_reaper_task",
        "delay",
        "idle_timeout",
        "options",
    )

    def __init__(
        self,
        func: Callable[..., Any],
        delay: float,
        options: DebounceOptions | Mapping[str, Any] | None = None,
        *,
        idle_timeout: float | None = None,
    ) -> None:
        if idle_timeout is not None and idle_timeout <= 0:
            raise ValueError(f"idle_timeout must be positive or None, got {idle_timeout}")

        self._func = func
        self.delay = delay
        self.options = DebounceOptions.coerce(options)
        self.idle_timeout = idle_timeout
        self._keys: dict[Hashable, _KeyHandle] = {}
        self._reaper_task: asyncio.Task[None] | None = None

    @property
    def active_keys(self) -> int:
        """Number of keys with a live scheduler."""
        return len(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._keys

    def get(self, key: Hashable) -> Debounced[..., Any] | None:
        handle = self._keys.get(key)
        return handle.debounced if handle is not None else None

    def call(self, key: Hashable, *args: Any, **kwargs: Any) -> Any:
        """Forward a call to *key*'s scheduler, creating it on first use."""
        handle = self._get_or_create(key)
        handle.last_activity = time.monotonic()
        return handle.debounced(*args, **kwargs)

    def flush(self, key: Hashable) -> Any:
        handle = self._keys.get(key)
        if handle is None:
            return None
        return handle.debounced.flush()

    def flush_all(self) -> dict[Hashable, Any]:
        """Flush every key and return the results by key."""
        return {key: handle.debounced.flush() for key, handle in list(self._keys.items())}

    def cancel(self, key: Hashable) -> None:
        """Tear down *key*: disarm its timer and forget it."""
        handle = self._keys.pop(key, None)
        if handle is None:
            return
        handle.debounced.cancel()
        logger.debug("Cancelled debouncer for key %r", key)

    def _get_or_create(self, key: Hashable) -> _KeyHandle:
        handle = self._keys.get(key)
        if handle is None:
            handle = _KeyHandle(debounced=Debounced(self._func, self.delay, self.options))
            self._keys[key] = handle
            logger.debug("Created debouncer for key %r", key)
        return handle

    def reap(self) -> list[Hashable]:
        """Remove keys idle for longer than ``idle_timeout``. Returns the removed keys."""
        if self.idle_timeout is None:
            return []

        now = time.monotonic()
        to_remove = [
            key
            for key, handle in self._keys.items()
            if not handle.debounced.pending and now - handle.last_activity > self.idle_timeout
        ]
        for key in to_remove:
            self._keys.pop(key).debounced.cancel()
        if to_remove:
            logger.debug("Reaped %d idle debouncer(s)", len(to_remove))
        return to_remove

    async def start(self) -> None:
        """Start the idle-key reaper loop, if ``idle_timeout`` is set."""
        if self.idle_timeout is not None and self._reaper_task is None:
            self._reaper_task = asyncio.create_task(self._reaper_loop())

    async def close(self) -> None:
        """Stop the reaper and cancel every key."""
        if self._reaper_task is not None:
            self._reaper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reaper_task
            self._reaper_task = None

        for handle in self._keys.values():
            handle.debounced.cancel()
        self._keys.clear()

    async def _reaper_loop(self) -> None:
        assert self.idle_timeout is not None
        while True:
            await asyncio.sleep(self.idle_timeout / 2)
            self.reap()

    async def __aenter__(self) -> KeyedDebouncer:
        await self.start()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"KeyedDebouncer(delay={self.delay}, "
            f"leading={self.options.leading}, "
            f"trailing={self.options.trailing}, "
            f"active_keys={self.active_keys})"
        )
