"""Core ``Debounced`` class: the debounce scheduler state machine."""

from __future__ import annotations

import inspect
import logging
from asyncio import AbstractEventLoop, Future, TimerHandle, ensure_future, get_running_loop
from collections.abc import Callable, Mapping
from functools import update_wrapper
from types import MethodType
from typing import Any, Generic, ParamSpec, TypeVar

from hushcall.config import DebounceOptions

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


class Debounced(Generic[P, R]):
    """Wrap *func* so that bursts of calls collapse into fewer invocations.

    Every call records its arguments as the pending invocation and (re)starts
    a single-shot timer of *delay* seconds. The window slides: a call that
    arrives while the timer is armed restarts the countdown.

    - ``leading``: the first call of a burst invokes *func* immediately.
    - ``trailing``: when the timer expires, *func* is invoked with the
      arguments of the last call, unless the leading edge already covered
      that call.

    Calls that do not invoke *func* return the stale result of the previous
    invocation (``None`` before the first one).

    Example::

        delay=0.1, leading=True, trailing=True

        t=0.00 d(1)  -> f(1) runs now, timer armed
        t=0.03 d(2)  -> timer re-armed, returns result of f(1)
        t=0.06 d(3)  -> timer re-armed, returns result of f(1)
        t=0.16       -> f(3) runs

    Errors raised by *func* are not caught. On the leading edge and in
    :meth:`flush` they reach the caller; on the trailing edge they escape the
    timer callback and are reported by the event loop's exception handler.

    If *func* returns an awaitable it is wrapped in a future on the instance's
    loop and that future becomes the stored result, so calls and :meth:`flush`
    return that future. The scheduler never awaits it.

    Used as a method decorator, every object gets its own scheduler, bound to
    the object and cached on it the first time the attribute is read.

    Complexity:
        Time:   O(1) per call
        Memory: O(1), only the latest arguments are kept
    """

    def __init__(
        self,
        func: Callable[P, R],
        delay: float,
        options: DebounceOptions | Mapping[str, Any] | None = None,
        *,
        loop: AbstractEventLoop | None = None,
    ) -> None:
        if not callable(func):
            raise TypeError(f"Expected a callable, got {type(func).__name__}")

        update_wrapper(self, func)
        self._name = getattr(func, "__qualname__", repr(func))
        self.func = func
        self.delay = delay
        self._options = DebounceOptions.coerce(options)
        self._loop = loop
        self._timer_handle: TimerHandle | None = None
        self._pending: tuple[tuple[Any, ...], dict[str, Any]] | None = None
        self._invoked = False
        self._last_result: Any = None
        self._attr_name: str | None = None

    @property
    def options(self) -> DebounceOptions:
        return self._options

    @property
    def pending(self) -> bool:
        """Whether a timer is currently armed."""
        return self._timer_handle is not None

    @property
    def last_result(self) -> Any:
        """Return value of the most recent actual invocation, if any."""
        return self._last_result

    def _get_loop(self) -> AbstractEventLoop:
        if self._loop is None or (self._timer_handle is None and self._loop.is_closed()):
            self._loop = get_running_loop()
        return self._loop

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> R | Future[Any] | None:
        loop = self._get_loop()
        self._pending = (args, kwargs)

        if self._timer_handle is None:
            self._invoked = False
            self._arm(loop)
            if self._options.leading:
                logger.debug("Leading invocation of %s", self._name)
                return self._invoke(loop, leading=True)
            return self._last_result

        # A newer call is pending than the one the leading edge ran.
        self._invoked = False
        self._arm(loop)
        return self._last_result

    def cancel(self) -> None:
        """Disarm the timer and drop pending arguments. Keeps ``last_result``."""
        if self._timer_handle is not None:
            self._timer_handle.cancel()
            self._timer_handle = None
            logger.debug("Cancelled pending invocation of %s", self._name)
        self._invoked = False
        self._pending = None

    def flush(self) -> R | Future[Any] | None:
        """Run the trailing edge now if a timer is armed.

        Returns the fresh result, or the last stored result when nothing is
        armed.
        """
        if self._timer_handle is None:
            return self._last_result

        self._timer_handle.cancel()
        logger.debug("Flushing %s", self._name)
        return self._timer_expired()

    def _arm(self, loop: AbstractEventLoop) -> None:
        if self._timer_handle is not None:
            self._timer_handle.cancel()
        self._timer_handle = loop.call_later(self.delay, self._timer_expired)

    def _invoke(self, loop: AbstractEventLoop, *, leading: bool) -> Any:
        # Window state is settled before func runs; func may call back in.
        assert self._pending is not None
        args, kwargs = self._pending
        self._pending = None
        self._invoked = leading

        result = self.func(*args, **kwargs)
        if inspect.isawaitable(result):
            result = ensure_future(result, loop=loop)
        self._last_result = result
        return result

    def _timer_expired(self) -> Any:
        self._timer_handle = None
        fire = self._options.trailing and not self._invoked and self._pending is not None
        self._invoked = False
        if not fire:
            self._pending = None
            return self._last_result

        logger.debug("Trailing invocation of %s", self._name)
        return self._invoke(self._get_loop(), leading=False)

    def __set_name__(self, owner: type, name: str) -> None:
        self._attr_name = name

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self

        name = self._attr_name or getattr(self, "__name__", None)
        if name is None:
            raise TypeError("Cannot bind a Debounced without an attribute name")
        try:
            cache = instance.__dict__
        except AttributeError:
            raise TypeError(
                f"No '__dict__' attribute on {type(instance).__name__!r} to cache debounced method {name!r}"
            ) from None

        bound = cache.get(name)
        if not isinstance(bound, Debounced):
            bound = Debounced(MethodType(self.func, instance), self.delay, self._options, loop=self._loop)
            cache[name] = bound
        return bound

    def __repr__(self) -> str:
        return (
            f"Debounced(func={self._name}, "
            f"delay={self.delay}, "
            f"leading={self._options.leading}, "
            f"trailing={self._options.trailing}, "
            f"pending={self.pending})"
        )
