"""Factory and decorator API for debounce and throttle wrappers."""

from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import Any, ParamSpec, TypeVar, overload

from hushcall.config import DebounceOptions
from hushcall.core import Debounced

P = ParamSpec("P")
R = TypeVar("R")

Decorator = Callable[[Callable[P, R]], Debounced[P, R]]


def _resolve_options(
    options: DebounceOptions | Mapping[str, Any] | None,
    leading: bool | None,
    trailing: bool | None,
) -> DebounceOptions:
    resolved = DebounceOptions.coerce(options)
    overrides = {}
    if leading is not None:
        overrides["leading"] = leading
    if trailing is not None:
        overrides["trailing"] = trailing
    return replace(resolved, **overrides) if overrides else resolved


@overload
def debounce(
    func: Callable[P, R],
    delay: float,
    options: DebounceOptions | Mapping[str, Any] | None = None,
    *,
    leading: bool | None = None,
    trailing: bool | None = None,
) -> Debounced[P, R]: ...


@overload
def debounce(
    func: None = None,
    *,
    delay: float,
    options: DebounceOptions | Mapping[str, Any] | None = None,
    leading: bool | None = None,
    trailing: bool | None = None,
) -> Decorator: ...


def debounce(
    func: Callable[P, R] | None = None,
    delay: float | None = None,
    options: DebounceOptions | Mapping[str, Any] | None = None,
    *,
    leading: bool | None = None,
    trailing: bool | None = None,
) -> Debounced[P, R] | Decorator:
    """Create a debounced wrapper around *func*.

    Bursts of calls spaced less than *delay* seconds apart collapse into at
    most one leading and one trailing invocation. ``leading`` and
    ``trailing`` override the matching fields of *options*.

    Args:
        func: The function to wrap. Omit it to get a decorator.
        delay: Quiet-period delay in seconds.
        options: A :class:`DebounceOptions`, a mapping of its fields, or None.
        leading: Invoke on the first call of a burst.
        trailing: Invoke after the burst has been quiet for *delay*.

    Examples:
    ```python
        # Direct wrapping
        refresh = debounce(recompute_scores, 0.5)
        refresh(circle_id)

        # As a decorator
        @debounce(delay=0.5, leading=True)
        def on_change(snapshot):
            ...

        # At teardown
        on_change.cancel()
    ```
    """
    if delay is None:
        raise TypeError("debounce() missing required argument: 'delay'")

    resolved = _resolve_options(options, leading, trailing)

    def decorator(fn: Callable[P, R]) -> Debounced[P, R]:
        return Debounced(fn, delay, resolved)

    if func is not None:
        return decorator(func)

    return decorator


@overload
def throttle(func: Callable[P, R], delay: float) -> Debounced[P, R]: ...


@overload
def throttle(func: None = None, *, delay: float) -> Decorator: ...


def throttle(
    func: Callable[P, R] | None = None,
    delay: float | None = None,
) -> Debounced[P, R] | Decorator:
    """Leading-edge debounce: ``debounce(func, delay, leading=True, trailing=False)``.

    The first call of a burst runs immediately and the rest of the burst is
    dropped. Calls keep sliding the window, so a steady stream faster than
    *delay* runs *func* only once. This is not fixed-rate throttling; use
    :class:`~hushcall.ratelimit.RateLimiter` to cap calls per interval.
    """
    return debounce(func, delay, DebounceOptions.throttle())
