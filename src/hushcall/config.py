"""Configuration types for the hushcall library."""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any


@dataclass(frozen=True, slots=True)
class DebounceOptions:
    """Edge configuration for a :class:`~hushcall.core.Debounced` instance.

    Attributes:
        leading: Invoke the wrapped function immediately on the first call
                 of a burst.
        trailing: Invoke the wrapped function once the burst has been quiet
                  for the full delay, with the arguments of the last call.

    Disabling both edges is allowed and produces a wrapper that never invokes
    anything.
    """

    leading: bool = False
    trailing: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.leading, bool):
            raise TypeError(f"leading must be a bool, got {self.leading!r}")

        if not isinstance(self.trailing, bool):
            raise TypeError(f"trailing must be a bool, got {self.trailing!r}")

    @classmethod
    def throttle(cls) -> "DebounceOptions":
        """Leading-only preset used by :func:`~hushcall.decorator.throttle`."""
        return cls(leading=True, trailing=False)

    @classmethod
    def coerce(cls, value: "DebounceOptions | Mapping[str, Any] | None") -> "DebounceOptions":
        """Build options from ``None``, an existing instance or a mapping.

        Mapping keys default individually, so ``{"leading": True}`` keeps
        ``trailing=True``.
        """
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            known = {f.name for f in fields(cls)}
            unknown = set(value) - known
            if unknown:
                raise TypeError(f"Unknown debounce options: {', '.join(sorted(map(str, unknown)))}")
            return cls(**value)
        raise TypeError(f"options must be DebounceOptions, a mapping or None, got {type(value).__name__}")
