"""
Result type for per-item outcomes.

Stage processors and guarded external calls return Result[T, E] instead of
raising, so one failing news item never unwinds past the stage runner:
- Result.ok(payload) when the item's stage work succeeded
- Result.err(error) when it failed after retries
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TypeVar, Generic, Optional

T = TypeVar('T')
E = TypeVar('E')


@dataclass(frozen=True)
class Result(Generic[T, E]):
    """
    Explicit success/failure value.

    Examples:
        >>> Result.ok({"media_refs": ["/img/a.png"]}).is_ok()
        True
        >>> Result.err("timeout").unwrap_or({})
        {}
    """

    _value: Optional[T] = None
    _error: Optional[E] = None
    _is_ok: bool = False

    @staticmethod
    def ok(value: T) -> Result[T, E]:
        """Create a successful Result."""
        return Result(_value=value, _is_ok=True)

    @staticmethod
    def err(error: E) -> Result[T, E]:
        """Create a failed Result."""
        return Result(_error=error, _is_ok=False)

    def is_ok(self) -> bool:
        return self._is_ok

    def is_err(self) -> bool:
        return not self._is_ok

    def unwrap(self) -> T:
        """
        Get the success value or raise ValueError.
        Use only when you're certain the Result is Ok.
        """
        if not self._is_ok:
            raise ValueError(f"Called unwrap() on error Result: {self._error}")
        return self._value  # type: ignore

    def unwrap_or(self, default: T) -> T:
        return self._value if self._is_ok else default  # type: ignore

    def unwrap_err(self) -> E:
        """
        Get the error value or raise ValueError.
        Use only when you're certain the Result is Err.
        """
        if self._is_ok:
            raise ValueError(f"Called unwrap_err() on ok Result: {self._value}")
        return self._error  # type: ignore

    def __repr__(self) -> str:
        if self._is_ok:
            return f"Result.ok({self._value!r})"
        return f"Result.err({self._error!r})"

    def __bool__(self) -> bool:
        """True if Ok."""
        return self._is_ok

