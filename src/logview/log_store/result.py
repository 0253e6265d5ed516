"""Uniform outcome of a store operation: a value or a typed error."""

from __future__ import annotations

from typing import Generic, TypeVar

from logview.log_store.errors import LogStoreError

T = TypeVar("T")


class StoreResult(Generic[T]):
    """
    Success value or LogStoreError, never both.

    Operations always return one of these; the caller decides whether to
    surface the error (unwrap) or inspect and ignore it.
    """

    __slots__ = ("_value", "_error")

    def __init__(self, value: T | None = None, error: LogStoreError | None = None) -> None:
        self._value = value
        self._error = error

    @classmethod
    def success(cls, value: T) -> StoreResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: LogStoreError) -> StoreResult[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self._error is None

    @property
    def value(self) -> T | None:
        return self._value

    @property
    def error(self) -> LogStoreError | None:
        return self._error

    def unwrap(self) -> T:
        """Return the value or raise the stored error."""
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.ok

    def __repr__(self) -> str:
        if self._error is not None:
            return f"StoreResult(error={self._error!r})"
        return f"StoreResult(value={self._value!r})"
