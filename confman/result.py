"""Outcome of a reload delivered to consumers: a value or a ConfigError, never both."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from confman.errors import ConfigError

T = TypeVar("T")


@dataclass(frozen=True)
class LoadResult(Generic[T]):
    """
    Build with success() or failure(). `ok` is explicit, so success(None) (a
    document that is an explicit null) is distinguishable from a failure.
    """

    ok: bool
    value: T | None = None
    error: ConfigError | None = None

    def __post_init__(self) -> None:
        if self.ok and self.error is not None:
            raise ValueError("successful LoadResult cannot carry an error")
        if not self.ok and (self.error is None or self.value is not None):
            raise ValueError("failed LoadResult needs an error and no value")

    @classmethod
    def success(cls, value: T) -> "LoadResult[T]":
        return cls(True, value=value)

    @classmethod
    def failure(cls, error: ConfigError) -> "LoadResult[T]":
        return cls(False, error=error)

    def unwrap(self) -> T:
        """Return the value or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
