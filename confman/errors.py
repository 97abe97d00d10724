"""Error type raised by the loader, watcher and scheduler."""

from __future__ import annotations

from enum import Enum


class ErrorCause(str, Enum):
    """What went wrong while loading or watching a config."""

    INITIALIZATION = "initialization"
    FILE_OPEN = "file_open"
    FILE_FORMAT_UNSUPPORTED = "file_format_unsupported"
    DESERIALIZING = "deserializing"
    PATH_NOT_SET = "path_not_set"
    WATCHER_INIT_FAILED = "watcher_init_failed"


class ConfigError(Exception):
    """
    Single exception for every confman failure.

    Callers branch on `cause`; `description` carries the underlying message
    (I/O error, decoder error, watchdog error) when there is one.
    """

    def __init__(self, cause: ErrorCause, description: str | None = None):
        super().__init__(cause, description)
        self._cause = cause
        self._description = description

    @property
    def cause(self) -> ErrorCause:
        return self._cause

    @property
    def description(self) -> str | None:
        return self._description

    def __str__(self) -> str:
        if self._description:
            return f"{self._cause.value}: {self._description}"
        return self._cause.value

    def __repr__(self) -> str:
        return f"ConfigError({self._cause.name}, {self._description!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigError):
            return NotImplemented
        return (self._cause, self._description) == (other._cause, other._description)

    def __hash__(self) -> int:
        return hash((self._cause, self._description))
