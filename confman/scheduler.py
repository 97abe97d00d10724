"""
Scheduled reload: re-read a config file at a fixed interval and deliver each LoadResult.

Runs one daemon thread per schedule. Intervals only; cron expressions are not parsed.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Generic, TypeVar

import structlog

from confman.errors import ConfigError, ErrorCause
from confman.formats import ConfigFormat
from confman.loader import try_load_from_path
from confman.settings import LoaderSettings, get_settings
from confman.watcher import Consumer, WatchState

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class ScheduledReloader(Generic[T]):
    """Reload `path` every `interval_seconds`; first reload happens one interval after start()."""

    def __init__(
        self,
        path: str | Path | None,
        fmt: ConfigFormat | str | None,
        target: type[T],
        consumer: Consumer,
        interval_seconds: float,
        *,
        expand_env: bool = False,
        settings: LoaderSettings | None = None,
    ):
        self._raw_path = path
        self._fmt = fmt
        self._target = target
        self._consumer = consumer
        self.interval_seconds = interval_seconds
        self._expand_env = expand_env
        self._settings = settings or get_settings()
        self.path: Path | None = None
        self._state = WatchState.UNINITIALIZED
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> WatchState:
        return self._state

    def start(self) -> "ScheduledReloader[T]":
        if self._raw_path is None or str(self._raw_path).strip() == "":
            raise ConfigError(
                ErrorCause.PATH_NOT_SET,
                "scheduled reload needs a config file path; configuration was not loaded from a file",
            )
        if self.interval_seconds <= 0:
            raise ConfigError(
                ErrorCause.INITIALIZATION, f"reload interval must be positive, got {self.interval_seconds}"
            )
        with self._lock:
            if self._state is not WatchState.UNINITIALIZED:
                raise ConfigError(ErrorCause.INITIALIZATION, f"scheduler already {self._state.value}")
            self.path = Path(self._raw_path).expanduser().resolve()
            self._fmt = ConfigFormat.from_path(self.path) if self._fmt is None else ConfigFormat.parse(self._fmt)
            self._thread = threading.Thread(target=self._run, name="confman-schedule", daemon=True)
            self._state = WatchState.WATCHING
            self._thread.start()
        logger.info("config_schedule_started", path=str(self.path), interval_seconds=self.interval_seconds)
        return self

    def stop(self) -> None:
        """Stop the schedule. Terminal and idempotent."""
        with self._lock:
            if self._state is WatchState.STOPPED:
                return
            self._state = WatchState.STOPPED
            self._stop_event.set()
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
            logger.info("config_schedule_stopped", path=str(self.path))

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            result = try_load_from_path(
                self._fmt,
                self.path,
                self._target,
                expand_env=self._expand_env,
                settings=self._settings,
            )
            if not result.ok:
                logger.warning(
                    "config_reload_failed",
                    path=str(self.path),
                    cause=result.error.cause.value,
                    error=result.error.description,
                )
            try:
                self._consumer(result)
            except Exception:
                logger.exception("config_consumer_failed", path=str(self.path))

    def __enter__(self) -> "ScheduledReloader[T]":
        if self._state is WatchState.UNINITIALIZED:
            self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
