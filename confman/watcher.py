"""
Hot reload: watch one config file and deliver a fresh LoadResult on every change.

- watchdog observer on the file's parent directory (non-recursive), filtered to the file.
- Modified, created and moved-onto events count; deletes and directory events do not.
- Trailing-edge debounce: a burst of events produces one reload after the window.
- Reload re-reads the file from disk; failures go to the consumer, the watch keeps running.
- Consumer runs on the debounce timer thread, never on the caller's thread.

stop() is immediate for future events. A reload already past the state check
when stop() is called still delivers its result once.
"""

from __future__ import annotations

import os
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Generic, TypeVar

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from confman.errors import ConfigError, ErrorCause
from confman.formats import ConfigFormat
from confman.loader import try_load_from_path
from confman.result import LoadResult
from confman.settings import LoaderSettings, get_settings

T = TypeVar("T")

Consumer = Callable[[LoadResult[T]], None]

logger = structlog.get_logger(__name__)


class WatchState(str, Enum):
    UNINITIALIZED = "uninitialized"
    WATCHING = "watching"
    STOPPED = "stopped"


class _ConfigFileHandler(FileSystemEventHandler):
    """Forward events that touch the watched file to on_change."""

    def __init__(self, config_path: Path, on_change: Callable[[str], None]):
        super().__init__()
        self._config_path = config_path
        self._on_change = on_change

    def _matches(self, raw_path: Any) -> bool:
        if not raw_path:
            return False
        return Path(os.fsdecode(raw_path)).resolve() == self._config_path

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._on_change("modified")

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._on_change("created")

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(getattr(event, "dest_path", None)):
            self._on_change("moved")


class ReloadWatcher(Generic[T]):
    """
    Handle for one hot-reload subscription. Owned by whoever called start().

    Args:
        path: Config file to watch (resolved to an absolute path on start).
        fmt: Format tag; None infers it from the file suffix.
        target: Type each reload validates into.
        consumer: Called with a LoadResult after each debounced change.
        debounce_seconds: Coalescing window (default from LoaderSettings).
        expand_env: Substitute ${VAR} / $VAR on every reload.
        settings: Override cached LoaderSettings.
    """

    def __init__(
        self,
        path: str | Path | None,
        fmt: ConfigFormat | str | None,
        target: type[T],
        consumer: Consumer,
        *,
        debounce_seconds: float | None = None,
        expand_env: bool = False,
        settings: LoaderSettings | None = None,
    ):
        self._raw_path = path
        self._fmt = fmt
        self._target = target
        self._consumer = consumer
        self._expand_env = expand_env
        self._settings = settings or get_settings()
        self.debounce_seconds = (
            self._settings.debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self.path: Path | None = None
        self._state = WatchState.UNINITIALIZED
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._observer: Any = None

    @property
    def state(self) -> WatchState:
        return self._state

    def start(self) -> "ReloadWatcher[T]":
        """
        Subscribe to file changes.

        Raises:
            ConfigError: PATH_NOT_SET without a path, WATCHER_INIT_FAILED if the
                file is missing or watchdog cannot schedule the watch,
                INITIALIZATION if already started or stopped.
        """
        if self._raw_path is None or str(self._raw_path).strip() == "":
            raise ConfigError(
                ErrorCause.PATH_NOT_SET,
                "hot reload needs a config file path; configuration was not loaded from a file",
            )
        with self._lock:
            if self._state is not WatchState.UNINITIALIZED:
                raise ConfigError(ErrorCause.INITIALIZATION, f"watcher already {self._state.value}")
            path = Path(self._raw_path).expanduser().resolve()
            self._fmt = ConfigFormat.from_path(path) if self._fmt is None else ConfigFormat.parse(self._fmt)
            if not path.is_file():
                raise ConfigError(ErrorCause.WATCHER_INIT_FAILED, f"config file not found: {path}")
            observer = PollingObserver() if self._settings.use_polling else Observer()
            handler = _ConfigFileHandler(path, self._on_event)
            try:
                observer.schedule(handler, str(path.parent), recursive=False)
                observer.start()
            except OSError as e:
                observer.stop()
                raise ConfigError(ErrorCause.WATCHER_INIT_FAILED, str(e)) from e
            self.path = path
            self._observer = observer
            self._state = WatchState.WATCHING
        logger.info(
            "config_watcher_started",
            path=str(path),
            format=self._fmt.value,
            debounce_seconds=self.debounce_seconds,
        )
        return self

    def stop(self) -> None:
        """Cancel the watch. Terminal and idempotent."""
        with self._lock:
            if self._state is WatchState.STOPPED:
                return
            was_watching = self._state is WatchState.WATCHING
            self._state = WatchState.STOPPED
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            if threading.current_thread() is not observer:
                observer.join()
        if was_watching:
            logger.info("config_watcher_stopped", path=str(self.path))

    def _on_event(self, kind: str) -> None:
        """Restart the debounce timer; runs on the observer thread."""
        with self._lock:
            if self._state is not WatchState.WATCHING:
                return
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self.debounce_seconds, self._reload)
            timer.daemon = True
            timer.name = "confman-reload"
            self._timer = timer
            timer.start()
        logger.debug("config_change_detected", path=str(self.path), event_type=kind)

    def _reload(self) -> None:
        with self._lock:
            if self._state is not WatchState.WATCHING:
                return
            self._timer = None
        result = try_load_from_path(
            self._fmt,
            self.path,
            self._target,
            expand_env=self._expand_env,
            settings=self._settings,
        )
        if result.ok:
            logger.info("config_reloaded", path=str(self.path))
        else:
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

    def __enter__(self) -> "ReloadWatcher[T]":
        if self._state is WatchState.UNINITIALIZED:
            self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def start_watch(
    path: str | Path | None,
    fmt: ConfigFormat | str | None,
    target: type[T],
    consumer: Consumer,
    *,
    debounce_seconds: float | None = None,
    expand_env: bool = False,
    settings: LoaderSettings | None = None,
) -> ReloadWatcher[T]:
    """Create and start a ReloadWatcher; the caller owns the returned handle and must stop() it."""
    watcher = ReloadWatcher(
        path,
        fmt,
        target,
        consumer,
        debounce_seconds=debounce_seconds,
        expand_env=expand_env,
        settings=settings,
    )
    return watcher.start()
