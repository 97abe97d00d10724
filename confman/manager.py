"""
Builder front-end: configure once from a file or string, then run() or attach reloaders.

    cfg = ConfigManager.init(AppConfig).configure_from_path("yaml", "/etc/app.yaml")
    watcher = cfg.with_hot_reload(on_update)
    settings = cfg.run()
"""

from __future__ import annotations

from pathlib import Path
from typing import Generic, TypeVar

from confman.errors import ConfigError, ErrorCause
from confman.formats import ConfigFormat
from confman.loader import load_from_path, load_from_text
from confman.scheduler import ScheduledReloader
from confman.settings import LoaderSettings
from confman.watcher import Consumer, ReloadWatcher

T = TypeVar("T")


class ConfigManagerInit(Generic[T]):
    """Holds the target type, the loaded value and (for file sources) the path and format."""

    def __init__(self, target: type[T], *, expand_env: bool = False, settings: LoaderSettings | None = None):
        self.target = target
        self.expand_env = expand_env
        self.settings = settings
        self.path: Path | None = None
        self.format: ConfigFormat | None = None
        self.configuration: T | None = None
        self._configured = False

    def configure_from_path(self, fmt: ConfigFormat | str | None, path: str | Path) -> "ConfigManagerInit[T]":
        """Load from a file and remember the path for hot reload. Absolute paths recommended."""
        path = Path(path)
        fmt = ConfigFormat.from_path(path) if fmt is None else ConfigFormat.parse(fmt)
        self.configuration = load_from_path(
            fmt, path, self.target, expand_env=self.expand_env, settings=self.settings
        )
        self.path = path
        self.format = fmt
        self._configured = True
        return self

    def configure_from_str(self, fmt: ConfigFormat | str, text: str) -> "ConfigManagerInit[T]":
        """Load from a string. Clears any remembered path, so hot reload is unavailable afterwards."""
        fmt = ConfigFormat.parse(fmt)
        self.configuration = load_from_text(
            fmt, text, self.target, expand_env=self.expand_env, settings=self.settings
        )
        self.path = None
        self.format = fmt
        self._configured = True
        return self

    def with_hot_reload(self, consumer: Consumer, *, debounce_seconds: float | None = None) -> ReloadWatcher[T]:
        """Start watching the configured file. Raises PATH_NOT_SET after configure_from_str()."""
        watcher = ReloadWatcher(
            self.path,
            self.format,
            self.target,
            consumer,
            debounce_seconds=debounce_seconds,
            expand_env=self.expand_env,
            settings=self.settings,
        )
        return watcher.start()

    def with_schedule(self, consumer: Consumer, interval_seconds: float) -> ScheduledReloader[T]:
        """Reload the configured file every interval_seconds. Raises PATH_NOT_SET after configure_from_str()."""
        reloader = ScheduledReloader(
            self.path,
            self.format,
            self.target,
            consumer,
            interval_seconds,
            expand_env=self.expand_env,
            settings=self.settings,
        )
        return reloader.start()

    def run(self) -> T:
        """Return the loaded configuration. Raises INITIALIZATION if nothing was configured."""
        if not self._configured:
            raise ConfigError(ErrorCause.INITIALIZATION, "could not find configuration in instance")
        return self.configuration  # type: ignore[return-value]


class ConfigManager:
    @staticmethod
    def init(target: type[T], *, expand_env: bool = False, settings: LoaderSettings | None = None) -> ConfigManagerInit[T]:
        return ConfigManagerInit(target, expand_env=expand_env, settings=settings)

    @staticmethod
    def from_path(
        fmt: ConfigFormat | str | None,
        path: str | Path,
        target: type[T],
        *,
        expand_env: bool = False,
        settings: LoaderSettings | None = None,
    ) -> T:
        """One-shot load_from_path()."""
        return load_from_path(fmt, path, target, expand_env=expand_env, settings=settings)

    @staticmethod
    def from_str(
        fmt: ConfigFormat | str,
        text: str,
        target: type[T],
        *,
        expand_env: bool = False,
        settings: LoaderSettings | None = None,
    ) -> T:
        """One-shot load_from_text()."""
        return load_from_text(fmt, text, target, expand_env=expand_env, settings=settings)
