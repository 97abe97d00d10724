"""Typed config loading from JSON / YAML / TOML, with hot reload and scheduled reload."""

from confman.errors import ConfigError, ErrorCause
from confman.formats import ConfigFormat, available_formats
from confman.loader import load_from_path, load_from_text, try_load_from_path
from confman.manager import ConfigManager, ConfigManagerInit
from confman.result import LoadResult
from confman.scheduler import ScheduledReloader
from confman.settings import LoaderSettings, get_settings, reset_settings_cache
from confman.watcher import ReloadWatcher, WatchState, start_watch

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "ConfigFormat",
    "ConfigManager",
    "ConfigManagerInit",
    "ErrorCause",
    "LoadResult",
    "LoaderSettings",
    "ReloadWatcher",
    "ScheduledReloader",
    "WatchState",
    "available_formats",
    "get_settings",
    "load_from_path",
    "load_from_text",
    "reset_settings_cache",
    "start_watch",
    "try_load_from_path",
]
