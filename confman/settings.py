"""
Loader settings: which formats are enabled, debounce window, observer type.

Read once from the environment and cached (reset_settings_cache() for tests):
- CONFMAN_ENABLED_FORMATS: comma list, e.g. "json,yaml" (default: every available format).
- CONFMAN_DEBOUNCE_SECONDS: hot-reload debounce window (default 0.3).
- CONFMAN_USE_POLLING: "1"/"true" to use watchdog's PollingObserver.
"""

import os

from pydantic import BaseModel, Field, ValidationError, field_validator

from confman.errors import ConfigError, ErrorCause
from confman.formats import ConfigFormat, available_formats

_settings: "LoaderSettings | None" = None


class LoaderSettings(BaseModel):
    """Capability set and hot-reload tuning."""

    model_config = {"frozen": True, "extra": "forbid"}

    enabled_formats: frozenset[ConfigFormat] = Field(default_factory=available_formats)
    debounce_seconds: float = Field(0.3, ge=0.0, le=60.0)
    use_polling: bool = False

    @field_validator("enabled_formats", mode="before")
    @classmethod
    def split_formats(cls, value):
        if isinstance(value, str):
            value = [v for v in value.split(",") if v.strip()]
        try:
            return frozenset(ConfigFormat.parse(v) for v in value)
        except ConfigError as e:
            raise ValueError(e.description) from e

    def is_enabled(self, fmt: ConfigFormat) -> bool:
        """Enabled in settings and the decoder library is importable."""
        return fmt in self.enabled_formats and fmt in available_formats()


def reset_settings_cache() -> None:
    """Clear cached settings (for tests). Next get_settings() re-reads the environment."""
    global _settings
    _settings = None


def get_settings() -> LoaderSettings:
    """Return loader settings; built from CONFMAN_* env vars on first call."""
    global _settings
    if _settings is None:
        data: dict[str, object] = {}
        if os.environ.get("CONFMAN_ENABLED_FORMATS") is not None:
            data["enabled_formats"] = os.environ["CONFMAN_ENABLED_FORMATS"]
        if os.environ.get("CONFMAN_DEBOUNCE_SECONDS"):
            data["debounce_seconds"] = os.environ["CONFMAN_DEBOUNCE_SECONDS"]
        if os.environ.get("CONFMAN_USE_POLLING"):
            data["use_polling"] = os.environ["CONFMAN_USE_POLLING"]
        try:
            _settings = LoaderSettings.model_validate(data)
        except ValidationError as e:
            raise ConfigError(ErrorCause.INITIALIZATION, f"invalid CONFMAN_* settings: {e}") from e
    return _settings
