"""
Format tags and decoders.

- ConfigFormat: json / yaml / toml selector, parsed from a tag or a file suffix.
- decode(): turn text into plain Python data with the format's library.
- available_formats(): formats whose decoder library is importable.
"""

from __future__ import annotations

import importlib.util
import json
from enum import Enum
from pathlib import Path
from typing import Any

from confman.errors import ConfigError, ErrorCause


class ConfigFormat(str, Enum):
    JSON = "json"
    YAML = "yaml"
    TOML = "toml"

    @classmethod
    def parse(cls, value: "ConfigFormat | str") -> "ConfigFormat":
        """Accept a member or a case-insensitive tag such as 'YAML'."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise ConfigError(
                ErrorCause.FILE_FORMAT_UNSUPPORTED,
                f"unknown config format {value!r}; expected one of: {', '.join(f.value for f in cls)}",
            ) from e

    @classmethod
    def from_path(cls, path: str | Path) -> "ConfigFormat":
        """Infer the format from the file suffix (.json, .yaml/.yml, .toml)."""
        suffix = Path(path).suffix.lower()
        fmt = _SUFFIXES.get(suffix)
        if fmt is None:
            raise ConfigError(
                ErrorCause.FILE_FORMAT_UNSUPPORTED,
                f"cannot infer config format from suffix {suffix!r} of {path}",
            )
        return fmt


_SUFFIXES: dict[str, ConfigFormat] = {
    ".json": ConfigFormat.JSON,
    ".yaml": ConfigFormat.YAML,
    ".yml": ConfigFormat.YAML,
    ".toml": ConfigFormat.TOML,
}

# Module that must be importable for each decoder
_DECODER_MODULES: dict[ConfigFormat, str] = {
    ConfigFormat.JSON: "json",
    ConfigFormat.YAML: "yaml",
    ConfigFormat.TOML: "tomllib",
}


def available_formats() -> frozenset[ConfigFormat]:
    """Formats whose decoder library can be imported in this environment."""
    return frozenset(
        fmt for fmt, module in _DECODER_MODULES.items() if importlib.util.find_spec(module) is not None
    )


def _decode_json(text: str) -> Any:
    try:
        return json.loads(text)
    # JSONDecodeError, oversized int literals (ValueError), deep nesting
    except (ValueError, RecursionError) as e:
        raise ConfigError(ErrorCause.DESERIALIZING, str(e)) from e


def _decode_yaml(text: str) -> Any:
    import yaml

    try:
        return yaml.safe_load(text)
    except (yaml.YAMLError, RecursionError) as e:
        raise ConfigError(ErrorCause.DESERIALIZING, str(e)) from e


def _decode_toml(text: str) -> Any:
    import tomllib

    try:
        return tomllib.loads(text)
    except (ValueError, RecursionError) as e:
        raise ConfigError(ErrorCause.DESERIALIZING, str(e)) from e


_DECODERS = {
    ConfigFormat.JSON: _decode_json,
    ConfigFormat.YAML: _decode_yaml,
    ConfigFormat.TOML: _decode_toml,
}


def decode(fmt: ConfigFormat, text: str) -> Any:
    """
    Decode text into plain data (dict/list/scalars). Blank documents become {}; an explicit null stays None.

    Raises:
        ConfigError(DESERIALIZING): any decoder failure, with the decoder's message.
    """
    data = _DECODERS[fmt](text)
    if data is None and not text.strip():
        return {}
    return data
