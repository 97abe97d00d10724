"""
Config loader: pick the decoder for a format, decode, validate into the caller's type.

- load_from_text(): decode an in-memory string; no I/O.
- load_from_path(): read the whole file as UTF-8, then as load_from_text().
- Capability check happens before any I/O or decoding.
- Target type is anything pydantic can validate (BaseModel, dataclass, TypedDict, list[...]).
- Optional ${VAR} / $VAR substitution in decoded string values.
"""

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, TypeVar

import structlog
from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError

from confman.errors import ConfigError, ErrorCause
from confman.formats import ConfigFormat, decode
from confman.result import LoadResult
from confman.settings import LoaderSettings, get_settings

T = TypeVar("T")

logger = structlog.get_logger(__name__)

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings; recurse into dict/list. Unknown names stay as-is."""
    if isinstance(value, str):
        def repl(m: re.Match[str]) -> str:
            name = m.group(1) or m.group(2) or ""
            return os.environ.get(name, m.group(0))
        return _ENV_PATTERN.sub(repl, value)
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


@lru_cache(maxsize=128)
def _type_adapter(target: Any) -> TypeAdapter:
    try:
        return TypeAdapter(target)
    except PydanticSchemaGenerationError as e:
        raise ConfigError(ErrorCause.INITIALIZATION, f"cannot deserialize into {target!r}: {e}") from e


def _check_enabled(fmt: ConfigFormat | str, settings: LoaderSettings | None) -> ConfigFormat:
    fmt = ConfigFormat.parse(fmt)
    settings = settings or get_settings()
    if not settings.is_enabled(fmt):
        raise ConfigError(ErrorCause.FILE_FORMAT_UNSUPPORTED, f"{fmt.value} support not enabled")
    return fmt


def _deserialize(fmt: ConfigFormat, text: str, target: type[T], expand_env: bool) -> T:
    data = decode(fmt, text)
    if expand_env:
        data = _substitute_env(data)
    try:
        return _type_adapter(target).validate_python(data)
    except ValidationError as e:
        raise ConfigError(ErrorCause.DESERIALIZING, str(e)) from e


def load_from_text(
    fmt: ConfigFormat | str,
    text: str,
    target: type[T],
    *,
    expand_env: bool = False,
    settings: LoaderSettings | None = None,
) -> T:
    """
    Deserialize a config string into target.

    Args:
        fmt: Format tag (ConfigFormat or 'json' / 'yaml' / 'toml').
        text: Document text.
        target: Type to validate into.
        expand_env: Substitute ${VAR} / $VAR in string values.
        settings: Override cached LoaderSettings (capability set).

    Returns:
        Fully validated instance of target.

    Raises:
        ConfigError: FILE_FORMAT_UNSUPPORTED, DESERIALIZING or INITIALIZATION.
    """
    fmt = _check_enabled(fmt, settings)
    return _deserialize(fmt, text, target, expand_env)


def load_from_path(
    fmt: ConfigFormat | str | None,
    path: str | Path,
    target: type[T],
    *,
    expand_env: bool = False,
    settings: LoaderSettings | None = None,
) -> T:
    """
    Read a config file and deserialize it into target.

    fmt=None infers the format from the file suffix. The capability check runs
    before the file is opened.

    Raises:
        ConfigError: FILE_OPEN when the file cannot be read as UTF-8 text, plus
            everything load_from_text() raises.
    """
    path = Path(path)
    fmt = _check_enabled(ConfigFormat.from_path(path) if fmt is None else fmt, settings)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(ErrorCause.FILE_OPEN, str(e)) from e
    value = _deserialize(fmt, text, target, expand_env)
    logger.debug("config_loaded", path=str(path), format=fmt.value)
    return value


def try_load_from_path(
    fmt: ConfigFormat | str | None,
    path: str | Path,
    target: type[T],
    *,
    expand_env: bool = False,
    settings: LoaderSettings | None = None,
) -> LoadResult[T]:
    """load_from_path() that returns a LoadResult instead of raising ConfigError."""
    try:
        return LoadResult.success(
            load_from_path(fmt, path, target, expand_env=expand_env, settings=settings)
        )
    except ConfigError as e:
        return LoadResult.failure(e)
