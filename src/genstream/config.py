"""Configuration models and loader for genstream.

Single source of truth for client settings and their defaults. Values are
resolved from CLI overrides, then the environment, then ``config.toml``.
"""

from __future__ import annotations

import os
import stat
import tomllib
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from genstream.paths import get_genstream_home


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


DEFAULT_BASE_URL = "https://ai.gitee.com/v1"
DEFAULT_MODEL = "qwen2-7b-instruct"
DEFAULT_EMPTY_MESSAGES_LIMIT = 300
DEFAULT_TIMEOUT_SECONDS = 60.0

EXPECTED_FILE_MODE = stat.S_IRUSR | stat.S_IWUSR  # 0o600


class Settings(BaseModel):
    """Resolved client settings."""

    model_config = ConfigDict(frozen=True, validate_default=True, extra="forbid")

    api_key: str | None = Field(default=None, repr=False)
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    empty_messages_limit: int = Field(default=DEFAULT_EMPTY_MESSAGES_LIMIT, ge=1)
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    log_level: LogLevel = LogLevel.INFO

    @field_validator("api_key")
    @classmethod
    def _strip_api_key(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        return stripped if stripped else None

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        stripped = value.strip().rstrip("/")
        if not stripped:
            raise ValueError("base_url cannot be empty")
        if not stripped.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return stripped

    @field_validator("model")
    @classmethod
    def _validate_model(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("model cannot be empty")
        return value.strip()

    def __str__(self) -> str:
        # Never render the credential.
        return "<genstream Settings>"


def default_config_path() -> Path:
    return get_genstream_home() / "config.toml"


def load_settings(
    cli_overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
    config_path: Path | str | None = None,
    *,
    create_if_missing: bool = False,
) -> Settings:
    env = os.environ if env is None else env
    cli_overrides = cli_overrides or {}
    path = Path(config_path) if config_path else default_config_path()

    if not path.exists() and create_if_missing:
        write_config(Settings(), path)

    config_data: dict[str, Any] = {}
    if path.exists():
        _ensure_permissions(path)
        config_data = _read_toml(path)

    defaults = Settings()

    api_key = _first_value(
        _clean_str(cli_overrides.get("api_key")),
        _clean_str(env.get("GENSTREAM_API_KEY")),
        _clean_str(_get_config_value(config_data, "auth", "api_key")),
        defaults.api_key,
    )

    base_url = _first_value(
        _clean_str(cli_overrides.get("base_url")),
        _clean_str(env.get("GENSTREAM_BASE_URL")),
        _clean_str(_get_config_value(config_data, "client", "base_url")),
        defaults.base_url,
    )

    model = _first_value(
        _clean_str(cli_overrides.get("model")),
        _clean_str(_get_config_value(config_data, "client", "model")),
        defaults.model,
    )

    empty_messages_limit = _first_value(
        cli_overrides.get("empty_messages_limit"),
        _get_config_value(config_data, "client", "empty_messages_limit"),
        defaults.empty_messages_limit,
    )

    timeout = _first_value(
        cli_overrides.get("timeout"),
        _get_config_value(config_data, "client", "timeout"),
        defaults.timeout,
    )

    log_level = _first_value(
        _clean_str(cli_overrides.get("log_level")),
        _clean_str(_get_config_value(config_data, "logging", "log_level")),
        defaults.log_level,
    )

    return Settings(
        api_key=api_key,
        base_url=base_url,
        model=model,
        empty_messages_limit=empty_messages_limit,
        timeout=timeout,
        log_level=_coerce_enum(log_level, LogLevel, LogLevel.INFO),
    )


def write_config(settings: Settings, config_path: Path | str | None = None) -> Path:
    path = Path(config_path) if config_path else default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    sections: list[str] = []
    _append_section(sections, "auth", {"api_key": settings.api_key})
    _append_section(
        sections,
        "client",
        {
            "base_url": settings.base_url,
            "model": settings.model,
            "empty_messages_limit": settings.empty_messages_limit,
            "timeout": settings.timeout,
        },
    )
    _append_section(sections, "logging", {"log_level": settings.log_level.value})

    content = "\n\n".join(filter(None, sections)) + "\n"
    path.write_text(content, encoding="utf-8")
    path.chmod(EXPECTED_FILE_MODE)
    return path


def _ensure_permissions(path: Path) -> None:
    current_mode = stat.S_IMODE(path.stat().st_mode)
    if current_mode != EXPECTED_FILE_MODE:
        path.chmod(EXPECTED_FILE_MODE)


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _get_config_value(config: Mapping[str, Any], section: str, key: str) -> Any:
    section_data = config.get(section)
    if not isinstance(section_data, dict):
        return None
    return section_data.get(key)


def _clean_str(value: Any) -> Any:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    return value


def _first_value(*candidates: Any) -> Any:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def _coerce_enum(value: Any, enum_cls: type[Enum], default: Enum) -> Any:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value)
        except ValueError:
            return default
    return default


def _append_section(parts: list[str], name: str, values: Mapping[str, Any]) -> None:
    filtered = {k: v for k, v in values.items() if v is not None}
    if not filtered:
        return
    lines = [f"[{name}]"]
    for key, val in filtered.items():
        if isinstance(val, str):
            escaped = val.replace("\\", "\\\\").replace('"', '\\"')
            lines.append(f'{key} = "{escaped}"')
        elif isinstance(val, Enum):
            lines.append(f'{key} = "{val.value}"')
        else:
            lines.append(f"{key} = {val}")
    parts.append("\n".join(lines))


__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_EMPTY_MESSAGES_LIMIT",
    "DEFAULT_MODEL",
    "LogLevel",
    "Settings",
    "default_config_path",
    "load_settings",
    "write_config",
]
