import stat
from pathlib import Path

import pytest
from pydantic import ValidationError

from genstream.config import (
    DEFAULT_BASE_URL,
    LogLevel,
    Settings,
    default_config_path,
    load_settings,
    write_config,
)


def test_settings_defaults() -> None:
    settings = Settings()
    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.empty_messages_limit == 300
    assert settings.timeout == 60.0
    assert settings.api_key is None


def test_settings_never_render_api_key() -> None:
    settings = Settings(api_key="sk-secret")
    assert "sk-secret" not in str(settings)
    assert "sk-secret" not in repr(settings)


def test_settings_validation() -> None:
    with pytest.raises(ValidationError):
        Settings(model=" ")
    with pytest.raises(ValidationError):
        Settings(empty_messages_limit=0)
    with pytest.raises(ValidationError):
        Settings(base_url="ftp://example.com")
    with pytest.raises(ValidationError):
        Settings(timeout=0)


def test_settings_normalizes_values() -> None:
    settings = Settings(api_key="  ", base_url="https://api.test/v1/")
    assert settings.api_key is None
    assert settings.base_url == "https://api.test/v1"


def test_load_settings_missing_creates_config(tmp_path: Path) -> None:
    cfg = tmp_path / "config.toml"
    settings = load_settings(config_path=cfg, env={}, create_if_missing=True)
    assert cfg.exists()
    assert stat.S_IMODE(cfg.stat().st_mode) == 0o600
    assert settings == Settings()


def test_load_settings_reads_config_sections(tmp_path: Path) -> None:
    cfg = tmp_path / "config.toml"
    cfg.write_text(
        """
[auth]
api_key = "k"

[client]
base_url = "https://proxy.local/v1"
model = "deepseek-v2"
empty_messages_limit = 12
timeout = 5.5

[logging]
log_level = "debug"
""",
        encoding="utf-8",
    )

    settings = load_settings(config_path=cfg, env={})
    assert settings.api_key == "k"
    assert settings.base_url == "https://proxy.local/v1"
    assert settings.model == "deepseek-v2"
    assert settings.empty_messages_limit == 12
    assert settings.timeout == 5.5
    assert settings.log_level is LogLevel.DEBUG


def test_precedence_cli_then_env_then_file(tmp_path: Path) -> None:
    cfg = tmp_path / "config.toml"
    cfg.write_text('[auth]\napi_key = "file"\n\n[client]\nbase_url = "https://file.local"\n', encoding="utf-8")

    env = {"GENSTREAM_API_KEY": "env", "GENSTREAM_BASE_URL": "https://env.local"}
    settings = load_settings(config_path=cfg, env=env)
    assert settings.api_key == "env"
    assert settings.base_url == "https://env.local"

    settings = load_settings(cli_overrides={"api_key": "cli", "empty_messages_limit": 7}, config_path=cfg, env=env)
    assert settings.api_key == "cli"
    assert settings.empty_messages_limit == 7


def test_unknown_log_level_falls_back_to_info(tmp_path: Path) -> None:
    cfg = tmp_path / "config.toml"
    cfg.write_text('[logging]\nlog_level = "verbose"\n', encoding="utf-8")

    assert load_settings(config_path=cfg, env={}).log_level is LogLevel.INFO


def test_write_and_read_round_trip(tmp_path: Path) -> None:
    cfg = tmp_path / "config.toml"
    settings = Settings(
        api_key='to"ken',
        base_url="https://api.test/v1",
        model="qwen2-57b-instruct",
        empty_messages_limit=50,
        timeout=30.0,
        log_level=LogLevel.WARNING,
    )

    write_config(settings, cfg)
    reloaded = load_settings(config_path=cfg, env={})
    assert reloaded == settings


def test_write_config_skips_empty_sections(tmp_path: Path) -> None:
    cfg = tmp_path / "config.toml"
    write_config(Settings(), cfg)
    text = cfg.read_text()
    assert "[auth]" not in text
    assert "[client]" in text


def test_permissions_are_tightened(tmp_path: Path) -> None:
    cfg = tmp_path / "config.toml"
    cfg.write_text("", encoding="utf-8")
    cfg.chmod(0o644)

    load_settings(config_path=cfg, env={})
    assert stat.S_IMODE(cfg.stat().st_mode) == 0o600


def test_default_config_path_honors_home(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GENSTREAM_HOME", str(tmp_path))
    assert default_config_path() == tmp_path / "config.toml"
