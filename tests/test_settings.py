from __future__ import annotations

from pathlib import Path

import pydantic
import pytest

from editlink.patch.models import MissPolicy
from editlink.settings import (
    ConnectionSettings,
    LogLevel,
    PacingSettings,
    Settings,
    apply_env_overrides,
    load_settings,
)


def test_defaults_build_local_url():
    settings = Settings()
    assert settings.connection.resolve_url() == "ws://127.0.0.1:8007/api/v1/ws/local-test-user"
    assert settings.patch.on_miss == MissPolicy.ABORT
    assert settings.pacing.removal_pause_s == 0.6
    assert settings.pacing.insert_highlight_s == 1.0


def test_explicit_url_wins():
    conn = ConnectionSettings(url="wss://agent.example/ws/me", user_slug="other")
    assert conn.resolve_url() == "wss://agent.example/ws/me"


def test_load_yaml_with_env_interpolation(tmp_path: Path):
    cfg = tmp_path / "editlink.yaml"
    cfg.write_text(
        "\n".join(
            [
                "connection:",
                "  user_slug: ${env:TEST_SLUG}",
                "  reconnect_delay_s: 1.5",
                "pacing:",
                "  batch_lines: 4",
                "patch:",
                "  on_miss: skip",
                "logging:",
                "  default_level: debug",
                "  enabled_loggers:",
                "    aiohttp: warning",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(cfg, environ={"TEST_SLUG": "alice"})

    assert settings.connection.user_slug == "alice"
    assert settings.connection.reconnect_delay_s == 1.5
    assert settings.pacing.batch_lines == 4
    assert settings.patch.on_miss == MissPolicy.SKIP
    assert settings.logging.default_level == LogLevel.debug
    assert settings.logging.enabled_loggers == {"aiohttp": LogLevel.warning}


def test_unset_env_placeholder_is_kept(tmp_path: Path):
    cfg = tmp_path / "editlink.yaml"
    cfg.write_text("connection:\n  user_slug: ${env:NOT_SET_ANYWHERE}\n", encoding="utf-8")

    settings = load_settings(cfg, environ={})

    assert settings.connection.user_slug == "${env:NOT_SET_ANYWHERE}"


def test_load_json5(tmp_path: Path):
    cfg = tmp_path / "editlink.json5"
    cfg.write_text(
        "{\n  // comments are allowed\n  connection: { port: 9000 },\n}\n", encoding="utf-8"
    )

    settings = load_settings(cfg)

    assert settings.connection.port == 9000


def test_empty_file_gives_defaults(tmp_path: Path):
    cfg = tmp_path / "empty.yaml"
    cfg.write_text("", encoding="utf-8")
    assert load_settings(cfg) == Settings()


def test_non_mapping_root_rejected(tmp_path: Path):
    cfg = tmp_path / "list.yaml"
    cfg.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(cfg)


def test_unsupported_extension(tmp_path: Path):
    cfg = tmp_path / "settings.toml"
    cfg.write_text("", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(cfg)


def test_invalid_values_rejected():
    with pytest.raises(pydantic.ValidationError):
        PacingSettings(batch_lines=0)
    with pytest.raises(pydantic.ValidationError):
        ConnectionSettings(reconnect_delay_s=-1)


def test_env_overrides():
    settings = apply_env_overrides(
        Settings(),
        environ={
            "AGENT_WS_URL": "ws://remote:1/ws",
            "USER_SLUG": "bob",
            "EDITLINK_WORKSPACE": "/srv/ws",
        },
    )

    assert settings.connection.url == "ws://remote:1/ws"
    assert settings.connection.user_slug == "bob"
    assert settings.workspace.root == Path("/srv/ws")


def test_env_overrides_noop_when_unset():
    base = Settings()
    assert apply_env_overrides(base, environ={}) == base
