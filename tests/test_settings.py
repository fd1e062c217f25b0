from __future__ import annotations

import logging
from pathlib import Path

import pytest

from replypilot.services.settings import DEFAULT_STORAGE_PATH, RuntimeSettings, load_runtime_settings
from replypilot.services.storage_area import DEFAULT_QUOTA_BYTES


def test_defaults_without_overrides() -> None:
    settings = load_runtime_settings(environ={})

    assert settings == RuntimeSettings()
    assert settings.storage_path == DEFAULT_STORAGE_PATH
    assert settings.storage_quota_bytes == DEFAULT_QUOTA_BYTES
    assert settings.request_timeout == 30.0
    assert settings.reply_max_chars == 280


def test_cli_overrides_are_applied(tmp_path: Path) -> None:
    settings = load_runtime_settings(
        {"storage_path": str(tmp_path / "state.json"), "request_timeout": 5.0, "unknown": 1},
        environ={},
    )

    assert settings.storage_path == tmp_path / "state.json"
    assert settings.request_timeout == 5.0


def test_environment_overrides(tmp_path: Path) -> None:
    environ = {
        "REPLYPILOT_STORAGE_PATH": str(tmp_path / "env.json"),
        "REPLYPILOT_LOG_DIR": str(tmp_path / "logs"),
        "REPLYPILOT_DEBUG_LOGGING": "yes",
        "REPLYPILOT_REQUEST_TIMEOUT": "12.5",
        "REPLYPILOT_STORAGE_QUOTA": "2048",
        "REPLYPILOT_REPLY_MAX_CHARS": "140",
    }

    settings = load_runtime_settings(environ=environ)

    assert settings.storage_path == tmp_path / "env.json"
    assert settings.log_dir == tmp_path / "logs"
    assert settings.debug_logging is True
    assert settings.request_timeout == 12.5
    assert settings.storage_quota_bytes == 2048
    assert settings.reply_max_chars == 140


def test_environment_wins_over_cli(tmp_path: Path) -> None:
    settings = load_runtime_settings(
        {"request_timeout": 5.0},
        environ={"REPLYPILOT_REQUEST_TIMEOUT": "9"},
    )

    assert settings.request_timeout == 9.0


def test_invalid_environment_values_are_ignored(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)

    settings = load_runtime_settings(
        environ={"REPLYPILOT_STORAGE_QUOTA": "lots", "REPLYPILOT_REQUEST_TIMEOUT": "soon"}
    )

    assert settings.storage_quota_bytes == DEFAULT_QUOTA_BYTES
    assert settings.request_timeout == 30.0
    assert "not a valid integer" in caplog.text
    assert "not a valid float" in caplog.text


def test_out_of_range_values_fall_back_to_defaults() -> None:
    settings = load_runtime_settings(
        {"request_timeout": -1.0, "storage_quota_bytes": 0, "reply_max_chars": 1},
        environ={},
    )

    assert settings.request_timeout == 30.0
    assert settings.storage_quota_bytes == DEFAULT_QUOTA_BYTES
    assert settings.reply_max_chars == 280


def test_reads_process_environment_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPLYPILOT_DEBUG_LOGGING", "off")
    monkeypatch.setenv("REPLYPILOT_REPLY_MAX_CHARS", "200")

    settings = load_runtime_settings()

    assert settings.debug_logging is False
    assert settings.reply_max_chars == 200


def test_reply_limit_is_capped_at_platform_maximum(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)

    from_cli = load_runtime_settings({"reply_max_chars": 1000}, environ={})
    from_env = load_runtime_settings(environ={"REPLYPILOT_REPLY_MAX_CHARS": "500"})

    assert from_cli.reply_max_chars == 280
    assert from_env.reply_max_chars == 280
    assert "cannot exceed 280" in caplog.text
