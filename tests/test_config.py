from __future__ import annotations

import pytest

from app.core.config import DEFAULT_CORS_ALLOWED_ORIGINS, DEFAULT_MAX_UPLOAD_BYTES, load_settings


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PORT", "ASSISTANT_ID", "MAX_UPLOAD_BYTES", "CORS_ALLOWED_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.port == 5000
    assert settings.assistant_id == ""
    assert settings.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES == 20 * 1024 * 1024
    assert settings.run_poll_max_attempts == 60
    assert settings.export_timeout_seconds == 60
    assert settings.cors_allowed_origins == DEFAULT_CORS_ALLOWED_ORIGINS


def test_load_settings_parses_origin_list(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://a.example, ,https://b.example ")

    settings = load_settings()

    assert settings.cors_allowed_origins == ["https://a.example", "https://b.example"]


def test_load_settings_ignores_malformed_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RUN_POLL_MAX_ATTEMPTS", "sixty")
    monkeypatch.setenv("RUN_POLL_INTERVAL_SECONDS", "0.25")
    monkeypatch.setenv("ASSISTANT_ID", "  asst_abc  ")

    settings = load_settings()

    assert settings.run_poll_max_attempts == 60
    assert settings.run_poll_interval_seconds == 0.25
    assert settings.assistant_id == "asst_abc"
