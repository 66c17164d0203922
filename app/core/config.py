from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_EXPORT_MODEL_ID = "x-ai/grok-4-fast"
DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024
DEFAULT_CORS_ALLOWED_ORIGINS = [
    "https://builderassistant-3ml1.onrender.com",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_list_env(name: str, default: list[str]) -> list[str]:
    value = os.getenv(name, "")
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    port: int
    log_level: str
    openai_api_key: str
    assistant_id: str
    openrouter_api_key: str
    openrouter_base_url: str
    export_model_id: str
    export_referer: str
    export_title: str
    export_timeout_seconds: int
    upload_dir: str
    max_upload_bytes: int
    run_poll_max_attempts: int
    run_poll_interval_seconds: float
    cors_allowed_origins: list[str]


def load_settings() -> Settings:
    return Settings(
        port=_get_int_env("PORT", 5000),
        log_level=os.getenv("LOG_LEVEL", "info"),
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        assistant_id=os.getenv("ASSISTANT_ID", "").strip(),
        openrouter_api_key=os.getenv("OPENROUTER_API_KEY", ""),
        openrouter_base_url=os.getenv("OPENROUTER_BASE_URL", DEFAULT_OPENROUTER_BASE_URL),
        export_model_id=os.getenv("EXPORT_MODEL_ID", DEFAULT_EXPORT_MODEL_ID),
        export_referer=os.getenv("EXPORT_REFERER", "builderassistant-3ml1.onrender.com"),
        export_title=os.getenv("EXPORT_TITLE", "DigiStav Export"),
        export_timeout_seconds=_get_int_env("EXPORT_TIMEOUT_SECONDS", 60),
        upload_dir=os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "uploads")),
        max_upload_bytes=_get_int_env("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        run_poll_max_attempts=_get_int_env("RUN_POLL_MAX_ATTEMPTS", 60),
        run_poll_interval_seconds=_get_float_env("RUN_POLL_INTERVAL_SECONDS", 1.0),
        cors_allowed_origins=_get_list_env(
            "CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ALLOWED_ORIGINS
        ),
    )
