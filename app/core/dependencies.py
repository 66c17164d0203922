from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from app.clients.assistant import AssistantClient, OpenAIAssistantClient
from app.clients.report_writer import ReportEngine, StrandsReportEngine
from app.core.config import Settings, load_settings
from app.services.ask import AskService
from app.services.attachments import AttachmentIntake
from app.services.export import ExportService


@lru_cache
def get_settings() -> Settings:
    return load_settings()


@lru_cache
def get_assistant_client() -> AssistantClient | None:
    settings = get_settings()
    if not settings.openai_api_key:
        return None
    return OpenAIAssistantClient(settings.openai_api_key)


@lru_cache
def get_attachment_intake() -> AttachmentIntake:
    settings = get_settings()
    return AttachmentIntake(Path(settings.upload_dir), settings.max_upload_bytes)


@lru_cache
def get_ask_service() -> AskService:
    settings = get_settings()
    return AskService(
        get_assistant_client(),
        get_attachment_intake(),
        assistant_id=settings.assistant_id,
        poll_max_attempts=settings.run_poll_max_attempts,
        poll_interval_seconds=settings.run_poll_interval_seconds,
    )


@lru_cache
def get_report_engine() -> ReportEngine | None:
    settings = get_settings()
    if not settings.openrouter_api_key:
        return None
    return StrandsReportEngine(settings)


@lru_cache
def get_export_service() -> ExportService:
    return ExportService(get_report_engine())
