from __future__ import annotations

from typing import Protocol

from strands import Agent
from strands.models.openai import OpenAIModel

from app.core.config import Settings

REPORT_WRITER_SYSTEM_PROMPT = "You are a professional report writer."


class ReportEngine(Protocol):
    def write(self, prompt: str) -> str:
        raise NotImplementedError


class StrandsReportEngine:
    """Chat-completion report writer backed by an OpenAI-compatible endpoint (OpenRouter)."""

    def __init__(self, settings: Settings) -> None:
        self._model = OpenAIModel(
            client_args={
                "api_key": settings.openrouter_api_key,
                "base_url": settings.openrouter_base_url,
                "timeout": settings.export_timeout_seconds,
                "max_retries": 0,
                "default_headers": {
                    "HTTP-Referer": settings.export_referer,
                    "X-Title": settings.export_title,
                },
            },
            model_id=settings.export_model_id,
        )

    def write(self, prompt: str) -> str:
        # Agents keep conversation history, so each export gets a fresh one.
        agent = Agent(
            model=self._model,
            system_prompt=REPORT_WRITER_SYSTEM_PROMPT,
            tools=[],
            callback_handler=None,
            # a single attempt: throttling surfaces as an export failure
            retry_strategy=None,
        )
        return str(agent(prompt))
