from __future__ import annotations

import json
import logging
import re

from app.clients.report_writer import ReportEngine
from app.schemas.export import ExportRequest, TranscriptMessage
from app.schemas.validation import ValidationResult

RECENT_MESSAGE_LIMIT = 10
MIN_SUMMARY_LENGTH = 20
NO_ASSISTANT_PLACEHOLDER = "No assistant response available."

_CODE_FENCE = re.compile(r"```[\s\S]*?```")
_CITATION_MARKER = re.compile(r"【[^】]+】")
_TRAILING_SPACE = re.compile(r"\s+\n")


def sanitize(text: str | None) -> str:
    """Strip code fences and 【...】 citation markers from transcript text."""
    cleaned = _CODE_FENCE.sub("", text or "")
    cleaned = _CITATION_MARKER.sub("", cleaned)
    cleaned = _TRAILING_SPACE.sub("\n", cleaned)
    return cleaned.strip()


def target_language(language: str | None) -> str:
    return "Czech" if language == "CS" else "English"


class ExportService:
    def __init__(self, report_engine: ReportEngine | None) -> None:
        self._logger = logging.getLogger(__name__)
        self._report_engine = report_engine

    def summarize(self, request: ExportRequest) -> str:
        """Turn a conversation and its findings into a printable report.

        Exceptions from the report engine propagate to the caller.
        """
        primary = sanitize(_last_assistant_content(request.messages))
        if self._report_engine is None:
            self._logger.warning("Report writer not configured; returning fallback summary")
            return _fallback_summary(primary, request.analysis_results)

        prompt = _build_prompt(request, primary)
        summary = self._report_engine.write(prompt).strip()
        if len(summary) < MIN_SUMMARY_LENGTH:
            self._logger.info("Report writer returned %d characters; using fallback", len(summary))
            return _fallback_summary(primary, request.analysis_results)
        return summary


def _last_assistant_content(messages: list[TranscriptMessage]) -> str:
    for message in reversed(messages):
        if message.role == "assistant":
            return message.content or ""
    return ""


def _recent_transcript(messages: list[TranscriptMessage]) -> str:
    return "\n".join(
        f"{message.role.upper()}: {sanitize(message.content)}"
        for message in messages[-RECENT_MESSAGE_LIMIT:]
    )


def _build_prompt(request: ExportRequest, primary: str) -> str:
    results = [item.model_dump() for item in request.analysis_results]
    return (
        "You are a professional technical report writer preparing an executive-grade "
        f"summary for {request.role}.\n"
        f"Write a concise, client-ready report in {target_language(request.language)}.\n\n"
        "Guidelines:\n"
        "- Use plain UTF-8 text only (no Markdown, HTML, LaTeX, or special characters "
        "like *, #, &, <, >).\n"
        "- Structure the report with clear section headers such as:\n"
        "  Executive Summary:\n"
        "  Project Overview:\n"
        "  Compliance Assessment:\n"
        "  Key Strengths:\n"
        "  Recommendations:\n"
        "- Keep paragraphs short (2-4 lines) and formatted for PDF printing.\n"
        "- Do not include bullet symbols or JSON.\n"
        "- Avoid ampersands (&) or encoding artifacts (like &nbsp;).\n"
        "- Tone should be formal, neutral, and suitable for executives.\n\n"
        "Context Information:\n"
        f"Role: {request.role}\n"
        "Assistant's previous output (raw):\n"
        f"{primary or '(none)'}\n\n"
        "Validation Results (for reference):\n"
        f"{json.dumps(results, ensure_ascii=False, indent=2)}\n\n"
        "Recent conversation transcript (for additional context):\n"
        f"{_recent_transcript(request.messages)}\n\n"
        "Your task:\n"
        "Rewrite and elaborate the above information into a clean, polished, professional "
        "report.\n"
        "Ensure the output contains only human-readable text, properly sectioned and ready "
        "for PDF printing.\n"
        "Output plain printable UTF-8 only.\n"
    )


def _fallback_summary(primary: str, results: list[ValidationResult]) -> str:
    results_block = ""
    if results:
        lines = ["Validation Results:"]
        lines.extend(f"- [{item.status.upper()}] {item.text}" for item in results)
        results_block = "\n".join(lines)
    return f"Summary:\n{primary or NO_ASSISTANT_PLACEHOLDER}\n\n{results_block}"
