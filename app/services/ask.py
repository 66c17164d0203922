from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from app.clients.assistant import AssistantClient
from app.schemas.validation import ValidationResult
from app.services.attachments import AttachmentIntake, StagedFile
from app.services.reply_parser import extract_validation_results

NO_REPLY_PLACEHOLDER = "No response received."
GENERIC_ROLE_FRAMING = "General helper."
ANALYSIS_TRIGGER_WORDS = ("validate", "analyze", "review", "check")
CZECH = "CS"
TERMINAL_RUN_STATUSES = frozenset({"completed", "failed"})

DisconnectCheck = Callable[[], Awaitable[bool]]


class AssistantError(Exception):
    pass


class AssistantConfigurationError(AssistantError):
    pass


class AssistantRunFailed(AssistantError):
    pass


class AssistantRunTimeout(AssistantError):
    pass


class AssistantRunCancelled(AssistantError):
    pass


class Role(str, Enum):
    INVESTOR = "Investor"
    DESIGNER = "Designer"
    SITE_MANAGER = "Site Manager"
    CONTRACTOR = "Contractor"
    TRADESMAN = "Tradesman"

    @classmethod
    def from_string(cls, value: str | None) -> Role | None:
        for role in cls:
            if role.value == value:
                return role
        return None


ROLE_FRAMING: dict[Role, str] = {
    Role.INVESTOR: (
        "You are responding to an Investor. Keep responses high-level, focused on "
        "compliance, readiness, and confidence."
    ),
    Role.DESIGNER: (
        "You are responding to a Designer. Provide detailed technical and legal insights "
        "based on BEP validation rules."
    ),
    Role.SITE_MANAGER: (
        "You are responding to a Site Manager. Use checklist-style instructions and "
        "prioritize readiness, safety, and version control."
    ),
    Role.CONTRACTOR: (
        "You are responding to a Contractor. Focus on deliverables, compliance, and "
        "documentation handover clarity."
    ),
    Role.TRADESMAN: (
        "You are responding to a Tradesman, an independent craftsman or small "
        "subcontractor who uses Validorix to create, check, and manage contracts, offers, "
        "or work agreements."
    ),
}


def role_framing(role: str | None) -> str:
    parsed = Role.from_string(role)
    if parsed is None:
        return GENERIC_ROLE_FRAMING
    return ROLE_FRAMING[parsed]


def requests_analysis(message: str) -> bool:
    lowered = message.lower()
    return any(word in lowered for word in ANALYSIS_TRIGGER_WORDS)


def build_ask_prompt(message: str, role: str | None, language: str | None) -> str:
    trigger_words = ", ".join(f'"{word}"' for word in ANALYSIS_TRIGGER_WORDS)
    language_directive = "Please respond in Czech.\n" if language == CZECH else ""
    return (
        "You are a helpful assistant that validates and analyzes documents.\n"
        "Always follow these rules:\n\n"
        f"If the user's message includes words like {trigger_words}, then:\n"
        "1. Perform the analysis.\n"
        "2. Return your main response (summary) followed by a JSON array like this:\n\n"
        "[\n"
        '  {"status": "success", "text": "What was validated successfully"},\n'
        '  {"status": "error", "text": "What issues or missing elements were found"},\n'
        '  {"status": "warning", "text": "Any partial or uncertain validations"}\n'
        "]\n\n"
        "If the user's message does NOT request analysis, just respond normally (no JSON).\n\n"
        f"Role Context: {role_framing(role)}\n"
        f"{language_directive}"
        f'User Message: "{message}"\n'
    )


@dataclass(frozen=True)
class AskInput:
    message: str
    role: str | None = None
    language: str | None = None
    thread_id: str | None = None


@dataclass(frozen=True)
class AskResult:
    reply: str
    thread_id: str
    results: list[ValidationResult] = field(default_factory=list)


class AskService:
    def __init__(
        self,
        client: AssistantClient | None,
        intake: AttachmentIntake,
        assistant_id: str,
        poll_max_attempts: int = 60,
        poll_interval_seconds: float = 1.0,
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self._client = client
        self._intake = intake
        self._assistant_id = assistant_id
        self._poll_max_attempts = poll_max_attempts
        self._poll_interval_seconds = poll_interval_seconds

    @property
    def intake(self) -> AttachmentIntake:
        return self._intake

    async def ask(
        self,
        request: AskInput,
        attachments: list[StagedFile],
        is_disconnected: DisconnectCheck | None = None,
    ) -> AskResult:
        """Relay one user message to the assistant and wait for its reply.

        Raises:
            AssistantConfigurationError: no API key or assistant id configured.
            AssistantRunFailed: the run ended in ``failed``.
            AssistantRunTimeout: the run was still pending after the last poll.
            AssistantRunCancelled: the caller disconnected while waiting.
        """
        if self._client is None or not self._assistant_id:
            self._intake.discard_all(attachments)
            raise AssistantConfigurationError("OPENAI_API_KEY and ASSISTANT_ID must be set")
        client = self._client

        file_ids = await self._intake.forward(attachments, client)

        thread_id = request.thread_id
        if thread_id:
            self._logger.info("Reusing existing thread %s", thread_id)
        else:
            thread_id = await client.create_thread()
            self._logger.info("Created new thread %s", thread_id)

        prompt = build_ask_prompt(request.message, request.role, request.language)
        if requests_analysis(request.message):
            self._logger.info("Message asks for analysis; expecting embedded results")
        await client.post_user_message(thread_id, prompt, file_ids)

        run_id = await client.create_run(thread_id, self._assistant_id)
        self._logger.info("Started run %s on thread %s", run_id, thread_id)

        status = await self._wait_for_run(client, thread_id, run_id, is_disconnected)
        if status == "failed":
            raise AssistantRunFailed(f"run {run_id} failed")
        if status != "completed":
            self._logger.error("Run %s did not complete: %s", run_id, status)
            raise AssistantRunTimeout(f"run {run_id} still {status}")

        reply = await client.get_latest_reply(thread_id) or NO_REPLY_PLACEHOLDER
        prose, results = extract_validation_results(reply)
        return AskResult(reply=prose, thread_id=thread_id, results=results)

    async def _wait_for_run(
        self,
        client: AssistantClient,
        thread_id: str,
        run_id: str,
        is_disconnected: DisconnectCheck | None,
    ) -> str:
        status = await client.get_run_status(thread_id, run_id)
        attempts = 0
        while status not in TERMINAL_RUN_STATUSES and attempts < self._poll_max_attempts:
            self._logger.debug("Run %s status: %s", run_id, status)
            if is_disconnected is not None and await is_disconnected():
                raise AssistantRunCancelled(f"client went away while run {run_id} was {status}")
            await asyncio.sleep(self._poll_interval_seconds)
            status = await client.get_run_status(thread_id, run_id)
            attempts += 1
        return status
