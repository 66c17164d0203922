from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from openai import AsyncOpenAI

FILE_PURPOSE = "assistants"


class AssistantClient(Protocol):
    async def upload_file(self, path: Path, filename: str) -> str:
        raise NotImplementedError

    async def create_thread(self) -> str:
        raise NotImplementedError

    async def post_user_message(
        self, thread_id: str, content: str, file_ids: list[str]
    ) -> None:
        raise NotImplementedError

    async def create_run(self, thread_id: str, assistant_id: str) -> str:
        raise NotImplementedError

    async def get_run_status(self, thread_id: str, run_id: str) -> str:
        raise NotImplementedError

    async def get_latest_reply(self, thread_id: str) -> str | None:
        raise NotImplementedError


class OpenAIAssistantClient:
    """Thin async wrapper over the OpenAI Assistants endpoints used by the relay."""

    def __init__(self, api_key: str, client: AsyncOpenAI | None = None) -> None:
        self._logger = logging.getLogger(__name__)
        # SDK retries would hide upstream failures behind extra latency
        self._client = client or AsyncOpenAI(api_key=api_key, max_retries=0)

    async def upload_file(self, path: Path, filename: str) -> str:
        with path.open("rb") as handle:
            uploaded = await self._client.files.create(
                file=(filename, handle),
                purpose=FILE_PURPOSE,
            )
        self._logger.debug("Uploaded %s as %s", filename, uploaded.id)
        return uploaded.id

    async def create_thread(self) -> str:
        thread = await self._client.beta.threads.create()
        return thread.id

    async def post_user_message(
        self, thread_id: str, content: str, file_ids: list[str]
    ) -> None:
        attachments = [
            {"file_id": file_id, "tools": [{"type": "file_search"}]} for file_id in file_ids
        ]
        if attachments:
            await self._client.beta.threads.messages.create(
                thread_id=thread_id,
                role="user",
                content=content,
                attachments=attachments,
            )
        else:
            await self._client.beta.threads.messages.create(
                thread_id=thread_id,
                role="user",
                content=content,
            )

    async def create_run(self, thread_id: str, assistant_id: str) -> str:
        run = await self._client.beta.threads.runs.create(
            thread_id=thread_id,
            assistant_id=assistant_id,
        )
        return run.id

    async def get_run_status(self, thread_id: str, run_id: str) -> str:
        run = await self._client.beta.threads.runs.retrieve(run_id=run_id, thread_id=thread_id)
        return str(run.status)

    async def get_latest_reply(self, thread_id: str) -> str | None:
        """Return the text of the newest assistant message, if there is one."""
        page = await self._client.beta.threads.messages.list(thread_id=thread_id, order="desc")
        for message in page.data:
            if message.role != "assistant":
                continue
            return _first_text_value(message.content)
        return None


def _first_text_value(blocks: list[object]) -> str | None:
    if not blocks:
        return None
    text = getattr(blocks[0], "text", None)
    value = getattr(text, "value", None)
    if isinstance(value, str) and value:
        return value
    return None
