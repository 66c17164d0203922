from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from starlette.concurrency import run_in_threadpool

from app.clients.assistant import AssistantClient
from app.services.spreadsheet import convert_spreadsheet_to_pdf, is_spreadsheet, pdf_name_for

CHUNK_SIZE = 1024 * 1024
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class UploadSource(Protocol):
    """The slice of ``fastapi.UploadFile`` the intake needs."""

    filename: str | None

    async def read(self, size: int = -1) -> bytes:
        raise NotImplementedError


@dataclass(frozen=True)
class StagedFile:
    original_name: str
    path: Path
    size: int
    oversized: bool


class AttachmentIntake:
    def __init__(self, upload_dir: Path, max_upload_bytes: int) -> None:
        self._logger = logging.getLogger(__name__)
        self._upload_dir = upload_dir
        self._max_upload_bytes = max_upload_bytes

    async def stage(self, upload: UploadSource) -> StagedFile:
        """Copy an upload into the upload directory in chunks.

        Writing stops once the file is known to exceed the size limit; the
        partial copy is kept only so the caller can clean it up uniformly.
        """
        original_name = upload.filename or "attachment"
        self._upload_dir.mkdir(parents=True, exist_ok=True)
        path = self._upload_dir / f"{uuid.uuid4().hex}-{_safe_name(original_name)}"
        size = 0
        oversized = False
        try:
            with path.open("wb") as handle:
                while chunk := await upload.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > self._max_upload_bytes:
                        oversized = True
                        break
                    await run_in_threadpool(handle.write, chunk)
        except Exception:
            self.discard(path)
            raise
        return StagedFile(original_name=original_name, path=path, size=size, oversized=oversized)

    async def forward(self, staged: list[StagedFile], client: AssistantClient) -> list[str]:
        """Upload staged files in arrival order and return their assistant file ids.

        Oversized files and spreadsheets that fail to convert are skipped. Every
        staged or converted file is removed from disk, whatever the outcome.
        """
        file_ids: list[str] = []
        try:
            for item in staged:
                file_id = await self._forward_one(item, client)
                if file_id:
                    file_ids.append(file_id)
        finally:
            self.discard_all(staged)
        return file_ids

    async def _forward_one(self, item: StagedFile, client: AssistantClient) -> str | None:
        if item.oversized:
            self._logger.warning("Skipping oversized file: %s", item.original_name)
            return None

        path = item.path
        name = item.original_name
        if is_spreadsheet(name):
            try:
                self._logger.info("Converting %s to PDF", name)
                rendering = await run_in_threadpool(convert_spreadsheet_to_pdf, item.path)
            except Exception:  # noqa: BLE001
                self._logger.exception("Spreadsheet conversion failed for %s", name)
                self.discard(item.path.with_suffix(".pdf"))
                return None
            self.discard(item.path)
            path = rendering.path
            name = pdf_name_for(name)

        try:
            return await client.upload_file(path, name)
        finally:
            if path != item.path:
                self.discard(path)

    def discard_all(self, staged: list[StagedFile]) -> None:
        for item in staged:
            self.discard(item.path)

    def discard(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            self._logger.warning("Failed to remove temporary file %s: %s", path, exc)


def _safe_name(filename: str) -> str:
    name = Path(filename).name
    return _UNSAFE_NAME_CHARS.sub("_", name) or "attachment"
