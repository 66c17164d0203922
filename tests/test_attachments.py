from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from openpyxl import Workbook

from app.services.attachments import AttachmentIntake
from tests.fakes import FakeAssistantClient, FakeUpload


def _forward(intake: AttachmentIntake, uploads: list[FakeUpload]) -> tuple[list[str], FakeAssistantClient]:
    client = FakeAssistantClient()

    async def run() -> list[str]:
        staged = [await intake.stage(upload) for upload in uploads]
        return await intake.forward(staged, client)

    return asyncio.run(run()), client


def test_file_at_size_limit_is_uploaded(tmp_path: Path) -> None:
    intake = AttachmentIntake(tmp_path, max_upload_bytes=10)

    file_ids, client = _forward(intake, [FakeUpload("exact.txt", b"x" * 10)])

    assert file_ids == ["file-1"]
    assert client.uploads == [("exact.txt", b"x" * 10)]


def test_file_one_byte_over_limit_is_skipped(tmp_path: Path) -> None:
    intake = AttachmentIntake(tmp_path, max_upload_bytes=10)

    file_ids, client = _forward(
        intake,
        [FakeUpload("big.txt", b"x" * 11), FakeUpload("small.txt", b"ok")],
    )

    assert file_ids == ["file-1"]
    assert [name for name, _ in client.uploads] == ["small.txt"]
    assert list(tmp_path.iterdir()) == []


def test_stage_uses_unique_names_for_identical_uploads(tmp_path: Path) -> None:
    intake = AttachmentIntake(tmp_path, max_upload_bytes=100)

    first = asyncio.run(intake.stage(FakeUpload("report.pdf", b"a")))
    second = asyncio.run(intake.stage(FakeUpload("report.pdf", b"b")))

    assert first.path != second.path
    assert first.path.name.endswith("-report.pdf")
    assert first.path.parent == tmp_path


def test_stage_strips_directory_components(tmp_path: Path) -> None:
    intake = AttachmentIntake(tmp_path, max_upload_bytes=100)

    staged = asyncio.run(intake.stage(FakeUpload("../../etc/passwd", b"a")))

    assert staged.path.parent == tmp_path
    assert staged.original_name == "../../etc/passwd"


def test_spreadsheet_is_uploaded_as_pdf_only(tmp_path: Path) -> None:
    source = tmp_path / "source.xlsx"
    workbook = Workbook()
    workbook.active.title = "Budget"
    workbook.active.append(["Item", "Cost"])
    workbook.active.append(["Concrete", 1200])
    workbook.create_sheet("Schedule").append(["Phase", "Weeks"])
    workbook.save(source)
    upload_dir = tmp_path / "uploads"
    intake = AttachmentIntake(upload_dir, max_upload_bytes=10 * 1024 * 1024)

    file_ids, client = _forward(intake, [FakeUpload("Costs.XLSX", source.read_bytes())])

    assert file_ids == ["file-1"]
    [(name, content)] = client.uploads
    assert name == "Costs.pdf"
    assert content.startswith(b"%PDF")
    assert list(upload_dir.iterdir()) == []


def test_unreadable_spreadsheet_is_skipped(tmp_path: Path) -> None:
    intake = AttachmentIntake(tmp_path, max_upload_bytes=1024)

    file_ids, client = _forward(
        intake,
        [FakeUpload("legacy.xls", b"not a workbook"), FakeUpload("notes.txt", b"keep")],
    )

    assert file_ids == ["file-1"]
    assert [name for name, _ in client.uploads] == ["notes.txt"]
    assert list(tmp_path.iterdir()) == []


def test_staged_files_are_removed_when_upload_fails(tmp_path: Path) -> None:
    class ExplodingClient(FakeAssistantClient):
        async def upload_file(self, path: Path, filename: str) -> str:
            raise RuntimeError("network down")

    intake = AttachmentIntake(tmp_path, max_upload_bytes=1024)

    async def run() -> None:
        staged = [await intake.stage(FakeUpload("a.txt", b"a"))]
        await intake.forward(staged, ExplodingClient())

    with pytest.raises(RuntimeError):
        asyncio.run(run())

    assert list(tmp_path.iterdir()) == []


def test_discard_logs_instead_of_raising(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    intake = AttachmentIntake(tmp_path, max_upload_bytes=1024)
    directory = tmp_path / "not-a-file"
    directory.mkdir()

    intake.discard(directory)

    assert "Failed to remove temporary file" in caplog.text


def test_partial_staging_is_removed_when_upload_read_fails(tmp_path: Path) -> None:
    class BrokenUpload(FakeUpload):
        def __init__(self) -> None:
            super().__init__("broken.pdf", b"")
            self._reads = 0

        async def read(self, size: int = -1) -> bytes:
            self._reads += 1
            if self._reads > 1:
                raise ConnectionResetError("client went away")
            return b"first chunk"

    intake = AttachmentIntake(tmp_path, max_upload_bytes=1024)

    with pytest.raises(ConnectionResetError):
        asyncio.run(intake.stage(BrokenUpload()))

    assert list(tmp_path.iterdir()) == []
