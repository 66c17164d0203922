from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from openai import APIStatusError

from app.core.dependencies import get_ask_service
from app.schemas.ask import AskErrorResponse, AskResponse
from app.services.ask import (
    AskInput,
    AskService,
    AssistantRunCancelled,
    AssistantRunTimeout,
)
from app.services.attachments import StagedFile

TIMEOUT_REPLY = "Assistant timed out."
FILE_TOO_LARGE_REPLY = "File too large - please upload files smaller than 20MB."
SERVER_ERROR_REPLY = "Server error while contacting assistant."
CANCELLED_REPLY = "Request cancelled."
CLIENT_CLOSED_REQUEST = 499

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)


@router.post(
    "/ask",
    response_model=AskResponse,
    responses={
        413: {"model": AskErrorResponse},
        500: {"model": AskErrorResponse},
        504: {"model": AskErrorResponse},
    },
)
async def ask(
    request: Request,
    message: str = Form(""),
    role: str = Form(""),
    language: str = Form(""),
    thread_id: str | None = Form(None, alias="threadId"),
    files: list[UploadFile] | None = File(None),  # noqa: B008
    service: AskService = Depends(get_ask_service),  # noqa: B008
) -> AskResponse | JSONResponse:
    """Relay a message and its attachments to the assistant and return its reply."""
    uploads = files or []
    logger.info(
        "Incoming ask: role=%s language=%s files=%d", role or "-", language or "-", len(uploads)
    )

    staged: list[StagedFile] = []
    try:
        for upload in uploads:
            staged.append(await service.intake.stage(upload))
        result = await service.ask(
            AskInput(message=message, role=role, language=language, thread_id=thread_id),
            staged,
            is_disconnected=request.is_disconnected,
        )
    except AssistantRunTimeout:
        return _error(504, TIMEOUT_REPLY)
    except AssistantRunCancelled:
        logger.info("Client disconnected before the assistant finished")
        return _error(CLIENT_CLOSED_REQUEST, CANCELLED_REPLY)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Error in /api/ask")
        service.intake.discard_all(staged)
        if isinstance(exc, APIStatusError) and exc.status_code == 413:
            return _error(413, FILE_TOO_LARGE_REPLY)
        return _error(500, SERVER_ERROR_REPLY)

    return AskResponse(reply=result.reply, results=result.results, thread_id=result.thread_id)


def _error(status_code: int, reply: str) -> JSONResponse:
    payload = AskErrorResponse(reply=reply, results=[])
    return JSONResponse(status_code=status_code, content=payload.model_dump())
