from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from app.core.dependencies import get_export_service
from app.schemas.export import ExportRequest, ExportResponse
from app.services.export import ExportService

EXPORT_FAILED = "Failed to generate summary."
EXPORT_PATH = "/api/export"

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)


@router.post("/export", response_model=ExportResponse)
def export_summary(
    request: ExportRequest,
    service: ExportService = Depends(get_export_service),  # noqa: B008
) -> ExportResponse | JSONResponse:
    """Rewrite a conversation and its validation results as an executive report."""
    try:
        summary = service.summarize(request)
    except Exception:  # noqa: BLE001
        logger.exception("Export summary failed")
        return _failed()
    return ExportResponse(summary=summary)


async def export_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    """Unreadable export bodies still answer with a ``{summary}`` payload."""
    if request.url.path != EXPORT_PATH:
        return await request_validation_exception_handler(request, exc)
    logger.warning("Rejected export body: %s", exc.errors())
    return _failed()


def _failed() -> JSONResponse:
    return JSONResponse(status_code=500, content={"summary": EXPORT_FAILED})
