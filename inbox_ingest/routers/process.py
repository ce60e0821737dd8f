"""Message processing endpoint."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from inbox_ingest.deps import get_processor
from inbox_ingest.errors import InboxIngestError, InvalidEmailPathError
from inbox_ingest.processor import EmailProcessor
from inbox_ingest.schemas import ErrorResponse, ProcessRequest, ProcessResponse

logger = structlog.get_logger()

router = APIRouter(tags=["process"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


@router.post(
    "/process",
    response_model=ProcessResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def process_email(
    body: ProcessRequest,
    processor: Annotated[EmailProcessor, Depends(get_processor)],
):
    """Fetch, parse and persist the message stored at ``emailPath``."""
    try:
        if not body.email_path:
            raise InvalidEmailPathError("Email path is required")
        result = await processor.process(body.email_path)
    except InboxIngestError as exc:
        logger.warning(
            "process_request_rejected",
            email_path=body.email_path,
            error=str(exc),
            status_code=exc.status_code,
        )
        return _error(exc.status_code, str(exc))
    except Exception as exc:
        logger.exception("process_request_failed", email_path=body.email_path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Error: {exc}")

    return ProcessResponse(
        success=result.success,
        email_id=result.email_id,
        email_path=result.email_path,
        attachment_count=result.attachment_count,
    )
