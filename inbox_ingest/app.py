"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from inbox_ingest.config import Settings
from inbox_ingest.db.engine import Database
from inbox_ingest.parser import MessageParser
from inbox_ingest.processor import EmailProcessor
from inbox_ingest.s3 import S3Store
from inbox_ingest.schemas import ErrorResponse

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: S3 client, database, processor. Shutdown: dispose."""
    settings: Settings = app.state.settings

    store = S3Store(settings.s3)
    await store.start()
    db = Database(settings.database)
    if settings.database.create_tables:
        await db.create_tables()

    app.state.db = db
    app.state.processor = EmailProcessor(
        store,
        db.session,
        MessageParser(settings.parser),
        default_folder=settings.default_folder,
    )
    logger.info("inbox_ingest_started")
    yield
    await db.close()
    await store.stop()
    logger.info("shutdown_complete")


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report unusable request bodies in the same shape as processing errors."""
    kinds = {error.get("type") for error in exc.errors()}
    if kinds <= {"missing", "json_invalid"}:
        message = "Email path is required"
    else:
        message = "Invalid request body"
    logger.warning("request_body_invalid", path=request.url.path, error_types=sorted(kinds))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error=message).model_dump(),
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Inbox Ingest",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.add_exception_handler(RequestValidationError, _validation_error)

    from inbox_ingest.routers.process import router as process_router

    app.include_router(process_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "inbox-ingest"}

    return app
