"""FastAPI dependency-injection helpers."""

from __future__ import annotations

from fastapi import Request

from inbox_ingest.processor import EmailProcessor


def get_processor(request: Request) -> EmailProcessor:
    return request.app.state.processor
