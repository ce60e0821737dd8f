"""Errors raised by the processing pipeline (never by the parser)."""

from __future__ import annotations


class InboxIngestError(Exception):
    """Base class; ``status_code`` is what the HTTP layer answers with."""

    status_code: int = 500


class InvalidEmailPathError(InboxIngestError):
    status_code = 400


class EmailNotFoundError(InboxIngestError):
    status_code = 404


class PersistenceError(InboxIngestError):
    status_code = 500
