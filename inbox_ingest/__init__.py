"""Inbox Ingest — extract headers, preview text and attachments from raw
messages and persist them alongside the stored message.
"""

from .config import DatabaseConfig, ParserConfig, S3Config, Settings
from .errors import (
    EmailNotFoundError,
    InboxIngestError,
    InvalidEmailPathError,
    PersistenceError,
)
from .logging import setup_logging
from .parser import Attachment, MessageParser, Outcome, ParsedEmail
from .processor import EmailProcessor, ProcessResult
from .s3 import S3Store, StoredMessage

__all__ = [
    "Attachment",
    "DatabaseConfig",
    "EmailNotFoundError",
    "EmailProcessor",
    "InboxIngestError",
    "InvalidEmailPathError",
    "MessageParser",
    "Outcome",
    "ParsedEmail",
    "ParserConfig",
    "PersistenceError",
    "ProcessResult",
    "S3Config",
    "S3Store",
    "Settings",
    "StoredMessage",
    "setup_logging",
]
