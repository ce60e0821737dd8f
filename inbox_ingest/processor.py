"""EmailProcessor — fetch a raw message, parse it, persist the record and
store each attachment beside the message.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .db.models import Email
from .db.repository import EmailRepository
from .errors import EmailNotFoundError, InvalidEmailPathError, PersistenceError
from .parser import MessageParser, ParsedEmail
from .s3 import S3Store, StoredMessage

logger = structlog.get_logger()


@dataclass(frozen=True)
class ProcessResult:
    success: bool
    email_id: int
    email_path: str
    attachment_count: int


def folder_from_path(email_path: str, default: str = "Inbox") -> str:
    """Folder segment of ``emails/<user>/<folder>/<file>.eml``-style paths."""
    parts = email_path.split("/")
    if len(parts) >= 3:
        return parts[-2]
    return default


class EmailProcessor:
    """Run retrieve → parse → persist → persist attachments for one path."""

    def __init__(
        self,
        store: S3Store,
        session_factory: async_sessionmaker[AsyncSession],
        parser: MessageParser | None = None,
        *,
        default_folder: str = "Inbox",
    ) -> None:
        self._store = store
        self._session_factory = session_factory
        self._parser = parser or MessageParser()
        self._default_folder = default_folder

    async def process(self, email_path: str) -> ProcessResult:
        if not email_path or not isinstance(email_path, str):
            raise InvalidEmailPathError(f"Invalid emailPath: {email_path!r}")

        log = logger.bind(email_path=email_path)
        log.info("email_processing_started")

        stored = await self._store.fetch_message(email_path)
        if stored is None:
            raise EmailNotFoundError(f"Email not found: {email_path}")

        parsed = self._parser.parse(stored.raw)

        try:
            async with self._session_factory() as session:
                repo = EmailRepository(session)
                email_id = await repo.add_email(
                    self._build_record(email_path, stored, parsed)
                )
                log.info("email_record_inserted", email_id=email_id)

                for attachment in parsed.attachments:
                    key = await self._store.put_attachment(email_path, attachment)
                    await repo.add_attachment(
                        email_id=email_id,
                        filename=attachment.filename,
                        content_type=attachment.content_type,
                        size_bytes=attachment.size,
                        file_path=key,
                    )
                    log.info(
                        "attachment_stored",
                        filename=attachment.filename,
                        size=attachment.size,
                    )

                await session.commit()
        except SQLAlchemyError as exc:
            log.exception("email_persist_failed")
            raise PersistenceError(f"Failed to insert email record: {exc}") from exc

        return ProcessResult(
            success=True,
            email_id=email_id,
            email_path=email_path,
            attachment_count=len(parsed.attachments),
        )

    def _build_record(
        self,
        email_path: str,
        stored: StoredMessage,
        parsed: ParsedEmail,
    ) -> Email:
        meta = stored.metadata
        received_at = meta.get("received-at") or datetime.now(timezone.utc).isoformat()
        return Email(
            to_address=meta.get("to"),
            current_folder=folder_from_path(email_path, self._default_folder),
            recipients=meta.get("to"),
            cc_recipients=parsed.headers.get("cc"),
            bcc_recipients=parsed.headers.get("bcc"),
            from_address=meta.get("from"),
            subject=meta.get("subject") or "",
            preview_text=parsed.preview_text,
            size_bytes=_metadata_size(meta) or stored.size,
            file_path=email_path,
            has_attachment=parsed.has_attachments,
            date_received=received_at,
            message_id=meta.get("message-id") or "",
        )


def _metadata_size(meta: dict[str, str]) -> int | None:
    try:
        return int(meta["size"])
    except (KeyError, ValueError):
        return None
