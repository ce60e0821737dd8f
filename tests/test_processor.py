"""Tests for inbox_ingest.processor."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from tests.conftest import _build_raw_multipart

from inbox_ingest.config import DatabaseConfig
from inbox_ingest.db.engine import Database
from inbox_ingest.db.repository import EmailRepository
from inbox_ingest.errors import EmailNotFoundError, InvalidEmailPathError, PersistenceError
from inbox_ingest.processor import EmailProcessor, ProcessResult, folder_from_path
from inbox_ingest.s3 import S3Store, StoredMessage

EMAIL_PATH = "emails/user@example.com/Archive/123.eml"

METADATA = {
    "to": "user@example.com",
    "from": "sender@example.com",
    "subject": "Quarterly report",
    "message-id": "<abc@example.com>",
    "received-at": "2025-06-01T12:00:00Z",
    "size": "2048",
}


def _raw_with_attachments() -> bytes:
    return _build_raw_multipart(
        "Content-Type: text/plain\r\n\r\nSee attached.",
        'Content-Type: text/plain\r\nContent-Disposition: attachment; filename="a.txt"\r\n'
        "Content-Transfer-Encoding: base64\r\n\r\nSGVsbG8=",
        'Content-Disposition: attachment; filename="b.bin"\r\n'
        "Content-Transfer-Encoding: base64\r\n\r\nAAEC",
    ).encode("utf-8")


def _make_store(stored: StoredMessage | None) -> AsyncMock:
    store = AsyncMock(spec=S3Store)
    store.fetch_message.return_value = stored
    store.put_attachment.side_effect = (
        lambda path, att: f"{path.removesuffix('.eml')}/attachments/{att.filename}"
    )
    return store


class TestFolderFromPath:
    def test_folder_segment(self):
        assert folder_from_path("emails/u@x.com/Sent/1.eml") == "Sent"

    def test_short_path_uses_default(self):
        assert folder_from_path("u/1.eml") == "Inbox"
        assert folder_from_path("1.eml", default="Unsorted") == "Unsorted"


class TestProcess:
    @pytest.mark.asyncio
    async def test_process_persists_email_and_attachments(self, database: Database):
        store = _make_store(StoredMessage(raw=_raw_with_attachments(), size=999, metadata=METADATA))
        processor = EmailProcessor(store, database.session)

        result = await processor.process(EMAIL_PATH)

        assert result == ProcessResult(
            success=True,
            email_id=result.email_id,
            email_path=EMAIL_PATH,
            attachment_count=2,
        )
        assert store.put_attachment.await_count == 2

        async with database.session() as session:
            email = await EmailRepository(session).get_email(result.email_id)

        assert email is not None
        assert email.current_folder == "Archive"
        assert email.to_address == "user@example.com"
        assert email.recipients == "user@example.com"
        assert email.cc_recipients == "cc@example.com"
        assert email.bcc_recipients is None
        assert email.from_address == "sender@example.com"
        assert email.subject == "Quarterly report"
        assert email.size_bytes == 2048
        assert email.has_attachment is True
        assert email.date_received == "2025-06-01T12:00:00Z"
        assert email.message_id == "<abc@example.com>"
        assert email.preview_text.startswith("--XYZ")

        rows = sorted(email.attachments, key=lambda a: a.filename)
        assert [(a.filename, a.content_type, a.size_bytes) for a in rows] == [
            ("a.txt", "text/plain", 5),
            ("b.bin", "application/octet-stream", 3),
        ]
        assert rows[0].file_path == "emails/user@example.com/Archive/123/attachments/a.txt"

    @pytest.mark.asyncio
    async def test_process_without_metadata(self, database: Database):
        raw = b"CC: cc@example.com\r\n\r\nJust text"
        store = _make_store(StoredMessage(raw=raw, size=len(raw)))
        processor = EmailProcessor(store, database.session, default_folder="Unsorted")

        result = await processor.process("loose.eml")

        assert result.attachment_count == 0
        store.put_attachment.assert_not_awaited()
        async with database.session() as session:
            email = await EmailRepository(session).get_email(result.email_id)
        assert email.current_folder == "Unsorted"
        assert email.subject == ""
        assert email.message_id == ""
        assert email.size_bytes == len(raw)
        assert email.has_attachment is False
        assert email.preview_text == "Just text"
        assert email.date_received

    @pytest.mark.asyncio
    async def test_ids_increase(self, database: Database):
        store = _make_store(StoredMessage(raw=b"A: b\r\n\r\nx", size=9))
        processor = EmailProcessor(store, database.session)

        first = await processor.process("a.eml")
        second = await processor.process("b.eml")

        assert second.email_id > first.email_id

    @pytest.mark.asyncio
    async def test_degraded_parse_still_persisted(self, database: Database):
        raw = _build_raw_multipart(
            'Content-Disposition: attachment; filename="bad.bin"\r\n'
            "Content-Transfer-Encoding: base64\r\n\r\n***"
        ).encode("utf-8")
        store = _make_store(StoredMessage(raw=raw, size=len(raw)))
        processor = EmailProcessor(store, database.session)

        result = await processor.process("bad.eml")

        assert result.attachment_count == 0
        async with database.session() as session:
            email = await EmailRepository(session).get_email(result.email_id)
        assert email.cc_recipients is None
        assert email.preview_text == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["", None])
    async def test_invalid_path(self, database: Database, path):
        processor = EmailProcessor(_make_store(None), database.session)
        with pytest.raises(InvalidEmailPathError):
            await processor.process(path)

    @pytest.mark.asyncio
    async def test_missing_message(self, database: Database):
        processor = EmailProcessor(_make_store(None), database.session)
        with pytest.raises(EmailNotFoundError, match="missing.eml"):
            await processor.process("missing.eml")

    @pytest.mark.asyncio
    async def test_persistence_failure(self, tmp_path):
        # No tables created: the insert fails inside SQLAlchemy.
        db = Database(DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}"))
        store = _make_store(StoredMessage(raw=b"A: b\r\n\r\nx", size=9))
        processor = EmailProcessor(store, db.session)
        try:
            with pytest.raises(PersistenceError, match="Failed to insert email record"):
                await processor.process("x.eml")
        finally:
            await db.close()
