"""Row-level access to the ``emails`` and ``attachments`` tables."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from inbox_ingest.db.models import Email, EmailAttachment


class EmailRepository:
    """Thin wrapper over one session; the caller owns commit/rollback."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add_email(self, email: Email) -> int:
        self._session.add(email)
        await self._session.flush()  # populates email.id
        return email.id

    async def add_attachment(
        self,
        *,
        email_id: int,
        filename: str,
        content_type: str,
        size_bytes: int,
        file_path: str,
    ) -> EmailAttachment:
        row = EmailAttachment(
            email_id=email_id,
            filename=filename,
            content_type=content_type,
            size_bytes=size_bytes,
            file_path=file_path,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_email(self, email_id: int) -> Email | None:
        """Read-back helper: load one message row with its attachments."""
        stmt = (
            select(Email)
            .options(selectinload(Email.attachments))
            .where(Email.id == email_id)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()
