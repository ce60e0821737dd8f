"""S3 storage for raw messages and their extracted attachments.

All boto3 calls are wrapped with ``asyncio.to_thread()`` to avoid blocking.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field

import boto3
import structlog
from botocore.exceptions import ClientError

from .config import S3Config
from .parser import Attachment

logger = structlog.get_logger()

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


@dataclass
class StoredMessage:
    """A raw message plus the side-channel metadata stored alongside it.

    ``metadata`` is the object's user metadata (S3 lower-cases its keys),
    e.g. ``to``, ``from``, ``subject``, ``message-id``, ``received-at``.
    """

    raw: bytes
    size: int
    metadata: dict[str, str] = field(default_factory=dict)


class S3Store:
    """Fetch raw messages and store decoded attachments next to them."""

    def __init__(self, config: S3Config) -> None:
        self._config = config
        self._client = None  # type: ignore[assignment]

    async def start(self) -> None:
        """Create the boto3 S3 client."""
        kwargs: dict = {"region_name": self._config.region}
        if self._config.endpoint_url:
            kwargs["endpoint_url"] = self._config.endpoint_url
        self._client = await asyncio.to_thread(boto3.client, "s3", **kwargs)
        logger.info("s3_store_started", bucket=self._config.bucket)

    async def stop(self) -> None:
        """Clean up the boto3 client."""
        self._client = None
        logger.info("s3_store_stopped")

    async def fetch_message(self, path: str) -> StoredMessage | None:
        """Download the message at *path*; ``None`` if no such object."""
        assert self._client is not None, "S3 client not started"
        try:
            response = await asyncio.to_thread(
                self._client.get_object,
                Bucket=self._config.bucket,
                Key=path,
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES:
                logger.info("message_not_found", path=path)
                return None
            raise

        raw: bytes = await asyncio.to_thread(response["Body"].read)
        metadata = {k.lower(): v for k, v in (response.get("Metadata") or {}).items()}
        size = response.get("ContentLength") or len(raw)
        logger.debug("message_fetched", path=path, size=size)
        return StoredMessage(raw=raw, size=size, metadata=metadata)

    def attachment_key(self, email_path: str, filename: str) -> str:
        """``<path without .eml>/<attachments_dir>/<sanitized filename>``."""
        base = email_path.removesuffix(".eml")
        return f"{base}/{self._config.attachments_dir}/{_sanitize_filename(filename)}"

    async def put_attachment(self, email_path: str, attachment: Attachment) -> str:
        """Upload one attachment beside its message. Returns the object key."""
        assert self._client is not None, "S3 client not started"
        key = self.attachment_key(email_path, attachment.filename)
        await asyncio.to_thread(
            self._client.put_object,
            Bucket=self._config.bucket,
            Key=key,
            Body=attachment.content,
            ContentType=attachment.content_type,
        )
        logger.debug(
            "attachment_uploaded",
            email_path=email_path,
            filename=attachment.filename,
            key=key,
            size=attachment.size,
        )
        return key


def _sanitize_filename(name: str) -> str:
    """Remove characters unsafe for S3 keys."""
    return re.sub(r"[^\w.\-]", "_", name)
