"""Raw message parser — header subset, preview text and attachments.

Four passes run over the same buffer: header-block isolation, selected
header extraction, preview derivation and multipart attachment extraction.
Passes hand back :class:`Outcome` values instead of raising; the public
:meth:`MessageParser.parse` turns any failure into an empty
:class:`ParsedEmail`, so callers never see an exception.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

import structlog

from .config import ParserConfig
from .scanner import (
    decode_base64,
    derive_preview,
    extract_header,
    find_attachment_filename,
    find_boundary,
    find_header_value,
    payload_offset,
    split_header_block,
    split_parts,
)

logger = structlog.get_logger()

DEFAULT_CONTENT_TYPE = "application/octet-stream"

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of one parser step: either a value or an error description."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> Outcome[T]:
        return cls(error=error)


@dataclass(frozen=True)
class Attachment:
    """A decoded attachment; ``size`` always equals ``len(content)``."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class ParsedEmail:
    """Header subset, preview and attachments of one raw message."""

    headers: dict[str, str | None] = field(default_factory=dict)
    preview_text: str = ""
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def has_attachments(self) -> bool:
        return bool(self.attachments)

    @classmethod
    def empty(cls) -> ParsedEmail:
        """The degraded result returned when parsing fails."""
        return cls()


class MessageParser:
    """Stateless parser: raw RFC 822 bytes or text → ParsedEmail.

    Safe to share between concurrent callers; every call works on its own
    input and builds a fresh result.
    """

    def __init__(self, config: ParserConfig | None = None) -> None:
        self._config = config or ParserConfig()

    def parse(self, raw: bytes | str) -> ParsedEmail:
        """Parse *raw*; on any failure log it and return an empty result."""
        try:
            outcome = self.parse_outcome(raw)
        except Exception:
            logger.exception("email_parse_crashed")
            return ParsedEmail.empty()

        if not outcome.ok:
            logger.error("email_parse_failed", reason=outcome.error)
            return ParsedEmail.empty()
        return outcome.value or ParsedEmail.empty()

    def parse_outcome(self, raw: bytes | str) -> Outcome[ParsedEmail]:
        """Run all passes and report the first failure, if any."""
        decoded = self._decode_raw(raw)
        if not decoded.ok:
            return Outcome.failure(decoded.error or "undecodable message")
        text = decoded.value or ""

        header_block, body = split_header_block(text)
        headers = {
            key: extract_header(header_block, name)
            for key, name in self._config.header_fields.items()
        }
        preview = derive_preview(body, self._config.preview_length)

        attachments = self._extract_attachments(text, body)
        if not attachments.ok:
            return Outcome.failure(attachments.error or "attachment extraction failed")

        return Outcome.success(
            ParsedEmail(
                headers=headers,
                preview_text=preview,
                attachments=attachments.value or [],
            )
        )

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def _decode_raw(self, raw: bytes | str) -> Outcome[str]:
        if isinstance(raw, str):
            return Outcome.success(raw)
        if not isinstance(raw, (bytes, bytearray, memoryview)):
            return Outcome.failure(f"unsupported message type {type(raw).__name__}")
        try:
            return Outcome.success(
                bytes(raw).decode(self._config.charset, self._config.charset_errors)
            )
        except (LookupError, UnicodeDecodeError) as exc:
            return Outcome.failure(f"cannot decode message as {self._config.charset}: {exc}")

    def _extract_attachments(self, text: str, body: str) -> Outcome[list[Attachment]]:
        # The boundary may be declared anywhere; parts come from the body only.
        boundary = find_boundary(text)
        if boundary is None:
            return Outcome.success([])

        attachments: list[Attachment] = []
        for index, part in enumerate(split_parts(body, boundary)):
            resolved = self._resolve_attachment(part)
            if not resolved.ok:
                if self._config.attachment_errors == "skip":
                    logger.warning(
                        "attachment_decode_failed",
                        part_index=index,
                        reason=resolved.error,
                    )
                    continue
                return Outcome.failure(resolved.error or "attachment decode failed")
            if resolved.value is not None:
                attachments.append(resolved.value)
        return Outcome.success(attachments)

    def _resolve_attachment(self, part: str) -> Outcome[Attachment | None]:
        """Decode *part* if it is an attachment; ``None`` value otherwise."""
        filename = find_attachment_filename(part)
        if filename is None:
            return Outcome.success(None)

        content_type = find_header_value(part, "Content-Type", stops="\r\n;")

        offset = payload_offset(part)
        if offset is None:
            return Outcome.success(None)

        encoding = find_header_value(part, "Content-Transfer-Encoding") or ""
        content = self._decode_payload(part[offset:], encoding.lower())
        if not content.ok:
            return Outcome.failure(f"{filename}: {content.error}")

        return Outcome.success(
            Attachment(
                filename=filename,
                content_type=content_type or DEFAULT_CONTENT_TYPE,
                content=content.value or b"",
            )
        )

    def _decode_payload(self, payload: str, encoding: str) -> Outcome[bytes]:
        if encoding == "base64":
            try:
                return Outcome.success(decode_base64(payload))
            except ValueError as exc:
                return Outcome.failure(f"malformed base64 payload: {exc}")

        # Anything else is stored as the text itself.
        try:
            return Outcome.success(
                payload.encode(self._config.charset, self._config.charset_errors)
            )
        except (LookupError, UnicodeEncodeError) as exc:
            return Outcome.failure(f"cannot encode payload as {self._config.charset}: {exc}")
