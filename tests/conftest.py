"""Shared test fixtures for the inbox ingest test suite."""

from __future__ import annotations

from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import pytest
import pytest_asyncio

from inbox_ingest.config import DatabaseConfig, ParserConfig, S3Config, Settings
from inbox_ingest.db.engine import Database
from inbox_ingest.parser import MessageParser


@pytest.fixture
def parser_config() -> ParserConfig:
    return ParserConfig()


@pytest.fixture
def parser(parser_config: ParserConfig) -> MessageParser:
    return MessageParser(parser_config)


@pytest.fixture
def s3_config() -> S3Config:
    return S3Config(
        bucket="test-bucket",
        region="us-east-1",
        attachments_dir="attachments",
    )


@pytest.fixture
def database_config(tmp_path) -> DatabaseConfig:
    return DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'inbox.db'}")


@pytest.fixture
def settings(s3_config: S3Config, database_config: DatabaseConfig) -> Settings:
    return Settings(
        log_json=False,
        s3=s3_config,
        database=database_config,
    )


@pytest_asyncio.fixture
async def database(database_config: DatabaseConfig):
    db = Database(database_config)
    await db.create_tables()
    yield db
    await db.close()


# ------------------------------------------------------------------
# Sample message builders
# ------------------------------------------------------------------


def _build_plain_email(
    *,
    body: str = "Hello, World!",
    cc: str | None = None,
    bcc: str | None = None,
    reply_to: str | None = None,
) -> bytes:
    """Build a simple plain-text email as raw bytes (LF line endings)."""
    msg = MIMEText(body, "plain")
    msg["Subject"] = "Test Subject"
    msg["From"] = "sender@example.com"
    msg["To"] = "recipient@example.com"
    msg["Message-ID"] = "<test-001@example.com>"
    if cc:
        msg["Cc"] = cc
    if bcc:
        msg["Bcc"] = bcc
    if reply_to:
        msg["Reply-To"] = reply_to
    return msg.as_bytes()


def _build_multipart_email(
    *,
    body_text: str = "Plain body",
    attachments: list[tuple[str, str, bytes]] | None = None,
) -> bytes:
    """Build a multipart/mixed email with base64 attachments."""
    msg = MIMEMultipart("mixed")
    msg["Subject"] = "Multipart Email"
    msg["From"] = "sender@example.com"
    msg["To"] = "recipient@example.com"
    msg["Cc"] = "cc@example.com"
    msg.attach(MIMEText(body_text, "plain"))

    for filename, content_type, payload in attachments or []:
        maintype, subtype = content_type.split("/", 1)
        part = MIMEBase(maintype, subtype)
        part.set_payload(payload)
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", "attachment", filename=filename)
        msg.attach(part)

    return msg.as_bytes()


def _build_raw_multipart(*parts: str, boundary: str = "XYZ") -> str:
    """Hand-assemble a CRLF multipart message from pre-rendered parts.

    Each entry in *parts* is the part's header lines and payload, already
    separated by a blank line.
    """
    lines = [
        "From: sender@example.com",
        "CC: cc@example.com",
        f'Content-Type: multipart/mixed; boundary="{boundary}"',
        "",
    ]
    for part in parts:
        lines.append(f"--{boundary}")
        lines.append(part)
    lines.append(f"--{boundary}--")
    lines.append("")
    return "\r\n".join(lines)


@pytest.fixture
def plain_eml_bytes() -> bytes:
    return _build_plain_email(cc="cc@example.com", reply_to="reply@example.com")


@pytest.fixture
def multipart_eml_bytes() -> bytes:
    return _build_multipart_email(
        attachments=[
            ("report.pdf", "application/pdf", b"%PDF-1.4 fake pdf content"),
            ("data.csv", "text/csv", b"col1,col2\na,b\n"),
        ],
    )
