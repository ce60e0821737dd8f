"""Service configuration loaded from environment variables.

Uses pydantic-settings so every field can be overridden via env vars.
Nested sections carry their own prefix, e.g. ``PARSER_PREVIEW_LENGTH=80``
or ``S3_BUCKET=mail``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_HEADER_FIELDS: dict[str, str] = {
    "cc": "CC",
    "bcc": "BCC",
    "reply_to": "Reply-To",
}


class ParserConfig(BaseSettings):
    """Knobs for the raw message parser."""

    model_config = SettingsConfigDict(env_prefix="PARSER_")

    charset: str = Field(
        default="utf-8",
        description="Text encoding used to decode raw bytes and to encode non-base64 payloads",
    )
    charset_errors: str = Field(
        default="replace",
        description="Codec error handler used when converting between raw bytes and text",
    )
    preview_length: int = Field(
        default=100,
        ge=0,
        description="Maximum preview length in characters",
    )
    header_fields: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_HEADER_FIELDS),
        description="Result key -> header name for the extracted header subset",
    )
    attachment_errors: Literal["abort", "skip"] = Field(
        default="abort",
        description=(
            "'abort' discards the whole parse on a malformed attachment, "
            "'skip' drops only the offending attachment"
        ),
    )


class S3Config(BaseSettings):
    """S3 storage settings for raw messages and extracted attachments."""

    model_config = SettingsConfigDict(env_prefix="S3_")

    bucket: str = Field(default="emails", description="S3 bucket name")
    region: str = Field(default="us-east-1", description="AWS region")
    endpoint_url: str | None = Field(
        default=None,
        description="Custom S3 endpoint URL (e.g. for MinIO or R2)",
    )
    attachments_dir: str = Field(
        default="attachments",
        description="Key segment under which a message's attachments are stored",
    )


class DatabaseConfig(BaseSettings):
    """Relational store for message and attachment rows."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = Field(
        default="sqlite+aiosqlite:///./inbox.db",
        description="Async SQLAlchemy URL",
    )
    echo: bool = Field(default=False, description="Echo SQL statements")
    create_tables: bool = Field(
        default=True,
        description="Create missing tables on startup",
    )


class Settings(BaseSettings):
    """Top-level settings for the inbox ingest service.

    Server fields are prefixed with ``INBOX_INGEST_``.
    Example: ``INBOX_INGEST_PORT=8080``
    """

    model_config = SettingsConfigDict(env_prefix="INBOX_INGEST_")

    # --- Server -------------------------------------------------------------
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(
        default=True,
        description="Use JSON log output (True for prod, False for dev)",
    )

    # --- Processing ---------------------------------------------------------
    default_folder: str = Field(
        default="Inbox",
        description="Folder used when the message path carries none",
    )

    parser: ParserConfig = Field(default_factory=ParserConfig)
    s3: S3Config = Field(default_factory=S3Config)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
