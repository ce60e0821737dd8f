"""Request/response schemas for the processing endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ProcessRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email_path: str | None = Field(default=None, alias="emailPath")


class ProcessResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    email_id: int = Field(alias="emailId")
    email_path: str = Field(alias="emailPath")
    attachment_count: int = Field(alias="attachmentCount")


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
