from __future__ import annotations

import base64
import binascii
import uuid
from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, field_validator

from ordermind.modules.messages.models import AttachmentParseStatus, BodyType


class AttachmentIn(BaseModel):
    filename: str
    mime_type: str = "application/octet-stream"
    content_base64: str

    @field_validator("content_base64")
    @classmethod
    def _valid_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("content_base64 is not valid base64") from e
        return value

    def content(self) -> bytes:
        return base64.b64decode(self.content_base64)


class MessageIn(BaseModel):
    external_id: str = Field(min_length=1)
    mailbox: str
    sender: str
    to: list[str] = Field(default_factory=list)
    cc: list[str] = Field(default_factory=list)
    subject: str = ""
    body: str = ""
    body_type: BodyType = BodyType.TEXT
    thread_id: str | None = None
    received_at: datetime | None = None
    attachments: list[AttachmentIn] = Field(default_factory=list)


class AttachmentOut(BaseModel):
    id: uuid.UUID
    position: int
    filename: str
    mime_type: str
    byte_size: int
    sha256: str
    page_count: int | None
    sheet_count: int | None
    parse_status: AttachmentParseStatus
    parse_error: str | None


class MessageOut(BaseModel):
    id: uuid.UUID
    external_id: str
    mailbox: str
    sender: str
    to: list[str] = Field(validation_alias=AliasChoices("to", "to_json"))
    cc: list[str] = Field(validation_alias=AliasChoices("cc", "cc_json"))
    subject: str
    body: str
    body_type: BodyType
    thread_id: str | None
    received_at: datetime | None
    created_at: datetime
    attachments: list[AttachmentOut]


class IngestResult(BaseModel):
    message_id: uuid.UUID
    order_id: uuid.UUID
    attachment_ids: list[uuid.UUID]
    # True when the message had already been ingested and nothing was written.
    skipped: bool = False
