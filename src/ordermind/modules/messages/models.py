from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ordermind.core.models import Base, Timestamped, UUIDPrimaryKey


class BodyType(str, enum.Enum):
    HTML = "html"
    TEXT = "text"


class AttachmentParseStatus(str, enum.Enum):
    PENDING = "PENDING"
    PARSED = "PARSED"
    ERROR = "ERROR"


class Message(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "messages_message"

    external_id: Mapped[str] = mapped_column(String(1024))
    mailbox: Mapped[str] = mapped_column(String(320), index=True)
    sender: Mapped[str] = mapped_column(String(1024))
    to_json: Mapped[list] = mapped_column(JSON, default=list)
    cc_json: Mapped[list] = mapped_column(JSON, default=list)
    subject: Mapped[str] = mapped_column(String(1024), default="")
    body: Mapped[str] = mapped_column(Text, default="")
    body_type: Mapped[BodyType] = mapped_column(Enum(BodyType, native_enum=False))
    thread_id: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    received_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # sha256 of external_id; re-delivery of the same email is a no-op.
    content_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)

    attachments = relationship(
        "Attachment", back_populates="message", order_by="Attachment.position"
    )


class Attachment(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "messages_attachment"

    message_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("messages_message.id"), index=True
    )
    position: Mapped[int] = mapped_column(Integer)

    filename: Mapped[str] = mapped_column(String(512))
    mime_type: Mapped[str] = mapped_column(String(200), default="application/octet-stream")
    byte_size: Mapped[int] = mapped_column(Integer)
    sha256: Mapped[str] = mapped_column(String(64), index=True)
    storage_key: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sheet_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    parse_status: Mapped[AttachmentParseStatus] = mapped_column(
        Enum(AttachmentParseStatus, native_enum=False),
        default=AttachmentParseStatus.PENDING,
        index=True,
    )
    parse_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    message = relationship("Message", back_populates="attachments")
