from __future__ import annotations

import enum
import uuid

from sqlalchemy import JSON, Enum, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ordermind.core.models import Base, Timestamped, UUIDPrimaryKey


class OrderStatus(str, enum.Enum):
    NEW = "new"
    PARSING = "parsing"
    PARSED = "parsed"
    CLASSIFYING = "classifying"
    CLASSIFIED = "classified"
    EXTRACTING = "extracting"
    EXTRACTED = "extracted"
    VALIDATING = "validating"
    VALIDATED = "validated"
    REVIEW = "review"
    APPROVED = "approved"
    SUBMITTED = "submitted"
    ERROR = "error"
    FLAGGED = "flagged"


class Order(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "orders_order"

    message_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("messages_message.id"), unique=True, index=True
    )
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, native_enum=False), default=OrderStatus.NEW, index=True
    )
    order_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    client_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    # Current pack; superseded packs stay in parsing_evidence_pack.
    evidence_pack_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    extracted_fields: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    message = relationship("Message")
