from __future__ import annotations

import uuid

from sqlalchemy import JSON, Float, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ordermind.core.models import AppendOnly, Base, UUIDPrimaryKey


class EvidencePackRecord(UUIDPrimaryKey, AppendOnly, Base):
    """A stored evidence pack. Rows are never updated; re-parsing inserts a new one."""

    __tablename__ = "parsing_evidence_pack"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("orders_order.id"), index=True
    )
    data: Mapped[dict] = mapped_column(JSON)
    parse_score: Mapped[float] = mapped_column(Float)

    order = relationship("Order")
