from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ordermind.modules.audit.models import AuditEvent


def record_audit_event(
    session: Session,
    *,
    order_id: uuid.UUID | None,
    event_type: str,
    payload: dict[str, Any] | None = None,
) -> AuditEvent:
    """Add an audit row to the session; the caller's commit persists it."""
    event = AuditEvent(order_id=order_id, event_type=event_type, payload_json=payload or {})
    session.add(event)
    return event


def list_audit_events(session: Session, *, order_id: uuid.UUID) -> list[AuditEvent]:
    return list(
        session.scalars(
            select(AuditEvent)
            .where(AuditEvent.order_id == order_id)
            .order_by(AuditEvent.occurred_at.asc())
        )
    )
