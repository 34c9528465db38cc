from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ordermind.core.db import db_session
from ordermind.modules.audit.schemas import AuditEventOut
from ordermind.modules.audit.service import list_audit_events
from ordermind.modules.orders.service import get_order

router = APIRouter(tags=["audit"])


@router.get("/orders/{order_id}/audit", response_model=list[AuditEventOut])
def read_order_audit(
    order_id: uuid.UUID, session: Session = Depends(db_session)
) -> list[AuditEventOut]:
    order = get_order(session, order_id=order_id)
    return [
        AuditEventOut.model_validate(e, from_attributes=True)
        for e in list_audit_events(session, order_id=order.id)
    ]
