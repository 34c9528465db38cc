from __future__ import annotations

import uuid

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from ordermind.core.logging import get_logger, log_event
from ordermind.modules.orders.models import Order, OrderStatus

logger = get_logger(__name__)


def get_order(session: Session, *, order_id: uuid.UUID) -> Order:
    order = session.scalar(select(Order).where(Order.id == order_id))
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


def list_orders(
    session: Session,
    *,
    status_filter: OrderStatus | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Order]:
    stmt = select(Order).order_by(Order.created_at.desc())
    if status_filter is not None:
        stmt = stmt.where(Order.status == status_filter)
    return list(session.scalars(stmt.offset(offset).limit(limit)))


def set_order_status(
    session: Session,
    order: Order,
    new_status: OrderStatus,
    *,
    error_message: str | None = None,
) -> None:
    """Move the order to `new_status`. The caller commits."""
    previous = order.status
    order.status = new_status
    order.error_message = error_message
    session.add(order)
    log_event(
        logger,
        "order.status.changed",
        order_id=str(order.id),
        from_status=previous.value if previous else None,
        to_status=new_status.value,
    )
