from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ordermind.core.db import db_session
from ordermind.modules.orders.models import OrderStatus
from ordermind.modules.orders.schemas import OrderOut
from ordermind.modules.orders.service import get_order, list_orders

router = APIRouter(tags=["orders"])


@router.get("/orders", response_model=list[OrderOut])
def read_orders(
    status: OrderStatus | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    session: Session = Depends(db_session),
) -> list[OrderOut]:
    orders = list_orders(session, status_filter=status, limit=limit, offset=offset)
    return [OrderOut.model_validate(o, from_attributes=True) for o in orders]


@router.get("/orders/{order_id}", response_model=OrderOut)
def read_order(order_id: uuid.UUID, session: Session = Depends(db_session)) -> OrderOut:
    return OrderOut.model_validate(get_order(session, order_id=order_id), from_attributes=True)
