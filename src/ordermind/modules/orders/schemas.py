from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from ordermind.modules.orders.models import OrderStatus


class OrderOut(BaseModel):
    id: uuid.UUID
    message_id: uuid.UUID
    status: OrderStatus
    order_type: str | None
    client_id: str | None
    evidence_pack_id: uuid.UUID | None
    extracted_fields: dict[str, Any] | None
    error_message: str | None
    created_at: datetime
    updated_at: datetime


class TaskEnqueuedOut(BaseModel):
    order_id: uuid.UUID
    task_name: str
    task_id: str | None
