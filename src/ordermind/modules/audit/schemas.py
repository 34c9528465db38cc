from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class AuditEventOut(BaseModel):
    id: uuid.UUID
    order_id: uuid.UUID | None
    event_type: str
    payload_json: dict[str, Any]
    occurred_at: datetime
