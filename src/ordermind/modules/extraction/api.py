from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ordermind.core.db import db_session
from ordermind.core.logging import get_logger, log_event
from ordermind.modules.extraction.order_types import ORDER_TYPE_CONFIGS
from ordermind.modules.extraction.schemas import ExtractRequest
from ordermind.modules.extraction.service import (
    require_evidence_pack,
    require_order_type_config,
)
from ordermind.modules.orders.schemas import TaskEnqueuedOut
from ordermind.modules.orders.service import get_order
from ordermind.worker.tasks import extract_order_fields_task

router = APIRouter(tags=["extraction"])
logger = get_logger(__name__)


@router.get("/order-types")
def list_order_types() -> list[dict]:
    return [c.model_dump(mode="json", by_alias=True, exclude_none=True) for c in ORDER_TYPE_CONFIGS]


@router.post(
    "/orders/{order_id}/extract",
    response_model=TaskEnqueuedOut,
    status_code=status.HTTP_202_ACCEPTED,
)
def enqueue_extract(
    order_id: uuid.UUID, payload: ExtractRequest, session: Session = Depends(db_session)
) -> TaskEnqueuedOut:
    config = require_order_type_config(payload.order_type)
    order = get_order(session, order_id=order_id)
    require_evidence_pack(session, order_id=order.id)

    async_result = extract_order_fields_task.delay(str(order.id), config.order_type)
    log_event(
        logger,
        "celery.task.enqueued",
        task_name="extract_order_fields",
        celery_task_id=async_result.id,
        order_id=str(order.id),
        order_type=config.order_type,
    )
    return TaskEnqueuedOut(
        order_id=order.id, task_name="extract_order_fields", task_id=async_result.id
    )
