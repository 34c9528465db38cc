from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from ordermind.core.config import settings
from ordermind.core.db import db_session
from ordermind.core.logging import get_logger, log_event
from ordermind.modules.orders.schemas import TaskEnqueuedOut
from ordermind.modules.orders.service import get_order
from ordermind.modules.parsing.formatting import format_evidence_for_prompt
from ordermind.modules.parsing.schemas import EvidencePack, EvidencePackSummaryOut
from ordermind.modules.parsing.service import (
    get_current_evidence_pack,
    list_evidence_pack_records,
)
from ordermind.worker.tasks import parse_order_task

router = APIRouter(tags=["parsing"])
logger = get_logger(__name__)


def _evidence_or_404(session: Session, order_id: uuid.UUID) -> EvidencePack:
    pack = get_current_evidence_pack(session, order_id=order_id)
    if pack is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Order has no evidence pack"
        )
    return pack


@router.post(
    "/orders/{order_id}/parse",
    response_model=TaskEnqueuedOut,
    status_code=status.HTTP_202_ACCEPTED,
)
def enqueue_parse(order_id: uuid.UUID, session: Session = Depends(db_session)) -> TaskEnqueuedOut:
    order = get_order(session, order_id=order_id)
    async_result = parse_order_task.delay(str(order.id))
    log_event(
        logger,
        "celery.task.enqueued",
        task_name="parse_order",
        celery_task_id=async_result.id,
        order_id=str(order.id),
    )
    return TaskEnqueuedOut(order_id=order.id, task_name="parse_order", task_id=async_result.id)


@router.get("/orders/{order_id}/evidence")
def read_evidence(order_id: uuid.UUID, session: Session = Depends(db_session)) -> dict:
    return _evidence_or_404(session, order_id).to_json_dict()


@router.get("/orders/{order_id}/evidence/text", response_class=PlainTextResponse)
def read_evidence_text(order_id: uuid.UUID, session: Session = Depends(db_session)) -> str:
    pack = _evidence_or_404(session, order_id)
    return format_evidence_for_prompt(
        pack, max_rows_per_table=settings.evidence_max_rows_per_table
    )


@router.get("/orders/{order_id}/evidence/history", response_model=list[EvidencePackSummaryOut])
def read_evidence_history(
    order_id: uuid.UUID, session: Session = Depends(db_session)
) -> list[EvidencePackSummaryOut]:
    order = get_order(session, order_id=order_id)
    return [
        EvidencePackSummaryOut(
            id=record.id,
            order_id=record.order_id,
            parse_score=record.parse_score,
            created_at=record.created_at,
            current=record.id == order.evidence_pack_id,
        )
        for record in list_evidence_pack_records(session, order_id=order.id)
    ]
