from __future__ import annotations

# Ensure all models are registered before any task runs
# isort: off
import ordermind.models  # noqa: F401
# isort: on

import time
import uuid

from celery import Task

from ordermind.core.config import settings
from ordermind.core.db import session_scope
from ordermind.core.logging import (
    bind_log_context,
    get_logger,
    log_event,
    log_exception,
    monotonic_ms,
    reset_log_context,
)
from ordermind.core.storage import ObjectStorage, create_storage
from ordermind.modules.extraction.ai import ChatCompletionsClient, create_llm_client
from ordermind.worker.celery_app import celery_app

logger = get_logger(__name__)


class OrdermindTask(Task):
    """Task base holding the worker process's storage and LLM client, built on first use."""

    _storage: ObjectStorage | None = None
    _llm_client: ChatCompletionsClient | None = None

    @property
    def storage(self) -> ObjectStorage:
        if self._storage is None:
            self._storage = create_storage(settings)
        return self._storage

    @property
    def llm_client(self) -> ChatCompletionsClient:
        if self._llm_client is None:
            self._llm_client = create_llm_client(settings)
        return self._llm_client


@celery_app.task(name="parse_order", bind=True, base=OrdermindTask)
def parse_order_task(self, order_id: str) -> str:
    from ordermind.modules.parsing.service import parse_order

    task_id = getattr(self.request, "id", None)
    token = bind_log_context(celery_task_id=task_id)
    start = time.monotonic()
    log_event(
        logger,
        "celery.task.start",
        task_name="parse_order",
        celery_task_id=task_id,
        order_id=order_id,
    )
    try:
        with session_scope() as session:
            pack = parse_order(session, order_id=uuid.UUID(order_id), storage=self.storage)
        log_event(
            logger,
            "celery.task.finish",
            task_name="parse_order",
            celery_task_id=task_id,
            order_id=order_id,
            evidence_pack_id=str(pack.id),
            duration_ms=monotonic_ms(start),
        )
        return str(pack.id)
    except Exception:
        log_exception(
            logger,
            "celery.task.error",
            task_name="parse_order",
            celery_task_id=task_id,
            order_id=order_id,
            duration_ms=monotonic_ms(start),
        )
        raise
    finally:
        reset_log_context(token)


@celery_app.task(name="extract_order_fields", bind=True, base=OrdermindTask)
def extract_order_fields_task(self, order_id: str, order_type: str) -> dict | None:
    from ordermind.modules.extraction.service import extract_order_fields

    task_id = getattr(self.request, "id", None)
    token = bind_log_context(celery_task_id=task_id)
    start = time.monotonic()
    log_event(
        logger,
        "celery.task.start",
        task_name="extract_order_fields",
        celery_task_id=task_id,
        order_id=order_id,
        order_type=order_type,
    )
    try:
        with session_scope() as session:
            result = extract_order_fields(
                session,
                order_id=uuid.UUID(order_id),
                order_type=order_type,
                client=self.llm_client,
            )
        log_event(
            logger,
            "celery.task.finish",
            task_name="extract_order_fields",
            celery_task_id=task_id,
            order_id=order_id,
            extracted=result is not None,
            duration_ms=monotonic_ms(start),
        )
        return result.model_dump(mode="json", by_alias=True) if result else None
    except Exception:
        log_exception(
            logger,
            "celery.task.error",
            task_name="extract_order_fields",
            celery_task_id=task_id,
            order_id=order_id,
            duration_ms=monotonic_ms(start),
        )
        raise
    finally:
        reset_log_context(token)
