from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ordermind.core.config import Settings, settings as default_settings
from ordermind.core.logging import (
    bind_log_context,
    get_logger,
    log_event,
    monotonic_ms,
    reset_log_context,
)
from ordermind.modules.audit.service import record_audit_event
from ordermind.modules.extraction.ai import (
    ChatCompletionsClient,
    extraction_response_format,
    truncate_text,
)
from ordermind.modules.extraction.order_types import (
    available_order_types,
    get_order_type_config,
)
from ordermind.modules.extraction.schemas import (
    ExtractedFieldValue,
    ExtractionResult,
    OrderTypeConfig,
)
from ordermind.modules.orders.models import OrderStatus
from ordermind.modules.orders.service import get_order, set_order_status
from ordermind.modules.parsing.formatting import format_evidence_for_prompt
from ordermind.modules.parsing.schemas import EvidencePack
from ordermind.modules.parsing.service import get_current_evidence_pack

logger = get_logger(__name__)


def require_order_type_config(order_type: str) -> OrderTypeConfig:
    config = get_order_type_config(order_type)
    if not config:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f'Unknown order type "{order_type}". '
                f"Available: {', '.join(available_order_types())}"
            ),
        )
    return config


def require_evidence_pack(session: Session, *, order_id: uuid.UUID) -> EvidencePack:
    pack = get_current_evidence_pack(session, order_id=order_id)
    if pack is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Order has no evidence pack yet; parse it first.",
        )
    return pack


def format_fields_for_prompt(config: OrderTypeConfig) -> str:
    lines: list[str] = []
    for f in config.fields:
        need = "REQUIRED" if f.required else "optional"
        line = f"- {f.key} ({f.label}): [{f.type}] {need}: {f.description}"
        if f.examples:
            line += f" Examples: {', '.join(f.examples)}"
        lines.append(line)
    return "\n".join(lines)


def build_extraction_prompt(config: OrderTypeConfig, evidence_text: str) -> str:
    return (
        f"Extract the following fields from this {config.label} evidence.\n\n"
        "## Fields to Extract\n"
        f"{format_fields_for_prompt(config)}\n\n"
        "## Evidence\n"
        f"{evidence_text}\n\n"
        "Return a JSON object with:\n"
        f'- orderType: "{config.order_type}"\n'
        "- fields: array of { key, value, confidence, evidenceRef } for each field above\n"
        "- overallConfidence: average of field confidences\n"
    )


def _clamp_confidence(raw: Any) -> float:
    try:
        conf = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if conf != conf:  # NaN
        return 0.0
    return min(1.0, max(0.0, conf))


def sanitize_extraction_result(
    obj: dict[str, Any], config: OrderTypeConfig
) -> ExtractionResult | None:
    """
    Keep only configured keys (first occurrence wins) and clamp every confidence.

    overallConfidence is taken from the model when present, else the field mean.
    """
    raw_fields = obj.get("fields")
    if not isinstance(raw_fields, list):
        return None

    allowed = set(config.field_keys)
    seen: set[str] = set()
    fields: list[ExtractedFieldValue] = []
    for item in raw_fields:
        if not isinstance(item, dict):
            continue
        key = item.get("key")
        if key not in allowed or key in seen:
            continue
        seen.add(key)
        ref = item.get("evidenceRef")
        fields.append(
            ExtractedFieldValue(
                key=key,
                value=item.get("value"),
                confidence=_clamp_confidence(item.get("confidence")),
                evidence_ref=str(ref) if ref not in (None, "") else None,
            )
        )

    if "overallConfidence" in obj:
        overall = _clamp_confidence(obj.get("overallConfidence"))
    elif fields:
        overall = sum(f.confidence for f in fields) / len(fields)
    else:
        overall = 0.0

    return ExtractionResult(
        order_type=config.order_type, fields=fields, overall_confidence=round(overall, 4)
    )


def extract_order_fields(
    session: Session,
    *,
    order_id: uuid.UUID,
    order_type: str,
    client: ChatCompletionsClient,
    settings: Settings = default_settings,
) -> ExtractionResult | None:
    """Run LLM field extraction over the order's current evidence pack and store the result."""
    config = require_order_type_config(order_type)
    order = get_order(session, order_id=order_id)
    pack = require_evidence_pack(session, order_id=order.id)

    token = bind_log_context(order_id=str(order.id))
    start = time.monotonic()
    try:
        order.order_type = config.order_type
        set_order_status(session, order, OrderStatus.EXTRACTING)
        session.commit()

        evidence_text = format_evidence_for_prompt(
            pack, max_rows_per_table=settings.evidence_max_rows_per_table
        )
        prompt = build_extraction_prompt(
            config, truncate_text(evidence_text, max_chars=client.max_chars)
        )
        log_event(
            logger,
            "extract.start",
            order_type=config.order_type,
            evidence_pack_id=str(pack.id),
            prompt_chars=len(prompt),
        )
        raw = client.complete_json(
            user_prompt=prompt, response_format=extraction_response_format(config)
        )
        result = sanitize_extraction_result(raw, config) if raw else None

        if result is None:
            set_order_status(
                session, order, OrderStatus.ERROR, error_message="Field extraction failed"
            )
            record_audit_event(
                session,
                order_id=order.id,
                event_type="fields_extraction_failed",
                payload={"orderType": config.order_type, "llmAvailable": client.available},
            )
            session.commit()
            log_event(
                logger,
                "extract.failed",
                level=logging.WARNING,
                order_type=config.order_type,
                llm_available=client.available,
                duration_ms=monotonic_ms(start),
            )
            return None

        order.extracted_fields = result.model_dump(mode="json", by_alias=True)
        set_order_status(session, order, OrderStatus.EXTRACTED)
        record_audit_event(
            session,
            order_id=order.id,
            event_type="fields_extracted",
            payload={
                "orderType": config.order_type,
                "fieldCount": len(result.fields),
                "overallConfidence": result.overall_confidence,
            },
        )
        session.commit()
        log_event(
            logger,
            "extract.finish",
            order_type=config.order_type,
            field_count=len(result.fields),
            overall_confidence=result.overall_confidence,
            duration_ms=monotonic_ms(start),
        )
        return result
    finally:
        reset_log_context(token)
