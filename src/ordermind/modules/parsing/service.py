from __future__ import annotations

import logging
import time
import uuid
from typing import Literal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ordermind.core.config import Settings, settings as default_settings
from ordermind.core.logging import (
    bind_log_context,
    get_logger,
    log_event,
    log_exception,
    monotonic_ms,
    reset_log_context,
)
from ordermind.core.storage import ObjectStorage, StorageError
from ordermind.modules.audit.service import record_audit_event
from ordermind.modules.messages.models import Attachment, AttachmentParseStatus
from ordermind.modules.orders.models import OrderStatus
from ordermind.modules.orders.service import get_order, set_order_status
from ordermind.modules.parsing.errors import AttachmentParseError, EvidencePackInvalidError
from ordermind.modules.parsing.evidence import assemble_evidence_pack
from ordermind.modules.parsing.models import EvidencePackRecord
from ordermind.modules.parsing.pages import split_pages
from ordermind.modules.parsing.pdf import extract_pdf_text
from ordermind.modules.parsing.schemas import EvidencePack, ExcelEvidence, PdfEvidence
from ordermind.modules.parsing.segmenter import segment_email
from ordermind.modules.parsing.spreadsheet import read_spreadsheet

logger = get_logger(__name__)

AttachmentKind = Literal["pdf", "excel"]

_PDF_EXTENSIONS = (".pdf",)
_EXCEL_EXTENSIONS = (".xlsx", ".xlsm", ".xls")


def detect_attachment_kind(filename: str, mime_type: str | None) -> AttachmentKind | None:
    name = (filename or "").lower()
    mime = (mime_type or "").lower()
    if mime == "application/pdf" or name.endswith(_PDF_EXTENSIONS):
        return "pdf"
    if "spreadsheet" in mime or "excel" in mime or name.endswith(_EXCEL_EXTENSIONS):
        return "excel"
    return None


def parse_attachment(
    attachment: Attachment, body: bytes, kind: AttachmentKind
) -> PdfEvidence | ExcelEvidence:
    """Decode one attachment into evidence. Raises AttachmentParseError on bad input."""
    if kind == "pdf":
        extracted = extract_pdf_text(body)
        attachment.page_count = extracted.page_count
        return PdfEvidence(
            attachment_id=attachment.id,
            filename=attachment.filename,
            pages=split_pages(extracted.full_text, extracted.page_count, extracted.page_texts),
        )

    sheets = read_spreadsheet(body)
    attachment.sheet_count = len(sheets)
    return ExcelEvidence(attachment_id=attachment.id, filename=attachment.filename, sheets=sheets)


def parse_order(
    session: Session,
    *,
    order_id: uuid.UUID,
    storage: ObjectStorage,
    settings: Settings = default_settings,
) -> EvidencePack:
    """
    Build and persist a new evidence pack for an order.

    Attachments are handled in arrival order; one that cannot be read is recorded as
    a parse error and its siblings still contribute. The previous pack, if any, is
    left untouched and superseded by the new one.
    """
    order = get_order(session, order_id=order_id)
    token = bind_log_context(order_id=str(order.id))
    start = time.monotonic()
    try:
        set_order_status(session, order, OrderStatus.PARSING)
        session.commit()

        message = order.message
        log_event(
            logger,
            "parse.start",
            message_id=str(message.id),
            attachment_count=len(message.attachments),
        )
        segments = segment_email(message.body or "", message.body_type.value)

        pdfs: list[PdfEvidence] = []
        excels: list[ExcelEvidence] = []
        errors: list[str] = []
        for attachment in sorted(message.attachments, key=lambda a: a.position):
            kind = detect_attachment_kind(attachment.filename, attachment.mime_type)
            if kind is None or not attachment.storage_key:
                log_event(
                    logger,
                    "parse.attachment.skipped",
                    attachment_id=str(attachment.id),
                    filename=attachment.filename,
                    mime_type=attachment.mime_type,
                    reason="unsupported_type" if kind is None else "not_stored",
                )
                continue
            try:
                body = storage.get(key=attachment.storage_key)
                evidence = parse_attachment(attachment, body, kind)
            except Exception as e:  # noqa: BLE001
                if isinstance(e, (AttachmentParseError, StorageError)):
                    reason = str(e)
                else:
                    reason = f"{type(e).__name__}: {e}"
                errors.append(f"{attachment.filename}: {reason}")
                attachment.parse_status = AttachmentParseStatus.ERROR
                attachment.parse_error = reason
                session.add(attachment)
                log_event(
                    logger,
                    "parse.attachment.failed",
                    level=logging.WARNING,
                    attachment_id=str(attachment.id),
                    filename=attachment.filename,
                    kind=kind,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                continue
            attachment.parse_status = AttachmentParseStatus.PARSED
            attachment.parse_error = None
            session.add(attachment)
            if isinstance(evidence, PdfEvidence):
                pdfs.append(evidence)
            else:
                excels.append(evidence)

        try:
            pack = assemble_evidence_pack(
                order_id=order.id,
                segments=segments,
                pdfs=pdfs,
                excels=excels,
                errors=errors,
                penalty=settings.parse_error_penalty,
            )
        except EvidencePackInvalidError as e:
            set_order_status(session, order, OrderStatus.ERROR, error_message=str(e))
            session.commit()
            log_event(
                logger,
                "parse.pack.invalid",
                level=logging.ERROR,
                problems=e.problems,
                duration_ms=monotonic_ms(start),
            )
            raise

        session.add(
            EvidencePackRecord(
                id=pack.id,
                order_id=order.id,
                data=pack.to_json_dict(),
                parse_score=pack.parse_quality.score,
            )
        )
        order.evidence_pack_id = pack.id
        set_order_status(session, order, OrderStatus.PARSED)
        record_audit_event(
            session,
            order_id=order.id,
            event_type="evidence_pack_created",
            payload={
                "evidencePackId": str(pack.id),
                "segmentCount": len(pack.email.segments),
                "pdfCount": len(pack.pdfs),
                "excelCount": len(pack.excels),
                "parseQuality": pack.parse_quality.to_json_dict(),
            },
        )
        session.commit()
        log_event(
            logger,
            "parse.finish",
            evidence_pack_id=str(pack.id),
            segment_count=len(pack.email.segments),
            pdf_count=len(pack.pdfs),
            excel_count=len(pack.excels),
            parse_score=pack.parse_quality.score,
            error_count=len(pack.parse_quality.errors),
            duration_ms=monotonic_ms(start),
        )
        return pack
    except EvidencePackInvalidError:
        raise
    except Exception as e:
        session.rollback()
        set_order_status(
            session,
            order,
            OrderStatus.ERROR,
            error_message=f"Parsing failed ({type(e).__name__}: {e})",
        )
        session.commit()
        log_exception(logger, "parse.failed", duration_ms=monotonic_ms(start))
        raise
    finally:
        reset_log_context(token)


def get_current_evidence_pack(session: Session, *, order_id: uuid.UUID) -> EvidencePack | None:
    order = get_order(session, order_id=order_id)
    if not order.evidence_pack_id:
        return None
    record = session.get(EvidencePackRecord, order.evidence_pack_id)
    if not record:
        return None
    return EvidencePack.model_validate(record.data)


def list_evidence_pack_records(
    session: Session, *, order_id: uuid.UUID
) -> list[EvidencePackRecord]:
    return list(
        session.scalars(
            select(EvidencePackRecord)
            .where(EvidencePackRecord.order_id == order_id)
            .order_by(EvidencePackRecord.created_at.asc())
        )
    )
