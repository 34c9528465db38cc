from __future__ import annotations

import base64
import hashlib
import uuid
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import getaddresses, parsedate_to_datetime

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ordermind.core.logging import get_logger, log_event, log_exception
from ordermind.core.storage import ObjectStorage, StorageError
from ordermind.modules.audit.service import record_audit_event
from ordermind.modules.messages.models import (
    Attachment,
    AttachmentParseStatus,
    BodyType,
    Message,
)
from ordermind.modules.messages.schemas import AttachmentIn, IngestResult, MessageIn
from ordermind.modules.orders.models import Order, OrderStatus

logger = get_logger(__name__)


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _sanitize_filename(name: str) -> str:
    # Strip any path components and normalize whitespace.
    name = name.replace("\\", "/").split("/")[-1].strip()
    return " ".join(name.split())


def get_message(session: Session, *, message_id: uuid.UUID) -> Message:
    message = session.scalar(select(Message).where(Message.id == message_id))
    if not message:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return message


def _existing_result(session: Session, *, content_hash: str) -> IngestResult | None:
    message = session.scalar(select(Message).where(Message.content_hash == content_hash))
    if not message:
        return None
    order = session.scalar(select(Order).where(Order.message_id == message.id))
    return IngestResult(
        message_id=message.id,
        order_id=order.id,
        attachment_ids=[a.id for a in message.attachments],
        skipped=True,
    )


def _store_attachment(
    storage: ObjectStorage, *, message: Message, position: int, item: AttachmentIn
) -> Attachment:
    body = item.content()
    filename = _sanitize_filename(item.filename) or f"attachment-{position}"
    attachment = Attachment(
        message_id=message.id,
        position=position,
        filename=filename,
        mime_type=item.mime_type or "application/octet-stream",
        byte_size=len(body),
        sha256=_sha256_hex(body),
        parse_status=AttachmentParseStatus.PENDING,
    )
    key = f"messages/{message.id}/{position}-{filename}"
    try:
        stored = storage.put(key=key, body=body)
    except (StorageError, OSError) as e:
        # The row is kept so the message stays complete; parsing skips it.
        log_exception(
            logger,
            "ingest.attachment.store_failed",
            message_id=str(message.id),
            filename=filename,
            storage_key=key,
        )
        attachment.parse_status = AttachmentParseStatus.ERROR
        attachment.parse_error = f"Could not store attachment ({type(e).__name__}: {e})"
        return attachment
    attachment.storage_key = stored.key
    return attachment


def store_message(
    session: Session, *, storage: ObjectStorage, payload: MessageIn
) -> IngestResult:
    """
    Persist an email with its attachments and open an order for it.

    Idempotent on the external id: re-delivering a stored message writes nothing and
    returns the existing ids with skipped=True.
    """
    content_hash = _sha256_hex(payload.external_id.encode("utf-8"))
    existing = _existing_result(session, content_hash=content_hash)
    if existing:
        log_event(logger, "ingest.message.duplicate", message_id=str(existing.message_id))
        return existing

    message = Message(
        id=uuid.uuid4(),
        external_id=payload.external_id,
        mailbox=payload.mailbox,
        sender=payload.sender,
        to_json=list(payload.to),
        cc_json=list(payload.cc),
        subject=payload.subject,
        body=payload.body,
        body_type=payload.body_type,
        thread_id=payload.thread_id,
        received_at=payload.received_at,
        content_hash=content_hash,
    )
    session.add(message)

    attachments = [
        _store_attachment(storage, message=message, position=position, item=item)
        for position, item in enumerate(payload.attachments)
    ]
    session.add_all(attachments)

    order = Order(id=uuid.uuid4(), message_id=message.id, status=OrderStatus.NEW)
    session.add(order)
    record_audit_event(
        session,
        order_id=order.id,
        event_type="message_ingested",
        payload={
            "messageId": str(message.id),
            "mailbox": message.mailbox,
            "attachmentCount": len(attachments),
            "storeFailures": sum(1 for a in attachments if a.storage_key is None),
        },
    )

    try:
        session.commit()
    except IntegrityError:
        # Lost a race with a concurrent delivery of the same message.
        session.rollback()
        for attachment in attachments:
            if attachment.storage_key:
                storage.delete(key=attachment.storage_key)
        existing = _existing_result(session, content_hash=content_hash)
        if existing is None:
            raise
        return existing

    log_event(
        logger,
        "ingest.message.stored",
        message_id=str(message.id),
        order_id=str(order.id),
        attachment_count=len(attachments),
    )
    return IngestResult(
        message_id=message.id,
        order_id=order.id,
        attachment_ids=[a.id for a in attachments],
    )


def message_from_eml(body: bytes, *, mailbox: str) -> MessageIn:
    """Build an ingestion record from raw RFC822 bytes."""
    msg: EmailMessage = BytesParser(policy=policy.default).parsebytes(body)

    text_body, body_type = "", BodyType.TEXT
    part = msg.get_body(preferencelist=("html", "plain"))
    if part is not None:
        text_body = part.get_content() or ""
        if part.get_content_type() == "text/html":
            body_type = BodyType.HTML

    received_at = None
    date_header = str(msg.get("date") or "").strip()
    if date_header:
        try:
            received_at = parsedate_to_datetime(date_header)
        except (TypeError, ValueError):
            received_at = None

    external_id = str(msg.get("message-id") or "").strip() or _sha256_hex(body)
    references = str(msg.get("references") or "").split()
    thread_id = references[0] if references else (str(msg.get("in-reply-to") or "").strip() or None)

    attachments: list[AttachmentIn] = []
    for idx, att in enumerate(msg.iter_attachments()):
        payload = att.get_payload(decode=True)
        if not payload:
            continue
        attachments.append(
            AttachmentIn(
                filename=att.get_filename() or f"attachment-{idx}",
                mime_type=att.get_content_type(),
                content_base64=base64.b64encode(payload).decode("ascii"),
            )
        )

    return MessageIn(
        external_id=external_id,
        mailbox=mailbox,
        sender=str(msg.get("from") or "").strip(),
        to=_addresses(msg, "to"),
        cc=_addresses(msg, "cc"),
        subject=str(msg.get("subject") or "").strip(),
        body=text_body,
        body_type=body_type,
        thread_id=thread_id,
        received_at=received_at,
        attachments=attachments,
    )


def _addresses(msg: EmailMessage, header: str) -> list[str]:
    values = [str(v) for v in msg.get_all(header, [])]
    return [addr for _, addr in getaddresses(values) if addr]
