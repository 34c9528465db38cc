from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from ordermind.api.deps import get_storage
from ordermind.core.db import db_session
from ordermind.core.logging import get_logger, log_event
from ordermind.core.storage import ObjectStorage
from ordermind.modules.messages.schemas import IngestResult, MessageIn, MessageOut
from ordermind.modules.messages.service import get_message, message_from_eml, store_message

router = APIRouter(tags=["messages"])
logger = get_logger(__name__)


@router.post("/messages", response_model=IngestResult)
def ingest_message(
    payload: MessageIn,
    session: Session = Depends(db_session),
    storage: ObjectStorage = Depends(get_storage),
) -> IngestResult:
    log_event(
        logger,
        "ingest.received",
        mailbox=payload.mailbox,
        attachment_count=len(payload.attachments),
        source="json",
    )
    return store_message(session, storage=storage, payload=payload)


@router.post("/messages/eml", response_model=IngestResult)
async def ingest_eml(
    upload: UploadFile = File(...),
    mailbox: str = Form(...),
    session: Session = Depends(db_session),
    storage: ObjectStorage = Depends(get_storage),
) -> IngestResult:
    body = await upload.read()
    if not body.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty upload.")
    log_event(
        logger,
        "ingest.received",
        mailbox=mailbox,
        filename=upload.filename or "upload.eml",
        byte_size=len(body),
        source="eml",
    )
    payload = message_from_eml(body, mailbox=mailbox)
    return store_message(session, storage=storage, payload=payload)


@router.get("/messages/{message_id}", response_model=MessageOut)
def read_message(message_id: uuid.UUID, session: Session = Depends(db_session)) -> MessageOut:
    message = get_message(session, message_id=message_id)
    return MessageOut.model_validate(message, from_attributes=True)
