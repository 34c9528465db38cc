"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_BODY_TYPES = ("HTML", "TEXT")
_PARSE_STATUSES = ("PENDING", "PARSED", "ERROR")
_ORDER_STATUSES = (
    "NEW",
    "PARSING",
    "PARSED",
    "CLASSIFYING",
    "CLASSIFIED",
    "EXTRACTING",
    "EXTRACTED",
    "VALIDATING",
    "VALIDATED",
    "REVIEW",
    "APPROVED",
    "SUBMITTED",
    "ERROR",
    "FLAGGED",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "messages_message",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("external_id", sa.String(length=1024), nullable=False),
        sa.Column("mailbox", sa.String(length=320), nullable=False),
        sa.Column("sender", sa.String(length=1024), nullable=False),
        sa.Column("to_json", sa.JSON(), nullable=False),
        sa.Column("cc_json", sa.JSON(), nullable=False),
        sa.Column("subject", sa.String(length=1024), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column(
            "body_type",
            sa.Enum(*_BODY_TYPES, name="bodytype", native_enum=False),
            nullable=False,
        ),
        sa.Column("thread_id", sa.String(length=1024), nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("content_hash", sa.String(length=64), nullable=False),
    )
    op.create_index("ix_messages_message_mailbox", "messages_message", ["mailbox"])
    op.create_index(
        "ix_messages_message_content_hash", "messages_message", ["content_hash"], unique=True
    )

    op.create_table(
        "messages_attachment",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column(
            "message_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("messages_message.id"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("filename", sa.String(length=512), nullable=False),
        sa.Column("mime_type", sa.String(length=200), nullable=False),
        sa.Column("byte_size", sa.Integer(), nullable=False),
        sa.Column("sha256", sa.String(length=64), nullable=False),
        sa.Column("storage_key", sa.String(length=1024), nullable=True),
        sa.Column("page_count", sa.Integer(), nullable=True),
        sa.Column("sheet_count", sa.Integer(), nullable=True),
        sa.Column(
            "parse_status",
            sa.Enum(*_PARSE_STATUSES, name="attachmentparsestatus", native_enum=False),
            nullable=False,
        ),
        sa.Column("parse_error", sa.Text(), nullable=True),
    )
    op.create_index("ix_messages_attachment_message_id", "messages_attachment", ["message_id"])
    op.create_index("ix_messages_attachment_sha256", "messages_attachment", ["sha256"])
    op.create_index(
        "ix_messages_attachment_parse_status", "messages_attachment", ["parse_status"]
    )

    op.create_table(
        "orders_order",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column(
            "message_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("messages_message.id"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(*_ORDER_STATUSES, name="orderstatus", native_enum=False),
            nullable=False,
        ),
        sa.Column("order_type", sa.String(length=100), nullable=True),
        sa.Column("client_id", sa.String(length=200), nullable=True),
        sa.Column("evidence_pack_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("extracted_fields", sa.JSON(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_orders_order_message_id", "orders_order", ["message_id"], unique=True)
    op.create_index("ix_orders_order_status", "orders_order", ["status"])

    op.create_table(
        "parsing_evidence_pack",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "order_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("orders_order.id"),
            nullable=False,
        ),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("parse_score", sa.Float(), nullable=False),
    )
    op.create_index(
        "ix_parsing_evidence_pack_created_at", "parsing_evidence_pack", ["created_at"]
    )
    op.create_index("ix_parsing_evidence_pack_order_id", "parsing_evidence_pack", ["order_id"])

    op.create_table(
        "audit_event",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "order_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("orders_order.id"),
            nullable=True,
        ),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("payload_json", sa.JSON(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_event_order_id", "audit_event", ["order_id"])
    op.create_index("ix_audit_event_event_type", "audit_event", ["event_type"])


def downgrade() -> None:
    op.drop_index("ix_audit_event_event_type", table_name="audit_event")
    op.drop_index("ix_audit_event_order_id", table_name="audit_event")
    op.drop_table("audit_event")
    op.drop_index("ix_parsing_evidence_pack_order_id", table_name="parsing_evidence_pack")
    op.drop_index("ix_parsing_evidence_pack_created_at", table_name="parsing_evidence_pack")
    op.drop_table("parsing_evidence_pack")
    op.drop_index("ix_orders_order_status", table_name="orders_order")
    op.drop_index("ix_orders_order_message_id", table_name="orders_order")
    op.drop_table("orders_order")
    op.drop_index("ix_messages_attachment_parse_status", table_name="messages_attachment")
    op.drop_index("ix_messages_attachment_sha256", table_name="messages_attachment")
    op.drop_index("ix_messages_attachment_message_id", table_name="messages_attachment")
    op.drop_table("messages_attachment")
    op.drop_index("ix_messages_message_content_hash", table_name="messages_message")
    op.drop_index("ix_messages_message_mailbox", table_name="messages_message")
    op.drop_table("messages_message")
