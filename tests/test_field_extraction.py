from __future__ import annotations

import json

import httpx
import pytest
from fastapi import HTTPException
from sqlalchemy import select

from ordermind.core.db import SessionLocal
from ordermind.modules.audit.models import AuditEvent
from ordermind.modules.extraction.ai import ChatCompletionsClient, extraction_response_format
from ordermind.modules.extraction.order_types import ORDER_TYPE_CONFIGS, get_order_type_config
from ordermind.modules.extraction.service import (
    extract_order_fields,
    format_fields_for_prompt,
    sanitize_extraction_result,
)
from ordermind.modules.messages.schemas import MessageIn
from ordermind.modules.messages.service import store_message
from ordermind.modules.orders.models import Order, OrderStatus
from ordermind.modules.parsing.service import parse_order


def _client(handler, **kwargs) -> ChatCompletionsClient:
    return ChatCompletionsClient(
        base_url="https://llm.test/v1/",
        api_key="sk-test",
        model="test-model",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


def _completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def _parsed_order(storage):
    with SessionLocal() as session:
        ingested = store_message(
            session,
            storage=storage,
            payload=MessageIn(
                external_id="ext-extract",
                mailbox="orders@example.com",
                sender="buyer@acme.test",
                body="Hello,\nPlease deliver 10x A-1 to Acme GmbH.\nPO: 4411",
            ),
        )
        parse_order(session, order_id=ingested.order_id, storage=storage)
        return ingested.order_id


def test_order_type_configs():
    assert [c.order_type for c in ORDER_TYPE_CONFIGS] == [
        "sales_order",
        "incoming_shipment",
        "service_case",
        "no_action",
    ]
    sales = get_order_type_config("sales_order")
    assert "lineItems" in sales.field_keys
    assert get_order_type_config("invoice") is None


def test_format_fields_for_prompt_marks_required_and_examples():
    text = format_fields_for_prompt(get_order_type_config("service_case"))
    lines = text.splitlines()
    assert lines[0].startswith("- customerName (Customer Name): [string] REQUIRED: ")
    assert any(
        line.startswith("- priority (Priority): [string] optional: Urgency level")
        and line.endswith("Examples: low, medium, high, critical")
        for line in lines
    )


def test_sanitize_keeps_configured_keys_and_clamps_confidence():
    config = get_order_type_config("no_action")
    result = sanitize_extraction_result(
        {
            "fields": [
                {"key": "reason", "value": "auto-reply", "confidence": 1.7, "evidenceRef": "S0"},
                {"key": "reason", "value": "dup", "confidence": 0.1},
                {"key": "made_up", "value": "x", "confidence": 0.9},
                "junk",
            ]
        },
        config,
    )
    assert result.order_type == "no_action"
    assert [(f.key, f.value, f.confidence) for f in result.fields] == [
        ("reason", "auto-reply", 1.0)
    ]
    assert result.fields[0].evidence_ref == "S0"
    assert result.overall_confidence == 1.0

    assert sanitize_extraction_result({"fields": "nope"}, config) is None


def test_client_falls_back_to_json_mode_on_400():
    formats: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "https://llm.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        body = json.loads(request.content)
        formats.append(body["response_format"])
        if body["response_format"]["type"] == "json_schema":
            return httpx.Response(400, json={"error": "unsupported"})
        return _completion('Sure: {"orderType": "no_action", "fields": []}')

    client = _client(handler)
    out = client.complete_json(
        user_prompt="x",
        response_format=extraction_response_format(get_order_type_config("no_action")),
    )
    assert out == {"orderType": "no_action", "fields": []}
    assert [f["type"] for f in formats] == ["json_schema", "json_object"]


def test_client_returns_none_on_server_error_and_when_disabled():
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(500)

    assert _client(handler).complete_json(user_prompt="x", response_format={}) is None
    assert len(calls) == 1
    disabled = _client(handler, enabled=False)
    assert disabled.complete_json(user_prompt="x", response_format={}) is None
    assert len(calls) == 1


def test_extract_order_fields_stores_result(storage):
    order_id = _parsed_order(storage)
    prompts: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        prompts.append(body["messages"][1]["content"])
        return _completion(
            json.dumps(
                {
                    "orderType": "sales_order",
                    "fields": [
                        {"key": "customerName", "value": "Acme GmbH", "confidence": 0.9},
                        {"key": "poNumber", "value": "4411", "confidence": 0.7},
                    ],
                }
            )
        )

    with SessionLocal() as session:
        result = extract_order_fields(
            session, order_id=order_id, order_type="sales_order", client=_client(handler)
        )
        assert result is not None
        assert result.overall_confidence == pytest.approx(0.8)

        session.expire_all()
        order = session.scalar(select(Order).where(Order.id == order_id))
        assert order.status == OrderStatus.EXTRACTED
        assert order.order_type == "sales_order"
        assert order.extracted_fields["orderType"] == "sales_order"
        assert order.extracted_fields["fields"][0]["value"] == "Acme GmbH"

        event = session.scalar(
            select(AuditEvent).where(AuditEvent.event_type == "fields_extracted")
        )
        assert event.payload_json["fieldCount"] == 2

    assert "## Fields to Extract" in prompts[0]
    assert "=== EMAIL BODY ===" in prompts[0]
    assert "Please deliver 10x A-1 to Acme GmbH." in prompts[0]


def test_extract_order_fields_failure_marks_order_error(storage):
    order_id = _parsed_order(storage)

    with SessionLocal() as session:
        result = extract_order_fields(
            session,
            order_id=order_id,
            order_type="sales_order",
            client=_client(lambda request: _completion("not json at all")),
        )
        assert result is None
        session.expire_all()
        order = session.scalar(select(Order).where(Order.id == order_id))
        assert order.status == OrderStatus.ERROR
        assert session.scalar(
            select(AuditEvent).where(AuditEvent.event_type == "fields_extraction_failed")
        )


def test_extract_order_fields_rejects_unknown_type_and_missing_pack(storage):
    with SessionLocal() as session:
        ingested = store_message(
            session,
            storage=storage,
            payload=MessageIn(external_id="ext-2", mailbox="m@x.test", sender="s@x.test"),
        )
        client = _client(lambda request: _completion("{}"))

        with pytest.raises(HTTPException) as exc:
            extract_order_fields(
                session, order_id=ingested.order_id, order_type="invoice", client=client
            )
        assert exc.value.status_code == 400

        with pytest.raises(HTTPException) as exc:
            extract_order_fields(
                session, order_id=ingested.order_id, order_type="sales_order", client=client
            )
        assert exc.value.status_code == 409
