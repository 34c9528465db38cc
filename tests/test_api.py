from __future__ import annotations

import base64
from email.message import EmailMessage

from conftest import xlsx_bytes


def _client():
    from fastapi.testclient import TestClient

    from ordermind.main import app

    return TestClient(app)


def _message_json(external_id: str = "graph-1") -> dict:
    sheet = xlsx_bytes({"Lines": [["SKU", "Qty"], ["A-1", 3], ["B-2", 4]]})
    return {
        "external_id": external_id,
        "mailbox": "orders@example.com",
        "sender": "buyer@acme.test",
        "subject": "PO 4411",
        "body": "<p>Hi team,</p><p>Order attached.</p>",
        "body_type": "html",
        "attachments": [
            {
                "filename": "lines.xlsx",
                "content_base64": base64.b64encode(sheet).decode(),
            }
        ],
    }


def test_healthz_and_storage_write_test():
    client = _client()
    assert client.get("/healthz").json() == {"status": "ok"}

    resp = client.get("/healthz/storage", params={"write_test": "true"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["backend"] == "local"
    assert body["write_test"]["ok"] is True


def test_ingest_parse_and_read_evidence_over_http():
    client = _client()

    resp = client.post("/api/messages", json=_message_json())
    assert resp.status_code == 200
    ingested = resp.json()
    assert ingested["skipped"] is False
    order_id = ingested["order_id"]

    again = client.post("/api/messages", json=_message_json())
    assert again.json()["skipped"] is True
    assert again.json()["order_id"] == order_id

    assert client.get(f"/api/orders/{order_id}/evidence").status_code == 404

    resp = client.post(f"/api/orders/{order_id}/parse")
    assert resp.status_code == 202
    assert resp.json()["task_name"] == "parse_order"

    order = client.get(f"/api/orders/{order_id}").json()
    assert order["status"] == "parsed"
    assert order["evidence_pack_id"]

    evidence = client.get(f"/api/orders/{order_id}/evidence").json()
    assert evidence["id"] == order["evidence_pack_id"]
    assert evidence["orderId"] == order_id
    assert [s["type"] for s in evidence["email"]["segments"]] == ["greeting", "plain"]
    assert evidence["excels"][0]["sheets"][0]["tables"][0]["headers"] == ["SKU", "Qty"]
    assert evidence["parseQuality"]["score"] == 1.0

    text = client.get(f"/api/orders/{order_id}/evidence/text")
    assert text.status_code == 200
    assert text.headers["content-type"].startswith("text/plain")
    assert "=== EXCEL: lines.xlsx ===" in text.text
    assert "  SKU: A-1 | Qty: 3" in text.text

    message = client.get(f"/api/messages/{ingested['message_id']}").json()
    assert message["body_type"] == "html"
    assert message["attachments"][0]["parse_status"] == "PARSED"
    assert message["attachments"][0]["sheet_count"] == 1

    listed = client.get("/api/orders", params={"status": "parsed"}).json()
    assert [o["id"] for o in listed] == [order_id]
    assert client.get("/api/orders", params={"status": "new"}).json() == []


def test_eml_upload_creates_order():
    msg = EmailMessage()
    msg["From"] = "buyer@acme.test"
    msg["To"] = "orders@example.com"
    msg["Subject"] = "Order"
    msg["Message-ID"] = "<eml-1@acme.test>"
    msg.set_content("Please ship 4 units.")

    client = _client()
    resp = client.post(
        "/api/messages/eml",
        files={"upload": ("order.eml", msg.as_bytes(), "message/rfc822")},
        data={"mailbox": "orders@example.com"},
    )
    assert resp.status_code == 200
    message = client.get(f"/api/messages/{resp.json()['message_id']}").json()
    assert message["external_id"] == "<eml-1@acme.test>"
    assert message["to"] == ["orders@example.com"]


def test_order_types_and_extract_preconditions():
    client = _client()
    types = client.get("/api/order-types").json()
    assert [t["orderType"] for t in types] == [
        "sales_order",
        "incoming_shipment",
        "service_case",
        "no_action",
    ]

    order_id = client.post("/api/messages", json=_message_json("graph-2")).json()["order_id"]
    resp = client.post(f"/api/orders/{order_id}/extract", json={"orderType": "invoice"})
    assert resp.status_code == 400
    resp = client.post(f"/api/orders/{order_id}/extract", json={"orderType": "sales_order"})
    assert resp.status_code == 409


def test_extract_over_http_without_llm_key_fails_the_order():
    client = _client()
    order_id = client.post("/api/messages", json=_message_json("graph-3")).json()["order_id"]
    client.post(f"/api/orders/{order_id}/parse")

    resp = client.post(f"/api/orders/{order_id}/extract", json={"orderType": "sales_order"})
    assert resp.status_code == 202
    order = client.get(f"/api/orders/{order_id}").json()
    assert order["status"] == "error"
    assert order["order_type"] == "sales_order"


def test_unknown_ids_are_404():
    client = _client()
    missing = "00000000-0000-0000-0000-000000000000"
    assert client.get(f"/api/orders/{missing}").status_code == 404
    assert client.get(f"/api/messages/{missing}").status_code == 404
    assert client.post(f"/api/orders/{missing}/parse").status_code == 404


def test_api_key_is_enforced_when_configured(monkeypatch):
    from ordermind.core.config import settings

    monkeypatch.setattr(settings, "api_key", "s3cret")
    client = _client()
    assert client.get("/api/order-types").status_code == 401
    assert client.get("/api/order-types", headers={"X-API-Key": "wrong"}).status_code == 401
    assert client.get("/api/order-types", headers={"X-API-Key": "s3cret"}).status_code == 200
    assert client.get("/healthz").status_code == 200


def test_evidence_history_and_audit_trail():
    client = _client()
    order_id = client.post("/api/messages", json=_message_json("graph-4")).json()["order_id"]
    client.post(f"/api/orders/{order_id}/parse")
    client.post(f"/api/orders/{order_id}/parse")

    history = client.get(f"/api/orders/{order_id}/evidence/history").json()
    assert [h["current"] for h in history] == [False, True]
    current_id = client.get(f"/api/orders/{order_id}").json()["evidence_pack_id"]
    assert history[1]["id"] == current_id
    assert history[0]["parse_score"] == 1.0

    events = client.get(f"/api/orders/{order_id}/audit").json()
    assert [e["event_type"] for e in events] == [
        "message_ingested",
        "evidence_pack_created",
        "evidence_pack_created",
    ]
    assert events[2]["payload_json"]["evidencePackId"] == current_id

    missing = "00000000-0000-0000-0000-000000000000"
    assert client.get(f"/api/orders/{missing}/audit").status_code == 404
    assert client.get(f"/api/orders/{missing}/evidence/history").status_code == 404


def test_request_id_is_echoed():
    client = _client()
    resp = client.get("/healthz", headers={"X-Request-ID": "req-42"})
    assert resp.headers["x-request-id"] == "req-42"
    assert client.get("/healthz").headers["x-request-id"]
