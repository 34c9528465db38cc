from __future__ import annotations

import json
import re
import time
from typing import Any

import httpx

from ordermind.core.config import Settings
from ordermind.core.logging import get_logger, log_event, log_exception, monotonic_ms
from ordermind.modules.extraction.schemas import OrderTypeConfig

logger = get_logger(__name__)

_SYSTEM_PROMPT = (
    "You extract structured order fields from business email evidence "
    "(email body segments, PDF pages, spreadsheet tables).\n"
    "Only use information explicitly present in the evidence. Never guess.\n"
    "If a field is not present, return null for its value with confidence 0.\n"
    "evidenceRef should name where the value came from, e.g. 'Segment 1', "
    "'PDF order.pdf Page 2', 'Sheet Lines'.\n"
    "Return JSON only."
)


def extraction_response_format(config: OrderTypeConfig) -> dict[str, Any]:
    """Structured Outputs schema for one order type's extraction result."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": f"{config.order_type}_extraction",
            # `value` is free-form (string, number, array or object), which strict mode rejects.
            "strict": False,
            "schema": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "orderType": {"type": "string", "enum": [config.order_type]},
                    "fields": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "additionalProperties": False,
                            "properties": {
                                "key": {"type": "string", "enum": config.field_keys},
                                "value": {},
                                "confidence": {"type": "number"},
                                "evidenceRef": {"type": ["string", "null"]},
                            },
                            "required": ["key", "value", "confidence"],
                        },
                    },
                    "overallConfidence": {"type": "number"},
                },
                "required": ["orderType", "fields", "overallConfidence"],
            },
        },
    }


class ChatCompletionsClient:
    """
    Minimal client for an OpenAI-compatible `/chat/completions` endpoint.

    One instance per process; it owns a pooled httpx.Client. Every failure mode
    (disabled, transport error, refusal, unparseable content) comes back as None.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | None,
        model: str,
        timeout_seconds: float = 60.0,
        max_chars: int = 60000,
        enabled: bool = True,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._url = base_url.rstrip("/") + "/chat/completions"
        self._api_key = api_key
        self.model = model
        self.max_chars = max_chars
        self._enabled = enabled
        self._http = http_client or httpx.Client(timeout=timeout_seconds, follow_redirects=True)

    @property
    def available(self) -> bool:
        return bool(self._enabled and self._api_key)

    def close(self) -> None:
        self._http.close()

    def _post(self, payload: dict[str, Any]) -> httpx.Response:
        resp = self._http.post(
            self._url,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            json=payload,
        )
        resp.raise_for_status()
        return resp

    def complete_json(
        self, *, user_prompt: str, response_format: dict[str, Any]
    ) -> dict[str, Any] | None:
        if not self.available:
            return None

        payload: dict[str, Any] = {
            "model": self.model,
            "temperature": 0,
            "response_format": response_format,
            "messages": [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
        }
        start = time.monotonic()
        try:
            resp = self._post(payload)
        except httpx.HTTPStatusError as e:
            # Some models/endpoints don't support Structured Outputs; fall back to JSON mode.
            if e.response is None or e.response.status_code not in {400, 422}:
                log_event(
                    logger,
                    "llm.request.failed",
                    model=self.model,
                    status_code=e.response.status_code if e.response is not None else None,
                )
                return None
            payload["response_format"] = {"type": "json_object"}
            try:
                resp = self._post(payload)
            except httpx.HTTPError:
                log_exception(logger, "llm.request.failed", model=self.model, fallback=True)
                return None
        except httpx.HTTPError:
            log_exception(logger, "llm.request.failed", model=self.model)
            return None

        try:
            msg = resp.json()["choices"][0]["message"]
        except (ValueError, KeyError, IndexError, TypeError):
            log_event(logger, "llm.response.malformed", model=self.model)
            return None
        if not isinstance(msg, dict) or msg.get("refusal"):
            log_event(logger, "llm.response.refused", model=self.model)
            return None

        content = msg.get("content")
        obj = _parse_json_object(content) if isinstance(content, str) else None
        log_event(
            logger,
            "llm.request.finish",
            model=self.model,
            parsed=isinstance(obj, dict),
            duration_ms=monotonic_ms(start),
        )
        return obj if isinstance(obj, dict) else None


def create_llm_client(settings: Settings) -> ChatCompletionsClient:
    return ChatCompletionsClient(
        base_url=settings.openai_base_url,
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout_seconds=settings.extraction_ai_timeout_seconds,
        max_chars=settings.extraction_ai_max_chars,
        enabled=settings.extraction_ai_enabled,
    )


def truncate_text(text: str, *, max_chars: int) -> str:
    t = (text or "").replace("\u202f", " ").replace("\xa0", " ").strip()
    if not t:
        return ""
    if max_chars <= 0 or len(t) <= max_chars:
        return t
    return t[: max_chars - 20].rstrip() + "\n\n[TRUNCATED]"


def _parse_json_object(content: str) -> Any:
    c = (content or "").strip()
    if not c:
        return None
    try:
        return json.loads(c)
    except ValueError:
        pass

    # Fallback: extract the first {...} block.
    m = re.search(r"\{.*\}", c, re.S)
    if not m:
        return None
    try:
        return json.loads(m.group(0))
    except ValueError:
        return None
