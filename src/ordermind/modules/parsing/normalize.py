from __future__ import annotations

import re

_LINE_BREAK_RE = re.compile(r"(?i)<br\s*/?>")
_PARAGRAPH_CLOSE_RE = re.compile(r"(?i)</p\s*>")
_BLOCK_CLOSE_RE = re.compile(r"(?i)</(?:div|li|tr|h[1-6]|blockquote|table|ul|ol)\s*>")
_TAG_RE = re.compile(r"(?s)<[^>]+>")

_ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
}
_ENTITY_RE = re.compile("|".join(re.escape(e) for e in _ENTITIES), re.I)


def html_to_text(html: str) -> str:
    """
    Strip markup from an HTML email body, keeping paragraph and line structure.

    Only break/paragraph/block tags and five entities carry meaning here; tables,
    images and styling are dropped along with every other tag. Entities are decoded
    in one pass so `&amp;lt;` becomes `&lt;`, not `<`.
    """
    text = _LINE_BREAK_RE.sub("\n", html)
    text = _PARAGRAPH_CLOSE_RE.sub("\n\n", text)
    text = _BLOCK_CLOSE_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    return _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(0).lower()], text)


def normalize_body(body: str, body_type: str) -> str:
    if (body_type or "").lower() == "html":
        return html_to_text(body or "")
    return body or ""
