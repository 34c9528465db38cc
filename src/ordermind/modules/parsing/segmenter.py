"""
Email body segmentation.

A single left-to-right pass over the lines of a normalized body. Each line is
matched against a fixed, ordered rule table; the first rule whose predicate
accepts the line decides the transition. Priority is therefore the table order:

    forward_header -> signature -> quote -> greeting -> plain

Segments accumulate in a buffer and are flushed when the segment type changes.
Flushing drops buffers that are empty after trimming.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from ordermind.modules.parsing.normalize import normalize_body
from ordermind.modules.parsing.schemas import EmailSegment, SegmentType

FORWARD_LOOKAHEAD_LINES = 5

_FORWARD_MARKER_RES = (
    re.compile(r"^-{3,}\s*forwarded message\s*-{3,}", re.I),
    re.compile(r"^begin forwarded message", re.I),
    re.compile(r"^-{3,}\s*original message\s*-{3,}", re.I),
)
_FORWARD_HEADER_RE = re.compile(r"^(from|date|to|subject|cc):\s*(.*)$", re.I)
_SIGNATURE_RES = (
    re.compile(r"^--\s*$"),
    re.compile(r"^_{3,}$"),
    re.compile(
        r"^(regards|best regards|kind regards|thanks|cheers|sincerely|sent from my)\b", re.I
    ),
)
_QUOTE_PREFIX_RE = re.compile(r"^\s*>\s?")
_GREETING_RE = re.compile(
    r"^(hi|hello|hey|dear|good morning|good afternoon|good evening)\b", re.I
)


@dataclass
class _SegmentBuffer:
    segments: list[EmailSegment] = field(default_factory=list)
    kind: SegmentType = "plain"
    lines: list[str] = field(default_factory=list)
    forward_from: str | None = None
    forward_date: str | None = None

    def has_content(self) -> bool:
        return any(ln.strip() for ln in self.lines)

    def at_body_start(self) -> bool:
        return not self.segments and not self.has_content()

    def flush(self) -> None:
        content = "\n".join(self.lines).strip()
        if content:
            is_forward = self.kind == "forward_header"
            self.segments.append(
                EmailSegment(
                    type=self.kind,
                    content=content,
                    from_=self.forward_from if is_forward else None,
                    date=self.forward_date if is_forward else None,
                )
            )
        self.lines = []
        self.forward_from = None
        self.forward_date = None

    def switch(self, kind: SegmentType) -> None:
        if self.kind != kind:
            self.flush()
            self.kind = kind


# Predicates see the trimmed line and the buffer; transitions return the index of
# the next line to read, or None to stop reading the body.
Predicate = Callable[[str, _SegmentBuffer], bool]
Transition = Callable[[_SegmentBuffer, list[str], int], int | None]


@dataclass(frozen=True)
class SegmentRule:
    name: SegmentType
    matches: Predicate
    apply: Transition


def _is_forward_marker(trimmed: str, _buf: _SegmentBuffer) -> bool:
    return any(rx.match(trimmed) for rx in _FORWARD_MARKER_RES)


def _take_forward_block(buf: _SegmentBuffer, lines: list[str], idx: int) -> int:
    buf.flush()
    buf.kind = "forward_header"
    buf.lines.append(lines[idx])

    next_idx = idx + 1
    for j in range(idx + 1, min(idx + 1 + FORWARD_LOOKAHEAD_LINES, len(lines))):
        candidate = lines[j].strip()
        if not candidate:
            next_idx = j + 1
            break
        m = _FORWARD_HEADER_RE.match(candidate)
        if not m:
            break
        name, value = m.group(1).lower(), m.group(2).strip()
        if name == "from":
            buf.forward_from = value
        elif name == "date":
            buf.forward_date = value
        buf.lines.append(lines[j])
        next_idx = j + 1

    buf.flush()
    buf.kind = "plain"
    return next_idx


def _is_signature_marker(trimmed: str, _buf: _SegmentBuffer) -> bool:
    return any(rx.match(trimmed) for rx in _SIGNATURE_RES)


def _take_signature(buf: _SegmentBuffer, lines: list[str], idx: int) -> None:
    buf.switch("signature")
    buf.lines.extend(lines[idx:])
    buf.flush()
    return None


def _is_quote_line(trimmed: str, _buf: _SegmentBuffer) -> bool:
    return trimmed.startswith(">")


def _take_quote_line(buf: _SegmentBuffer, lines: list[str], idx: int) -> int:
    buf.switch("quote")
    buf.lines.append(_QUOTE_PREFIX_RE.sub("", lines[idx], count=1))
    return idx + 1


def _is_opening_greeting(trimmed: str, buf: _SegmentBuffer) -> bool:
    return buf.at_body_start() and bool(_GREETING_RE.match(trimmed))


def _take_greeting(buf: _SegmentBuffer, lines: list[str], idx: int) -> int:
    buf.switch("greeting")
    buf.lines.append(lines[idx])
    buf.flush()
    buf.kind = "plain"
    return idx + 1


def _always(_trimmed: str, _buf: _SegmentBuffer) -> bool:
    return True


def _take_plain_line(buf: _SegmentBuffer, lines: list[str], idx: int) -> int:
    buf.switch("plain")
    buf.lines.append(lines[idx])
    return idx + 1


SEGMENT_RULES: tuple[SegmentRule, ...] = (
    SegmentRule("forward_header", _is_forward_marker, _take_forward_block),
    SegmentRule("signature", _is_signature_marker, _take_signature),
    SegmentRule("quote", _is_quote_line, _take_quote_line),
    SegmentRule("greeting", _is_opening_greeting, _take_greeting),
    SegmentRule("plain", _always, _take_plain_line),
)


def _rule_for(trimmed: str, buf: _SegmentBuffer) -> SegmentRule:
    return next(rule for rule in SEGMENT_RULES if rule.matches(trimmed, buf))


def classify_line(line: str, *, at_body_start: bool = False) -> SegmentType:
    """Name of the rule that would claim `line`; `at_body_start` enables greetings."""
    buf = _SegmentBuffer()
    if not at_body_start:
        buf.lines.append("x")
    return _rule_for(line.strip(), buf).name


def segment_email(body: str, body_type: str = "text") -> list[EmailSegment]:
    lines = normalize_body(body, body_type).split("\n")
    buf = _SegmentBuffer()
    idx: int | None = 0
    while idx is not None and idx < len(lines):
        rule = _rule_for(lines[idx].strip(), buf)
        idx = rule.apply(buf, lines, idx)
    buf.flush()
    return buf.segments
