from __future__ import annotations

from ordermind.modules.parsing.segmenter import SEGMENT_RULES, classify_line, segment_email


def _pairs(segments):
    return [(s.type, s.content) for s in segments]


def test_greeting_plain_quote_signature_split():
    body = "Hi John,\nPlease see order below.\n> old text\n> more old\n--\nRegards,\nJane"
    assert _pairs(segment_email(body)) == [
        ("greeting", "Hi John,"),
        ("plain", "Please see order below."),
        ("quote", "old text\nmore old"),
        ("signature", "--\nRegards,\nJane"),
    ]


def test_unmarked_body_is_one_trimmed_plain_segment():
    body = "\n  Please ship 10 units of SKU-1.\nDeliver by Friday.  \n\n"
    segments = segment_email(body)
    assert _pairs(segments) == [("plain", body.strip())]


def test_empty_body_has_no_segments():
    assert segment_email("") == []
    assert segment_email("   \n\n ") == []


def test_signature_absorbs_everything_after_it():
    body = (
        "Order attached.\n"
        "Best regards,\n"
        "Ann\n"
        "> quoted after signature\n"
        "---------- Forwarded message ----------\n"
        "From: someone@example.com"
    )
    segments = segment_email(body)
    assert [s.type for s in segments] == ["plain", "signature"]
    assert segments[1].content.startswith("Best regards,")
    assert "> quoted after signature" in segments[1].content
    assert "Forwarded message" in segments[1].content


def test_forward_block_captures_from_and_date():
    body = (
        "FYI see below.\n"
        "---------- Forwarded message ----------\n"
        "From: Buyer <buyer@acme.test>\n"
        "Date: Mon, 2 Mar 2026 09:00\n"
        "Subject: PO 4411\n"
        "To: sales@example.com\n"
        "\n"
        "Please confirm PO 4411."
    )
    segments = segment_email(body)
    assert [s.type for s in segments] == ["plain", "forward_header", "plain"]
    fwd = segments[1]
    assert fwd.from_ == "Buyer <buyer@acme.test>"
    assert fwd.date == "Mon, 2 Mar 2026 09:00"
    assert fwd.content.splitlines()[0] == "---------- Forwarded message ----------"
    assert "Subject: PO 4411" in fwd.content
    assert segments[2].content == "Please confirm PO 4411."
    assert segments[0].from_ is None


def test_forward_lookahead_stops_at_non_header_line():
    body = "-----Original Message-----\nFrom: a@b.test\nThanks for the order\nmore"
    segments = segment_email(body)
    assert segments[0].type == "forward_header"
    assert segments[0].content == "-----Original Message-----\nFrom: a@b.test"
    assert segments[1].type == "signature"


def test_greeting_only_counts_at_body_start():
    body = "Please ship today.\nHello team, any update?"
    assert _pairs(segment_email(body)) == [("plain", body)]


def test_quote_prefix_is_stripped_with_one_optional_space():
    segments = segment_email(">a\n>  b\n   > c")
    assert _pairs(segments) == [("quote", "a\n b\nc")]


def test_html_body_is_normalized_before_segmenting():
    html = "<p>Dear Sir,</p><p>Order 55 attached.</p><blockquote>&gt; earlier note</blockquote>"
    segments = segment_email(html, body_type="html")
    assert _pairs(segments) == [
        ("greeting", "Dear Sir,"),
        ("plain", "Order 55 attached."),
        ("quote", "earlier note"),
    ]


def test_rule_table_priority_and_classify_line():
    assert [r.name for r in SEGMENT_RULES] == [
        "forward_header",
        "signature",
        "quote",
        "greeting",
        "plain",
    ]
    assert classify_line("Begin forwarded message:") == "forward_header"
    assert classify_line("-- ") == "signature"
    assert classify_line("Sent from my iPhone") == "signature"
    assert classify_line("Thanksgiving order") == "plain"
    assert classify_line("> quoted") == "quote"
    assert classify_line("Hi there") == "plain"
    assert classify_line("Hi there", at_body_start=True) == "greeting"
