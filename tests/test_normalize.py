from __future__ import annotations

from ordermind.modules.parsing.normalize import html_to_text, normalize_body


def test_html_breaks_paragraphs_and_blocks_become_newlines():
    html = "<p>Hello<br>there</p><div>Line A</div><ul><li>one</li><li>two</li></ul>"
    text = html_to_text(html)
    assert text == "Hello\nthere\n\nLine A\none\ntwo\n\n"


def test_html_output_has_no_tags_and_keeps_paragraph_breaks():
    html = '<html><body><p class="x">First</p><p>Second</p><p>Third</p></body></html>'
    text = html_to_text(html)
    assert "<" not in text
    assert ">" not in text
    assert text.count("\n\n") == 3


def test_entities_are_decoded_once():
    assert html_to_text("A&nbsp;&amp;&nbsp;B &quot;q&quot;") == 'A & B "q"'
    assert html_to_text("&AMP;") == "&"
    assert html_to_text("&amp;lt;b&amp;gt;") == "&lt;b&gt;"


def test_self_closing_and_uppercase_tags():
    assert html_to_text("a<BR/>b<br />c</P>") == "a\nb\nc\n\n"


def test_normalize_body_passes_text_through():
    body = "  keep <b>this</b> as-is  "
    assert normalize_body(body, "text") == body
    assert normalize_body(body, "html") == "  keep this as-is  "
    assert normalize_body("", "html") == ""
