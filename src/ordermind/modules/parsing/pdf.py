from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO

from pypdf import PdfReader

from ordermind.modules.parsing.errors import PdfDecodeError


@dataclass(frozen=True)
class PdfText:
    full_text: str
    page_count: int
    # Empty when the extractor could only produce concatenated text.
    page_texts: list[str] = field(default_factory=list)


def looks_like_pdf_bytes(body: bytes) -> bool:
    if not body:
        return False
    b = body.lstrip()
    if b.startswith(b"\xef\xbb\xbf"):
        b = b[3:].lstrip()
    return b.startswith(b"%PDF")


def _clean(text: str) -> str:
    return text.replace("\u202f", " ").replace("\xa0", " ")


def extract_pdf_text(body: bytes) -> PdfText:
    # Never hand non-PDF bytes to PdfReader.
    if not looks_like_pdf_bytes(body):
        raise PdfDecodeError("Not a PDF (missing %PDF header)")
    try:
        reader = PdfReader(BytesIO(body))
        page_texts = [_clean(page.extract_text() or "") for page in reader.pages]
    except Exception as e:  # noqa: BLE001
        raise PdfDecodeError(f"Could not read PDF ({type(e).__name__}: {e})") from e
    return PdfText(
        full_text="\n\n".join(page_texts),
        page_count=len(page_texts),
        page_texts=page_texts,
    )
