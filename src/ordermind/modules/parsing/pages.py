from __future__ import annotations

import math

from ordermind.modules.parsing.schemas import PdfPage
from ordermind.modules.parsing.tables import detect_tables


def slice_evenly(text: str, count: int) -> list[str]:
    """
    Cut `text` into `count` contiguous slices of `ceil(len / count)` characters.

    The last slices may be short or empty. This approximates page boundaries only;
    a table or record can be cut in half at a slice edge.
    """
    size = math.ceil(len(text) / count)
    return [text[i * size : (i + 1) * size] for i in range(count)]


def split_pages(
    text: str, page_count: int, page_texts: list[str] | None = None
) -> list[PdfPage]:
    if page_texts and len(page_texts) == page_count:
        chunks, approximate = list(page_texts), False
    elif page_count <= 1:
        chunks, approximate = [text], False
    else:
        chunks, approximate = slice_evenly(text, page_count), True

    return [
        PdfPage(
            page_number=idx + 1,
            text=chunk,
            tables=detect_tables(chunk),
            approximate=approximate,
        )
        for idx, chunk in enumerate(chunks)
    ]
