"""
Flat text rendering of an evidence pack for LLM prompts.

The layout is part of the extraction contract: section banners, sub-headers and
row formatting must stay byte-stable so the same pack always yields the same prompt.
"""

from __future__ import annotations

from collections.abc import Sequence

from ordermind.modules.parsing.schemas import EvidencePack, SheetTable, TextTable


def _capped(rows: Sequence, max_rows: int) -> tuple[Sequence, int]:
    if max_rows <= 0 or len(rows) <= max_rows:
        return rows, 0
    return rows[:max_rows], len(rows) - max_rows


def _render_text_table(table: TextTable, max_rows: int) -> list[str]:
    out: list[str] = []
    if table.headers:
        out.append(f"  Headers: {' | '.join(table.headers)}")
    rows, hidden = _capped(table.rows, max_rows)
    out.extend(f"  {' | '.join(row)}" for row in rows)
    if hidden:
        out.append(f"  ... ({hidden} more rows)")
    return out


def _render_sheet_table(table: SheetTable, max_rows: int) -> list[str]:
    out = [f"  Headers: {' | '.join(table.headers)}"]
    rows, hidden = _capped(table.rows, max_rows)
    for row in rows:
        out.append("  " + " | ".join(f"{h}: {row.get(h, '')}" for h in table.headers))
    if hidden:
        out.append(f"  ... ({hidden} more rows)")
    return out


def format_evidence_for_prompt(pack: EvidencePack, *, max_rows_per_table: int = 50) -> str:
    parts: list[str] = []

    if pack.email.segments:
        parts.append("=== EMAIL BODY ===")
        for idx, seg in enumerate(pack.email.segments):
            parts.append(f"[Segment {idx} | type: {seg.type}]")
            parts.append(seg.content)
            if seg.from_:
                parts.append(f"  From: {seg.from_}")
            if seg.date:
                parts.append(f"  Date: {seg.date}")
            parts.append("")

    for pdf in pack.pdfs:
        parts.append(f"=== PDF: {pdf.filename} ===")
        for page in pdf.pages:
            suffix = " (approximate)" if page.approximate else ""
            parts.append(f"[Page {page.page_number}{suffix}]")
            parts.append(page.text)
            for t_idx, table in enumerate(page.tables):
                parts.append(f"  [Table {t_idx}]")
                parts.extend(_render_text_table(table, max_rows_per_table))
            parts.append("")

    for excel in pack.excels:
        parts.append(f"=== EXCEL: {excel.filename} ===")
        for sheet in excel.sheets:
            parts.append(f"[Sheet: {sheet.name}]")
            for table in sheet.tables:
                parts.extend(_render_sheet_table(table, max_rows_per_table))
            parts.append("")

    return "\n".join(parts)
