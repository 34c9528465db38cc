from __future__ import annotations

import re

from ordermind.modules.parsing.schemas import TextTable

# Cells are separated by tab runs or 3+ spaces; single/double spaces stay inside a cell.
_CELL_SEPARATOR_RE = re.compile(r"\t+| {3,}")

MIN_CELLS_PER_ROW = 2
MIN_ROWS_PER_TABLE = 2


def split_cells(line: str) -> list[str]:
    return [c.strip() for c in _CELL_SEPARATOR_RE.split(line) if c.strip()]


def detect_tables(text: str) -> list[TextTable]:
    """
    Find delimiter-aligned regions in free text.

    Consecutive multi-cell lines form a block; a block with at least two rows becomes
    a table whose first row is the header. Lone aligned lines are ignored.
    """
    tables: list[TextTable] = []
    block: list[list[str]] = []

    def close_block() -> None:
        if len(block) >= MIN_ROWS_PER_TABLE:
            tables.append(TextTable(headers=block[0], rows=block[1:]))
        block.clear()

    for line in (text or "").splitlines():
        if not line.strip():
            continue
        cells = split_cells(line)
        if len(cells) >= MIN_CELLS_PER_ROW:
            block.append(cells)
        else:
            close_block()
    close_block()
    return tables
