from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from io import BytesIO
from typing import Any

import xlrd
from openpyxl import load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.workbook.workbook import Workbook

from ordermind.modules.parsing.errors import SpreadsheetDecodeError
from ordermind.modules.parsing.schemas import ExcelSheet, SheetTable

CELLS_SAMPLE_ROWS = 5
EMPTY_HEADER = "__EMPTY"

# Compound File Binary header shared by Excel 97-2003 workbooks.
OLE2_MAGIC = b"\xd0\xcf\x11\xe0"


def looks_like_legacy_xls(body: bytes) -> bool:
    return body[:4] == OLE2_MAGIC


def load_workbook_bytes(body: bytes) -> Workbook:
    try:
        return load_workbook(BytesIO(body), data_only=True)
    except Exception as e:  # noqa: BLE001
        raise SpreadsheetDecodeError(f"Could not open workbook ({type(e).__name__}: {e})") from e


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _header_names(raw: list[Any]) -> list[str]:
    # Repeated names get the first free "_<n>" suffix, so a renamed header never
    # shadows a real one ("A", "A", "A_1" -> "A", "A_1", "A_1_1").
    names: list[str] = []
    taken: set[str] = set()
    suffixes: dict[str, int] = {}
    for value in raw:
        base = str(_cell_value(value)).strip() or EMPTY_HEADER
        name = base
        n = suffixes.get(base, 0)
        while name in taken:
            n += 1
            name = f"{base}_{n}"
        suffixes[base] = n
        taken.add(name)
        names.append(name)
    return names


def _is_key_value(headers: list[str], rows: list[dict[str, Any]]) -> bool:
    if len(headers) != 2 or not rows:
        return False
    key = headers[0]
    return all(isinstance(row[key], str) and row[key].strip() for row in rows)


def _table_from_grid(grid: list[list[Any]], used_range: str | None) -> SheetTable:
    if not grid:
        return SheetTable(range=None, headers=[], rows=[])

    headers = _header_names(grid[0])
    rows: list[dict[str, Any]] = []
    for raw in grid[1:]:
        if all(v is None or (isinstance(v, str) and not v.strip()) for v in raw):
            continue
        padded = list(raw) + [None] * (len(headers) - len(raw))
        rows.append({h: _cell_value(v) for h, v in zip(headers, padded)})

    if not rows:
        return SheetTable(range=used_range, headers=[], rows=[])
    kind = "key_value" if _is_key_value(headers, rows) else "table"
    return SheetTable(range=used_range, headers=headers, rows=rows, kind=kind)


def _excel_sheet(name: str, table: SheetTable) -> ExcelSheet:
    return ExcelSheet(name=name, tables=[table], cells_sample=table.rows[:CELLS_SAMPLE_ROWS])


def extract_sheets(workbook: Workbook) -> list[ExcelSheet]:
    """
    One ExcelSheet per worksheet, each carrying a single table over the used range.

    Rows are not capped here; the prompt renderer applies its own row limit.
    """
    sheets: list[ExcelSheet] = []
    for ws in workbook.worksheets:
        grid = [
            list(r)
            for r in ws.iter_rows(min_row=ws.min_row, min_col=ws.min_column, values_only=True)
        ]
        used_range = ws.dimensions if ws.max_row and ws.max_column else None
        sheets.append(_excel_sheet(ws.title, _table_from_grid(grid, used_range)))
    return sheets


def _xls_value(cell: xlrd.sheet.Cell, datemode: int) -> Any:
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype == xlrd.XL_CELL_NUMBER and float(cell.value).is_integer():
        # BIFF stores every number as a double; whole numbers read back as ints like .xlsx
        return int(cell.value)
    return cell.value


def extract_xls_sheets(body: bytes) -> list[ExcelSheet]:
    """Same sheet/table shape as extract_sheets, read from an Excel 97-2003 workbook."""
    try:
        book = xlrd.open_workbook(file_contents=body)
    except Exception as e:  # noqa: BLE001
        raise SpreadsheetDecodeError(
            f"Could not open legacy workbook ({type(e).__name__}: {e})"
        ) from e

    try:
        sheets: list[ExcelSheet] = []
        for sheet in book.sheets():
            grid = [
                [_xls_value(cell, book.datemode) for cell in sheet.row(r)]
                for r in range(sheet.nrows)
            ]
            used_range = (
                f"A1:{get_column_letter(sheet.ncols)}{sheet.nrows}"
                if sheet.nrows and sheet.ncols
                else None
            )
            sheets.append(_excel_sheet(sheet.name, _table_from_grid(grid, used_range)))
        return sheets
    finally:
        book.release_resources()


def read_spreadsheet(body: bytes) -> list[ExcelSheet]:
    """Decode .xlsx/.xlsm with openpyxl or legacy .xls with xlrd, chosen by the file header."""
    if looks_like_legacy_xls(body):
        return extract_xls_sheets(body)
    workbook = load_workbook_bytes(body)
    try:
        return extract_sheets(workbook)
    finally:
        workbook.close()
