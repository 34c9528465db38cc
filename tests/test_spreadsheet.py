from __future__ import annotations

from datetime import date

import pytest
from conftest import xls_bytes, xlsx_bytes
from pydantic import ValidationError

from ordermind.modules.parsing.errors import SpreadsheetDecodeError
from ordermind.modules.parsing.schemas import SheetTable
from ordermind.modules.parsing.spreadsheet import (
    extract_sheets,
    load_workbook_bytes,
    read_spreadsheet,
)


def test_sku_qty_sheet_yields_one_table():
    wb = load_workbook_bytes(xlsx_bytes({"Order": [["SKU", "Qty"], ["A-1", 5], ["B-2", 7]]}))
    sheets = extract_sheets(wb)
    assert len(sheets) == 1
    sheet = sheets[0]
    assert sheet.name == "Order"
    assert len(sheet.tables) == 1
    table = sheet.tables[0]
    assert table.headers == ["SKU", "Qty"]
    assert len(table.rows) == 2
    assert table.rows[0] == {"SKU": "A-1", "Qty": 5}
    assert table.range == "A1:B3"


def test_two_column_label_sheet_is_key_value():
    rows = [["Field", "Value"], ["PO Number", "PO-7781"], ["Ship To", "Berlin"], ["Total", 99.5]]
    table = extract_sheets(load_workbook_bytes(xlsx_bytes({"Header": rows})))[0].tables[0]
    assert table.kind == "key_value"
    assert table.rows[2] == {"Field": "Total", "Value": 99.5}


def test_every_row_has_every_header_and_blank_rows_are_dropped():
    rows = [
        ["SKU", "Qty", None, "SKU"],
        ["A-1", 5, "x", "dup"],
        [None, None, None, None],
        ["B-2"],
    ]
    wb = load_workbook_bytes(xlsx_bytes({"Lines": rows}))
    table = extract_sheets(wb)[0].tables[0]
    assert table.headers == ["SKU", "Qty", "__EMPTY", "SKU_1"]
    assert table.rows == [
        {"SKU": "A-1", "Qty": 5, "__EMPTY": "x", "SKU_1": "dup"},
        {"SKU": "B-2", "Qty": "", "__EMPTY": "", "SKU_1": ""},
    ]
    assert table.kind == "table"


def test_dates_become_iso_strings_and_cells_sample_is_capped():
    data = [["Line", "Ship"]] + [[i, date(2026, 3, i)] for i in range(1, 9)]
    sheet = extract_sheets(load_workbook_bytes(xlsx_bytes({"S": data})))[0]
    assert sheet.tables[0].rows[0]["Ship"].startswith("2026-03-01")
    assert len(sheet.tables[0].rows) == 8
    assert sheet.cells_sample == sheet.tables[0].rows[:5]


def test_header_only_sheet_has_empty_table():
    sheet = extract_sheets(load_workbook_bytes(xlsx_bytes({"Empty": [["SKU", "Qty"]]})))[0]
    assert sheet.tables[0].headers == []
    assert sheet.tables[0].rows == []


def test_sheets_keep_workbook_order():
    body = xlsx_bytes({"First": [["a", "b"], [1, 2]], "Second": [["c"], [3]]})
    assert [s.name for s in extract_sheets(load_workbook_bytes(body))] == ["First", "Second"]


def test_garbage_bytes_raise_decode_error():
    with pytest.raises(SpreadsheetDecodeError):
        load_workbook_bytes(b"definitely not a workbook")


def test_renamed_duplicate_header_never_shadows_a_real_one():
    table = read_spreadsheet(xlsx_bytes({"S": [["A", "A", "A_1"], [1, 2, 3]]}))[0].tables[0]
    assert table.headers == ["A", "A_1", "A_1_1"]
    assert table.rows == [{"A": 1, "A_1": 2, "A_1_1": 3}]


def test_sheet_table_rejects_repeated_header_names():
    with pytest.raises(ValidationError):
        SheetTable(headers=["A", "A"], rows=[])


def test_legacy_xls_reads_into_the_same_table_shape():
    rows = [["SKU", "Qty", "Ship"], ["A-1", 5, date(2026, 3, 1)], ["B-2", 7.5, None]]
    sheets = read_spreadsheet(xls_bytes({"Order": rows, "Notes": [["Field", "Value"]]}))

    assert [s.name for s in sheets] == ["Order", "Notes"]
    table = sheets[0].tables[0]
    assert table.range == "A1:C3"
    assert table.headers == ["SKU", "Qty", "Ship"]
    assert table.rows[0]["SKU"] == "A-1"
    assert table.rows[0]["Qty"] == 5
    assert isinstance(table.rows[0]["Qty"], int)
    assert table.rows[0]["Ship"].startswith("2026-03-01")
    assert table.rows[1] == {"SKU": "B-2", "Qty": 7.5, "Ship": ""}
    assert sheets[1].tables[0].headers == []


def test_xlsx_and_xls_agree_on_the_same_sheet():
    rows = [["SKU", "Qty"], ["A-1", 5], ["B-2", 7]]
    assert read_spreadsheet(xls_bytes({"S": rows})) == read_spreadsheet(xlsx_bytes({"S": rows}))


def test_broken_legacy_workbook_raises_decode_error():
    with pytest.raises(SpreadsheetDecodeError):
        read_spreadsheet(b"\xd0\xcf\x11\xe0 not really a workbook")
