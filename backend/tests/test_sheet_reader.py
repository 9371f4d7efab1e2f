import io

import openpyxl
import pytest

from pcbtrack.domain.errors import SheetNotFound, ValidationFailed
from pcbtrack.services.sheet_reader import read_csv, read_workbook

MULTI_TAB = (
    "=== TAB: Components ===\n"
    "Component Name,Part Number,Current Stock\n"
    "Resistor 10k,R1,100\n"
    ",,\n"
    "Capacitor 100nF,C1,20\n"
    "=== TAB: BOM ===\n"
    "PCB Name,Component,Usage\n"
    "BOARD-A,R1,10\n"
)


def test_multi_tab_csv():
    wb = read_csv(MULTI_TAB.encode("utf-8"))

    assert wb.sheet_names == ["Components", "BOM"]
    comps = wb.sheet("Components")
    assert comps.headers == ["Component Name", "Part Number", "Current Stock"]
    assert [r["Part Number"] for r in comps.rows] == ["R1", "C1"]
    assert wb.sheet("BOM").rows == [{"PCB Name": "BOARD-A", "Component": "R1", "Usage": "10"}]


def test_plain_csv_is_one_sheet():
    wb = read_csv("Part;Stock\nR1;5\n".encode("utf-8"), default_sheet="Inventory")
    assert wb.sheet_names == ["Inventory"]
    assert wb.sheet("Inventory").rows == [{"Part": "R1", "Stock": "5"}]


def test_utf8_bom_and_short_rows():
    wb = read_csv("\ufeffName,Part,Stock\nDiode,D1\n".encode("utf-8"))
    assert wb.sheet("Sheet1").rows == [{"Name": "Diode", "Part": "D1", "Stock": None}]


def test_unknown_sheet():
    with pytest.raises(SheetNotFound) as ei:
        read_csv(MULTI_TAB.encode("utf-8")).sheet("Stock")
    assert ei.value.status_code == 404


def test_excel_workbook():
    book = openpyxl.Workbook()
    ws = book.active
    ws.title = "Inventory"
    ws.append(["Component", "Part Number", "Stock"])
    ws.append(["Resistor", "R1", 100])
    ws.append([None, None, None])
    book.create_sheet("Empty")
    buf = io.BytesIO()
    book.save(buf)

    wb = read_workbook("stock.xlsx", buf.getvalue())

    assert wb.sheet_names == ["Inventory", "Empty"]
    assert wb.sheet("Inventory").rows == [{"Component": "Resistor", "Part Number": "R1", "Stock": 100}]
    assert wb.sheet("Empty").rows == []


def test_unsupported_extension():
    with pytest.raises(ValidationFailed):
        read_workbook("stock.pdf", b"%PDF")


def test_utf8_after_long_ascii_prefix():
    lines = ["Component Name,Part Number,Current Stock"]
    lines += [f"Resistor {i},R{i},1" for i in range(800)]
    lines.append("Cap 10µF,C1,20")
    data = "\n".join(lines).encode("utf-8")
    assert len(data) > 10000

    rows = read_csv(data).sheet("Sheet1").rows

    assert rows[-1]["Component Name"] == "Cap 10µF"


def test_duplicate_headers_keep_every_column():
    wb = read_csv(b"Part,Qty,Qty,Qty\nR1,1,2,3\n")
    sheet = wb.sheet("Sheet1")

    assert sheet.headers == ["Part", "Qty", "Qty_1", "Qty_2"]
    assert sheet.rows == [{"Part": "R1", "Qty": "1", "Qty_1": "2", "Qty_2": "3"}]
