# backend/pcbtrack/services/sheet_reader.py
"""
Spreadsheet bytes -> ``Workbook`` of header/row sheets.

Supports .xlsx/.xlsm through openpyxl and .csv/.tsv text, including the
multi-tab CSV export where each sheet starts with a ``=== TAB: <name> ===``
line.
"""
from __future__ import annotations
import csv
import io
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

import chardet
import openpyxl

from ..domain.errors import SheetNotFound, ValidationFailed

Row = Mapping[str, Any]

TAB_MARKER = re.compile(r"^=== TAB: (.*?) ===\s*$", re.MULTILINE)
EXCEL_SUFFIXES = (".xlsx", ".xlsm")
CSV_SUFFIXES = (".csv", ".tsv")


@dataclass
class Sheet:
    name: str
    headers: List[Any] = field(default_factory=list)
    rows: List[Dict[Any, Any]] = field(default_factory=list)


class Workbook:
    def __init__(self, sheets: Optional[List[Sheet]] = None):
        self._sheets: Dict[str, Sheet] = {}
        for s in sheets or []:
            self._sheets[s.name] = s

    @property
    def sheet_names(self) -> List[str]:
        return list(self._sheets)

    def sheet(self, name: str) -> Sheet:
        try:
            return self._sheets[name]
        except KeyError:
            raise SheetNotFound(name) from None

    def __iter__(self) -> Iterator[Sheet]:
        return iter(self._sheets.values())

    def __len__(self) -> int:
        return len(self._sheets)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _unique_headers(raw: List[Any]) -> List[Any]:
    """Repeated headers get a suffix: Qty, Qty_1, Qty_2."""
    counts: Dict[Any, int] = {}
    used = set()
    out = []
    for h in raw:
        if _is_blank(h):
            out.append(h)
            continue
        name = h
        while name in used:
            counts[h] = counts.get(h, 0) + 1
            name = f"{h}_{counts[h]}"
        used.add(name)
        out.append(name)
    return out


def _rows_from_matrix(matrix: List[List[Any]]) -> Sheet:
    """First row is the header; fully blank rows are skipped."""
    sheet = Sheet(name="")
    if not matrix:
        return sheet
    headers = _unique_headers(matrix[0])
    sheet.headers = headers
    for raw in matrix[1:]:
        if all(_is_blank(v) for v in raw):
            continue
        row = {}
        for i, h in enumerate(headers):
            if _is_blank(h):
                continue
            row[h] = raw[i] if i < len(raw) else None
        sheet.rows.append(row)
    return sheet


def read_excel(data: bytes) -> Workbook:
    try:
        wb = openpyxl.load_workbook(io.BytesIO(data), data_only=True, read_only=True)
    except Exception as e:
        raise ValidationFailed(f"Failed to read Excel file: {e}") from e
    sheets = []
    try:
        for ws in wb.worksheets:
            matrix = [list(r) for r in ws.iter_rows(values_only=True)]
            sheet = _rows_from_matrix(matrix)
            sheet.name = ws.title
            sheets.append(sheet)
    finally:
        wb.close()
    return Workbook(sheets)


def _decode(data: bytes) -> str:
    if data.startswith(b"\xef\xbb\xbf"):
        return data.decode("utf-8-sig")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        pass
    guess = chardet.detect(data).get("encoding")
    if guess:
        try:
            return data.decode(guess)
        except (UnicodeDecodeError, LookupError):
            pass
    return data.decode("latin-1")


def _parse_csv_chunk(text: str, delimiter: Optional[str] = None) -> List[List[Any]]:
    text = text.strip("\r\n")
    if not text:
        return []
    if delimiter is None:
        try:
            delimiter = csv.Sniffer().sniff(text[:1024], delimiters=",;\t").delimiter
        except csv.Error:
            delimiter = ","
    return [list(r) for r in csv.reader(io.StringIO(text), delimiter=delimiter)]


def read_csv(data: bytes, *, default_sheet: str = "Sheet1", delimiter: Optional[str] = None) -> Workbook:
    text = _decode(data)
    parts = TAB_MARKER.split(text)
    sheets = []
    # split() yields [preamble, name1, body1, name2, body2, ...]
    for i in range(1, len(parts) - 1, 2):
        name = parts[i].strip()
        if not name:
            continue
        sheet = _rows_from_matrix(_parse_csv_chunk(parts[i + 1], delimiter))
        sheet.name = name
        sheets.append(sheet)
    if not sheets:
        sheet = _rows_from_matrix(_parse_csv_chunk(text, delimiter))
        sheet.name = default_sheet
        sheets.append(sheet)
    return Workbook(sheets)


def read_workbook(filename: str, data: bytes) -> Workbook:
    suffix = Path(filename or "").suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        return read_excel(data)
    if suffix in CSV_SUFFIXES:
        return read_csv(data, delimiter="\t" if suffix == ".tsv" else None)
    raise ValidationFailed(
        f"Unsupported file type '{suffix or filename}'. Allowed: {', '.join(EXCEL_SUFFIXES + CSV_SUFFIXES)}"
    )
