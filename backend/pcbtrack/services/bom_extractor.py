# backend/pcbtrack/services/bom_extractor.py
"""
Row -> component / BOM tuple extraction.

Rows are plain mappings from header to cell value. All extractors are
generators over the given rows: calling them again restarts from the first
row and nothing here touches the database.
"""
from __future__ import annotations
import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Iterator, List, Mapping, Optional

from ..domain.constants import AUTO_PART_PREFIX, AUTO_PART_NAME_CHARS
from .column_mapper import ColumnMapping, detect_column_mapping
from .sheet_reader import Workbook

Row = Mapping[Any, Any]

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_NUM_PREFIX = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True)
class ExtractedComponent:
    name: str
    part_number: str
    current_stock: Decimal
    monthly_required_quantity: Decimal


@dataclass(frozen=True)
class BOMTuple:
    pcb_name: str
    component_identifier: str
    quantity_per_pcb: int


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    s = str(value).strip()
    return s or None


def parse_quantity(value: Any, default: int = 1) -> int:
    """Leading integer of the cell ("5 pcs" -> 5, "2.7" -> 2); default when missing, unparsable or < 1."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    if isinstance(value, (int, float, Decimal)):
        n = int(value)
    else:
        m = _INT_PREFIX.match(str(value))
        if not m:
            return default
        n = int(m.group(1))
    return n if n > 0 else default


def parse_amount(value: Any) -> Decimal:
    """Leading number of the cell, thousands separators ignored; 0 when unparsable or negative."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    else:
        m = _NUM_PREFIX.match(str(value).replace(",", ""))
        if not m:
            return Decimal("0")
        raw = m.group(1)
    try:
        d = Decimal(raw)
    except InvalidOperation:
        return Decimal("0")
    if not d.is_finite() or d < 0:
        return Decimal("0")
    return d


def auto_part_number(name: str) -> str:
    prefix = name[:AUTO_PART_NAME_CHARS].upper()
    return AUTO_PART_PREFIX + re.sub(r"[^A-Z0-9]", "-", prefix)


def split_identifier(identifier: str) -> List[str]:
    return [t.strip() for t in identifier.split("/") if t.strip()]


def _is_empty_row(row: Row) -> bool:
    return not row or all(_text(v) is None for v in row.values())


def _cell(row: Row, column: Optional[str]) -> Any:
    return row.get(column) if column is not None else None


def iter_components(rows: Iterable[Row], mapping: ColumnMapping) -> Iterator[ExtractedComponent]:
    for row in rows:
        if _is_empty_row(row):
            continue
        name = _text(_cell(row, mapping.component_name))
        part_number = _text(_cell(row, mapping.part_number))
        if not name and not part_number:
            continue
        if not name:
            name = part_number
        if not part_number:
            part_number = auto_part_number(name)
        yield ExtractedComponent(
            name=name,
            part_number=part_number,
            current_stock=parse_amount(_cell(row, mapping.current_stock)),
            monthly_required_quantity=parse_amount(_cell(row, mapping.monthly_required_quantity)),
        )


def iter_bom(rows: Iterable[Row], mapping: ColumnMapping, sheet_name: Optional[str] = None) -> Iterator[BOMTuple]:
    for row in rows:
        if _is_empty_row(row):
            continue
        if mapping.pcb_name is not None:
            pcb_name = _text(row.get(mapping.pcb_name))
        else:
            pcb_name = _text(sheet_name)

        if mapping.component_name is not None:
            identifier = _text(row.get(mapping.component_name))
        else:
            identifier = _text(_cell(row, mapping.part_number))

        if not pcb_name or not identifier:
            continue

        if "/" in identifier:
            # "C1/C2/R1" lists one of each part, not a multiplied total
            for token in split_identifier(identifier):
                yield BOMTuple(pcb_name, token, 1)
        else:
            yield BOMTuple(pcb_name, identifier, parse_quantity(_cell(row, mapping.quantity_per_pcb)))


def extract_components(workbook: Workbook, sheet_name: str) -> Iterator[ExtractedComponent]:
    sheet = workbook.sheet(sheet_name)  # SheetNotFound
    return iter_components(sheet.rows, detect_column_mapping(sheet.headers))


def extract_bom(workbook: Workbook, sheet_name: str) -> Iterator[BOMTuple]:
    sheet = workbook.sheet(sheet_name)  # SheetNotFound
    return iter_bom(sheet.rows, detect_column_mapping(sheet.headers), sheet_name)


def analyze_structure(workbook: Workbook, sample_rows: int = 5) -> dict:
    return {
        "total_sheets": len(workbook),
        "sheets": [
            {
                "name": s.name,
                "headers": s.headers,
                "row_count": len(s.rows),
                "sample_rows": s.rows[:sample_rows],
                "column_mapping": detect_column_mapping(s.headers).as_dict(),
            }
            for s in workbook
        ],
    }


def suggest_import_type(headers: Iterable[Any]) -> str:
    normalized = [str(h).lower() for h in headers if h is not None]
    has_components = any("component" in h for h in normalized)
    has_pcb = any("pcb" in h for h in normalized)
    if has_components and has_pcb:
        return "bom"
    if has_pcb:
        return "pcbs"
    return "components"
