# backend/pcbtrack/services/column_mapper.py
"""
Header -> semantic field inference for spreadsheet imports.

Every header is tested against every field rule, in header order. A later
matching header overwrites an earlier one, so the last matching column wins.
"""
from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple


@dataclass
class ColumnMapping:
    component_name: Optional[str] = None
    part_number: Optional[str] = None
    current_stock: Optional[str] = None
    monthly_required_quantity: Optional[str] = None
    pcb_name: Optional[str] = None
    quantity_per_pcb: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)


def _contains_any(*needles: str) -> Callable[[str], bool]:
    return lambda h: any(n in h for n in needles)


def _monthly_required(h: str) -> bool:
    # "Consumption Entry" / "Component Consumption" are not requirement columns
    if "entry" in h or "component" in h:
        return False
    return any(n in h for n in ("monthly", "required", "requirement", "consumption", "req qty"))


def _current_stock(h: str) -> bool:
    return h == "qty" or any(n in h for n in ("stock", "inventory", "available", "balance", "bal qty"))


FIELD_RULES: List[Tuple[str, Callable[[str], bool]]] = [
    ("component_name", _contains_any("component", "description", "item", "material", "change")),
    ("part_number", _contains_any("part", "code", "sku", "material code", "item code")),
    ("current_stock", _current_stock),
    ("monthly_required_quantity", _monthly_required),
    ("pcb_name", _contains_any("pcb", "board", "assembly", "part code")),
    ("quantity_per_pcb", _contains_any("per pcb", "usage", "qty/pcb", "quantity per pcb")),
]


def normalize_header(header: Any) -> str:
    if header is None:
        return ""
    return str(header).lower().strip()


def detect_column_mapping(headers: Sequence[Any]) -> ColumnMapping:
    mapping = ColumnMapping()
    for original in headers:
        h = normalize_header(original)
        if not h:
            continue
        for field, matches in FIELD_RULES:
            if matches(h):
                setattr(mapping, field, original)
    return mapping
