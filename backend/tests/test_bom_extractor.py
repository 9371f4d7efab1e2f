from decimal import Decimal

import pytest

from pcbtrack.domain.errors import SheetNotFound
from pcbtrack.services.bom_extractor import (
    BOMTuple,
    auto_part_number,
    extract_bom,
    extract_components,
    iter_bom,
    parse_amount,
    parse_quantity,
    suggest_import_type,
)
from pcbtrack.services.column_mapper import ColumnMapping
from pcbtrack.services.sheet_reader import Sheet, Workbook

BOM_MAPPING = ColumnMapping(pcb_name="PCB", component_name="Component", quantity_per_pcb="Qty")


def test_slash_identifier_splits_into_one_of_each():
    rows = [{"PCB": "BOARD-A", "Component": "C1/C2/R1", "Qty": 5}]
    assert list(iter_bom(rows, BOM_MAPPING)) == [
        BOMTuple("BOARD-A", "C1", 1),
        BOMTuple("BOARD-A", "C2", 1),
        BOMTuple("BOARD-A", "R1", 1),
    ]


def test_single_identifier_keeps_its_quantity():
    rows = [{"PCB": "BOARD-A", "Component": "R1", "Qty": "10 pcs"}]
    assert list(iter_bom(rows, BOM_MAPPING)) == [BOMTuple("BOARD-A", "R1", 10)]


def test_sheet_name_is_the_pcb_when_no_pcb_column():
    mapping = ColumnMapping(part_number="Part", quantity_per_pcb="Qty")
    rows = [{"Part": "R1", "Qty": 2}, {"Part": None, "Qty": 1}, {}]
    assert list(iter_bom(rows, mapping, "BOARD-B")) == [BOMTuple("BOARD-B", "R1", 2)]


def test_iterators_restart():
    rows = [{"PCB": "B", "Component": "R1", "Qty": 1}]
    wb = Workbook([Sheet("BOM", ["PCB", "Component", "Qty"], rows)])
    assert list(extract_bom(wb, "BOM")) == list(extract_bom(wb, "BOM"))


@pytest.mark.parametrize("raw, expected", [
    (None, 1), ("", 1), ("abc", 1), (0, 1), (-3, 1), ("7", 7), (2.9, 2), ("3 pcs", 3), (float("nan"), 1),
])
def test_parse_quantity(raw, expected):
    assert parse_quantity(raw) == expected


@pytest.mark.parametrize("raw, expected", [
    (None, Decimal("0")), ("n/a", Decimal("0")), (-5, Decimal("0")),
    ("1,250", Decimal("1250")), ("12.5 kg", Decimal("12.5")), (40, Decimal("40")),
])
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_auto_part_number():
    assert auto_part_number("Cap 100nF") == "AUTO-CAP-100NF"
    assert auto_part_number("a very long component name here") == "AUTO-A-VERY-LONG-COMPONEN"


def test_components_get_fallback_names_and_part_numbers():
    headers = ["Description", "Part No", "Stock", "Monthly Requirement"]
    rows = [
        {"Description": "Resistor 10k", "Part No": "R1", "Stock": "1,000", "Monthly Requirement": 200},
        {"Description": "Ferrite bead", "Part No": None, "Stock": 5, "Monthly Requirement": None},
        {"Description": None, "Part No": "X9", "Stock": None, "Monthly Requirement": None},
        {"Description": None, "Part No": None, "Stock": 3, "Monthly Requirement": None},
    ]
    wb = Workbook([Sheet("Inventory", headers, rows)])

    comps = list(extract_components(wb, "Inventory"))

    assert [(c.name, c.part_number) for c in comps] == [
        ("Resistor 10k", "R1"),
        ("Ferrite bead", "AUTO-FERRITE-BEAD"),
        ("X9", "X9"),
    ]
    assert comps[0].current_stock == 1000
    assert comps[0].monthly_required_quantity == 200
    assert comps[2].current_stock == 0


def test_missing_sheet():
    with pytest.raises(SheetNotFound):
        extract_components(Workbook(), "Nope")


def test_suggest_import_type():
    assert suggest_import_type(["PCB", "Component", "Qty"]) == "bom"
    assert suggest_import_type(["PCB Name", "Revision"]) == "pcbs"
    assert suggest_import_type(["Part", "Stock", None]) == "components"
