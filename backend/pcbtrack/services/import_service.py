# backend/pcbtrack/services/import_service.py
"""
Merges extracted spreadsheet data into the inventory.

One call = one file = one transaction. Each component / PCB / BOM row runs in
its own savepoint; a failing row is recorded in ``errors`` and the import
continues. Anything escaping the per-row handlers rolls the whole file back.
"""
from __future__ import annotations
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence
import logging

from sqlalchemy import case, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain.constants import IMPORT_AUTO, IMPORT_BOM, IMPORT_COMPONENTS, IMPORT_TYPES
from ..domain.errors import InventoryError, SheetNotFound, TransactionError, ValidationFailed
from ..models import BOMLink, Component, PCB
from .bom_extractor import BOMTuple, ExtractedComponent, extract_bom, extract_components
from .sheet_reader import Workbook
from .store import InventoryStore

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    components_added: int = 0
    components_updated: int = 0
    pcbs_added: int = 0
    bom_mappings_added: int = 0
    bom_mappings_updated: int = 0
    sheets_processed: List[str] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "components_added": self.components_added,
            "components_updated": self.components_updated,
            "pcbs_added": self.pcbs_added,
            "bom_mappings_added": self.bom_mappings_added,
            "bom_mappings_updated": self.bom_mappings_updated,
            "sheets_processed": list(self.sheets_processed),
            "errors": list(self.errors),
        }


# ---- single-row upserts (caller owns the transaction) ----

def upsert_component(db: Session, comp: ExtractedComponent) -> bool:
    """Returns True when a new component was inserted."""
    q = db.query(Component).filter(Component.part_number == comp.part_number)
    if db.get_bind().dialect.name != "mssql":
        q = q.with_for_update()
    existing = q.populate_existing().one_or_none()

    if existing is None:
        db.add(Component(
            name=comp.name,
            part_number=comp.part_number,
            current_stock=comp.current_stock,
            monthly_required_quantity=comp.monthly_required_quantity,
        ))
        db.flush()
        return True

    # additive stock, highest requirement wins, latest name wins
    InventoryStore(db).add_stock(existing.id, comp.current_stock)
    existing.monthly_required_quantity = max(
        Decimal(existing.monthly_required_quantity or 0), comp.monthly_required_quantity
    )
    existing.name = comp.name
    db.flush()
    return False


def get_or_create_pcb(db: Session, pcb_name: str):
    pcb = db.query(PCB).filter(PCB.pcb_name == pcb_name).one_or_none()
    if pcb:
        return pcb, False
    pcb = PCB(pcb_name=pcb_name)
    db.add(pcb)
    db.flush()
    return pcb, True


def find_component(db: Session, identifier: str) -> Optional[Component]:
    """Match on part number or name; an exact part number match is preferred."""
    return (
        db.query(Component)
        .filter(or_(Component.part_number == identifier, Component.name == identifier))
        .order_by(case((Component.part_number == identifier, 0), else_=1), Component.id)
        .first()
    )


def upsert_bom_link(db: Session, pcb_id: int, component_id: int, quantity_per_pcb: int) -> bool:
    """Returns True when a new mapping was inserted; otherwise the quantity is overwritten."""
    link = (
        db.query(BOMLink)
        .filter(BOMLink.pcb_id == pcb_id, BOMLink.component_id == component_id)
        .one_or_none()
    )
    if link is None:
        db.add(BOMLink(pcb_id=pcb_id, component_id=component_id, quantity_per_pcb=quantity_per_pcb))
        db.flush()
        return True
    link.quantity_per_pcb = quantity_per_pcb
    db.flush()
    return False


# ---- batch reconciliation ----

def _merge_components(db: Session, components: Iterable[ExtractedComponent], summary: ImportSummary, sheet: Optional[str]):
    for comp in components:
        try:
            with db.begin_nested():
                if upsert_component(db, comp):
                    summary.components_added += 1
                else:
                    summary.components_updated += 1
        except SQLAlchemyError as e:
            logger.warning("component upsert failed (part_number=%s): %s", comp.part_number, e)
            summary.errors.append({
                "type": "component_insert",
                "sheet": sheet,
                "component": comp.name,
                "part_number": comp.part_number,
                "message": str(getattr(e, "orig", e)),
            })


def _merge_bom(db: Session, bom: Iterable[BOMTuple], summary: ImportSummary, sheet: Optional[str]):
    by_pcb: "OrderedDict[str, List[BOMTuple]]" = OrderedDict()
    for t in bom:
        by_pcb.setdefault(t.pcb_name, []).append(t)

    for pcb_name, entries in by_pcb.items():
        try:
            with db.begin_nested():
                pcb, created = get_or_create_pcb(db, pcb_name)
        except SQLAlchemyError as e:
            summary.errors.append({
                "type": "pcb_insert",
                "sheet": sheet,
                "pcb": pcb_name,
                "message": str(getattr(e, "orig", e)),
            })
            continue
        if created:
            summary.pcbs_added += 1

        for entry in entries:
            comp = find_component(db, entry.component_identifier)
            if comp is None:
                logger.warning("BOM component not found (pcb=%s, component=%s)", pcb_name, entry.component_identifier)
                summary.errors.append({
                    "type": "bom_component_not_found",
                    "sheet": sheet,
                    "pcb": pcb_name,
                    "component": entry.component_identifier,
                })
                continue
            try:
                with db.begin_nested():
                    if upsert_bom_link(db, pcb.id, comp.id, entry.quantity_per_pcb):
                        summary.bom_mappings_added += 1
                    else:
                        summary.bom_mappings_updated += 1
            except SQLAlchemyError as e:
                summary.errors.append({
                    "type": "bom_mapping_insert",
                    "sheet": sheet,
                    "pcb": pcb_name,
                    "component": entry.component_identifier,
                    "message": str(getattr(e, "orig", e)),
                })


def reconcile(
    db: Session,
    *,
    components: Iterable[ExtractedComponent] = (),
    bom: Iterable[BOMTuple] = (),
    summary: Optional[ImportSummary] = None,
    sheet: Optional[str] = None,
) -> ImportSummary:
    """Upserts components first, then PCBs and BOM links. Does not commit."""
    summary = summary or ImportSummary()
    _merge_components(db, components, summary, sheet)
    _merge_bom(db, bom, summary, sheet)
    return summary


def import_workbook(
    db: Session,
    *,
    workbook: Workbook,
    sheet_names: Optional[Sequence[str]] = None,
    import_type: str = IMPORT_AUTO,
) -> ImportSummary:
    if import_type not in IMPORT_TYPES:
        raise ValidationFailed(f"import_type must be one of {', '.join(IMPORT_TYPES)}")

    targets = list(sheet_names) if sheet_names else workbook.sheet_names
    summary = ImportSummary()
    try:
        for name in targets:
            try:
                components = list(extract_components(workbook, name)) if import_type in (IMPORT_AUTO, IMPORT_COMPONENTS) else []
                bom = list(extract_bom(workbook, name)) if import_type in (IMPORT_AUTO, IMPORT_BOM) else []
            except SheetNotFound as e:
                # a missing sheet skips that sheet only
                logger.warning("import: %s", e.message)
                summary.errors.append({"type": "sheet_not_found", "sheet": name, "message": e.message})
                continue

            reconcile(db, components=components, bom=bom, summary=summary, sheet=name)
            summary.sheets_processed.append(name)

        db.commit()
        logger.info(
            "import committed (sheets=%s, +comp=%s, ~comp=%s, +pcb=%s, +bom=%s, errors=%s)",
            summary.sheets_processed, summary.components_added, summary.components_updated,
            summary.pcbs_added, summary.bom_mappings_added, len(summary.errors),
        )
        return summary

    except InventoryError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception("import_workbook error (sheets=%s)", targets)
        raise TransactionError(
            f"Error importing data. Transaction rolled back. ({type(e).__name__}: {e})"
        ) from e
