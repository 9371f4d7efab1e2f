# backend/pcbtrack/services/pcb_service.py
from __future__ import annotations
from typing import Any, Dict, List
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain.errors import Conflict, InventoryError, NotFound, TransactionError
from ..models import BOMLink, Component, PCB
from ..schemas.pcb import PCBCreate

logger = logging.getLogger(__name__)


def _commit_or_raise(db: Session, what: str, **ctx) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict(f"db_error: {getattr(e, 'orig', e)}")
    except Exception as e:
        db.rollback()
        logger.exception("%s error %s", what, ctx)
        raise TransactionError(f"{what} error: {type(e).__name__}: {e}") from e


def list_pcbs(db: Session) -> List[PCB]:
    return db.query(PCB).order_by(PCB.created_at.desc(), PCB.id.desc()).all()


def get_pcb(db: Session, *, pcb_id: int) -> PCB:
    pcb = db.get(PCB, pcb_id)
    if not pcb:
        raise NotFound("PCB", pcb_id)
    return pcb


def create_pcb(db: Session, *, payload: PCBCreate) -> PCB:
    name = payload.pcb_name.strip()
    if db.query(PCB.id).filter(PCB.pcb_name == name).first():
        raise Conflict("PCB with this name already exists")
    pcb = PCB(pcb_name=name, revision=payload.revision, description=payload.description)
    db.add(pcb)
    _commit_or_raise(db, "create_pcb", pcb_name=name)
    db.refresh(pcb)
    return pcb


def delete_pcb(db: Session, *, pcb_id: int) -> None:
    """BOM links and production history of the PCB are removed with it."""
    pcb = get_pcb(db, pcb_id=pcb_id)
    db.delete(pcb)
    _commit_or_raise(db, "delete_pcb", pcb_id=pcb_id)


# ---- BOM management ----

def get_bom(db: Session, *, pcb_id: int) -> Dict[str, Any]:
    pcb = get_pcb(db, pcb_id=pcb_id)
    rows = (
        db.query(
            BOMLink.id.label("mapping_id"),
            BOMLink.quantity_per_pcb,
            Component.id.label("component_id"),
            Component.name,
            Component.part_number,
            Component.current_stock,
            Component.monthly_required_quantity,
        )
        .join(Component, Component.id == BOMLink.component_id)
        .filter(BOMLink.pcb_id == pcb_id)
        .order_by(Component.name)
        .all()
    )
    return {"pcb": pcb, "components": [dict(r._mapping) for r in rows]}


def add_component_to_pcb(db: Session, *, pcb_id: int, component_id: int, quantity_per_pcb: int) -> BOMLink:
    try:
        if not db.get(PCB, pcb_id):
            raise NotFound("PCB", pcb_id)
        if not db.get(Component, component_id):
            raise NotFound("Component", component_id)
        dup = (
            db.query(BOMLink.id)
            .filter(BOMLink.pcb_id == pcb_id, BOMLink.component_id == component_id)
            .first()
        )
        if dup:
            raise Conflict("This component is already mapped to this PCB")
    except InventoryError:
        db.rollback()
        raise

    link = BOMLink(pcb_id=pcb_id, component_id=component_id, quantity_per_pcb=quantity_per_pcb)
    db.add(link)
    _commit_or_raise(db, "add_component_to_pcb", pcb_id=pcb_id, component_id=component_id)
    db.refresh(link)
    return link


def _get_link(db: Session, pcb_id: int, component_id: int) -> BOMLink:
    link = (
        db.query(BOMLink)
        .filter(BOMLink.pcb_id == pcb_id, BOMLink.component_id == component_id)
        .one_or_none()
    )
    if not link:
        raise NotFound("BOM mapping", {"pcb_id": pcb_id, "component_id": component_id})
    return link


def update_pcb_component(db: Session, *, pcb_id: int, component_id: int, quantity_per_pcb: int) -> BOMLink:
    link = _get_link(db, pcb_id, component_id)
    link.quantity_per_pcb = quantity_per_pcb
    _commit_or_raise(db, "update_pcb_component", pcb_id=pcb_id, component_id=component_id)
    db.refresh(link)
    return link


def remove_component_from_pcb(db: Session, *, pcb_id: int, component_id: int) -> None:
    link = _get_link(db, pcb_id, component_id)
    db.delete(link)
    _commit_or_raise(db, "remove_component_from_pcb", pcb_id=pcb_id, component_id=component_id)
