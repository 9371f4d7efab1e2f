# backend/pcbtrack/services/production_service.py
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from ..domain.constants import PROCUREMENT_THRESHOLD_RATIO, MAX_LIST_LIMIT
from ..domain.errors import (
    EmptyBOM,
    InsufficientStock,
    InventoryError,
    NotFound,
    TransactionError,
    ValidationFailed,
)
from ..models import Component, ConsumptionHistory, PCB, ProductionLog
from .store import BOMLine, InventoryStore

logger = logging.getLogger(__name__)


@dataclass
class ProductionResult:
    production_log: ProductionLog
    pcb_name: str
    stock_deductions: List[Dict[str, Any]] = field(default_factory=list)
    consumption_records: List[ConsumptionHistory] = field(default_factory=list)
    procurement_triggers: Optional[List[Dict[str, Any]]] = None


def _validate_request(quantity_produced, quantity_ok, quantity_scrap) -> None:
    if isinstance(quantity_produced, bool) or not isinstance(quantity_produced, int) or quantity_produced <= 0:
        raise ValidationFailed("Quantity produced must be a positive integer.")
    for label, v in (("quantity_ok", quantity_ok), ("quantity_scrap", quantity_scrap)):
        if v is not None and (isinstance(v, bool) or not isinstance(v, int) or v < 0):
            raise ValidationFailed(f"{label} must be a non-negative integer.")
    if quantity_ok is not None and quantity_scrap is not None and quantity_ok + quantity_scrap != quantity_produced:
        raise ValidationFailed(
            "quantity_ok + quantity_scrap must equal quantity_produced.",
            meta={"quantity_produced": quantity_produced, "quantity_ok": quantity_ok, "quantity_scrap": quantity_scrap},
        )


def check_sufficiency(bom: List[BOMLine], quantity_produced: int):
    """Split BOM lines into (deductions, shortages); no side effects."""
    deductions: List[Dict[str, Any]] = []
    shortages: List[Dict[str, Any]] = []
    for line in bom:
        required = Decimal(line.quantity_per_pcb) * quantity_produced
        if line.current_stock < required:
            shortages.append({
                "component": line.component_name,
                "part_number": line.part_number,
                "required": required,
                "available": line.current_stock,
                "shortage": required - line.current_stock,
            })
        else:
            deductions.append({
                "component_id": line.component_id,
                "component_name": line.component_name,
                "quantity_to_deduct": required,
                "current_stock": line.current_stock,
                "new_stock": line.current_stock - required,
                "monthly_required_quantity": line.monthly_required_quantity,
            })
    return deductions, shortages


def needs_procurement(new_stock: Decimal, monthly_required_quantity: Decimal) -> bool:
    # monthly == 0 means the requirement is not tracked
    if monthly_required_quantity <= 0:
        return False
    return new_stock < monthly_required_quantity * PROCUREMENT_THRESHOLD_RATIO


def record_production(
    db: Session,
    *,
    pcb_id: int,
    quantity_produced: int,
    quantity_ok: Optional[int] = None,
    quantity_scrap: Optional[int] = None,
) -> ProductionResult:
    """
    Records one production run and deducts the BOM from stock, all or nothing.
    - PCB must exist and have at least one BOM line
    - every line must be covered by stock, otherwise nothing is written
    - component rows stay locked from the BOM read until commit
    - stock under 20% of the monthly requirement opens one procurement trigger
    """
    _validate_request(quantity_produced, quantity_ok, quantity_scrap)
    store = InventoryStore(db)
    try:
        # 1) PCB + BOM (locked)
        pcb = store.lock_pcb(pcb_id)
        if not pcb:
            raise NotFound("PCB", pcb_id)

        bom = store.load_bom_for_update(pcb_id)
        if not bom:
            raise EmptyBOM(pcb_id)

        # 2) sufficiency check, before any write
        deductions, shortages = check_sufficiency(bom, quantity_produced)
        if shortages:
            raise InsufficientStock(shortages)

        # 3) production log
        log = store.add_production_log(pcb_id, quantity_produced, quantity_ok, quantity_scrap)

        # 4) deduct + consumption + triggers
        consumption: List[ConsumptionHistory] = []
        triggers: List[Dict[str, Any]] = []
        for d in deductions:
            if not store.deduct_stock(d["component_id"], d["quantity_to_deduct"]):
                raise TransactionError(
                    "Stock changed concurrently; production rolled back.",
                    meta={"component_id": d["component_id"]},
                )
            consumption.append(store.add_consumption(d["component_id"], log.id, d["quantity_to_deduct"]))

            if needs_procurement(d["new_stock"], d["monthly_required_quantity"]):
                trig = store.open_trigger(d["component_id"])
                if trig is not None:
                    triggers.append({
                        "id": trig.id,
                        "component_id": trig.component_id,
                        "trigger_date": trig.trigger_date,
                        "status": trig.status,
                        "component_name": d["component_name"],
                        "new_stock": d["new_stock"],
                        "threshold": d["monthly_required_quantity"] * PROCUREMENT_THRESHOLD_RATIO,
                    })

        db.commit()
        db.refresh(log)
        logger.info(
            "production recorded (LogID=%s, PCB=%s, qty=%s, triggers=%s)",
            log.id, pcb.pcb_name, quantity_produced, len(triggers),
        )
        return ProductionResult(
            production_log=log,
            pcb_name=pcb.pcb_name,
            stock_deductions=deductions,
            consumption_records=consumption,
            procurement_triggers=triggers or None,
        )

    except InventoryError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception("record_production error (PCBID=%s, qty=%s)", pcb_id, quantity_produced)
        raise TransactionError(
            f"Error recording production. Transaction rolled back. ({type(e).__name__}: {e})"
        ) from e


def list_production_logs(db: Session, *, pcb_id: Optional[int] = None, skip: int = 0, limit: int = 100):
    q = (
        db.query(
            ProductionLog.id,
            ProductionLog.pcb_id,
            PCB.pcb_name,
            ProductionLog.quantity_produced,
            ProductionLog.quantity_ok,
            ProductionLog.quantity_scrap,
            ProductionLog.produced_at,
        )
        .join(PCB, PCB.id == ProductionLog.pcb_id)
    )
    if pcb_id is not None:
        q = q.filter(ProductionLog.pcb_id == pcb_id)
    q = q.order_by(ProductionLog.produced_at.desc(), ProductionLog.id.desc())
    rows = q.offset(max(0, skip)).limit(min(max(1, limit), MAX_LIST_LIMIT)).all()
    return [dict(r._mapping) for r in rows]


def get_production_log(db: Session, *, log_id: int) -> Dict[str, Any]:
    log = db.get(ProductionLog, log_id)
    if not log:
        raise NotFound("Production log", log_id)

    consumption = (
        db.query(
            ConsumptionHistory.id,
            ConsumptionHistory.component_id,
            Component.name.label("component_name"),
            Component.part_number,
            ConsumptionHistory.quantity_deducted,
            ConsumptionHistory.created_at,
        )
        .join(Component, Component.id == ConsumptionHistory.component_id)
        .filter(ConsumptionHistory.production_log_id == log_id)
        .order_by(ConsumptionHistory.id)
        .all()
    )
    return {
        "production_log": {
            "id": log.id,
            "pcb_id": log.pcb_id,
            "pcb_name": log.pcb.pcb_name if log.pcb else None,
            "quantity_produced": log.quantity_produced,
            "quantity_ok": log.quantity_ok,
            "quantity_scrap": log.quantity_scrap,
            "produced_at": log.produced_at,
        },
        "consumption": [dict(r._mapping) for r in consumption],
    }
