# backend/pcbtrack/services/store.py
"""
Session-backed data access used inside the production and import transactions.

The store never commits; the calling service owns the unit of work.
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain.constants import TRIGGER_OPEN
from ..models import BOMLink, Component, ConsumptionHistory, PCB, ProcurementTrigger, ProductionLog


def _dialect(db: Session) -> str:
    try:
        return db.get_bind().dialect.name
    except Exception:
        return "unknown"


@dataclass
class BOMLine:
    component_id: int
    component_name: str
    part_number: str
    quantity_per_pcb: int
    current_stock: Decimal
    monthly_required_quantity: Decimal


class InventoryStore:
    def __init__(self, db: Session):
        self.db = db

    # ---- lookups ----
    def lock_pcb(self, pcb_id: int) -> Optional[PCB]:
        q = self.db.query(PCB).filter(PCB.id == pcb_id)
        if _dialect(self.db) == "mssql":
            q = q.with_hint(PCB, "WITH (UPDLOCK, ROWLOCK)", "mssql")
        else:
            q = q.with_for_update()
        return q.populate_existing().one_or_none()

    def load_bom_for_update(self, pcb_id: int) -> List[BOMLine]:
        """
        BOM lines of the PCB with their component rows locked until commit.
        Locks are taken in component id order so two producers sharing parts
        cannot deadlock each other.
        MSSQL uses UPDLOCK/ROWLOCK hints; other dialects SELECT ... FOR UPDATE
        (sqlite ignores it and relies on the guarded decrement).
        """
        if _dialect(self.db) == "mssql":
            self.db.execute(
                text(
                    "SELECT c.id FROM components c WITH (UPDLOCK, ROWLOCK) "
                    "JOIN pcb_components pc ON pc.component_id = c.id "
                    "WHERE pc.pcb_id = :pid ORDER BY c.id"
                ),
                {"pid": pcb_id},
            )
            q = self.db.query(BOMLink, Component)
        else:
            q = self.db.query(BOMLink, Component).with_for_update(of=Component)

        rows = (
            q.join(Component, Component.id == BOMLink.component_id)
            .filter(BOMLink.pcb_id == pcb_id)
            .order_by(Component.id)
            .populate_existing()
            .all()
        )
        return [
            BOMLine(
                component_id=c.id,
                component_name=c.name,
                part_number=c.part_number,
                quantity_per_pcb=int(link.quantity_per_pcb),
                current_stock=Decimal(c.current_stock or 0),
                monthly_required_quantity=Decimal(c.monthly_required_quantity or 0),
            )
            for link, c in rows
        ]

    # ---- writes ----
    def add_production_log(self, pcb_id: int, quantity_produced: int,
                           quantity_ok: Optional[int] = None,
                           quantity_scrap: Optional[int] = None) -> ProductionLog:
        log = ProductionLog(
            pcb_id=pcb_id,
            quantity_produced=quantity_produced,
            quantity_ok=quantity_ok,
            quantity_scrap=quantity_scrap,
        )
        self.db.add(log)
        self.db.flush()
        self.db.refresh(log)
        return log

    def deduct_stock(self, component_id: int, quantity: Decimal) -> bool:
        """
        Guarded decrement: only applies while the stock still covers ``quantity``.
        Returns False when a concurrent writer got there first.
        """
        res = self.db.execute(
            update(Component)
            .where(Component.id == component_id, Component.current_stock >= quantity)
            .values(current_stock=Component.current_stock - quantity)
            .execution_options(synchronize_session=False)
        )
        comp = self.db.get(Component, component_id)
        if comp is not None:
            self.db.expire(comp, ["current_stock"])
        return res.rowcount == 1

    def add_stock(self, component_id: int, quantity: Decimal) -> None:
        self.db.execute(
            update(Component)
            .where(Component.id == component_id)
            .values(current_stock=Component.current_stock + quantity)
            .execution_options(synchronize_session=False)
        )
        comp = self.db.get(Component, component_id)
        if comp is not None:
            self.db.expire(comp, ["current_stock"])

    def add_consumption(self, component_id: int, production_log_id: int, quantity: Decimal) -> ConsumptionHistory:
        row = ConsumptionHistory(
            component_id=component_id,
            production_log_id=production_log_id,
            quantity_deducted=quantity,
        )
        self.db.add(row)
        self.db.flush()
        self.db.refresh(row)
        return row

    # ---- procurement triggers ----
    def find_open_trigger(self, component_id: int) -> Optional[ProcurementTrigger]:
        q = self.db.query(ProcurementTrigger).filter(
            ProcurementTrigger.component_id == component_id,
            ProcurementTrigger.status == TRIGGER_OPEN,
        )
        if _dialect(self.db) != "mssql":
            q = q.with_for_update()
        return q.first()

    def open_trigger(self, component_id: int) -> Optional[ProcurementTrigger]:
        """
        Insert an open trigger unless one exists. A unique-index hit means a
        concurrent transaction opened it first; only the savepoint is undone.
        """
        if self.find_open_trigger(component_id) is not None:
            return None
        trig = ProcurementTrigger(component_id=component_id, status=TRIGGER_OPEN)
        try:
            with self.db.begin_nested():
                self.db.add(trig)
                self.db.flush()
        except IntegrityError:
            return None
        self.db.refresh(trig)
        return trig
