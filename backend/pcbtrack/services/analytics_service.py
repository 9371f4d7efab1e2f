# backend/pcbtrack/services/analytics_service.py
"""
Read-only aggregations over consumption, stock and production.
Nothing here writes except ``resolve_trigger``.
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import and_, desc, func, literal
from sqlalchemy.orm import Session

from ..domain.constants import DEFAULT_TOP_LIMIT, MAX_LIST_LIMIT, PROCUREMENT_THRESHOLD_RATIO, TRIGGER_OPEN, TRIGGER_RESOLVED, TRIGGER_STATUSES
from ..domain.errors import Conflict, InventoryError, NotFound, TransactionError, ValidationFailed
from ..models import Component, ConsumptionHistory, PCB, ProcurementTrigger, ProductionLog

logger = logging.getLogger(__name__)


def _window(col, start: Optional[datetime], end: Optional[datetime]):
    conds = []
    if start is not None:
        conds.append(col >= start)
    if end is not None:
        conds.append(col <= end)
    return conds


def _rows(q) -> List[Dict[str, Any]]:
    return [dict(r._mapping) for r in q.all()]


def consumption_summary(db: Session, *, start: Optional[datetime] = None, end: Optional[datetime] = None):
    """Every component with its consumed total; the date window applies to consumption rows."""
    total = func.coalesce(func.sum(ConsumptionHistory.quantity_deducted), 0)
    q = (
        db.query(
            Component.id.label("component_id"),
            Component.name.label("component_name"),
            Component.part_number,
            Component.current_stock,
            Component.monthly_required_quantity,
            total.label("total_consumed"),
            func.count(func.distinct(ConsumptionHistory.production_log_id)).label("production_count"),
        )
        .outerjoin(
            ConsumptionHistory,
            and_(ConsumptionHistory.component_id == Component.id,
                 *_window(ConsumptionHistory.created_at, start, end)),
        )
        .group_by(Component.id, Component.name, Component.part_number,
                  Component.current_stock, Component.monthly_required_quantity)
        .order_by(desc(total), Component.id)
    )
    return _rows(q)


def top_consumed(db: Session, *, limit: int = DEFAULT_TOP_LIMIT):
    total = func.sum(ConsumptionHistory.quantity_deducted)
    q = (
        db.query(
            Component.id.label("component_id"),
            Component.name.label("component_name"),
            Component.part_number,
            Component.current_stock,
            total.label("total_consumed"),
            func.count(func.distinct(ConsumptionHistory.production_log_id)).label("times_used"),
        )
        .join(ConsumptionHistory, ConsumptionHistory.component_id == Component.id)
        .group_by(Component.id, Component.name, Component.part_number, Component.current_stock)
        .order_by(desc(total), Component.id)
        .limit(min(max(1, limit), MAX_LIST_LIMIT))
    )
    return _rows(q)


def low_stock(db: Session):
    """current_stock < 20% of the monthly requirement; untracked (0) requirements are skipped."""
    rows = (
        db.query(Component)
        .filter(Component.monthly_required_quantity > 0)
        .filter(Component.current_stock < Component.monthly_required_quantity * literal(PROCUREMENT_THRESHOLD_RATIO))
        .all()
    )
    items = []
    for c in rows:
        monthly = c.monthly_required_quantity
        items.append({
            "id": c.id,
            "name": c.name,
            "part_number": c.part_number,
            "current_stock": c.current_stock,
            "monthly_required_quantity": monthly,
            "stock_percentage": round(float(c.current_stock) / float(monthly) * 100, 2),
        })
    items.sort(key=lambda r: (r["stock_percentage"], r["id"]))
    return items


def procurement_alerts(db: Session, *, status_s: str = TRIGGER_OPEN):
    if status_s not in TRIGGER_STATUSES:
        raise ValidationFailed(f"status must be one of {', '.join(TRIGGER_STATUSES)}")
    q = (
        db.query(
            ProcurementTrigger.id,
            ProcurementTrigger.component_id,
            Component.name.label("component_name"),
            Component.part_number,
            Component.current_stock,
            Component.monthly_required_quantity,
            ProcurementTrigger.trigger_date,
            ProcurementTrigger.status,
        )
        .join(Component, Component.id == ProcurementTrigger.component_id)
        .filter(ProcurementTrigger.status == status_s)
        .order_by(ProcurementTrigger.trigger_date.desc(), ProcurementTrigger.id.desc())
    )
    return _rows(q)


def resolve_trigger(db: Session, *, trigger_id: int) -> ProcurementTrigger:
    """open -> resolved; unknown is a 404, already resolved a 409."""
    try:
        q = db.query(ProcurementTrigger).filter(ProcurementTrigger.id == trigger_id)
        if db.get_bind().dialect.name == "mssql":
            q = q.with_hint(ProcurementTrigger, "WITH (UPDLOCK, ROWLOCK)", "mssql")
        else:
            q = q.with_for_update()
        trig = q.populate_existing().one_or_none()
        if not trig:
            raise NotFound("Procurement alert", trigger_id)
        if trig.status != TRIGGER_OPEN:
            raise Conflict("Procurement alert is already resolved")
        trig.status = TRIGGER_RESOLVED
        db.commit()
        db.refresh(trig)
        return trig
    except InventoryError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception("resolve_trigger error (TriggerID=%s)", trigger_id)
        raise TransactionError(f"resolve_trigger error: {type(e).__name__}: {e}") from e


def production_stats(db: Session, *, start: Optional[datetime] = None, end: Optional[datetime] = None):
    total = func.sum(ProductionLog.quantity_produced)
    q = (
        db.query(
            PCB.id.label("pcb_id"),
            PCB.pcb_name,
            func.count(ProductionLog.id).label("production_runs"),
            func.coalesce(total, 0).label("total_quantity_produced"),
            func.coalesce(func.sum(ProductionLog.quantity_ok), 0).label("total_ok"),
            func.coalesce(func.sum(ProductionLog.quantity_scrap), 0).label("total_scrap"),
        )
        .outerjoin(
            ProductionLog,
            and_(ProductionLog.pcb_id == PCB.id, *_window(ProductionLog.produced_at, start, end)),
        )
        .group_by(PCB.id, PCB.pcb_name)
        .order_by(desc(func.coalesce(total, 0)), PCB.pcb_name)
    )
    return _rows(q)
