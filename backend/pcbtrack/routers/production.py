# pcbtrack/routers/production.py
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from ..core.api import ok, list_meta
from ..core.db import get_db
from ..schemas.production import ProductionCreate, ProductionLogRead
from ..services.production_service import get_production_log, list_production_logs, record_production

router = APIRouter(prefix="/production", tags=["production"])


@router.get("")
def list_logs(
    pcb_id: Optional[int] = Query(None, ge=1),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    items = list_production_logs(db, pcb_id=pcb_id, skip=skip, limit=limit)
    return ok(items, meta=list_meta(items))


@router.get("/{log_id}")
def get_log(log_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(get_production_log(db, log_id=log_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_production(payload: ProductionCreate, db: Session = Depends(get_db)):
    """
    Deducts the PCB's BOM from stock in one transaction.
    400 insufficient_stock carries the shortage list in meta.insufficient_stock.
    """
    res = record_production(
        db,
        pcb_id=payload.pcb_id,
        quantity_produced=payload.quantity_produced,
        quantity_ok=payload.quantity_ok,
        quantity_scrap=payload.quantity_scrap,
    )
    data = {
        "production_log": ProductionLogRead.model_validate(res.production_log).model_dump(),
        "pcb_name": res.pcb_name,
        "stock_deductions": res.stock_deductions,
        "consumption_records": [
            {
                "id": c.id,
                "component_id": c.component_id,
                "production_log_id": c.production_log_id,
                "quantity_deducted": c.quantity_deducted,
                "created_at": c.created_at,
            }
            for c in res.consumption_records
        ],
        "procurement_triggers": res.procurement_triggers,
    }
    return ok(data, status_code=status.HTTP_201_CREATED)
