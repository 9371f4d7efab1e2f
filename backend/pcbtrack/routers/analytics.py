# pcbtrack/routers/analytics.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from ..core.api import ok, list_meta
from ..core.db import get_db
from ..domain.constants import DEFAULT_TOP_LIMIT, TRIGGER_OPEN
from ..services import analytics_service as svc

router = APIRouter(prefix="/analytics", tags=["analytics"])


# ---------- shared: date window ----------
def validate_window(
    start: Optional[datetime] = Query(None, alias="startDate", description="ISO timestamp, inclusive"),
    end: Optional[datetime] = Query(None, alias="endDate", description="ISO timestamp, inclusive"),
):
    if start and end and end < start:
        raise HTTPException(status_code=422, detail="Invalid window: 'endDate' must not be before 'startDate'.")
    return start, end


def _window_meta(start, end):
    return {"start": start.isoformat() if start else None, "end": end.isoformat() if end else None}


@router.get("/consumption-summary")
def consumption_summary(window=Depends(validate_window), db: Session = Depends(get_db)):
    start, end = window
    rows = svc.consumption_summary(db, start=start, end=end)
    return ok(rows, meta=list_meta(rows, _window_meta(start, end)))


@router.get("/top-consumed")
def top_consumed(limit: int = Query(DEFAULT_TOP_LIMIT, ge=1, le=100), db: Session = Depends(get_db)):
    rows = svc.top_consumed(db, limit=limit)
    return ok(rows, meta=list_meta(rows, {"limit": limit}))


@router.get("/low-stock")
def low_stock(db: Session = Depends(get_db)):
    rows = svc.low_stock(db)
    return ok(rows, meta=list_meta(rows))


@router.get("/procurement-alerts")
def procurement_alerts(status_s: str = Query(TRIGGER_OPEN, alias="status"), db: Session = Depends(get_db)):
    rows = svc.procurement_alerts(db, status_s=status_s)
    return ok(rows, meta=list_meta(rows, {"status": status_s}))


@router.put("/procurement-alerts/{trigger_id}/resolve")
def resolve_alert(trigger_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    trig = svc.resolve_trigger(db, trigger_id=trigger_id)
    return ok({
        "id": trig.id,
        "component_id": trig.component_id,
        "trigger_date": trig.trigger_date,
        "status": trig.status,
    })


@router.get("/production-stats")
def production_stats(window=Depends(validate_window), db: Session = Depends(get_db)):
    start, end = window
    rows = svc.production_stats(db, start=start, end=end)
    return ok(rows, meta=list_meta(rows, _window_meta(start, end)))
