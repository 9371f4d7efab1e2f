# pcbtrack/routers/pcbs.py
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from ..core.api import ok, list_meta
from ..core.db import get_db
from ..schemas.pcb import BOMLineRead, BOMLinkCreate, BOMLinkRead, BOMLinkUpdate, PCBCreate, PCBRead
from ..services import pcb_service as svc

router = APIRouter(prefix="/pcbs", tags=["pcbs"])


@router.get("")
def list_pcbs(db: Session = Depends(get_db)):
    items = [PCBRead.model_validate(p).model_dump() for p in svc.list_pcbs(db)]
    return ok(items, meta=list_meta(items))


@router.get("/{pcb_id}")
def get_pcb(pcb_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    return ok(PCBRead.model_validate(svc.get_pcb(db, pcb_id=pcb_id)).model_dump())


@router.post("", status_code=status.HTTP_201_CREATED)
def create_pcb(payload: PCBCreate, db: Session = Depends(get_db)):
    pcb = svc.create_pcb(db, payload=payload)
    return ok(PCBRead.model_validate(pcb).model_dump(), status_code=status.HTTP_201_CREATED)


@router.delete("/{pcb_id}")
def delete_pcb(pcb_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    svc.delete_pcb(db, pcb_id=pcb_id)
    return ok({"deleted": pcb_id})


# ---- BOM ----
@router.get("/{pcb_id}/components")
def get_pcb_components(pcb_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    bom = svc.get_bom(db, pcb_id=pcb_id)
    lines = [BOMLineRead(**r).model_dump() for r in bom["components"]]
    data = {"pcb": PCBRead.model_validate(bom["pcb"]).model_dump(), "components": lines}
    return ok(data, meta=list_meta(lines))


@router.post("/{pcb_id}/components", status_code=status.HTTP_201_CREATED)
def add_component(payload: BOMLinkCreate, pcb_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    link = svc.add_component_to_pcb(
        db, pcb_id=pcb_id, component_id=payload.component_id, quantity_per_pcb=payload.quantity_per_pcb
    )
    return ok(BOMLinkRead.model_validate(link).model_dump(), status_code=status.HTTP_201_CREATED)


@router.put("/{pcb_id}/components/{component_id}")
def update_component_qty(
    payload: BOMLinkUpdate,
    pcb_id: int = Path(..., ge=1),
    component_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
):
    link = svc.update_pcb_component(
        db, pcb_id=pcb_id, component_id=component_id, quantity_per_pcb=payload.quantity_per_pcb
    )
    return ok(BOMLinkRead.model_validate(link).model_dump())


@router.delete("/{pcb_id}/components/{component_id}")
def remove_component(pcb_id: int = Path(..., ge=1), component_id: int = Path(..., ge=1), db: Session = Depends(get_db)):
    svc.remove_component_from_pcb(db, pcb_id=pcb_id, component_id=component_id)
    return ok({"pcb_id": pcb_id, "component_id": component_id, "removed": True})
