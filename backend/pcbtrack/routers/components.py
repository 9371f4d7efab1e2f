# pcbtrack/routers/components.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.api import ok, list_meta
from ..core.db import get_db
from ..schemas.component import ComponentCreate, ComponentPatch, ComponentRead
from ..services import component_service as svc

router = APIRouter(prefix="/components", tags=["components"])


def _out(c):
    return ComponentRead.model_validate(c).model_dump()


@router.get("")
def list_components(
    q: Optional[str] = Query(None, description="name / part number search"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    sort: str = Query("name", description="id, name, part_number, current_stock (prefix - for desc)"),
    db: Session = Depends(get_db),
):
    items = [_out(c) for c in svc.list_components(db, q=q, skip=skip, limit=limit, sort=sort)]
    return ok(items, meta=list_meta(items))


@router.get("/{component_id}")
def get_component(component_id: int, db: Session = Depends(get_db)):
    return ok(_out(svc.get_component(db, component_id=component_id)))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_component(payload: ComponentCreate, db: Session = Depends(get_db)):
    return ok(_out(svc.create_component(db, payload=payload)), status_code=status.HTTP_201_CREATED)


@router.patch("/{component_id}")
def patch_component(component_id: int, payload: ComponentPatch, db: Session = Depends(get_db)):
    return ok(_out(svc.update_component(db, component_id=component_id, patch=payload)))


@router.delete("/{component_id}")
def delete_component(component_id: int, db: Session = Depends(get_db)):
    svc.delete_component(db, component_id=component_id)
    return ok({"deleted": component_id})
