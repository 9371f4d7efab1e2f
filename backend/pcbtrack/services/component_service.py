# backend/pcbtrack/services/component_service.py
from __future__ import annotations
from typing import List, Optional
import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, DBAPIError
from sqlalchemy.orm import Session

from ..domain.constants import MAX_LIST_LIMIT
from ..domain.errors import Conflict, InventoryError, NotFound, TransactionError, ValidationFailed
from ..models import Component
from ..schemas.component import ComponentCreate, ComponentPatch

logger = logging.getLogger(__name__)


def list_components(
    db: Session,
    *,
    q: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    sort: str = "name",
) -> List[Component]:
    query = db.query(Component)
    if q:
        like = f"%{q.lower()}%"
        query = query.filter(or_(func.lower(Component.name).like(like), func.lower(Component.part_number).like(like)))

    order_fields = {
        "id": Component.id,
        "name": Component.name,
        "part_number": Component.part_number,
        "current_stock": Component.current_stock,
    }
    desc = sort.startswith("-")
    key = sort[1:] if desc else sort
    col = order_fields.get(key, Component.name)
    query = query.order_by(col.desc() if desc else col.asc(), Component.id)

    return query.offset(max(0, skip)).limit(min(max(1, limit), MAX_LIST_LIMIT)).all()


def get_component(db: Session, *, component_id: int) -> Component:
    comp = db.get(Component, component_id)
    if not comp:
        raise NotFound("Component", component_id)
    return comp


def create_component(db: Session, *, payload: ComponentCreate) -> Component:
    try:
        if db.query(Component.id).filter(Component.part_number == payload.part_number).first():
            raise Conflict("Component with this part number already exists")

        comp = Component(
            name=payload.name,
            part_number=payload.part_number,
            current_stock=payload.current_stock,
            monthly_required_quantity=payload.monthly_required_quantity,
        )
        db.add(comp)
        db.commit()
        db.refresh(comp)
        return comp
    except InventoryError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        raise Conflict(f"db_error: {getattr(e, 'orig', e)}")
    except Exception as e:
        db.rollback()
        logger.exception("create_component error (part_number=%s)", payload.part_number)
        raise TransactionError(f"create_component error: {type(e).__name__}: {e}") from e


def update_component(db: Session, *, component_id: int, patch: ComponentPatch) -> Component:
    """Applies only the fields present in ``patch``."""
    changes = patch.changes()
    if not changes:
        raise ValidationFailed("No fields to update")
    try:
        comp = db.get(Component, component_id)
        if not comp:
            raise NotFound("Component", component_id)

        new_pn = changes.get("part_number")
        if new_pn:
            dup = (
                db.query(Component.id)
                .filter(Component.part_number == new_pn, Component.id != component_id)
                .first()
            )
            if dup:
                raise Conflict("Another component with this part number already exists")

        for k, v in changes.items():
            setattr(comp, k, v)
        db.commit()
        db.refresh(comp)
        return comp
    except InventoryError:
        db.rollback()
        raise
    except (IntegrityError, DBAPIError) as e:
        db.rollback()
        raise Conflict(f"db_error: {getattr(e, 'orig', e)}")
    except Exception as e:
        db.rollback()
        logger.exception("update_component error (ComponentID=%s)", component_id)
        raise TransactionError(f"update_component error: {type(e).__name__}: {e}") from e


def delete_component(db: Session, *, component_id: int) -> None:
    """BOM links, consumption rows and triggers go with it (ON DELETE CASCADE)."""
    try:
        comp = db.get(Component, component_id)
        if not comp:
            raise NotFound("Component", component_id)
        db.delete(comp)
        db.commit()
    except InventoryError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception("delete_component error (ComponentID=%s)", component_id)
        raise TransactionError(f"delete_component error: {type(e).__name__}: {e}") from e
