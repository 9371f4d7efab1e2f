import os
import tempfile

# the engine is built at import time; point it at a throwaway sqlite file first
_TMP = tempfile.mkdtemp(prefix="pcbtrack-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_TMP, "test.db")
os.environ.pop("PCBTRACK_DSN", None)

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from pcbtrack.core.db import Base, SessionLocal, engine
from pcbtrack import models  # noqa: F401
from pcbtrack.models import BOMLink, Component, PCB


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client():
    from pcbtrack.main import app
    with TestClient(app) as c:
        yield c


@pytest.fixture
def fresh():
    """Opens a new session for re-reading committed state."""
    opened = []

    def _open():
        s = SessionLocal()
        opened.append(s)
        return s

    yield _open
    for s in opened:
        s.close()


def make_component(db, part_number, stock, monthly=0, name=None):
    c = Component(
        name=name or part_number,
        part_number=part_number,
        current_stock=Decimal(stock),
        monthly_required_quantity=Decimal(monthly),
    )
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


def make_pcb(db, name, bom=None):
    """``bom`` maps Component -> quantity_per_pcb."""
    pcb = PCB(pcb_name=name)
    db.add(pcb)
    db.flush()
    for comp, qty in (bom or {}).items():
        db.add(BOMLink(pcb_id=pcb.id, component_id=comp.id, quantity_per_pcb=qty))
    db.commit()
    db.refresh(pcb)
    return pcb


@pytest.fixture
def board_a(db):
    """BOARD-A: R1 x10 (stock 100), C1 x5 (stock 20, monthly 30)."""
    r1 = make_component(db, "R1", 100)
    c1 = make_component(db, "C1", 20, monthly=30)
    pcb = make_pcb(db, "BOARD-A", {r1: 10, c1: 5})
    return {"pcb_id": pcb.id, "r1_id": r1.id, "c1_id": c1.id}
