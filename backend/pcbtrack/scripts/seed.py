"""Demo data: one board, two parts. Safe to run repeatedly."""
import logging

from sqlalchemy import select

from pcbtrack.core.db import session_scope
from pcbtrack.models import BOMLink, Component, PCB

logger = logging.getLogger("pcbtrack.seed")

# ---------- helpers ----------

def get_one(db, model, **by):
    return db.execute(select(model).filter_by(**by)).scalars().first()

def get_or_create(db, model, unique_by: dict, defaults: dict | None = None):
    """Look up by ``unique_by``; create from it plus ``defaults`` when missing."""
    inst = get_one(db, model, **unique_by)
    if inst:
        return inst, False
    inst = model(**{**unique_by, **(defaults or {})})
    db.add(inst)
    db.flush()
    return inst, True

# ---------- seed data ----------

COMPONENTS = [
    {"part_number": "R1", "name": "Resistor 10k 0603", "current_stock": 100, "monthly_required_quantity": 0},
    {"part_number": "C1", "name": "Capacitor 100nF 0603", "current_stock": 20, "monthly_required_quantity": 30},
]

PCBS = [
    {"pcb_name": "BOARD-A", "revision": "A", "description": "Demo board"},
]

BOM = {
    "BOARD-A": {"R1": 10, "C1": 5},
}

def run():
    with session_scope() as db:
        logger.info("seeding components / PCBs")
        for c in COMPONENTS:
            get_or_create(db, Component, {"part_number": c["part_number"]}, defaults=c)
        for p in PCBS:
            get_or_create(db, PCB, {"pcb_name": p["pcb_name"]}, defaults=p)

    with session_scope() as db:
        logger.info("seeding BOM links")
        for pcb_name, lines in BOM.items():
            pcb = get_one(db, PCB, pcb_name=pcb_name)
            for part_number, qty in lines.items():
                comp = get_one(db, Component, part_number=part_number)
                get_or_create(
                    db, BOMLink,
                    {"pcb_id": pcb.id, "component_id": comp.id},
                    defaults={"quantity_per_pcb": qty},
                )

    logger.info("seed done")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
