import threading
from decimal import Decimal

import pytest

from pcbtrack.domain.errors import EmptyBOM, InsufficientStock, InventoryError, NotFound, ValidationFailed
from pcbtrack.models import Component, ConsumptionHistory, ProcurementTrigger, ProductionLog
from pcbtrack.services.production_service import needs_procurement, record_production

from conftest import make_component, make_pcb


def _stock(session, component_id):
    return session.get(Component, component_id).current_stock


def _open_triggers(session, component_id):
    return (
        session.query(ProcurementTrigger)
        .filter(ProcurementTrigger.component_id == component_id, ProcurementTrigger.status == "open")
        .count()
    )


def test_board_a_deducts_and_opens_one_trigger(db, fresh, board_a):
    res = record_production(db, pcb_id=board_a["pcb_id"], quantity_produced=3)

    assert res.pcb_name == "BOARD-A"
    assert res.production_log.quantity_produced == 3
    assert len(res.consumption_records) == 2
    assert {d["component_id"]: d["new_stock"] for d in res.stock_deductions} == {
        board_a["r1_id"]: 70,
        board_a["c1_id"]: 5,
    }
    # C1: 5 < 30 * 0.2
    assert len(res.procurement_triggers) == 1
    assert res.procurement_triggers[0]["component_id"] == board_a["c1_id"]
    assert res.procurement_triggers[0]["threshold"] == 6

    s = fresh()
    assert _stock(s, board_a["r1_id"]) == 70
    assert _stock(s, board_a["c1_id"]) == 5
    assert _open_triggers(s, board_a["c1_id"]) == 1
    assert s.query(ConsumptionHistory).count() == 2


def test_second_run_does_not_duplicate_trigger(db, fresh, board_a):
    record_production(db, pcb_id=board_a["pcb_id"], quantity_produced=3)
    res = record_production(db, pcb_id=board_a["pcb_id"], quantity_produced=1)

    assert res.procurement_triggers is None
    s = fresh()
    assert _stock(s, board_a["r1_id"]) == 60
    assert _stock(s, board_a["c1_id"]) == 0
    assert _open_triggers(s, board_a["c1_id"]) == 1


def test_insufficient_stock_reports_shortage_and_writes_nothing(db, fresh, board_a):
    record_production(db, pcb_id=board_a["pcb_id"], quantity_produced=3)

    with pytest.raises(InsufficientStock) as ei:
        record_production(db, pcb_id=board_a["pcb_id"], quantity_produced=100)

    by_part = {s["part_number"]: s for s in ei.value.shortages}
    assert by_part["R1"]["required"] == 1000
    assert by_part["R1"]["available"] == 70
    assert by_part["R1"]["shortage"] == 930
    assert ei.value.status_code == 400

    s = fresh()
    assert _stock(s, board_a["r1_id"]) == 70
    assert _stock(s, board_a["c1_id"]) == 5
    assert s.query(ProductionLog).count() == 1
    assert s.query(ConsumptionHistory).count() == 2


def test_empty_bom_is_rejected_without_log(db, fresh):
    pcb = make_pcb(db, "BARE")
    with pytest.raises(EmptyBOM):
        record_production(db, pcb_id=pcb.id, quantity_produced=1)
    assert fresh().query(ProductionLog).count() == 0


def test_unknown_pcb_is_not_found(db):
    with pytest.raises(NotFound):
        record_production(db, pcb_id=999, quantity_produced=1)


@pytest.mark.parametrize("qty", [0, -2, 1.5, True])
def test_quantity_must_be_positive_integer(db, board_a, qty):
    with pytest.raises(ValidationFailed):
        record_production(db, pcb_id=board_a["pcb_id"], quantity_produced=qty)


def test_ok_plus_scrap_must_match(db, board_a):
    with pytest.raises(ValidationFailed):
        record_production(db, pcb_id=board_a["pcb_id"], quantity_produced=3, quantity_ok=2, quantity_scrap=2)

    res = record_production(db, pcb_id=board_a["pcb_id"], quantity_produced=3, quantity_ok=2, quantity_scrap=1)
    assert (res.production_log.quantity_ok, res.production_log.quantity_scrap) == (2, 1)


def test_untracked_requirement_never_triggers(db, fresh):
    r = make_component(db, "R9", 10, monthly=0)
    pcb = make_pcb(db, "ZERO", {r: 10})

    res = record_production(db, pcb_id=pcb.id, quantity_produced=1)

    assert res.procurement_triggers is None
    s = fresh()
    assert _stock(s, r.id) == 0
    assert s.query(ProcurementTrigger).count() == 0


def test_needs_procurement_threshold():
    assert needs_procurement(Decimal("5"), Decimal("30")) is True
    assert needs_procurement(Decimal("6"), Decimal("30")) is False
    assert needs_procurement(Decimal("0"), Decimal("0")) is False


def test_resolved_trigger_allows_a_new_one(db, fresh, board_a):
    record_production(db, pcb_id=board_a["pcb_id"], quantity_produced=3)
    trig = db.query(ProcurementTrigger).one()
    trig.status = "resolved"
    db.commit()

    res = record_production(db, pcb_id=board_a["pcb_id"], quantity_produced=1)

    assert len(res.procurement_triggers) == 1
    s = fresh()
    assert s.query(ProcurementTrigger).count() == 2
    assert _open_triggers(s, board_a["c1_id"]) == 1


def test_concurrent_runs_never_oversell(fresh):
    from pcbtrack.core.db import SessionLocal

    setup = fresh()
    part = make_component(setup, "X1", 50, monthly=100)
    pcb = make_pcb(setup, "RACE", {part: 10})
    pcb_id, part_id = pcb.id, part.id

    outcomes = []
    lock = threading.Lock()

    def worker():
        s = SessionLocal()
        try:
            record_production(s, pcb_id=pcb_id, quantity_produced=2)
            result = "ok"
        except InventoryError as e:
            result = e.code
        finally:
            s.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    done = outcomes.count("ok")
    assert len(outcomes) == 6
    assert set(outcomes) <= {"ok", "insufficient_stock", "transaction_error"}
    assert done <= 2

    s = fresh()
    assert _stock(s, part_id) == 50 - 20 * done
    assert _stock(s, part_id) >= 0
    assert s.query(ProductionLog).count() == done
    assert s.query(ConsumptionHistory).count() == done
    # 50 -> 30 stays above 20% of 100; 50 -> 10 drops below it
    assert _open_triggers(s, part_id) == (1 if done == 2 else 0)


def test_failure_after_first_deduction_rolls_everything_back(db, fresh, board_a, monkeypatch):
    from pcbtrack.domain.errors import TransactionError
    from pcbtrack.services.store import InventoryStore

    original = InventoryStore.add_consumption
    calls = []

    def flaky(self, component_id, production_log_id, quantity):
        calls.append(component_id)
        if len(calls) == 2:
            raise RuntimeError("disk full")
        return original(self, component_id, production_log_id, quantity)

    monkeypatch.setattr(InventoryStore, "add_consumption", flaky)

    with pytest.raises(TransactionError) as ei:
        record_production(db, pcb_id=board_a["pcb_id"], quantity_produced=3)
    assert ei.value.meta["rolled_back"] is True
    assert len(calls) == 2

    s = fresh()
    assert _stock(s, board_a["r1_id"]) == 100
    assert _stock(s, board_a["c1_id"]) == 20
    assert s.query(ProductionLog).count() == 0
    assert s.query(ConsumptionHistory).count() == 0
    assert s.query(ProcurementTrigger).count() == 0
