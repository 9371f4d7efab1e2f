def _ok(resp, status=200):
    assert resp.status_code == status, resp.text
    body = resp.json()
    assert body["ok"] is True
    return body["data"]


def test_health(client):
    r = client.get("/health")
    assert _ok(r) == {"service": "PCB Stock Tracker"}
    assert r.headers["content-type"].startswith("application/json")
    assert _ok(client.get("/db-ping"))["select1"] == 1


def test_component_crud(client):
    created = _ok(client.post("/components", json={"name": " Resistor ", "part_number": "R1", "current_stock": 10}), 201)
    assert created["name"] == "Resistor"
    assert created["current_stock"] == 10

    dup = client.post("/components", json={"name": "x", "part_number": "R1"})
    assert dup.status_code == 409
    assert dup.json()["code"] == "conflict"

    cid = created["id"]
    patched = _ok(client.patch(f"/components/{cid}", json={"monthly_required_quantity": 40}))
    assert patched["monthly_required_quantity"] == 40
    assert patched["current_stock"] == 10

    assert client.patch(f"/components/{cid}", json={}).status_code == 422
    assert client.post("/components", json={"name": "neg", "part_number": "N1", "current_stock": -1}).status_code == 422

    listing = client.get("/components", params={"q": "resis"}).json()
    assert listing["meta"]["count"] == 1

    _ok(client.delete(f"/components/{cid}"))
    missing = client.get(f"/components/{cid}")
    assert missing.status_code == 404
    assert missing.json()["ok"] is False


def test_pcb_bom_management(client):
    pcb = _ok(client.post("/pcbs", json={"pcb_name": "BOARD-A"}), 201)
    comp = _ok(client.post("/components", json={"name": "Res", "part_number": "R1", "current_stock": 100}), 201)
    base = f"/pcbs/{pcb['id']}/components"

    _ok(client.post(base, json={"component_id": comp["id"], "quantity_per_pcb": 10}), 201)
    assert client.post(base, json={"component_id": comp["id"], "quantity_per_pcb": 1}).status_code == 409
    assert client.post(base, json={"component_id": 999, "quantity_per_pcb": 1}).status_code == 404
    assert client.post(base, json={"component_id": comp["id"], "quantity_per_pcb": 0}).status_code == 422

    _ok(client.put(f"{base}/{comp['id']}", json={"quantity_per_pcb": 4}))
    bom = _ok(client.get(base))
    assert bom["pcb"]["pcb_name"] == "BOARD-A"
    assert [(l["part_number"], l["quantity_per_pcb"]) for l in bom["components"]] == [("R1", 4)]

    _ok(client.delete(f"{base}/{comp['id']}"))
    assert _ok(client.get(base))["components"] == []
    assert client.delete(f"{base}/{comp['id']}").status_code == 404
    assert client.post("/pcbs", json={"pcb_name": "BOARD-A"}).status_code == 409


def test_production_endpoint(client, board_a):
    data = _ok(client.post("/production", json={"pcb_id": board_a["pcb_id"], "quantity_produced": 3}), 201)
    assert data["pcb_name"] == "BOARD-A"
    assert len(data["consumption_records"]) == 2
    assert [t["component_id"] for t in data["procurement_triggers"]] == [board_a["c1_id"]]

    log_id = data["production_log"]["id"]
    detail = _ok(client.get(f"/production/{log_id}"))
    assert len(detail["consumption"]) == 2
    assert _ok(client.get("/production", params={"pcb_id": board_a["pcb_id"]}))[0]["id"] == log_id

    short = client.post("/production", json={"pcb_id": board_a["pcb_id"], "quantity_produced": 100})
    assert short.status_code == 400
    body = short.json()
    assert body["code"] == "insufficient_stock"
    r1 = next(s for s in body["meta"]["insufficient_stock"] if s["part_number"] == "R1")
    assert r1["shortage"] == 930

    stock = _ok(client.get(f"/components/{board_a['r1_id']}"))["current_stock"]
    assert stock == 70


def test_production_validation(client, board_a):
    bad = client.post("/production", json={
        "pcb_id": board_a["pcb_id"], "quantity_produced": 3, "quantity_ok": 1, "quantity_scrap": 1,
    })
    assert bad.status_code == 422
    assert client.post("/production", json={"pcb_id": 999, "quantity_produced": 1}).status_code == 404


def test_import_upload(client):
    csv_text = (
        "=== TAB: Components ===\n"
        "Component Name,Part Number,Current Stock,Monthly Required\n"
        "Resistor 10k,R1,100,0\n"
        "=== TAB: BOM ===\n"
        "PCB Name,Component,Usage\n"
        "BOARD-A,R1,10\n"
    )
    files = {"file": ("stock.csv", csv_text.encode("utf-8"), "text/csv")}

    preview = _ok(client.post("/import/preview", files=files))
    assert preview["total_sheets"] == 2
    assert preview["sheets"][0]["column_mapping"]["part_number"] == "Part Number"

    analysis = _ok(client.post("/import/analyze", files=files))
    assert [s["detected_type"] for s in analysis["suggestions"]] == ["components", "bom"]

    comp = _ok(client.post("/import/excel", files=files, data={"sheet_names": "Components", "import_type": "components"}))
    assert comp["components_added"] == 1
    bom = _ok(client.post("/import/excel", files=files, data={"sheet_names": "BOM", "import_type": "bom"}))
    assert (bom["pcbs_added"], bom["bom_mappings_added"]) == (1, 1)

    bad = client.post("/import/excel", files={"file": ("x.pdf", b"%PDF", "application/pdf")})
    assert bad.status_code == 422


def test_analytics_endpoints(client, board_a):
    _ok(client.post("/production", json={"pcb_id": board_a["pcb_id"], "quantity_produced": 3}), 201)

    alerts = _ok(client.get("/analytics/procurement-alerts"))
    assert len(alerts) == 1
    _ok(client.put(f"/analytics/procurement-alerts/{alerts[0]['id']}/resolve"))
    assert _ok(client.get("/analytics/procurement-alerts")) == []
    assert client.put(f"/analytics/procurement-alerts/{alerts[0]['id']}/resolve").status_code == 409
    assert client.put("/analytics/procurement-alerts/999/resolve").status_code == 404

    low = _ok(client.get("/analytics/low-stock"))
    assert [r["part_number"] for r in low] == ["C1"]
    assert _ok(client.get("/analytics/top-consumed", params={"limit": 1}))[0]["part_number"] == "R1"
    assert len(_ok(client.get("/analytics/consumption-summary"))) == 2
    assert _ok(client.get("/analytics/production-stats"))[0]["total_quantity_produced"] == 3

    backwards = client.get("/analytics/production-stats", params={
        "startDate": "2026-02-01T00:00:00", "endDate": "2026-01-01T00:00:00",
    })
    assert backwards.status_code == 422


def test_import_routes_run_in_the_threadpool():
    import inspect

    from pcbtrack.routers.imports import router

    for route in router.routes:
        assert not inspect.iscoroutinefunction(route.endpoint), route.path
