from fastapi.testclient import TestClient
from api.main import app

client = TestClient(app)

def test_health():
    assert client.get("/health").json() == {"ok": True}

def test_catalog_listing():
    body = client.get("/catalog").json()
    assert body["count"] == 24
    assert body["categories"][0] == "I. Basic Profitability & Cost Structure"
    assert body["items"][0]["variables"] == ["revenue", "salesPrice", "salesVolume"]

def test_formula_detail_and_unknown_id():
    body = client.get("/formulas/8").json()
    assert body["variables"][0]["is_percentage"] is True
    assert client.get("/formulas/999").status_code == 404

def test_solve_single_blank():
    r = client.post("/solve", json={"formula_id": 8, "values": {"operatingProfitMargin": "", "operatingProfit": 50, "revenue": "200"}})
    body = r.json()
    assert r.status_code == 200 and body["ok"]
    assert body["answer"]["symbol"] == "operatingProfitMargin"
    assert body["display"] == "Operating Profit Margin (%): 25.00%"
    assert "branch_selected" in [s["kind"] for s in body["trace"]]

def test_solve_errors_are_reported_in_band():
    r = client.post("/solve", json={"formula_id": 1, "values": {"salesVolume": 5}})
    assert r.status_code == 200
    assert r.json()["error_kind"] == "insufficient_inputs"

    r = client.post("/solve", json={"formula_id": 14, "values": {"operatingLeverage": None, "contribution": 50, "operatingProfit": 0}})
    body = r.json()
    assert body["ok"] is False and body["error_kind"] == "non_finite_result"

    r = client.post("/solve", json={"formula_id": 22, "values": {}})
    assert r.json()["error_kind"] == "wrong_formula_kind"

def test_solve_all_filled_has_no_answer():
    body = client.post("/solve", json={"formula_id": 1, "values": {"revenue": 50, "salesPrice": 10, "salesVolume": 5}}).json()
    assert body["ok"] and body["answer"] is None

def test_solve_unknown_formula_is_404():
    assert client.post("/solve", json={"formula_id": 999, "values": {}}).status_code == 404

def test_transfer_pricing_endpoint():
    body = client.post("/transfer-pricing", json={
        "scenario": "Scenario 2: HAS available capacity",
        "values": {"supplierVariableCost": 40, "buyerExternalPrice": 60},
    }).json()
    assert body["ok"] and body["recommendation"]["midpoint"] == 50
    assert body["required_fields"] == ["supplierVariableCost", "buyerExternalPrice"]

    body = client.post("/transfer-pricing", json={"scenario": "Scenario 1: NO available capacity", "values": {}}).json()
    assert body["recommendation"] is None and body["display"] == []

def test_transfer_pricing_rejects_unknown_scenario():
    r = client.post("/transfer-pricing", json={"scenario": "Scenario 3", "values": {}})
    assert r.status_code == 422

def test_boolean_field_is_not_a_number():
    body = client.post("/solve", json={"formula_id": 1, "values": {"revenue": None, "salesPrice": True, "salesVolume": 5}}).json()
    assert body["ok"] is False and body["error_kind"] == "invalid_value"

    body = client.post("/transfer-pricing", json={"scenario": "Scenario 1: NO available capacity", "values": {"marketPrice": True}}).json()
    assert body["ok"] is False and body["error_kind"] == "invalid_value"
