from fastapi.testclient import TestClient

from conftest import NOW, iso
from store_insights.serve import app

client = TestClient(app)


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_insights_endpoint(scenario_orders, scenario_products):
    r = client.post("/insights", json={"orders": scenario_orders, "products": scenario_products, "now": iso(NOW)})
    assert r.status_code == 200
    body = r.json()
    assert body["summary"].startswith("Revenue $200.00 • AOV $100.00")
    assert "2 products are critically low in stock." in body["warnings"]
    assert body["keyInsights"][0] == "Total revenue $200.00 across 2 orders."


def test_insights_endpoint_empty_snapshot():
    r = client.post("/insights", json={"orders": [], "products": []})
    assert r.status_code == 200
    body = r.json()
    assert body["summary"] == "Not enough data to generate insights."
    assert len(body["recommendations"]) == 1


def test_insights_endpoint_rejects_bad_shape():
    r = client.post("/insights", json={"orders": "not a list", "products": []})
    assert r.status_code == 422


def test_overview_endpoint(scenario_orders, scenario_products):
    r = client.post(
        "/overview",
        json={"orders": scenario_orders, "products": scenario_products, "now": iso(NOW), "top_n": 1},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["total_revenue"] == 200.0
    assert [p["id"] for p in body["top_products"]] == ["A"]
    assert len(body["sales_data"]) == 12


def test_automation_endpoint(scenario_products):
    rules = [{"id": 1, "name": "Low stock", "condition": "below", "value": 10, "action": "Reorder"}]
    r = client.post("/automation/evaluate", json={"rules": rules, "products": scenario_products, "now": iso(NOW)})
    assert r.status_code == 200
    body = r.json()
    assert [a["product_id"] for a in body["alerts"]] == ["A", "C"]
    assert body["stats"]["active_rules"] == 1
    assert body["stats"]["unread"] == 2


def test_automation_endpoint_invalid_rule(scenario_products):
    rules = [{"name": "Bad", "condition": "sideways", "value": 1, "action": "x"}]
    r = client.post("/automation/evaluate", json={"rules": rules, "products": scenario_products})
    assert r.status_code == 422
