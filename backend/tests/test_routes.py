"""Test dashboard, compute, occupancy and export endpoints."""
import pytest

from rusunawa_analytics.api import routes
from rusunawa_analytics.clients.data_source import StaticDataSource
from rusunawa_analytics.config import ReconciliationPolicy
from rusunawa_analytics.models import UnknownWindowPolicy

NOW_PARAM = "2025-06-15T12:00:00Z"


@pytest.mark.asyncio
async def test_dashboard(client):
    resp = await client.get("/api/v1/dashboard", params={"now": NOW_PARAM})
    assert resp.status_code == 200
    data = resp.json()

    assert data["overall"]["occupancy_rate"] == 87.5
    assert data["monthly"]["monthly_revenue"] == 1500000
    assert data["monthly"]["is_calculated_from_invoices"] is True
    assert data["occupancy"]["over_capacity_rooms"] == 1
    assert data["errors"]["payments_error"] is None
    assert {f["kind"] for f in data["anomalies"]["flags"]} == {"over_capacity", "revenue_mismatch"}


@pytest.mark.asyncio
async def test_dashboard_partial_failure(client, payloads, use_source):
    use_source(StaticDataSource(**{**payloads, "rooms": RuntimeError("rooms down")}))
    resp = await client.get("/api/v1/dashboard", params={"now": NOW_PARAM})
    assert resp.status_code == 200
    data = resp.json()
    assert data["errors"]["rooms_error"] == "rooms down"
    assert data["overall"]["total_rooms"] == 0
    assert data["overall"]["total_tenants"] == 7


@pytest.mark.asyncio
async def test_compute_report(client, payloads):
    resp = await client.post("/api/v1/reports/compute", json={**payloads, "now": NOW_PARAM})
    assert resp.status_code == 200
    data = resp.json()
    assert data["generated_at"].startswith("2025-06-15T12:00:00")
    assert data["overall"]["total_revenue"] == 2000000
    assert data["revenue_by_method"][0]["payment_method"] == "transfer"


@pytest.mark.asyncio
async def test_compute_report_empty_body(client):
    resp = await client.post("/api/v1/reports/compute", json={"now": NOW_PARAM})
    assert resp.status_code == 200
    data = resp.json()
    assert data["overall"]["total_rooms"] == 0
    assert data["monthly"]["monthly_revenue"] == 0


ROOM = {
    "roomId": 7,
    "name": "C301",
    "capacity": 4,
    "occupants": [
        {"tenantId": i, "status": "approved", "checkIn": "2025-06-01", "checkOut": "2025-12-31"}
        for i in range(1, 6)
    ],
}


@pytest.mark.asyncio
async def test_room_occupancy(client):
    resp = await client.post("/api/v1/rooms/occupancy", json={"room": ROOM, "now": NOW_PARAM})
    assert resp.status_code == 200
    data = resp.json()

    assert data["state"]["occupant_count"] == 5
    assert data["state"]["status"] == "over_capacity"
    assert data["state"]["anomaly"] == "Over-capacity: 5 > 4"
    assert data["periods"]["current"]["count"] == 5
    assert data["periods"]["current"]["percentage"] == 125
    assert data["periods"]["future"]["count"] == 0
    assert "window" not in data


@pytest.mark.asyncio
async def test_room_occupancy_with_window(client):
    resp = await client.post(
        "/api/v1/rooms/occupancy",
        json={"room": ROOM, "now": NOW_PARAM, "window": "this_year"},
    )
    assert resp.status_code == 200
    window = resp.json()["window"]
    assert window["name"] == "this_year"
    assert len(window["occupants"]) == 5


@pytest.mark.asyncio
async def test_room_occupancy_unknown_window_falls_back(client):
    resp = await client.post(
        "/api/v1/rooms/occupancy",
        json={"room": ROOM, "now": NOW_PARAM, "window": "someday"},
    )
    assert resp.status_code == 200
    assert resp.json()["window"]["name"] == "current"


@pytest.mark.asyncio
async def test_room_occupancy_unknown_window_error_policy(client, monkeypatch):
    monkeypatch.setattr(routes, "policy", ReconciliationPolicy(unknown_window=UnknownWindowPolicy.ERROR))
    resp = await client.post(
        "/api/v1/rooms/occupancy",
        json={"room": ROOM, "now": NOW_PARAM, "window": "someday"},
    )
    assert resp.status_code == 400
    assert "someday" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_export_csv(client):
    resp = await client.get("/api/v1/dashboard/export", params={"format": "csv", "now": NOW_PARAM})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert 'filename="analytics_report_2025-06-15.csv"' in resp.headers["content-disposition"]
    assert resp.text.startswith("Analytics Report")


@pytest.mark.asyncio
async def test_export_html(client):
    resp = await client.get("/api/v1/dashboard/export", params={"format": "html", "now": NOW_PARAM})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "Rp 1.500.000" in resp.text


@pytest.mark.asyncio
async def test_export_unknown_format(client):
    resp = await client.get("/api/v1/dashboard/export", params={"format": "xlsx"})
    assert resp.status_code == 400
