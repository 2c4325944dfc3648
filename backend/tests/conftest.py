"""
Test fixtures for the Rusunawa analytics backend.

Seed payloads mimic the raw backend responses (mixed camelCase/snake_case,
envelopes with totalCount, nested name objects) for a fixed evaluation time,
so every derived figure below is known in advance:

Rooms (capacity -> occupants):
    A101  2 -> 0  available
    A102  2 -> 3  over capacity (embedded occupants)
    B201  4 -> 4  full (tenants via currentRoomAssignment, no status)
    => 7 / 8 occupants = 87.5%

Revenue, June 2025:
    payments 1,000,000 vs paid invoices 1,500,000 -> invoices win
"""
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient, ASGITransport

from rusunawa_analytics.api.routes import get_data_source
from rusunawa_analytics.clients.data_source import StaticDataSource
from rusunawa_analytics.main import app


# ── Seed data ──────────────────────────────────────────────────────────

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def _occupant(tenant_id, name, status="approved",
              check_in="2025-06-01T00:00:00Z", check_out="2025-12-31T00:00:00Z"):
    return {
        "tenantId": tenant_id,
        "tenantName": name,
        "status": status,
        "checkIn": check_in,
        "checkOut": check_out,
    }


def _tenants():
    tenants = []
    for i in (1, 2, 3):
        tenants.append({
            "tenantId": i,
            "user": {"fullName": f"Siti {i}", "gender": "P"},
            "tenantType": {"name": "mahasiswa"},
            "status": "active",
            "roomId": 2,
            "distanceToCampus": 3.5,
            "documents": [{"documentId": i, "status": "approved"}],
        })
    for i in (4, 5, 6, 7):
        tenants.append({
            "tenant_id": str(i),
            "name": f"Budi {i}",
            "gender": "L",
            "tenant_type": "non_mahasiswa",
            "currentRoomAssignment": {"roomId": "3"},
            "distance_to_campus": "20",
            "documents": [{"document_id": 10 + i, "status": "pending"}],
        })
    return {"tenants": tenants, "totalCount": 7}


def _rooms():
    return {
        "rooms": [
            {
                "roomId": 1, "name": "A101", "capacity": 2,
                "classification": {"name": "perempuan"}, "rentalType": {"name": "bulanan"},
                "occupants": [],
            },
            {
                "roomId": 2, "name": "A102", "capacity": 2,
                "classification": {"name": "perempuan"}, "rentalType": {"name": "bulanan"},
                "occupants": [
                    _occupant(1, "Siti 1"),
                    _occupant(2, "Siti 2"),
                    _occupant(3, "Siti 3"),
                ],
            },
            {
                "room_id": "3", "name": "B201", "capacity": "4",
                "classification": "laki_laki", "rental_type": "harian",
            },
        ],
        "totalCount": 3,
    }


def _bookings():
    return [
        {
            "bookingId": 101, "tenantId": 1, "roomId": 2, "status": "approved",
            "checkIn": "2025-06-01T00:00:00Z", "checkOut": "2025-12-31T00:00:00Z",
            "createdAt": "2025-06-15T08:00:00Z",
        },
        {
            "bookingId": 102, "tenantId": 4, "roomId": 3, "status": "approved",
            "checkIn": "2025-05-25T00:00:00Z", "checkOut": "2025-11-30T00:00:00Z",
            "createdAt": "2025-05-20T10:00:00Z",
        },
        {
            "booking_id": 103, "tenant_id": 5, "room_id": 3, "status": "completed",
            "check_in": "2025-01-01", "check_out": "2025-04-30",
            "created_at": "2025-05-10T00:00:00Z",
        },
        {
            "bookingId": 104, "tenantId": 6, "roomId": 3, "status": "pending",
            "createdAt": "2025-06-02",
        },
    ]


def _payments():
    return {
        "payments": [
            {
                "paymentId": 1, "amount": "1000000", "status": "verified",
                "paymentMethod": "transfer", "paymentChannel": "BNI",
                "paidAt": "2025-06-15T09:00:00Z",
            },
            {
                "paymentId": 2, "amount": 500000, "status": "pending",
                "paymentMethod": "cash", "createdAt": "2025-06-10",
            },
            {
                "payment_id": 3, "amount": 800000, "status": "paid",
                "payment_method": "transfer", "payment_channel": "BNI",
                "paid_at": "2025-05-05T10:00:00Z",
            },
            {
                "paymentId": 4, "amount": 200000, "status": "completed",
                "paymentMethod": "cash", "paidAt": "2025-05-20T10:00:00Z",
            },
        ],
    }


def _invoices():
    return [
        {
            "invoiceId": 1, "totalAmount": 1500000, "status": "paid",
            "createdAt": "2025-06-01T00:00:00Z", "paidAt": "2025-06-03",
        },
        {"invoiceId": 2, "amount": 750000, "status": "unpaid", "createdAt": "2025-06-05"},
        {"invoice_id": 3, "amount": 900000, "status": "paid", "created_at": "2025-05-02"},
    ]


# ── Fixtures ───────────────────────────────────────────────────────────

@pytest.fixture
def now():
    return NOW


@pytest.fixture
def payloads():
    """Fresh raw payloads for all five collections."""
    return {
        "tenants": _tenants(),
        "bookings": _bookings(),
        "rooms": _rooms(),
        "payments": _payments(),
        "invoices": _invoices(),
    }


@pytest.fixture
def static_source(payloads):
    return StaticDataSource(**payloads)


@pytest.fixture
def use_source():
    """Point the dashboard endpoints at a given DataSource for one test."""
    def _use(source):
        app.dependency_overrides[get_data_source] = lambda: source
    yield _use
    app.dependency_overrides.pop(get_data_source, None)


@pytest.fixture
async def client(static_source, use_source):
    """Async test client for the FastAPI app, backed by the seed payloads."""
    use_source(static_source)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
