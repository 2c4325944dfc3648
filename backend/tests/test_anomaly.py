"""Test anomaly detection."""
from datetime import datetime, timedelta, timezone

from rusunawa_analytics.models import (
    Booking,
    FlagKind,
    MonthlyRevenue,
    NormalizedCollections,
    Occupant,
    ReportErrors,
    Room,
    RoomOccupancyState,
    RoomStatus,
)
from rusunawa_analytics.services.anomaly_service import AnomalyService, detect_duplicate_bookings

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
START = NOW - timedelta(days=10)
END = NOW + timedelta(days=10)


def current(tenant_id, status="approved"):
    return Occupant(tenant_id=tenant_id, status=status, check_in=START, check_out=END)


class TestDuplicateBookings:
    def test_same_tenant_flagged(self):
        dups = detect_duplicate_bookings([current("1"), current("1"), current("2")], NOW)
        assert len(dups) == 1
        assert dups[0].tenant_id == "1"
        assert dups[0].count == 2

    def test_distinct_tenants_not_flagged(self):
        assert detect_duplicate_bookings([current("1"), current("2"), current("3")], NOW) == []

    def test_only_window_members_count(self):
        past = Occupant(tenant_id="1", status="approved", check_in=START - timedelta(days=100),
                        check_out=START - timedelta(days=50))
        assert detect_duplicate_bookings([current("1"), past], NOW) == []
        assert len(detect_duplicate_bookings([current("1"), past], NOW, window="all")) == 1

    def test_unapproved_ignored(self):
        assert detect_duplicate_bookings([current("1"), current("1", status="pending")], NOW) == []


def test_room_duplicates_fall_back_to_bookings():
    rooms = [Room(room_id="1"), Room(room_id="2", occupants=[current("5"), current("6")])]
    bookings = [
        Booking(tenant_id="9", room_id="1", status="approved", check_in=START, check_out=END),
        Booking(tenant_id="9", room_id="1", status="approved", check_in=START, check_out=END),
        Booking(tenant_id="5", room_id="2", status="approved", check_in=START, check_out=END),
    ]
    dups = AnomalyService().room_duplicates(rooms, bookings, NOW)
    assert [(d.room_id, d.tenant_id, d.count) for d in dups] == [("1", "9", 2)]


def test_count_mismatch():
    collections = NormalizedCollections(rooms=[Room(), Room()], rooms_total_count=3, tenants_total_count=0)
    flags = AnomalyService.count_mismatches(collections)
    assert len(flags) == 1
    assert flags[0].kind == FlagKind.COUNT_MISMATCH
    assert flags[0].subject == "rooms"


def test_revenue_mismatch():
    monthly = MonthlyRevenue(year=2025, month=6, payments_revenue=1_000_000, invoice_revenue=1_500_000,
                             is_calculated_from_invoices=True)
    flag = AnomalyService.revenue_mismatch(monthly)
    assert flag.kind == FlagKind.REVENUE_MISMATCH
    assert flag.subject == "2025-06"
    assert "invoices" in flag.message

    assert AnomalyService.revenue_mismatch(MonthlyRevenue(year=2025, month=6)) is None


def test_scan_collects_flags():
    states = [
        RoomOccupancyState(room_id="1", capacity=4, occupant_count=5, status=RoomStatus.OVER_CAPACITY,
                           anomaly="Over-capacity: 5 > 4"),
        RoomOccupancyState(room_id="2", capacity=2, occupant_count=2, status=RoomStatus.FULL),
    ]
    collections = NormalizedCollections(rooms=[Room(room_id="1", occupants=[current("1"), current("1")])])
    report = AnomalyService().scan(collections, states, MonthlyRevenue(year=2025, month=6), NOW)

    assert [s.room_id for s in report.over_capacity_rooms] == ["1"]
    assert len(report.duplicate_bookings) == 1
    assert [f.kind for f in report.flags] == [FlagKind.OVER_CAPACITY, FlagKind.DUPLICATE_BOOKING]
    assert report.flags[0].message == "Over-capacity: 5 > 4"


def test_scan_clean_data():
    report = AnomalyService().scan(NormalizedCollections(), [], MonthlyRevenue(year=2025, month=6), NOW)
    assert report.flags == []
    assert report.duplicate_bookings == []


def test_count_mismatch_skips_failed_sources():
    collections = NormalizedCollections(rooms=[Room()], rooms_total_count=3)
    errors = ReportErrors(rooms_error="HTTP 503")
    assert AnomalyService.count_mismatches(collections, errors) == []


def test_scan_skips_revenue_mismatch_when_a_source_failed():
    monthly = MonthlyRevenue(year=2025, month=6, payments_revenue=0, invoice_revenue=1_500_000,
                             is_calculated_from_invoices=True)
    service = AnomalyService()

    flagged = service.scan(NormalizedCollections(), [], monthly, NOW)
    assert [f.kind for f in flagged.flags] == [FlagKind.REVENUE_MISMATCH]

    for errors in (ReportErrors(payments_error="HTTP 503"), ReportErrors(invoices_error="timeout")):
        assert service.scan(NormalizedCollections(), [], monthly, NOW, errors).flags == []
