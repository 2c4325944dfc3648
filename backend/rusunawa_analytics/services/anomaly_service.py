"""
Anomaly Service - data-integrity signals for the dashboard.

Nothing here raises. Every condition becomes a ReconciliationFlag:
- over_capacity: more occupants than beds
- duplicate_booking: one tenant with more than one booking in the same window
- count_mismatch: server totalCount disagrees with the items delivered
- revenue_mismatch: payments and invoices disagree for the month
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from rusunawa_analytics.models.metrics import (
    AnomalyReport,
    DuplicateBooking,
    FlagKind,
    MonthlyRevenue,
    ReconciliationFlag,
    ReportErrors,
    RoomOccupancyState,
    RoomStatus,
    TemporalWindow,
)
from rusunawa_analytics.models.unified import Booking, NormalizedCollections, Room
from rusunawa_analytics.services.temporal import WindowLike, filter_occupants

logger = logging.getLogger(__name__)

COLLECTIONS = ("tenants", "bookings", "rooms", "payments", "invoices")


def detect_duplicate_bookings(
    occupants: Iterable[Any],
    now: datetime,
    window: WindowLike = TemporalWindow.CURRENT,
    room_id: Optional[str] = None,
) -> List[DuplicateBooking]:
    """
    Tenants holding more than one booking inside the window.

    Several distinct tenants in one room is normal multi-bed occupancy;
    only a repeated tenant id is flagged.
    """
    counts: Dict[str, int] = {}
    for occupant in filter_occupants(occupants, window, now):
        if occupant.tenant_id is None:
            continue
        counts[occupant.tenant_id] = counts.get(occupant.tenant_id, 0) + 1

    return [
        DuplicateBooking(tenant_id=tenant_id, count=count, room_id=room_id)
        for tenant_id, count in counts.items()
        if count > 1
    ]


class AnomalyService:
    """Collects integrity flags from the reconciled collections."""

    @staticmethod
    def over_capacity_rooms(states: Iterable[RoomOccupancyState]) -> List[RoomOccupancyState]:
        return [s for s in states if s.status == RoomStatus.OVER_CAPACITY]

    def room_duplicates(
        self,
        rooms: Sequence[Room],
        bookings: Sequence[Booking],
        now: datetime,
        window: WindowLike = TemporalWindow.CURRENT,
    ) -> List[DuplicateBooking]:
        """
        Duplicate concurrent bookings per room. A room's embedded occupants
        are used when present, otherwise the bookings that reference it.
        """
        bookings_by_room: Dict[str, List[Booking]] = {}
        for booking in bookings:
            if booking.room_id is not None:
                bookings_by_room.setdefault(booking.room_id, []).append(booking)

        duplicates: List[DuplicateBooking] = []
        for room in rooms:
            records = room.occupants or bookings_by_room.get(room.room_id, [])
            duplicates.extend(detect_duplicate_bookings(records, now, window, room_id=room.room_id))
        return duplicates

    @staticmethod
    def count_mismatches(
        collections: NormalizedCollections, errors: Optional[ReportErrors] = None
    ) -> List[ReconciliationFlag]:
        """Envelope totals against delivered items; failed sources are skipped."""
        flags = []
        for name in COLLECTIONS:
            if errors is not None and getattr(errors, f"{name}_error") is not None:
                continue
            total = getattr(collections, f"{name}_total_count")
            delivered = len(getattr(collections, name))
            if total is not None and total != delivered:
                flags.append(ReconciliationFlag(
                    kind=FlagKind.COUNT_MISMATCH,
                    subject=name,
                    message=f"Server reports {total} {name} but {delivered} were delivered",
                ))
        return flags

    @staticmethod
    def revenue_mismatch(monthly: MonthlyRevenue) -> Optional[ReconciliationFlag]:
        if monthly.payments_revenue == monthly.invoice_revenue:
            return None
        source = "invoices" if monthly.is_calculated_from_invoices else "payments"
        return ReconciliationFlag(
            kind=FlagKind.REVENUE_MISMATCH,
            subject=f"{monthly.year}-{monthly.month:02d}",
            message=(
                f"Payments total {monthly.payments_revenue:,.0f} vs invoices total "
                f"{monthly.invoice_revenue:,.0f}; reporting {source}"
            ),
        )

    def scan(
        self,
        collections: NormalizedCollections,
        room_states: Sequence[RoomOccupancyState],
        monthly: MonthlyRevenue,
        now: datetime,
        errors: Optional[ReportErrors] = None,
    ) -> AnomalyReport:
        """
        Collect every flag for the report. A missing payments or invoices
        source is already in `errors`, so it is not also a revenue mismatch.
        """
        errors = errors if errors is not None else ReportErrors()
        over_capacity = self.over_capacity_rooms(room_states)
        duplicates = self.room_duplicates(collections.rooms, collections.bookings, now)

        flags: List[ReconciliationFlag] = []
        for state in over_capacity:
            flags.append(ReconciliationFlag(
                kind=FlagKind.OVER_CAPACITY,
                subject=f"room:{state.room_id}",
                message=state.anomaly or f"Over-capacity: {state.occupant_count} > {state.capacity}",
            ))
        for dup in duplicates:
            flags.append(ReconciliationFlag(
                kind=FlagKind.DUPLICATE_BOOKING,
                subject=f"room:{dup.room_id}",
                message=f"Tenant {dup.tenant_id} ({dup.count} bookings)",
            ))
        flags.extend(self.count_mismatches(collections, errors))

        if errors.payments_error is None and errors.invoices_error is None:
            mismatch = self.revenue_mismatch(monthly)
            if mismatch is not None:
                flags.append(mismatch)

        if flags:
            logger.warning(
                f"[ANOMALY] {len(over_capacity)} over-capacity rooms, "
                f"{len(duplicates)} duplicate bookings, {len(flags)} flags total"
            )

        return AnomalyReport(
            over_capacity_rooms=over_capacity,
            duplicate_bookings=duplicates,
            flags=flags,
        )
