"""
Temporal window logic for bookings and room occupants.

Windows:
- current: check-in <= now <= check-out (inclusive on both ends)
- this_year: check-in inside now's calendar year
- last_6_months: check-in between start of day 6 calendar months ago and now
- future: check-in after now
- all: every approved record

Only approved records with two parsable boundaries belong to any window.
All functions take `now` explicitly; nothing here reads the clock.
"""
import math
from calendar import monthrange
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from rusunawa_analytics.errors import UnknownWindowError
from rusunawa_analytics.models.metrics import (
    PeriodStats,
    RoomStatus,
    TemporalWindow,
    UnknownWindowPolicy,
)
from rusunawa_analytics.models.unified import Room

APPROVED = "approved"

WindowLike = Union[TemporalWindow, str]


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_window(
    window: WindowLike,
    unknown_window: UnknownWindowPolicy = UnknownWindowPolicy.CURRENT,
) -> TemporalWindow:
    """Resolve a window name, applying the unknown-window policy."""
    if isinstance(window, TemporalWindow):
        return window
    try:
        return TemporalWindow(str(window).strip().lower())
    except ValueError:
        if unknown_window == UnknownWindowPolicy.ERROR:
            raise UnknownWindowError(window)
        return TemporalWindow.CURRENT


def subtract_months(dt: datetime, months: int) -> datetime:
    """Step back whole calendar months, clamping the day to the month's end."""
    total = dt.year * 12 + (dt.month - 1) - months
    year, month_index = divmod(total, 12)
    month = month_index + 1
    day = min(dt.day, monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """[first instant, first instant of next month) in UTC."""
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    _, last_day = monthrange(year, month)
    end = start + timedelta(days=last_day)
    return start, end


def previous_month(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def is_in_month(dt: Optional[datetime], year: int, month: int) -> bool:
    if dt is None:
        return False
    dt = ensure_utc(dt)
    return dt.year == year and dt.month == month


def is_same_day(dt: Optional[datetime], reference: datetime) -> bool:
    if dt is None:
        return False
    return ensure_utc(dt).date() == ensure_utc(reference).date()


def classify(
    record: Any,
    window: WindowLike,
    now: datetime,
    unknown_window: UnknownWindowPolicy = UnknownWindowPolicy.CURRENT,
) -> bool:
    """
    Decide whether a booking/occupant record belongs to a temporal window.

    `record` needs `status`, `check_in` and `check_out`; boundaries must
    already be normalized (datetime or None).
    """
    resolved = parse_window(window, unknown_window)

    if getattr(record, "status", None) != APPROVED:
        return False

    check_in = getattr(record, "check_in", None)
    check_out = getattr(record, "check_out", None)
    if check_in is None or check_out is None:
        return False

    now = ensure_utc(now)
    check_in = ensure_utc(check_in)
    check_out = ensure_utc(check_out)

    if resolved == TemporalWindow.CURRENT:
        return check_in <= now <= check_out

    if resolved == TemporalWindow.THIS_YEAR:
        return check_in.year == now.year

    if resolved == TemporalWindow.LAST_6_MONTHS:
        six_months_ago = start_of_day(subtract_months(now, 6))
        return six_months_ago <= check_in <= now

    if resolved == TemporalWindow.FUTURE:
        return check_in > now

    # TemporalWindow.ALL
    return True


def filter_occupants(
    records: Iterable[Any],
    window: WindowLike,
    now: datetime,
    unknown_window: UnknownWindowPolicy = UnknownWindowPolicy.CURRENT,
) -> List[Any]:
    """Records belonging to the window, in input order."""
    resolved = parse_window(window, unknown_window)
    return [r for r in records if classify(r, resolved, now)]


def classify_occupancy(count: int, capacity: int) -> RoomStatus:
    """Room status for `count` occupants of a room with `capacity` beds."""
    if count <= 0:
        return RoomStatus.AVAILABLE
    if count > capacity:
        return RoomStatus.OVER_CAPACITY
    if count == capacity:
        return RoomStatus.FULL
    return RoomStatus.PARTIAL


def over_capacity_message(count: int, capacity: int) -> str:
    return f"Over-capacity: {count} > {capacity}"


def compute_period_stats(
    room: Room,
    now: datetime,
    default_capacity: int = 4,
) -> Dict[TemporalWindow, PeriodStats]:
    """
    Occupancy of a single room for each temporal window.

    For the current window every matching booking occupies one bed, so
    concurrent bookings are counted. For the other windows the count is the
    number of distinct tenants who stayed (or will stay) in the room.
    """
    capacity = room.capacity or default_capacity
    stats: Dict[TemporalWindow, PeriodStats] = {}

    for period in TemporalWindow:
        matching = filter_occupants(room.occupants, period, now)
        if period == TemporalWindow.CURRENT:
            count = len(matching)
        else:
            count = len({o.tenant_id for o in matching})

        is_over_capacity = count > capacity
        stats[period] = PeriodStats(
            period=period,
            count=count,
            percentage=math.floor(count / capacity * 100 + 0.5),
            status=classify_occupancy(count, capacity),
            is_over_capacity=is_over_capacity,
            anomaly=over_capacity_message(count, capacity) if is_over_capacity else None,
        )

    return stats
