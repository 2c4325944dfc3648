"""
Distribution helpers - categorical histograms for the dashboard charts.

Every chart is group_by() over a different field. Missing or empty keys
land in the "Unknown" bucket. Buckets keep first-seen order, so identical
input gives identical output.
"""
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar

from rusunawa_analytics.models.metrics import Distributions
from rusunawa_analytics.models.unified import Booking, Payment, Room, Tenant

T = TypeVar("T")

UNKNOWN = "Unknown"

DISTANCE_BUCKETS = (
    ("Sangat Dekat (< 5km)", 5),
    ("Dekat (5-15km)", 15),
    ("Sedang (15-30km)", 30),
    ("Jauh (> 30km)", None),
)

GENDER_LABELS = {
    "l": "Laki-laki",
    "male": "Laki-laki",
    "laki_laki": "Laki-laki",
    "laki-laki": "Laki-laki",
    "p": "Perempuan",
    "female": "Perempuan",
    "perempuan": "Perempuan",
}

DOCUMENT_STATUS_SEED = ("pending", "approved", "rejected")


def _bucket(key: Any) -> str:
    if key is None:
        return UNKNOWN
    text = str(key).strip()
    return text or UNKNOWN


def group_by(
    collection: Iterable[T],
    key_fn: Callable[[T], Any],
    seed: Optional[Dict[str, int]] = None,
) -> Dict[str, int]:
    """Count items per key."""
    counts: Dict[str, int] = dict(seed or {})
    for item in collection:
        key = _bucket(key_fn(item))
        counts[key] = counts.get(key, 0) + 1
    return counts


def sum_by(
    collection: Iterable[T],
    key_fn: Callable[[T], Any],
    value_fn: Callable[[T], float],
) -> Dict[str, float]:
    """Sum a value per key."""
    totals: Dict[str, float] = {}
    for item in collection:
        key = _bucket(key_fn(item))
        totals[key] = totals.get(key, 0) + (value_fn(item) or 0)
    return totals


def distance_bucket(distance: Optional[float]) -> str:
    if distance is None:
        return UNKNOWN
    for label, upper in DISTANCE_BUCKETS:
        if upper is None or distance < upper:
            return label
    return UNKNOWN


def distance_ranges(tenants: Iterable[Tenant]) -> Dict[str, int]:
    """Tenants per distance-to-campus range; all four ranges always present."""
    seed = {label: 0 for label, _ in DISTANCE_BUCKETS}
    return group_by(tenants, lambda t: distance_bucket(t.distance_to_campus), seed=seed)


def gender_label(value: Optional[str]) -> str:
    if value is None:
        return UNKNOWN
    return GENDER_LABELS.get(value.strip().lower(), UNKNOWN)


def build_distributions(
    tenants: Iterable[Tenant],
    bookings: Iterable[Booking],
    rooms: Iterable[Room],
    payments: Iterable[Payment],
) -> Distributions:
    tenants = list(tenants)
    bookings = list(bookings)
    rooms = list(rooms)
    payments = list(payments)

    documents = [doc for t in tenants for doc in t.documents]

    return Distributions(
        payment_method=group_by(payments, lambda p: p.payment_method),
        payment_channel=group_by(payments, lambda p: p.payment_channel),
        payment_status=group_by(payments, lambda p: p.status),
        tenant_type=group_by(tenants, lambda t: t.tenant_type),
        gender=group_by(tenants, lambda t: gender_label(t.gender)),
        distance=distance_ranges(tenants),
        booking_status=group_by(bookings, lambda b: b.status),
        room_classification=group_by(rooms, lambda r: r.classification),
        rental_type=group_by(rooms, lambda r: r.rental_type),
        document_status=group_by(
            documents,
            lambda d: d.status,
            seed={status: 0 for status in DOCUMENT_STATUS_SEED},
        ),
    )
