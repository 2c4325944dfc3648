"""
Normalizer - maps raw Rusunawa API records onto the unified models.

The backend is not consistent about field names: the same value can arrive
as camelCase, snake_case or nested inside an object (tenantType.name), ids
arrive as numbers or strings, and timestamps arrive as ISO strings, datetime
objects or protobuf {seconds, nanos} objects. Every alias is listed in the
tables below; nothing downstream reads a raw field.

Unparsable values become None. Callers exclude None from whichever
computation needed the field.
"""
import logging
import math
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from rusunawa_analytics.models.unified import (
    Booking,
    Invoice,
    Occupant,
    Payment,
    Room,
    Tenant,
    TenantDocument,
)

logger = logging.getLogger(__name__)

# Alias tables: canonical field -> candidate paths, first non-empty wins.
TENANT_FIELDS: Dict[str, Sequence[str]] = {
    "tenant_id": ("tenantId", "tenant_id", "id"),
    "name": ("user.fullName", "user.full_name", "fullName", "full_name", "name"),
    "tenant_type": ("tenantType.name", "tenant_type.name", "tenantType", "tenant_type", "type"),
    "is_afirmasi": ("isAfirmasi", "is_afirmasi"),
    "status": ("status",),
    "computed_status": ("computed_status", "computedStatus"),
    "room_assignment_id": (
        "currentRoomAssignment.roomId",
        "currentRoomAssignment.room_id",
        "current_room_assignment.roomId",
        "current_room_assignment.room_id",
    ),
    "room_id": ("roomId", "room_id"),
    "current_room_id": (
        "current_room.roomId",
        "current_room.room_id",
        "currentRoom.roomId",
        "currentRoom.room_id",
    ),
    "documents": ("documents",),
    "distance_to_campus": ("distanceToCampus", "distance_to_campus"),
    "gender": ("gender", "user.gender"),
}

DOCUMENT_FIELDS: Dict[str, Sequence[str]] = {
    "document_id": ("documentId", "document_id", "id"),
    "document_type": ("documentType.name", "document_type.name", "documentType", "document_type", "type"),
    "status": ("status",),
}

ROOM_FIELDS: Dict[str, Sequence[str]] = {
    "room_id": ("roomId", "room_id", "id"),
    "name": ("name", "roomName", "room_name"),
    "capacity": ("capacity", "maxCapacity", "max_capacity"),
    "classification": ("classification.name", "classification", "classificationName", "classification_name"),
    "rental_type": ("rentalType.name", "rental_type.name", "rentalType", "rental_type"),
    "occupants": ("occupants",),
}

OCCUPANT_FIELDS: Dict[str, Sequence[str]] = {
    "tenant_id": ("tenantId", "tenant_id"),
    "tenant_name": ("tenantName", "tenant_name", "name"),
    "booking_id": ("bookingId", "booking_id", "id"),
    "status": ("status",),
    "check_in": ("checkIn", "check_in", "startDate", "start_date"),
    "check_out": ("checkOut", "check_out", "endDate", "end_date"),
}

BOOKING_FIELDS: Dict[str, Sequence[str]] = {
    "booking_id": ("bookingId", "booking_id", "id"),
    "tenant_id": ("tenantId", "tenant_id", "tenant.tenantId", "tenant.id"),
    "room_id": ("roomId", "room_id", "room.roomId", "room.id"),
    "status": ("status",),
    "check_in": ("checkIn", "check_in", "startDate", "start_date"),
    "check_out": ("checkOut", "check_out", "endDate", "end_date"),
    "payment_status": ("paymentStatus", "payment_status"),
    "created_at": ("createdAt", "created_at"),
}

PAYMENT_FIELDS: Dict[str, Sequence[str]] = {
    "payment_id": ("paymentId", "payment_id", "id"),
    "amount": ("amount", "totalAmount", "total_amount"),
    "status": ("status",),
    "payment_method": ("paymentMethod", "payment_method", "method"),
    "payment_channel": ("paymentChannel", "payment_channel", "channel"),
    "paid_at": ("paidAt", "paid_at"),
    "created_at": ("createdAt", "created_at"),
}

INVOICE_FIELDS: Dict[str, Sequence[str]] = {
    "invoice_id": ("invoiceId", "invoice_id", "id"),
    "amount": ("amount", "totalAmount", "total_amount"),
    "status": ("status",),
    "created_at": ("createdAt", "created_at"),
    "paid_at": ("paidAt", "paid_at"),
}

TOTAL_COUNT_KEYS = ("totalCount", "total_count", "total")

_EMPTY = (None, "")


# =========================================================================
# Field access
# =========================================================================

def _get_path(raw: Dict[str, Any], path: str) -> Any:
    value: Any = raw
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def pick(raw: Dict[str, Any], paths: Sequence[str]) -> Any:
    """Return the first non-empty value among the alias paths."""
    for path in paths:
        value = _get_path(raw, path)
        if value not in _EMPTY and not isinstance(value, dict):
            return value
    return None


def _pick_fields(raw: Dict[str, Any], table: Dict[str, Sequence[str]]) -> Dict[str, Any]:
    return {field: pick(raw, paths) for field, paths in table.items()}


# =========================================================================
# Scalar parsing
# =========================================================================

def parse_id(value: Any) -> Optional[str]:
    """Canonicalise an id so that 10, 10.0 and "10" compare equal."""
    if value in _EMPTY or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip() or None


def parse_text(value: Any) -> Optional[str]:
    if value in _EMPTY:
        return None
    text = str(value).strip()
    return text or None


def parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "y")
    return bool(value)


def parse_amount(value: Any) -> Optional[float]:
    """Parse a monetary or numeric value; None when unparsable or not finite."""
    if value in _EMPTY or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            number = float(str(value).strip().replace(",", ""))
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        logger.debug(f"[NORMALIZER] Non-finite number: {value!r}")
        return None
    return number


def pick_amount(raw: Dict[str, Any], paths: Sequence[str]) -> Optional[float]:
    """First non-zero amount among the aliases, so amount=0 defers to totalAmount."""
    fallback = None
    for path in paths:
        number = parse_amount(_get_path(raw, path))
        if number:
            return number
        if number is not None and fallback is None:
            fallback = number
    return fallback


def parse_capacity(value: Any) -> Optional[int]:
    """Room capacity as a positive int; None when missing or invalid."""
    number = parse_amount(value)
    if number is None or number < 1:
        return None
    return int(number)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse any timestamp shape the backend emits into an aware UTC datetime.

    Accepts datetime/date objects, ISO-8601 strings (with "Z" or an offset,
    or date-only), protobuf-style {"seconds": s, "nanos": n} objects and
    epoch milliseconds. Returns None instead of raising.
    """
    if value in _EMPTY or isinstance(value, bool):
        return None
    try:
        if isinstance(value, datetime):
            return _as_utc(value)
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        if isinstance(value, dict):
            seconds = value.get("seconds")
            if seconds in _EMPTY:
                return None
            nanos = int(value.get("nanos") or 0)
            return datetime.fromtimestamp(int(seconds) + nanos / 1e9, tz=timezone.utc)
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        if isinstance(value, str):
            text = value.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return _as_utc(datetime.fromisoformat(text))
    except (ValueError, TypeError, OverflowError, OSError):
        logger.debug(f"[NORMALIZER] Unparsable timestamp: {value!r}")
        return None
    return None


# =========================================================================
# Entities
# =========================================================================

def normalize_document(raw: Dict[str, Any]) -> TenantDocument:
    f = _pick_fields(raw, DOCUMENT_FIELDS)
    return TenantDocument(
        document_id=parse_id(f["document_id"]),
        document_type=parse_text(f["document_type"]),
        status=parse_text(f["status"]),
    )


def normalize_tenant(raw: Dict[str, Any]) -> Tenant:
    f = _pick_fields(raw, TENANT_FIELDS)
    return Tenant(
        tenant_id=parse_id(f["tenant_id"]),
        name=parse_text(f["name"]),
        tenant_type=parse_text(f["tenant_type"]),
        is_afirmasi=parse_bool(f["is_afirmasi"]),
        status=parse_text(f["status"]),
        computed_status=parse_text(f["computed_status"]),
        room_assignment_id=parse_id(f["room_assignment_id"]),
        room_id=parse_id(f["room_id"]),
        current_room_id=parse_id(f["current_room_id"]),
        documents=[normalize_document(d) for d in _as_list(f["documents"]) if isinstance(d, dict)],
        distance_to_campus=parse_amount(f["distance_to_campus"]),
        gender=parse_text(f["gender"]),
    )


def normalize_occupant(raw: Dict[str, Any]) -> Occupant:
    f = _pick_fields(raw, OCCUPANT_FIELDS)
    return Occupant(
        tenant_id=parse_id(f["tenant_id"]),
        tenant_name=parse_text(f["tenant_name"]),
        booking_id=parse_id(f["booking_id"]),
        status=parse_text(f["status"]),
        check_in=parse_timestamp(_pick_raw(raw, OCCUPANT_FIELDS["check_in"])),
        check_out=parse_timestamp(_pick_raw(raw, OCCUPANT_FIELDS["check_out"])),
    )


def normalize_room(raw: Dict[str, Any]) -> Room:
    f = _pick_fields(raw, ROOM_FIELDS)
    return Room(
        room_id=parse_id(f["room_id"]),
        name=parse_text(f["name"]),
        capacity=parse_capacity(f["capacity"]),
        classification=parse_text(f["classification"]),
        rental_type=parse_text(f["rental_type"]),
        occupants=[normalize_occupant(o) for o in _as_list(f["occupants"]) if isinstance(o, dict)],
    )


def normalize_booking(raw: Dict[str, Any]) -> Booking:
    f = _pick_fields(raw, BOOKING_FIELDS)
    return Booking(
        booking_id=parse_id(f["booking_id"]),
        tenant_id=parse_id(f["tenant_id"]),
        room_id=parse_id(f["room_id"]),
        status=parse_text(f["status"]),
        check_in=parse_timestamp(_pick_raw(raw, BOOKING_FIELDS["check_in"])),
        check_out=parse_timestamp(_pick_raw(raw, BOOKING_FIELDS["check_out"])),
        payment_status=parse_text(f["payment_status"]),
        created_at=parse_timestamp(_pick_raw(raw, BOOKING_FIELDS["created_at"])),
    )


def normalize_payment(raw: Dict[str, Any]) -> Payment:
    f = _pick_fields(raw, PAYMENT_FIELDS)
    return Payment(
        payment_id=parse_id(f["payment_id"]),
        amount=pick_amount(raw, PAYMENT_FIELDS["amount"]),
        status=parse_text(f["status"]),
        payment_method=parse_text(f["payment_method"]),
        payment_channel=parse_text(f["payment_channel"]),
        paid_at=parse_timestamp(_pick_raw(raw, PAYMENT_FIELDS["paid_at"])),
        created_at=parse_timestamp(_pick_raw(raw, PAYMENT_FIELDS["created_at"])),
    )


def normalize_invoice(raw: Dict[str, Any]) -> Invoice:
    f = _pick_fields(raw, INVOICE_FIELDS)
    return Invoice(
        invoice_id=parse_id(f["invoice_id"]),
        amount=pick_amount(raw, INVOICE_FIELDS["amount"]),
        status=parse_text(f["status"]),
        created_at=parse_timestamp(_pick_raw(raw, INVOICE_FIELDS["created_at"])),
        paid_at=parse_timestamp(_pick_raw(raw, INVOICE_FIELDS["paid_at"])),
    )


def _pick_raw(raw: Dict[str, Any], paths: Sequence[str]) -> Any:
    """Like pick() but keeps dict values, for protobuf timestamp objects."""
    for path in paths:
        value = _get_path(raw, path)
        if value not in _EMPTY:
            return value
    return None


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return []


def _normalize_many(items: Iterable[Any], fn, entity: str) -> List[Any]:
    records = []
    skipped = 0
    for item in items or []:
        if not isinstance(item, dict):
            skipped += 1
            continue
        records.append(fn(item))
    if skipped:
        logger.warning(f"[NORMALIZER] Skipped {skipped} non-object {entity} entries")
    return records


def normalize_tenants(items: Iterable[Any]) -> List[Tenant]:
    return _normalize_many(items, normalize_tenant, "tenant")


def normalize_rooms(items: Iterable[Any]) -> List[Room]:
    return _normalize_many(items, normalize_room, "room")


def normalize_bookings(items: Iterable[Any]) -> List[Booking]:
    return _normalize_many(items, normalize_booking, "booking")


def normalize_payments(items: Iterable[Any]) -> List[Payment]:
    return _normalize_many(items, normalize_payment, "payment")


def normalize_invoices(items: Iterable[Any]) -> List[Invoice]:
    return _normalize_many(items, normalize_invoice, "invoice")


def unwrap_collection(payload: Any, key: str) -> Tuple[List[Any], Optional[int]]:
    """
    Extract the item list and the server-asserted total from a response.

    Accepts a bare list or an envelope such as
    {"tenants": [...], "totalCount": 12}. Anything else is an empty list.
    """
    if payload is None:
        return [], None
    if isinstance(payload, (list, tuple)):
        return list(payload), None
    if not isinstance(payload, dict):
        return [], None

    items = payload.get(key)
    if items is None:
        items = payload.get("data", payload.get("items"))
    if isinstance(items, dict):
        items = items.get(key, [])

    total = None
    for total_key in TOTAL_COUNT_KEYS:
        number = parse_amount(payload.get(total_key))
        if number is not None:
            total = int(number)
            break

    return _as_list(items), total
