"""
Unified Data Models for the Rusunawa backend collections.
These models are the canonical shape every raw tenant, room, booking,
payment and invoice record is normalized into.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class TenantDocument(BaseModel):
    """A document uploaded by a tenant (KTP, KTM, ...)."""
    document_id: Optional[str] = None
    document_type: Optional[str] = None
    status: Optional[str] = None  # "pending" | "approved" | "rejected"


class Tenant(BaseModel):
    """Normalized tenant data."""
    tenant_id: Optional[str] = None
    name: Optional[str] = None
    tenant_type: Optional[str] = None  # "mahasiswa" | "non_mahasiswa"
    is_afirmasi: bool = False
    status: Optional[str] = None  # often empty upstream
    computed_status: Optional[str] = None
    room_assignment_id: Optional[str] = None  # currentRoomAssignment.roomId
    room_id: Optional[str] = None
    current_room_id: Optional[str] = None  # current_room.roomId
    documents: List[TenantDocument] = []
    distance_to_campus: Optional[float] = None  # km
    gender: Optional[str] = None


class Occupant(BaseModel):
    """A booking embedded in a room record."""
    tenant_id: Optional[str] = None
    tenant_name: Optional[str] = None
    booking_id: Optional[str] = None
    status: Optional[str] = None  # "approved" | "checked_in" | "pending" | ...
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None


class Room(BaseModel):
    """Normalized room data."""
    room_id: Optional[str] = None
    name: Optional[str] = None
    capacity: Optional[int] = None  # None when missing or invalid upstream
    classification: Optional[str] = None
    rental_type: Optional[str] = None
    occupants: List[Occupant] = []


class Booking(BaseModel):
    """Normalized booking data."""
    booking_id: Optional[str] = None
    tenant_id: Optional[str] = None
    room_id: Optional[str] = None
    status: Optional[str] = None  # "approved" | "confirmed" | "pending" | ...
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    payment_status: Optional[str] = None
    created_at: Optional[datetime] = None


class Payment(BaseModel):
    """Normalized payment data."""
    payment_id: Optional[str] = None
    amount: Optional[float] = None
    status: Optional[str] = None  # "verified" | "paid" | "completed" | "pending" | "failed"
    payment_method: Optional[str] = None
    payment_channel: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class Invoice(BaseModel):
    """Normalized invoice data."""
    invoice_id: Optional[str] = None
    amount: Optional[float] = None
    status: Optional[str] = None  # "paid" | "unpaid" | ...
    created_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None


class NormalizedCollections(BaseModel):
    """All five collections after normalization, with upstream totals."""
    tenants: List[Tenant] = []
    bookings: List[Booking] = []
    rooms: List[Room] = []
    payments: List[Payment] = []
    invoices: List[Invoice] = []
    tenants_total_count: Optional[int] = None
    bookings_total_count: Optional[int] = None
    rooms_total_count: Optional[int] = None
    payments_total_count: Optional[int] = None
    invoices_total_count: Optional[int] = None
