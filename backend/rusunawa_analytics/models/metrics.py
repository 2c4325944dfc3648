"""
Pydantic models for the derived metrics the engine produces.
Every section has zeroed defaults so a report stays complete when
an upstream source fails.
"""
from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime
from enum import Enum


class TemporalWindow(str, Enum):
    """
    Temporal windows used to bucket bookings.
    - CURRENT: check-in <= now <= check-out
    - THIS_YEAR: check-in in the current calendar year
    - LAST_6_MONTHS: check-in within the last 6 calendar months
    - FUTURE: check-in after now
    - ALL: every approved booking
    """
    CURRENT = "current"
    THIS_YEAR = "this_year"
    LAST_6_MONTHS = "last_6_months"
    FUTURE = "future"
    ALL = "all"


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    PARTIAL = "partial"
    FULL = "full"
    OVER_CAPACITY = "over_capacity"


class OccupancySource(str, Enum):
    """Which fallback strategy produced a room's occupant count."""
    OCCUPANTS = "occupants"              # room.occupants
    ROOM_ASSIGNMENT = "room_assignment"  # tenant.currentRoomAssignment
    TENANT_ROOM = "tenant_room"          # tenant.roomId / tenant.current_room
    NONE = "none"


class RevenuePolicy(str, Enum):
    HIGHER_WINS = "higher_wins"
    PAYMENTS_ONLY = "payments_only"
    INVOICES_ONLY = "invoices_only"


class UnknownWindowPolicy(str, Enum):
    CURRENT = "current"  # fall back to the current-window rule
    ERROR = "error"      # raise UnknownWindowError


class FlagKind(str, Enum):
    OVER_CAPACITY = "over_capacity"
    DUPLICATE_BOOKING = "duplicate_booking"
    COUNT_MISMATCH = "count_mismatch"
    REVENUE_MISMATCH = "revenue_mismatch"


class RoomOccupancyState(BaseModel):
    """Occupancy of one room for a single aggregation run."""
    room_id: Optional[str] = None
    name: Optional[str] = None
    capacity: int
    occupant_count: int = 0
    status: RoomStatus = RoomStatus.AVAILABLE
    anomaly: Optional[str] = None
    source: OccupancySource = OccupancySource.NONE


class PeriodStats(BaseModel):
    """Room occupancy inside one temporal window."""
    period: TemporalWindow
    count: int = 0
    percentage: int = 0
    status: RoomStatus = RoomStatus.AVAILABLE
    is_over_capacity: bool = False
    anomaly: Optional[str] = None


class OccupancySummary(BaseModel):
    """System-wide occupancy built from the per-room states."""
    total_rooms: int = 0
    available_rooms: int = 0
    occupied_rooms: int = 0      # partial + full + over capacity
    partial_rooms: int = 0
    full_rooms: int = 0
    over_capacity_rooms: int = 0
    total_occupants: int = 0
    total_capacity: int = 0
    occupancy_rate: float = 0.0  # Percentage 0-100+
    rooms: List[RoomOccupancyState] = []


class MonthlyRevenue(BaseModel):
    """Reconciled revenue for one calendar month."""
    year: int
    month: int
    monthly_revenue: float = 0
    monthly_payments: int = 0
    monthly_bookings: int = 0
    paid_invoices: int = 0
    unpaid_invoices: int = 0
    payments_revenue: float = 0  # figure from payments
    invoice_revenue: float = 0   # figure from paid invoices
    is_calculated_from_invoices: bool = False


class MonthlyTrendPoint(BaseModel):
    year: int
    month: int
    label: str  # "2025-05"
    revenue: float = 0
    payments: int = 0
    bookings: int = 0
    growth: float = 0.0  # vs the previous point, percent
    is_calculated_from_invoices: bool = False


class DailyMetrics(BaseModel):
    date: str
    daily_revenue: float = 0
    daily_payments: int = 0
    daily_bookings: int = 0


class TrendMetrics(BaseModel):
    monthly_growth: float = 0.0
    bookings_growth: float = 0.0
    daily_average: float = 0.0
    last_month_revenue: float = 0


class RevenueByMethod(BaseModel):
    payment_method: str
    amount: float = 0
    count: int = 0


class OverallMetrics(BaseModel):
    total_tenants: int = 0
    total_rooms: int = 0
    available_rooms: int = 0
    occupied_rooms: int = 0
    total_occupants: int = 0
    total_capacity: int = 0
    occupancy_rate: float = 0.0
    total_bookings: int = 0
    active_bookings: int = 0      # approved or confirmed
    completed_bookings: int = 0   # completed, finished or approved
    total_revenue: float = 0
    pending_payments: int = 0
    verified_payments: int = 0
    total_documents: int = 0
    approved_documents: int = 0


class Distributions(BaseModel):
    """Categorical histograms, category -> count."""
    payment_method: Dict[str, int] = {}
    payment_channel: Dict[str, int] = {}
    payment_status: Dict[str, int] = {}
    tenant_type: Dict[str, int] = {}
    gender: Dict[str, int] = {}
    distance: Dict[str, int] = {}
    booking_status: Dict[str, int] = {}
    room_classification: Dict[str, int] = {}
    rental_type: Dict[str, int] = {}
    document_status: Dict[str, int] = {}


class DuplicateBooking(BaseModel):
    tenant_id: str
    count: int
    room_id: Optional[str] = None


class ReconciliationFlag(BaseModel):
    """A data-integrity condition surfaced to the dashboard, never raised."""
    kind: FlagKind
    subject: str
    message: str


class AnomalyReport(BaseModel):
    over_capacity_rooms: List[RoomOccupancyState] = []
    duplicate_bookings: List[DuplicateBooking] = []
    flags: List[ReconciliationFlag] = []


class ReportErrors(BaseModel):
    """Which upstream fetch failed; None means the source loaded."""
    tenants_error: Optional[str] = None
    bookings_error: Optional[str] = None
    rooms_error: Optional[str] = None
    payments_error: Optional[str] = None
    invoices_error: Optional[str] = None

    def has_errors(self) -> bool:
        return any(v is not None for v in self.model_dump().values())


class AggregateReport(BaseModel):
    """The complete dashboard aggregate."""
    generated_at: datetime
    overall: OverallMetrics = OverallMetrics()
    occupancy: OccupancySummary = OccupancySummary()
    daily: DailyMetrics
    monthly: MonthlyRevenue
    trends: TrendMetrics = TrendMetrics()
    monthly_trend: List[MonthlyTrendPoint] = []
    revenue_by_method: List[RevenueByMethod] = []
    distributions: Distributions = Distributions()
    anomalies: AnomalyReport = AnomalyReport()
    errors: ReportErrors = ReportErrors()


class ChartDatum(BaseModel):
    """Chart-ready tuple derived from a distribution map."""
    name: str
    value: float
    percentage: float
