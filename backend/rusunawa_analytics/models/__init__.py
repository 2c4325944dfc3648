# Models package - canonical records and derived metrics
from .unified import (
    TenantDocument,
    Tenant,
    Occupant,
    Room,
    Booking,
    Payment,
    Invoice,
    NormalizedCollections,
)
from .metrics import (
    TemporalWindow,
    RoomStatus,
    OccupancySource,
    RevenuePolicy,
    UnknownWindowPolicy,
    FlagKind,
    RoomOccupancyState,
    PeriodStats,
    OccupancySummary,
    MonthlyRevenue,
    MonthlyTrendPoint,
    DailyMetrics,
    TrendMetrics,
    RevenueByMethod,
    OverallMetrics,
    Distributions,
    DuplicateBooking,
    ReconciliationFlag,
    AnomalyReport,
    ReportErrors,
    AggregateReport,
    ChartDatum,
)
