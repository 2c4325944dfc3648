"""
Report Service - builds the AggregateReport.

Two stages:
1. compute_aggregate_report(): fetch the five collections concurrently.
   Each fetch, and then the normalization of each collection, fails on its
   own; a failed source is logged, recorded in report.errors and replaced
   by an empty collection.
2. build_report(): pure aggregation over normalized collections. Given the
   same collections and `now` it returns the same report.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rusunawa_analytics.clients.data_source import DataSource
from rusunawa_analytics.config import ReconciliationPolicy
from rusunawa_analytics.models.metrics import (
    AggregateReport,
    OccupancySummary,
    OverallMetrics,
    ReportErrors,
)
from rusunawa_analytics.models.unified import NormalizedCollections
from rusunawa_analytics.services import normalizer
from rusunawa_analytics.services.anomaly_service import AnomalyService
from rusunawa_analytics.services.distribution import build_distributions
from rusunawa_analytics.services.occupancy_service import OccupancyService
from rusunawa_analytics.services.revenue_service import (
    PENDING_PAYMENT_STATUSES,
    RevenueService,
    is_settled,
)
from rusunawa_analytics.services.temporal import ensure_utc, previous_month

logger = logging.getLogger(__name__)

ACTIVE_BOOKING_STATUSES = frozenset(["approved", "confirmed"])
COMPLETED_BOOKING_STATUSES = frozenset(["completed", "finished", "approved"])
APPROVED_DOCUMENT = "approved"

SOURCES = ("tenants", "bookings", "rooms", "payments", "invoices")

_NORMALIZERS = {
    "tenants": normalizer.normalize_tenants,
    "bookings": normalizer.normalize_bookings,
    "rooms": normalizer.normalize_rooms,
    "payments": normalizer.normalize_payments,
    "invoices": normalizer.normalize_invoices,
}


def normalize_collections(
    payloads: Dict[str, Any], errors: Optional[ReportErrors] = None
) -> NormalizedCollections:
    """
    Unwrap and normalize raw payloads keyed by collection name.

    Each collection is normalized on its own. One that fails is logged,
    recorded in `errors.<name>_error` and left empty; the others are kept.
    """
    errors = errors if errors is not None else ReportErrors()
    fields: Dict[str, Any] = {}
    for name in SOURCES:
        try:
            items, total = normalizer.unwrap_collection(payloads.get(name), name)
            records = _NORMALIZERS[name](items)
        except Exception as e:
            logger.warning(f"[REPORT] Failed to normalize {name}: {e}")
            if getattr(errors, f"{name}_error") is None:
                setattr(errors, f"{name}_error", str(e) or e.__class__.__name__)
            records, total = [], None
        fields[name] = records
        fields[f"{name}_total_count"] = total
    return NormalizedCollections(**fields)


class ReportService:
    """Fetches the upstream collections and aggregates them into one report."""

    def __init__(self, policy: Optional[ReconciliationPolicy] = None):
        self.policy = policy or ReconciliationPolicy()
        self.occupancy_service = OccupancyService(self.policy)
        self.revenue_service = RevenueService(self.policy)
        self.anomaly_service = AnomalyService()

    async def compute_aggregate_report(
        self, source: DataSource, now: Optional[datetime] = None
    ) -> AggregateReport:
        now = ensure_utc(now) if now else datetime.now(timezone.utc)
        errors = ReportErrors()

        async def _fetch(name: str, fetch):
            try:
                return name, await fetch()
            except Exception as e:
                logger.warning(f"[REPORT] Failed to fetch {name}: {e}")
                setattr(errors, f"{name}_error", str(e) or e.__class__.__name__)
                return name, []

        results = await asyncio.gather(
            _fetch("tenants", source.fetch_tenants),
            _fetch("bookings", source.fetch_bookings),
            _fetch("rooms", source.fetch_rooms),
            _fetch("payments", source.fetch_payments),
            _fetch("invoices", source.fetch_invoices),
        )

        collections = normalize_collections(dict(results), errors)
        return self.build_report(collections, now, errors)

    def compute_from_payloads(
        self, payloads: Dict[str, Any], now: Optional[datetime] = None
    ) -> AggregateReport:
        now = ensure_utc(now) if now else datetime.now(timezone.utc)
        errors = ReportErrors()
        return self.build_report(normalize_collections(payloads, errors), now, errors)

    def build_overall(
        self, collections: NormalizedCollections, occupancy: OccupancySummary
    ) -> OverallMetrics:
        documents = [doc for t in collections.tenants for doc in t.documents]
        bookings = collections.bookings
        payments = collections.payments

        return OverallMetrics(
            total_tenants=collections.tenants_total_count or len(collections.tenants),
            total_rooms=occupancy.total_rooms,
            available_rooms=occupancy.available_rooms,
            occupied_rooms=occupancy.occupied_rooms,
            total_occupants=occupancy.total_occupants,
            total_capacity=occupancy.total_capacity,
            occupancy_rate=occupancy.occupancy_rate,
            total_bookings=collections.bookings_total_count or len(bookings),
            active_bookings=sum(1 for b in bookings if b.status in ACTIVE_BOOKING_STATUSES),
            completed_bookings=sum(1 for b in bookings if b.status in COMPLETED_BOOKING_STATUSES),
            total_revenue=self.revenue_service.total_revenue(payments),
            pending_payments=sum(1 for p in payments if p.status in PENDING_PAYMENT_STATUSES),
            verified_payments=sum(1 for p in payments if is_settled(p)),
            total_documents=len(documents),
            approved_documents=sum(1 for d in documents if d.status == APPROVED_DOCUMENT),
        )

    def build_report(
        self,
        collections: NormalizedCollections,
        now: datetime,
        errors: Optional[ReportErrors] = None,
    ) -> AggregateReport:
        now = ensure_utc(now)
        errors = errors if errors is not None else ReportErrors()
        revenue = self.revenue_service

        occupancy = self.occupancy_service.summarize(collections.rooms, collections.tenants)

        monthly = revenue.reconcile_monthly_revenue(
            collections.payments, collections.invoices, now.year, now.month
        )
        monthly.monthly_bookings = revenue.monthly_bookings(
            collections.bookings, now.year, now.month
        )
        last_year, last_month = previous_month(now.year, now.month)
        last_monthly = revenue.reconcile_monthly_revenue(
            collections.payments, collections.invoices, last_year, last_month
        )

        report = AggregateReport(
            generated_at=now,
            overall=self.build_overall(collections, occupancy),
            occupancy=occupancy,
            daily=revenue.daily_metrics(collections.payments, collections.bookings, now),
            monthly=monthly,
            trends=revenue.trend_metrics(monthly, last_monthly, collections.bookings),
            monthly_trend=revenue.monthly_trend(
                collections.payments, collections.invoices, collections.bookings, now
            ),
            revenue_by_method=revenue.revenue_by_method(collections.payments),
            distributions=build_distributions(
                collections.tenants, collections.bookings, collections.rooms, collections.payments
            ),
            anomalies=self.anomaly_service.scan(collections, occupancy.rooms, monthly, now, errors),
            errors=errors,
        )

        logger.info(
            f"[REPORT] {len(collections.tenants)} tenants, {len(collections.rooms)} rooms, "
            f"{len(collections.bookings)} bookings, {len(collections.payments)} payments, "
            f"{len(collections.invoices)} invoices; {len(report.anomalies.flags)} flags"
        )
        return report
