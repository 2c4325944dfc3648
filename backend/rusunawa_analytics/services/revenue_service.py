"""
Revenue Service - payments vs invoices reconciliation.

Monthly revenue is computed twice: once from settled payments and once from
paid invoices created in the month. The two are expected to agree. When
they do not, the policy decides which figure the dashboard shows; the
default assumes under-reporting and keeps the larger one.
"""
import logging
from calendar import monthrange
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from rusunawa_analytics.config import ReconciliationPolicy
from rusunawa_analytics.models.metrics import (
    DailyMetrics,
    MonthlyRevenue,
    MonthlyTrendPoint,
    RevenueByMethod,
    RevenuePolicy,
    TrendMetrics,
)
from rusunawa_analytics.models.unified import Booking, Invoice, Payment
from rusunawa_analytics.services.distribution import UNKNOWN, sum_by
from rusunawa_analytics.services.temporal import (
    ensure_utc,
    is_in_month,
    is_same_day,
    previous_month,
)

logger = logging.getLogger(__name__)

SETTLED_PAYMENT_STATUSES = frozenset(["verified", "paid", "completed"])
PENDING_PAYMENT_STATUSES = frozenset(["pending", "waiting", "unverified"])
PAID_INVOICE = "paid"


def is_settled(payment: Payment) -> bool:
    return payment.status in SETTLED_PAYMENT_STATUSES


def payment_date(payment: Payment) -> Optional[datetime]:
    return payment.paid_at or payment.created_at


def growth(current: float, last: float) -> float:
    """Month-over-month growth in percent, one decimal; 0 without a base."""
    if last > 0:
        return round((current - last) / last * 100, 1)
    return 0.0


class RevenueService:
    """Revenue figures from payments and invoices."""

    def __init__(self, policy: Optional[ReconciliationPolicy] = None):
        self.policy = policy or ReconciliationPolicy()

    # =====================================================================
    # Payments
    # =====================================================================

    @staticmethod
    def total_revenue(payments: Iterable[Payment]) -> float:
        return sum(p.amount or 0 for p in payments if is_settled(p))

    @staticmethod
    def payments_for_month(
        payments: Iterable[Payment], year: int, month: int
    ) -> Tuple[float, int]:
        """(revenue, count) of settled payments dated in the month."""
        revenue = 0.0
        count = 0
        for p in payments:
            if not is_settled(p) or not is_in_month(payment_date(p), year, month):
                continue
            revenue += p.amount or 0
            count += 1
        return revenue, count

    @staticmethod
    def revenue_by_method(payments: Iterable[Payment]) -> List[RevenueByMethod]:
        """Settled revenue per payment method, largest first."""
        settled = [p for p in payments if is_settled(p)]
        amounts = sum_by(settled, lambda p: p.payment_method, lambda p: p.amount or 0)
        counts: Dict[str, int] = {}
        for p in settled:
            key = p.payment_method or UNKNOWN
            counts[key] = counts.get(key, 0) + 1

        rows = [
            RevenueByMethod(payment_method=method, amount=amount, count=counts.get(method, 0))
            for method, amount in amounts.items()
        ]
        return sorted(rows, key=lambda r: (-r.amount, r.payment_method))

    # =====================================================================
    # Invoices
    # =====================================================================

    @staticmethod
    def invoices_for_month(
        invoices: Iterable[Invoice], year: int, month: int
    ) -> Tuple[float, int, int, int]:
        """(revenue, invoices created, paid, unpaid) for invoices created in the month."""
        revenue = 0.0
        created = 0
        paid = 0
        unpaid = 0
        for inv in invoices:
            if not is_in_month(inv.created_at, year, month):
                continue
            created += 1
            if inv.status == PAID_INVOICE:
                revenue += inv.amount or 0
                paid += 1
            else:
                unpaid += 1
        return revenue, created, paid, unpaid

    # =====================================================================
    # Reconciliation
    # =====================================================================

    def reconcile_monthly_revenue(
        self,
        payments: Sequence[Payment],
        invoices: Sequence[Invoice],
        year: int,
        month: int,
    ) -> MonthlyRevenue:
        payments_revenue, payment_count = self.payments_for_month(payments, year, month)
        invoice_revenue, invoice_count, paid, unpaid = self.invoices_for_month(invoices, year, month)

        policy = self.policy.revenue_policy
        if policy == RevenuePolicy.INVOICES_ONLY:
            use_invoices = True
        elif policy == RevenuePolicy.PAYMENTS_ONLY:
            use_invoices = False
        else:
            use_invoices = invoice_revenue > payments_revenue

        if payments_revenue != invoice_revenue and (payment_count or invoice_count):
            logger.warning(
                f"[REVENUE] {year}-{month:02d} payments={payments_revenue} "
                f"invoices={invoice_revenue}; using {'invoices' if use_invoices else 'payments'}"
            )

        return MonthlyRevenue(
            year=year,
            month=month,
            monthly_revenue=invoice_revenue if use_invoices else payments_revenue,
            monthly_payments=invoice_count if use_invoices else payment_count,
            paid_invoices=paid,
            unpaid_invoices=unpaid,
            payments_revenue=payments_revenue,
            invoice_revenue=invoice_revenue,
            is_calculated_from_invoices=use_invoices,
        )

    # =====================================================================
    # Bookings, daily and trends
    # =====================================================================

    @staticmethod
    def monthly_bookings(bookings: Iterable[Booking], year: int, month: int) -> int:
        return sum(1 for b in bookings if is_in_month(b.created_at, year, month))

    @staticmethod
    def daily_metrics(
        payments: Iterable[Payment], bookings: Iterable[Booking], now: datetime
    ) -> DailyMetrics:
        today_payments = [p for p in payments if is_settled(p) and is_same_day(payment_date(p), now)]
        return DailyMetrics(
            date=ensure_utc(now).date().isoformat(),
            daily_revenue=sum(p.amount or 0 for p in today_payments),
            daily_payments=len(today_payments),
            daily_bookings=sum(1 for b in bookings if is_same_day(b.created_at, now)),
        )

    def monthly_trend(
        self,
        payments: Sequence[Payment],
        invoices: Sequence[Invoice],
        bookings: Sequence[Booking],
        now: datetime,
        months: Optional[int] = None,
    ) -> List[MonthlyTrendPoint]:
        """Reconciled revenue for the last `months` months, oldest first."""
        months = months or self.policy.trend_months
        now = ensure_utc(now)

        periods = []
        year, month = now.year, now.month
        for _ in range(months):
            periods.append((year, month))
            year, month = previous_month(year, month)
        periods.reverse()

        points: List[MonthlyTrendPoint] = []
        for year, month in periods:
            reconciled = self.reconcile_monthly_revenue(payments, invoices, year, month)
            last = points[-1].revenue if points else 0
            points.append(MonthlyTrendPoint(
                year=year,
                month=month,
                label=f"{year}-{month:02d}",
                revenue=reconciled.monthly_revenue,
                payments=reconciled.monthly_payments,
                bookings=self.monthly_bookings(bookings, year, month),
                growth=growth(reconciled.monthly_revenue, last),
                is_calculated_from_invoices=reconciled.is_calculated_from_invoices,
            ))
        return points

    def trend_metrics(
        self,
        current: MonthlyRevenue,
        last: MonthlyRevenue,
        bookings: Sequence[Booking],
    ) -> TrendMetrics:
        current_bookings = self.monthly_bookings(bookings, current.year, current.month)
        last_bookings = self.monthly_bookings(bookings, last.year, last.month)
        _, days_in_month = monthrange(current.year, current.month)

        return TrendMetrics(
            monthly_growth=growth(current.monthly_revenue, last.monthly_revenue),
            bookings_growth=growth(current_bookings, last_bookings),
            daily_average=(
                current.monthly_revenue / days_in_month if current.monthly_revenue > 0 else 0.0
            ),
            last_month_revenue=last.monthly_revenue,
        )
