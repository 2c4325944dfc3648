"""
Report Formatter - CSV, printable HTML and chart data.

Renders an AggregateReport as-is. Every figure here was computed by the
report service; nothing is recalculated.
"""
import csv
import io
from html import escape
from typing import Any, Dict, List, Sequence, Tuple

from rusunawa_analytics.models.metrics import AggregateReport, ChartDatum

REPORT_TITLE = "Analytics Report"

# (label, value, is_currency)
Row = Tuple[str, Any, bool]

HTML_STYLE = """
    body { font-family: Arial, sans-serif; margin: 20px; }
    .header { text-align: center; margin-bottom: 30px; }
    .section { margin-bottom: 30px; }
    .section h2 { color: #2D3748; border-bottom: 2px solid #E2E8F0; padding-bottom: 5px; }
    table { width: 100%; border-collapse: collapse; margin-bottom: 20px; }
    th, td { border: 1px solid #E2E8F0; padding: 8px; text-align: left; }
    th { background-color: #F7FAFC; font-weight: bold; }
    .metric-value { font-weight: bold; color: #2B6CB0; }
    .currency { color: #38A169; }
    .warning { color: #C53030; }
"""


def format_rupiah(amount: float) -> str:
    """Indonesian Rupiah: dot thousands separator, comma decimals."""
    amount = amount or 0
    if float(amount).is_integer():
        text = f"{amount:,.0f}"
    else:
        text = f"{amount:,.2f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"Rp {text}"


def format_percent(value: float) -> str:
    return f"{value}%"


def chart_data(distribution: Dict[str, float]) -> List[ChartDatum]:
    """Distribution map -> [{name, value, percentage}] in the map's order."""
    total = sum(distribution.values())
    return [
        ChartDatum(
            name=name,
            value=value,
            percentage=round(value / total * 100, 1) if total > 0 else 0.0,
        )
        for name, value in distribution.items()
    ]


# =========================================================================
# Shared sections
# =========================================================================

def _overall_rows(report: AggregateReport) -> List[Row]:
    overall = report.overall
    return [
        ("Total Revenue", overall.total_revenue, True),
        ("Total Bookings", overall.total_bookings, False),
        ("Total Rooms", overall.total_rooms, False),
        ("Active Bookings", overall.active_bookings, False),
        ("Available Rooms", overall.available_rooms, False),
        ("Occupied Rooms", overall.occupied_rooms, False),
        ("Occupancy Rate", format_percent(overall.occupancy_rate), False),
        ("Pending Payments", overall.pending_payments, False),
        ("Verified Payments", overall.verified_payments, False),
    ]


def _monthly_rows(report: AggregateReport) -> List[Row]:
    monthly = report.monthly
    return [
        ("Year", monthly.year, False),
        ("Month", monthly.month, False),
        ("Monthly Revenue", monthly.monthly_revenue, True),
        ("Monthly Bookings", monthly.monthly_bookings, False),
        ("Monthly Payments", monthly.monthly_payments, False),
        ("Calculated From Invoices", "Yes" if monthly.is_calculated_from_invoices else "No", False),
    ]


def _daily_rows(report: AggregateReport) -> List[Row]:
    daily = report.daily
    return [
        ("Daily Revenue", daily.daily_revenue, True),
        ("Daily Bookings", daily.daily_bookings, False),
        ("Daily Payments", daily.daily_payments, False),
    ]


def _trend_rows(report: AggregateReport) -> List[Row]:
    trends = report.trends
    return [
        ("Monthly Growth", format_percent(trends.monthly_growth), False),
        ("Bookings Growth", format_percent(trends.bookings_growth), False),
        ("Daily Average Revenue", trends.daily_average, True),
    ]


def _error_rows(report: AggregateReport) -> List[Tuple[str, str]]:
    return [
        (name.replace("_error", ""), message)
        for name, message in report.errors.model_dump().items()
        if message is not None
    ]


# =========================================================================
# CSV
# =========================================================================

def _write_metric_section(writer, title: str, rows: Sequence[Row]) -> None:
    writer.writerow([title])
    writer.writerow(["Metric", "Value"])
    for label, value, _ in rows:
        writer.writerow([label, value])
    writer.writerow([])


def to_csv(report: AggregateReport) -> str:
    """Flat CSV with one block per section; amounts stay numeric."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow([REPORT_TITLE])
    writer.writerow([f"Generated on: {report.generated_at.isoformat()}"])
    writer.writerow([])

    _write_metric_section(writer, "Overall Metrics", _overall_rows(report))
    _write_metric_section(writer, "Monthly Performance", _monthly_rows(report))
    _write_metric_section(writer, "Daily Performance", _daily_rows(report))

    if report.revenue_by_method:
        writer.writerow(["Revenue by Payment Method"])
        writer.writerow(["Payment Method", "Amount", "Transaction Count"])
        for row in report.revenue_by_method:
            writer.writerow([row.payment_method, row.amount, row.count])
        writer.writerow([])

    if report.monthly_trend:
        writer.writerow(["Monthly Trend"])
        writer.writerow(["Month", "Revenue", "Payments", "Bookings", "Growth"])
        for point in report.monthly_trend:
            writer.writerow([
                point.label, point.revenue, point.payments, point.bookings,
                format_percent(point.growth),
            ])
        writer.writerow([])

    _write_metric_section(writer, "Trends Analysis", _trend_rows(report))

    if report.anomalies.flags:
        writer.writerow(["Anomalies"])
        writer.writerow(["Kind", "Subject", "Message"])
        for flag in report.anomalies.flags:
            writer.writerow([flag.kind.value, flag.subject, flag.message])
        writer.writerow([])

    errors = _error_rows(report)
    if errors:
        writer.writerow(["Data Source Errors"])
        writer.writerow(["Source", "Error"])
        for source, message in errors:
            writer.writerow([source, message])

    return buffer.getvalue()


# =========================================================================
# HTML
# =========================================================================

def _metric_table(rows: Sequence[Row]) -> str:
    cells = []
    for label, value, is_currency in rows:
        if is_currency:
            cells.append(
                f'<tr><td>{escape(label)}</td>'
                f'<td class="metric-value currency">{escape(format_rupiah(value))}</td></tr>'
            )
        else:
            cells.append(
                f'<tr><td>{escape(label)}</td>'
                f'<td class="metric-value">{escape(str(value))}</td></tr>'
            )
    return "<table>\n<tr><th>Metric</th><th>Value</th></tr>\n" + "\n".join(cells) + "\n</table>"


def _section(title: str, body: str) -> str:
    return f'<div class="section">\n<h2>{escape(title)}</h2>\n{body}\n</div>'


def to_html(report: AggregateReport) -> str:
    """Standalone printable HTML document."""
    monthly = report.monthly
    sections = [
        _section("Overall Metrics", _metric_table(_overall_rows(report))),
        _section(
            f"Monthly Performance ({monthly.month}/{monthly.year})",
            _metric_table(_monthly_rows(report)),
        ),
        _section("Daily Performance", _metric_table(_daily_rows(report))),
    ]

    if report.revenue_by_method:
        rows = "\n".join(
            f"<tr><td>{escape(row.payment_method)}</td>"
            f'<td class="currency">{escape(format_rupiah(row.amount))}</td>'
            f"<td>{row.count}</td></tr>"
            for row in report.revenue_by_method
        )
        sections.append(_section(
            "Revenue by Payment Method",
            "<table>\n<tr><th>Payment Method</th><th>Amount</th><th>Transactions</th></tr>\n"
            f"{rows}\n</table>",
        ))

    sections.append(_section("Trends Analysis", _metric_table(_trend_rows(report))))

    if report.anomalies.flags:
        items = "\n".join(
            f'<li class="warning">{escape(flag.kind.value)}: {escape(flag.subject)} '
            f"({escape(flag.message)})</li>"
            for flag in report.anomalies.flags
        )
        sections.append(_section("Anomalies", f"<ul>\n{items}\n</ul>"))

    errors = _error_rows(report)
    if errors:
        items = "\n".join(
            f'<li class="warning">{escape(source)}: {escape(message)}</li>'
            for source, message in errors
        )
        sections.append(_section("Data Source Errors", f"<ul>\n{items}\n</ul>"))

    body = "\n".join(sections)
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n"
        f"<meta charset=\"utf-8\">\n<title>{REPORT_TITLE}</title>\n"
        f"<style>{HTML_STYLE}</style>\n</head>\n<body>\n"
        '<div class="header">\n'
        f"<h1>{REPORT_TITLE}</h1>\n"
        f"<p>Generated on: {escape(report.generated_at.isoformat())}</p>\n"
        "</div>\n"
        f"{body}\n</body>\n</html>\n"
    )
