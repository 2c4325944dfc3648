"""
API Routes - Rusunawa analytics dashboard.

The engine never writes upstream. The POST endpoints only carry
already-fetched collections in the request body and return derived metrics.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel

from rusunawa_analytics.clients.data_source import DataSource
from rusunawa_analytics.clients.rusunawa_client import RusunawaApiClient
from rusunawa_analytics.config import ReconciliationPolicy, get_settings
from rusunawa_analytics.errors import SourceFetchError, UnknownWindowError
from rusunawa_analytics.models import AggregateReport
from rusunawa_analytics.services import normalizer
from rusunawa_analytics.services.image_cache import TTLCache
from rusunawa_analytics.services.occupancy_service import OccupancyService
from rusunawa_analytics.services.report_formatter import to_csv, to_html
from rusunawa_analytics.services.report_service import ReportService
from rusunawa_analytics.services.temporal import (
    compute_period_stats,
    ensure_utc,
    filter_occupants,
    parse_window,
)

logger = logging.getLogger(__name__)

router = APIRouter()

settings = get_settings()
policy = ReconciliationPolicy.from_settings(settings)
report_service = ReportService(policy)
occupancy_service = OccupancyService(policy)
image_cache = TTLCache(ttl_seconds=settings.image_cache_ttl_seconds)

EXPORT_FORMATS = ("csv", "html")


class ComputeReportRequest(BaseModel):
    """Raw collections as delivered by the backend (list or envelope each)."""
    tenants: Any = None
    bookings: Any = None
    rooms: Any = None
    payments: Any = None
    invoices: Any = None
    now: Optional[datetime] = None


class RoomOccupancyRequest(BaseModel):
    room: Dict[str, Any]
    tenants: List[Any] = []
    now: Optional[datetime] = None
    window: Optional[str] = None


def get_api_client() -> RusunawaApiClient:
    return RusunawaApiClient(settings=get_settings(), image_cache=image_cache)


def get_data_source() -> DataSource:
    """Upstream used by the dashboard endpoints; overridden in tests."""
    return get_api_client()


def _resolve_now(now: Optional[datetime]) -> datetime:
    return ensure_utc(now) if now else datetime.now(timezone.utc)


@router.get("/health")
async def health_check():
    """Health check endpoint, with the room image cache state."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "image_cache": image_cache.stats(),
    }


@router.get("/dashboard", response_model=AggregateReport)
async def get_dashboard(
    now: Optional[datetime] = Query(None, description="Evaluation time, defaults to the current time"),
    source: DataSource = Depends(get_data_source),
):
    """
    GET: Complete dashboard aggregate from the configured upstream.

    A failed collection does not fail the request; it shows up in
    `errors.<collection>_error` and its sections are zeroed.
    """
    try:
        return await report_service.compute_aggregate_report(source, _resolve_now(now))
    except Exception as e:
        logger.exception(f"[API] Dashboard aggregation failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/reports/compute", response_model=AggregateReport)
async def compute_report(request: ComputeReportRequest):
    """
    POST: Aggregate collections supplied in the body.
    Read-only; nothing is stored.
    """
    payloads = request.model_dump(exclude={"now"})
    try:
        return report_service.compute_from_payloads(payloads, _resolve_now(request.now))
    except Exception as e:
        logger.exception(f"[API] Report computation failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/rooms/occupancy")
async def room_occupancy(request: RoomOccupancyRequest):
    """
    POST: Reconciled occupancy for one room plus its per-window stats.

    With `window`, also returns the occupants inside that window. Unknown
    window names follow the configured policy (fallback to `current`, or 400).
    """
    now = _resolve_now(request.now)
    try:
        room = normalizer.normalize_room(request.room)
        tenants = normalizer.normalize_tenants(request.tenants)

        state = occupancy_service.reconcile_room(room, tenants)
        periods = compute_period_stats(room, now, policy.default_room_capacity)

        result: Dict[str, Any] = {
            "state": state,
            "periods": {window.value: stats for window, stats in periods.items()},
        }
        if request.window is not None:
            window = parse_window(request.window, policy.unknown_window)
            occupants = filter_occupants(room.occupants, window, now)
            result["window"] = {"name": window.value, "occupants": occupants}
        return result
    except UnknownWindowError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except Exception as e:
        logger.exception(f"[API] Room occupancy failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/rooms/{room_id}/images")
async def get_room_images(room_id: str, client: RusunawaApiClient = Depends(get_api_client)):
    """GET: Room image metadata, served from the short-lived image cache."""
    try:
        return {"room_id": room_id, "images": await client.get_room_images(room_id)}
    except SourceFetchError as e:
        raise HTTPException(status_code=502, detail=e.message)


@router.get("/dashboard/export")
async def export_dashboard(
    format: str = Query("csv", description="Export format: csv or html"),
    now: Optional[datetime] = Query(None),
    source: DataSource = Depends(get_data_source),
):
    """GET: Dashboard aggregate rendered as a CSV download or printable HTML."""
    export_format = format.strip().lower()
    if export_format not in EXPORT_FORMATS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported export format: {format}. Use one of {', '.join(EXPORT_FORMATS)}",
        )

    try:
        report = await report_service.compute_aggregate_report(source, _resolve_now(now))
    except Exception as e:
        logger.exception(f"[API] Export aggregation failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    filename = f"analytics_report_{report.generated_at.date().isoformat()}.{export_format}"
    if export_format == "html":
        return HTMLResponse(
            to_html(report),
            headers={"Content-Disposition": f'inline; filename="{filename}"'},
        )
    return Response(
        content=to_csv(report),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
