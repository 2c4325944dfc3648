"""
Rusunawa Analytics API
======================
Occupancy & revenue reconciliation for the Rusunawa admin dashboard.

The engine ingests tenants, bookings, rooms, payments and invoices from
the Rusunawa backend and derives one consistent picture:
- Per-room occupancy with fallback occupant counting
- Time-windowed occupant classification (current, this_year, last_6_months, future, all)
- Payments vs invoices monthly revenue reconciliation
- Distributions for the dashboard charts
- Anomaly flags (over-capacity, duplicate bookings, count and revenue mismatches)

Nothing is written upstream.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rusunawa_analytics import __version__
from rusunawa_analytics.api.routes import router
from rusunawa_analytics.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Rusunawa Analytics API",
    description="""
    Read-only analytics API for the Rusunawa admin dashboard.

    ## Modules
    - **Occupancy**: per-room status (available, partial, full, over_capacity) and system occupancy rate
    - **Revenue**: monthly revenue reconciled from payments and invoices, trends, revenue by method
    - **Distributions**: payment, tenant, booking, room and document breakdowns
    - **Anomalies**: over-capacity rooms, duplicate bookings, count and revenue mismatches

    ## Temporal windows
    - **current**: check-in <= now <= check-out
    - **this_year**: check-in in the current calendar year
    - **last_6_months**: check-in within the last 6 calendar months
    - **future**: check-in after now
    - **all**: every approved booking

    ## Important
    This API never modifies upstream data.
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        settings.frontend_url,
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api/v1", tags=["Analytics"])


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Rusunawa Analytics API",
        "version": __version__,
        "docs": "/docs",
        "status": "running",
        "note": "READ-ONLY API - upstream data is never modified",
        "windows": ["current", "this_year", "last_6_months", "future", "all"],
    }
