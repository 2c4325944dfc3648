"""
Configuration settings for the Rusunawa analytics engine.
"""
from functools import lru_cache

from pydantic import BaseModel
from pydantic_settings import BaseSettings

from rusunawa_analytics.models.metrics import RevenuePolicy, UnknownWindowPolicy


class Settings(BaseSettings):
    # Rusunawa REST backend
    api_base_url: str = "http://localhost:8001/v1"
    api_token: str = ""
    request_timeout_seconds: float = 15.0

    # Room image cache (separate from aggregation)
    image_cache_ttl_seconds: int = 300

    # Reconciliation policies
    default_room_capacity: int = 4
    missing_status_is_active: bool = True
    revenue_policy: RevenuePolicy = RevenuePolicy.HIGHER_WINS
    unknown_window_policy: UnknownWindowPolicy = UnknownWindowPolicy.CURRENT
    trend_months: int = 6

    # Web
    frontend_url: str = ""
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


class ReconciliationPolicy(BaseModel):
    """
    Policy switches for the reconciliation rules that compensate for
    inconsistent upstream data.

    - default_room_capacity: capacity used when a room has none
    - missing_status_is_active: tenants with no status count as occupants
    - revenue_policy: how payments and invoices revenue are resolved
    - unknown_window: what classify() does with an unrecognised window name
    """
    default_room_capacity: int = 4
    missing_status_is_active: bool = True
    revenue_policy: RevenuePolicy = RevenuePolicy.HIGHER_WINS
    unknown_window: UnknownWindowPolicy = UnknownWindowPolicy.CURRENT
    trend_months: int = 6

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReconciliationPolicy":
        return cls(
            default_room_capacity=max(1, settings.default_room_capacity),
            missing_status_is_active=settings.missing_status_is_active,
            revenue_policy=settings.revenue_policy,
            unknown_window=settings.unknown_window_policy,
            trend_months=max(1, settings.trend_months),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
