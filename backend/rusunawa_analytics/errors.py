"""
Exception hierarchy for the analytics engine.

Only SourceFetchError and UnknownWindowError escape a service call.
Unparsable fields become None in the normalizer and reconciliation
mismatches are reported as flags on the report; neither is raised.
"""
from typing import Any, Dict, Optional


class RusunawaAnalyticsError(Exception):
    """Base exception for the analytics engine."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class SourceFetchError(RusunawaAnalyticsError):
    """One upstream collection could not be loaded."""

    def __init__(self, source: str, message: str, status_code: Optional[int] = None):
        self.source = source
        self.status_code = status_code
        super().__init__(
            f"Failed to fetch {source}: {message}",
            details={"source": source, "status_code": status_code},
        )


class UnknownWindowError(RusunawaAnalyticsError, ValueError):
    """Temporal window name is not one of the supported windows."""

    def __init__(self, window: Any):
        self.window = window
        super().__init__(
            f"Unknown temporal window: {window!r}",
            details={"window": str(window)},
        )
