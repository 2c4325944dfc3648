"""
Rusunawa REST Client - READ-ONLY OPERATIONS ONLY
Implements DataSource over the Rusunawa backend API.

This client only implements GET operations. No PUT, POST, or DELETE.
"""
import logging
from typing import Any, List, Optional

import httpx

from rusunawa_analytics.clients.data_source import DataSource
from rusunawa_analytics.config import Settings, get_settings
from rusunawa_analytics.errors import SourceFetchError
from rusunawa_analytics.services.image_cache import TTLCache

logger = logging.getLogger(__name__)


class RusunawaApiClient(DataSource):
    """
    REST client for the Rusunawa backend.

    IMPORTANT: This client only implements READ operations (GET).
    Transport and HTTP errors are raised as SourceFetchError so the report
    service can record which source failed.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        image_cache: Optional[TTLCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.api_base_url.rstrip("/")
        self.headers = {"Accept": "application/json"}
        if self.settings.api_token:
            self.headers["Authorization"] = f"Bearer {self.settings.api_token}"
        self.image_cache = image_cache
        self._transport = transport

    async def _get(self, source: str, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.request_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers=self.headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"[CLIENT] GET {path} returned {e.response.status_code}")
            raise SourceFetchError(source, f"HTTP {e.response.status_code}", e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.warning(f"[CLIENT] GET {path} failed: {e}")
            raise SourceFetchError(source, str(e) or e.__class__.__name__) from e
        except ValueError as e:
            logger.warning(f"[CLIENT] GET {path} returned invalid JSON: {e}")
            raise SourceFetchError(source, "invalid JSON response") from e

    async def fetch_tenants(self) -> Any:
        return await self._get("tenants", "/tenants")

    async def fetch_bookings(self) -> Any:
        return await self._get("bookings", "/bookings")

    async def fetch_rooms(self) -> Any:
        return await self._get("rooms", "/rooms")

    async def fetch_payments(self) -> Any:
        return await self._get("payments", "/payments")

    async def fetch_invoices(self) -> Any:
        return await self._get("invoices", "/invoices")

    async def get_room_images(self, room_id: str) -> List[Any]:
        """
        GET operation: image metadata for a room, served from the TTL cache
        when a fresh entry exists.
        """
        cache_key = f"room_images_{room_id}"
        if self.image_cache is not None:
            cached = self.image_cache.get(cache_key)
            if cached is not None:
                return cached

        data = await self._get("room_images", f"/rooms/{room_id}/images")
        images = data.get("images", []) if isinstance(data, dict) else list(data or [])

        if self.image_cache is not None:
            self.image_cache.set(cache_key, images)
        return images
