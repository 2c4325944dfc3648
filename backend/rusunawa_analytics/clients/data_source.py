"""
Abstract Data Source - the five collections the engine aggregates.
Implementations: RusunawaApiClient (REST), StaticDataSource (in-memory).

READ-ONLY OPERATIONS ONLY - the engine never writes back.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class DataSource(ABC):
    """
    Abstract interface for the upstream data-access layer.

    Each fetch returns the raw payload as delivered: either a bare list or
    an envelope such as {"tenants": [...], "totalCount": 12}. Each fetch may
    fail independently; failures must raise, not return None.
    """

    @abstractmethod
    async def fetch_tenants(self) -> Any:
        """Tenants with tenantType, status, room assignment and documents."""
        pass

    @abstractmethod
    async def fetch_bookings(self) -> Any:
        """Bookings with tenantId, roomId, status and checkIn/checkOut."""
        pass

    @abstractmethod
    async def fetch_rooms(self) -> Any:
        """Rooms with capacity, classification, rentalType and occupants."""
        pass

    @abstractmethod
    async def fetch_payments(self) -> Any:
        """Payments with amount, status, paymentMethod and paidAt/createdAt."""
        pass

    @abstractmethod
    async def fetch_invoices(self) -> Any:
        """Invoices with amount/totalAmount, status, createdAt and paidAt."""
        pass


class StaticDataSource(DataSource):
    """
    Serves payloads that were already fetched.

    Passing an Exception instance in place of a payload makes that fetch
    raise it, which is how partial upstream failures are reproduced.
    """

    def __init__(
        self,
        tenants: Any = None,
        bookings: Any = None,
        rooms: Any = None,
        payments: Any = None,
        invoices: Any = None,
    ):
        self._payloads: Dict[str, Optional[Any]] = {
            "tenants": tenants,
            "bookings": bookings,
            "rooms": rooms,
            "payments": payments,
            "invoices": invoices,
        }

    async def _serve(self, name: str) -> Any:
        payload = self._payloads[name]
        if isinstance(payload, Exception):
            raise payload
        return payload if payload is not None else []

    async def fetch_tenants(self) -> Any:
        return await self._serve("tenants")

    async def fetch_bookings(self) -> Any:
        return await self._serve("bookings")

    async def fetch_rooms(self) -> Any:
        return await self._serve("rooms")

    async def fetch_payments(self) -> Any:
        return await self._serve("payments")

    async def fetch_invoices(self) -> Any:
        return await self._serve("invoices")
