"""
Occupancy Service - per-room occupant counts and system-wide occupancy.

The room list from the backend does not carry a trustworthy occupancy
figure, so the count is rebuilt from the data we do have, in order:
1. room.occupants (approved / checked_in entries)
2. tenants whose currentRoomAssignment points at the room
3. tenants whose roomId / current_room points at the room
The first strategy that finds anyone wins.
"""
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from rusunawa_analytics.config import ReconciliationPolicy
from rusunawa_analytics.models.metrics import (
    OccupancySource,
    OccupancySummary,
    RoomOccupancyState,
    RoomStatus,
)
from rusunawa_analytics.models.unified import Room, Tenant
from rusunawa_analytics.services.temporal import classify_occupancy, over_capacity_message

logger = logging.getLogger(__name__)

OCCUPYING_STATUSES = frozenset(["approved", "checked_in"])
ACTIVE = "active"


class OccupancyService:
    """Rebuilds occupancy from rooms and tenants."""

    def __init__(self, policy: Optional[ReconciliationPolicy] = None):
        self.policy = policy or ReconciliationPolicy()

    def is_active_or_unknown(self, tenant: Tenant) -> bool:
        """
        A tenant counts as an occupant when either status says active, or
        when no status is present at all and the policy treats that as active.
        """
        if tenant.status == ACTIVE or tenant.computed_status == ACTIVE:
            return True
        if tenant.status is None and tenant.computed_status is None:
            return self.policy.missing_status_is_active
        return False

    def room_capacity(self, room: Room) -> int:
        return room.capacity or self.policy.default_room_capacity

    def count_occupants(
        self, room: Room, tenants: Sequence[Tenant]
    ) -> Tuple[int, OccupancySource]:
        """Occupant count and the strategy that produced it."""
        if room.occupants:
            count = sum(1 for o in room.occupants if o.status in OCCUPYING_STATUSES)
            if count > 0:
                return count, OccupancySource.OCCUPANTS

        if room.room_id is None:
            return 0, OccupancySource.NONE

        count = sum(
            1 for t in tenants
            if t.room_assignment_id == room.room_id and self.is_active_or_unknown(t)
        )
        if count > 0:
            return count, OccupancySource.ROOM_ASSIGNMENT

        count = sum(
            1 for t in tenants
            if (t.room_id == room.room_id or t.current_room_id == room.room_id)
            and self.is_active_or_unknown(t)
        )
        if count > 0:
            return count, OccupancySource.TENANT_ROOM

        return 0, OccupancySource.NONE

    def reconcile_room(self, room: Room, tenants: Sequence[Tenant]) -> RoomOccupancyState:
        capacity = self.room_capacity(room)
        count, source = self.count_occupants(room, tenants)
        status = classify_occupancy(count, capacity)

        anomaly = None
        if status == RoomStatus.OVER_CAPACITY:
            anomaly = over_capacity_message(count, capacity)
            logger.warning(f"[OCCUPANCY] Room {room.room_id} ({room.name}): {anomaly}")
        else:
            logger.debug(
                f"[OCCUPANCY] Room {room.room_id} ({room.name}): {status.value} "
                f"({count}/{capacity}) via {source.value}"
            )

        return RoomOccupancyState(
            room_id=room.room_id,
            name=room.name,
            capacity=capacity,
            occupant_count=count,
            status=status,
            anomaly=anomaly,
            source=source,
        )

    def reconcile_rooms(
        self, rooms: Iterable[Room], tenants: Sequence[Tenant]
    ) -> List[RoomOccupancyState]:
        return [self.reconcile_room(room, tenants) for room in rooms]

    def summarize(self, rooms: Iterable[Room], tenants: Sequence[Tenant]) -> OccupancySummary:
        """System-wide occupancy; partially filled rooms count as occupied."""
        states = self.reconcile_rooms(rooms, tenants)
        return self.summarize_states(states)

    @staticmethod
    def summarize_states(states: List[RoomOccupancyState]) -> OccupancySummary:
        by_status = {status: 0 for status in RoomStatus}
        for state in states:
            by_status[state.status] += 1

        total_occupants = sum(s.occupant_count for s in states)
        total_capacity = sum(s.capacity for s in states)
        occupancy_rate = (
            round(total_occupants / total_capacity * 100, 1) if total_capacity > 0 else 0.0
        )

        summary = OccupancySummary(
            total_rooms=len(states),
            available_rooms=by_status[RoomStatus.AVAILABLE],
            occupied_rooms=len(states) - by_status[RoomStatus.AVAILABLE],
            partial_rooms=by_status[RoomStatus.PARTIAL],
            full_rooms=by_status[RoomStatus.FULL],
            over_capacity_rooms=by_status[RoomStatus.OVER_CAPACITY],
            total_occupants=total_occupants,
            total_capacity=total_capacity,
            occupancy_rate=occupancy_rate,
            rooms=states,
        )
        logger.info(
            f"[OCCUPANCY] {total_occupants}/{total_capacity} occupants, "
            f"{summary.occupied_rooms} occupied rooms, {summary.available_rooms} available rooms "
            f"({occupancy_rate}%)"
        )
        return summary
