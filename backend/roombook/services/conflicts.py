from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from roombook.core.exceptions import ReservationValidationError
from roombook.models.reservation import Reservation, ReservationStatus
from roombook.services.reservation_store import ReservationStore

# Statuses that hold a room; cancelled and completed reservations never block a booking.
OCCUPYING_STATUSES: frozenset[ReservationStatus] = frozenset(
    {ReservationStatus.pending, ReservationStatus.confirmed}
)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test: back-to-back intervals do not overlap."""
    return a_start < b_end and b_start < a_end


class ConflictDetector:
    def __init__(
        self,
        store: ReservationStore,
        occupying_statuses: Iterable[ReservationStatus] = OCCUPYING_STATUSES,
    ) -> None:
        self.store = store
        self.occupying_statuses = frozenset(occupying_statuses)

    def find_conflicts(self, room_id: str, start: datetime, end: datetime) -> list[Reservation]:
        if end <= start:
            raise ReservationValidationError(
                "end_datetime must be after start_datetime",
                details={"start_datetime": start.isoformat(), "end_datetime": end.isoformat()},
            )
        candidates = self.store.find_overlapping(room_id, start, end, self.occupying_statuses)
        return sorted(candidates, key=lambda item: (item.start_datetime, item.id))

    def first_conflict(self, room_id: str, start: datetime, end: datetime) -> Reservation | None:
        conflicts = self.find_conflicts(room_id, start, end)
        return conflicts[0] if conflicts else None
