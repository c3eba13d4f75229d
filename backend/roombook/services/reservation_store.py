"""Data access seam for the reservation scheduling engine.

Each write commits on its own: a recurring booking is a sequence of
independent operations, not one transaction.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from roombook.models.reservation import Reservation, ReservationStatus
from roombook.models.room import Room


def new_recurrence_group_id() -> str:
    return str(uuid.uuid4())


class ReservationStore(Protocol):
    def find_overlapping(
        self,
        room_id: str,
        start: datetime,
        end: datetime,
        statuses: Iterable[ReservationStatus],
    ) -> list[Reservation]: ...

    def get_reservation(self, reservation_id: str) -> Reservation | None: ...

    def insert_reservation(self, fields: dict[str, Any]) -> Reservation: ...

    def update_reservation(self, reservation_id: str, fields: dict[str, Any]) -> None: ...

    def update_reservations_by_group(
        self,
        group_id: str,
        fields: dict[str, Any],
        statuses: Iterable[ReservationStatus],
    ) -> int: ...

    def lock_room(self, room_id: str) -> None: ...


class SqlAlchemyReservationStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_overlapping(
        self,
        room_id: str,
        start: datetime,
        end: datetime,
        statuses: Iterable[ReservationStatus],
    ) -> list[Reservation]:
        query = (
            select(Reservation)
            .where(
                Reservation.room_id == room_id,
                Reservation.status.in_(list(statuses)),
                Reservation.start_datetime < end,
                Reservation.end_datetime > start,
            )
            .order_by(Reservation.start_datetime)
        )
        return list(self.db.execute(query).scalars())

    def get_reservation(self, reservation_id: str) -> Reservation | None:
        return self.db.get(Reservation, reservation_id)

    def insert_reservation(self, fields: dict[str, Any]) -> Reservation:
        reservation = Reservation(**fields)
        self.db.add(reservation)
        self._commit()
        self.db.refresh(reservation)
        return reservation

    def update_reservation(self, reservation_id: str, fields: dict[str, Any]) -> None:
        self.db.execute(update(Reservation).where(Reservation.id == reservation_id).values(**fields))
        self._commit()

    def update_reservations_by_group(
        self,
        group_id: str,
        fields: dict[str, Any],
        statuses: Iterable[ReservationStatus],
    ) -> int:
        result = self.db.execute(
            update(Reservation)
            .where(
                Reservation.recurring_template_id == group_id,
                Reservation.status.in_(list(statuses)),
            )
            .values(**fields)
            .execution_options(synchronize_session="fetch")
        )
        self._commit()
        return result.rowcount or 0

    def lock_room(self, room_id: str) -> None:
        # Row lock on PostgreSQL serializes check-then-insert per room until the next commit.
        if self.db.get_bind().dialect.name != "postgresql":
            return
        self.db.execute(select(Room.id).where(Room.id == room_id).with_for_update())

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
