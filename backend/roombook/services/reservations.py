"""Reservation write path: conflict checks, recurrence expansion and cancellation.

The anchor reservation is all-or-nothing: if its slot is taken nothing is
written. Recurring members are best-effort: an occurrence that collides with
an existing booking is skipped and the series is still reported as created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone, tzinfo
from typing import Any, Literal, Protocol

from sqlalchemy.exc import SQLAlchemyError

from roombook.core.exceptions import (
    InvalidStatusTransitionError,
    ReservationConflictError,
    ReservationPersistenceError,
    ReservationValidationError,
    ResourceNotFoundError,
)
from roombook.models.reservation import Reservation, ReservationStatus
from roombook.schemas.reservation import RecurrenceIn, ReservationCreate
from roombook.services.conflicts import OCCUPYING_STATUSES, ConflictDetector
from roombook.services.recurrence import (
    MonthOverflow,
    Occurrence,
    RecurrenceRule,
    expand_occurrences,
)
from roombook.services.reservation_store import ReservationStore, new_recurrence_group_id

logger = logging.getLogger(__name__)

ReservationEvent = Literal["created", "updated", "deleted"]

ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.pending: frozenset(
        {ReservationStatus.confirmed, ReservationStatus.cancelled, ReservationStatus.completed}
    ),
    ReservationStatus.confirmed: frozenset({ReservationStatus.cancelled, ReservationStatus.completed}),
    ReservationStatus.cancelled: frozenset(),
    ReservationStatus.completed: frozenset(),
}
CANCELLABLE_STATUSES = frozenset({ReservationStatus.pending, ReservationStatus.confirmed})


class ReservationNotifier(Protocol):
    def notify_reservation_event(self, reservation_id: str, event_type: ReservationEvent) -> None: ...


@dataclass
class ReservationOutcome:
    anchor: Reservation
    recurring_template_id: str | None = None
    members: list[Reservation] = field(default_factory=list)
    skipped: list[Occurrence] = field(default_factory=list)


def build_recurrence_rule(recurrence: RecurrenceIn, default_overflow: MonthOverflow | str) -> RecurrenceRule:
    termination = recurrence.termination
    return RecurrenceRule.build(
        recurrence.frequency,
        days_of_week=recurrence.days_of_week,
        end_date=termination.end_date if termination.type == "until" else None,
        count=termination.count if termination.type == "occurrences" else None,
        month_overflow=recurrence.month_overflow or default_overflow,
    )


def local_interval(day: date, start: time, end: time, tz: tzinfo | None) -> tuple[datetime, datetime]:
    zone = tz or timezone.utc
    start_dt = datetime.combine(day, start.replace(tzinfo=None), tzinfo=zone).astimezone(timezone.utc)
    end_dt = datetime.combine(day, end.replace(tzinfo=None), tzinfo=zone).astimezone(timezone.utc)
    return start_dt, end_dt


def _status_value(status: ReservationStatus | str) -> str:
    return status.value if isinstance(status, ReservationStatus) else str(status)


class ReservationScheduler:
    def __init__(
        self,
        store: ReservationStore,
        notifier: ReservationNotifier | None = None,
        *,
        tz: tzinfo | None = None,
        month_overflow: MonthOverflow | str = MonthOverflow.skip,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.tz = tz
        self.month_overflow = MonthOverflow(month_overflow)
        self.detector = ConflictDetector(store, OCCUPYING_STATUSES)

    def create_reservation(self, draft: ReservationCreate, *, created_by: str | None) -> ReservationOutcome:
        self._validate(draft)
        start_dt, end_dt = local_interval(draft.date, draft.start_time, draft.end_time, self.tz)

        self.store.lock_room(draft.room_id)
        conflict = self.detector.first_conflict(draft.room_id, start_dt, end_dt)
        if conflict is not None:
            raise ReservationConflictError(conflict)

        fields = self._base_fields(draft, created_by)
        anchor = self._insert({**fields, "start_datetime": start_dt, "end_datetime": end_dt}, step="insert_anchor")
        self._notify(anchor.id, "created")

        outcome = ReservationOutcome(anchor=anchor)
        if draft.recurrence is None:
            return outcome

        rule = build_recurrence_rule(draft.recurrence, self.month_overflow)
        group_id = new_recurrence_group_id()
        for occurrence in expand_occurrences(draft.date, draft.start_time, draft.end_time, rule, self.tz):
            if occurrence.end_datetime <= occurrence.start_datetime:
                # Wall-clock slot falls inside a daylight-saving gap on this date.
                logger.info(
                    "Skipping recurring occurrence %s - %s in room %s: not a valid local interval",
                    occurrence.start_datetime.isoformat(),
                    occurrence.end_datetime.isoformat(),
                    draft.room_id,
                )
                outcome.skipped.append(occurrence)
                continue
            self.store.lock_room(draft.room_id)
            blocking = self.detector.first_conflict(
                draft.room_id, occurrence.start_datetime, occurrence.end_datetime
            )
            if blocking is not None:
                logger.info(
                    "Skipping recurring occurrence %s - %s in room %s: overlaps reservation %s",
                    occurrence.start_datetime.isoformat(),
                    occurrence.end_datetime.isoformat(),
                    draft.room_id,
                    blocking.id,
                )
                outcome.skipped.append(occurrence)
                continue
            member = self._insert(
                {
                    **fields,
                    "start_datetime": occurrence.start_datetime,
                    "end_datetime": occurrence.end_datetime,
                    "recurring_template_id": group_id,
                },
                step="insert_occurrence",
            )
            outcome.members.append(member)

        try:
            self.store.update_reservation(anchor.id, {"recurring_template_id": group_id})
        except SQLAlchemyError as exc:
            raise ReservationPersistenceError("link_anchor") from exc
        outcome.recurring_template_id = group_id
        logger.info(
            "Created recurring series %s in room %s: %d occurrence(s) created, %d skipped",
            group_id,
            draft.room_id,
            len(outcome.members),
            len(outcome.skipped),
        )
        return outcome

    def cancel_reservation(self, reservation_id: str, *, scope: Literal["single", "series"] = "single") -> int:
        reservation = self._get(reservation_id)
        group_id = reservation.recurring_template_id
        if scope == "series" and group_id:
            try:
                count = self.store.update_reservations_by_group(
                    group_id,
                    {"status": ReservationStatus.cancelled},
                    CANCELLABLE_STATUSES,
                )
            except SQLAlchemyError as exc:
                raise ReservationPersistenceError("cancel_group") from exc
            logger.info("Cancelled %d reservation(s) in recurring series %s", count, group_id)
            self._notify(reservation_id, "deleted")
            return count

        self.change_status(reservation_id, ReservationStatus.cancelled, reservation=reservation)
        return 1

    def change_status(
        self,
        reservation_id: str,
        status: ReservationStatus,
        *,
        reservation: Reservation | None = None,
    ) -> Reservation:
        reservation = reservation or self._get(reservation_id)
        current = ReservationStatus(_status_value(reservation.status))
        if status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStatusTransitionError(current.value, status.value)
        try:
            self.store.update_reservation(reservation_id, {"status": status})
        except SQLAlchemyError as exc:
            raise ReservationPersistenceError("update_status") from exc
        self._notify(reservation_id, "deleted" if status == ReservationStatus.cancelled else "updated")
        return self._get(reservation_id)

    def _validate(self, draft: ReservationCreate) -> None:
        missing = [
            name
            for name in ("room_id", "date", "start_time", "end_time")
            if getattr(draft, name, None) in (None, "")
        ]
        if missing:
            raise ReservationValidationError("Missing required fields", details={"missing": missing})
        if draft.end_time <= draft.start_time:
            raise ReservationValidationError("end_time must be after start_time")

    def _base_fields(self, draft: ReservationCreate, created_by: str | None) -> dict[str, Any]:
        return {
            "room_id": draft.room_id,
            "course_id": draft.course_id,
            "title": draft.title,
            "description": draft.description,
            "notes": draft.notes,
            "event_type": draft.event_type,
            "attendee_count": draft.attendee_count,
            "equipment_needed": list(draft.equipment_needed),
            "status": ReservationStatus.pending,
            "created_by": created_by,
        }

    def _insert(self, fields: dict[str, Any], *, step: str) -> Reservation:
        try:
            return self.store.insert_reservation(fields)
        except SQLAlchemyError as exc:
            raise ReservationPersistenceError(step) from exc

    def _get(self, reservation_id: str) -> Reservation:
        reservation = self.store.get_reservation(reservation_id)
        if reservation is None:
            raise ResourceNotFoundError("Reservation", reservation_id)
        return reservation

    def _notify(self, reservation_id: str, event_type: ReservationEvent) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify_reservation_event(reservation_id, event_type)
        except Exception:
            logger.warning(
                "Reservation notification failed for %s (%s)", reservation_id, event_type, exc_info=True
            )
