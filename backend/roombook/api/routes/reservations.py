from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from roombook.api.deps import (
    BOOKING_ROLES,
    MANAGER_ROLES,
    get_current_user,
    get_db,
    require_reservation_owner_or_roles,
    require_roles,
)
from roombook.core.config import get_settings
from roombook.core.exceptions import ResourceNotFoundError
from roombook.models.course import Course
from roombook.models.reservation import Reservation, ReservationStatus
from roombook.models.room import Room
from roombook.models.user import User
from roombook.schemas.reservation import (
    ConflictOut,
    ReservationCancel,
    ReservationCancelResult,
    ReservationCreate,
    ReservationCreateResult,
    ReservationOut,
    ReservationStatusUpdate,
)
from roombook.services.audit import log_activity
from roombook.services.conflicts import ConflictDetector
from roombook.services.reservation_notifier import EmailReservationNotifier
from roombook.services.reservation_store import SqlAlchemyReservationStore
from roombook.services.reservations import ReservationScheduler

router = APIRouter()

settings = get_settings()


def get_scheduler(background_tasks: BackgroundTasks, db: Session = Depends(get_db)) -> ReservationScheduler:
    tz = ZoneInfo(settings.timezone)
    notifier = EmailReservationNotifier(
        db,
        background_tasks,
        deliver_email=settings.notify_reservation_emails,
        tz=tz,
    )
    return ReservationScheduler(
        SqlAlchemyReservationStore(db),
        notifier,
        tz=tz,
        month_overflow=settings.recurrence_month_overflow,
    )


def _to_utc(value: datetime) -> datetime:
    # Naive query values are wall-clock times in the configured zone.
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(settings.timezone))
    return value.astimezone(timezone.utc)


def _get_reservation(db: Session, reservation_id: str) -> Reservation:
    reservation = db.get(Reservation, reservation_id)
    if reservation is None:
        raise ResourceNotFoundError("Reservation", reservation_id)
    return reservation


@router.get("/", response_model=list[ReservationOut])
def list_reservations(
    start: datetime | None = None,
    end: datetime | None = None,
    room_id: str | None = None,
    reservation_status: ReservationStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=500, ge=1, le=2000),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ReservationOut]:
    query = select(Reservation).order_by(Reservation.start_datetime, Reservation.id)
    if start is not None:
        query = query.where(Reservation.start_datetime >= _to_utc(start))
    if end is not None:
        query = query.where(Reservation.start_datetime <= _to_utc(end))
    if room_id:
        query = query.where(Reservation.room_id == room_id)
    if reservation_status is not None:
        query = query.where(Reservation.status == reservation_status)
    return list(db.execute(query.limit(limit)).scalars())


@router.get("/conflicts", response_model=ConflictOut)
def check_conflicts(
    room_id: str,
    start: datetime,
    end: datetime,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ConflictOut:
    detector = ConflictDetector(SqlAlchemyReservationStore(db))
    conflicts = detector.find_conflicts(room_id, _to_utc(start), _to_utc(end))
    return ConflictOut(
        has_conflict=bool(conflicts),
        conflicts=[ReservationOut.model_validate(item) for item in conflicts],
    )


@router.get("/{reservation_id}", response_model=ReservationOut)
def get_reservation(
    reservation_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReservationOut:
    return _get_reservation(db, reservation_id)


@router.post("/", response_model=ReservationCreateResult, status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: ReservationCreate,
    current_user: User = Depends(require_roles(*BOOKING_ROLES)),
    db: Session = Depends(get_db),
    scheduler: ReservationScheduler = Depends(get_scheduler),
) -> ReservationCreateResult:
    if db.get(Room, payload.room_id) is None:
        raise ResourceNotFoundError("Room", payload.room_id)
    if payload.course_id is not None and db.get(Course, payload.course_id) is None:
        raise ResourceNotFoundError("Course", payload.course_id)

    outcome = scheduler.create_reservation(payload, created_by=current_user.id)
    log_activity(
        db,
        user=current_user,
        action="reservation.create",
        entity_type="reservation",
        entity_id=outcome.anchor.id,
        details={
            "room_id": payload.room_id,
            "recurring_template_id": outcome.recurring_template_id,
            "recurring_created": len(outcome.members),
            "recurring_skipped": len(outcome.skipped),
        },
    )
    db.commit()
    return ReservationCreateResult(
        reservation=ReservationOut.model_validate(outcome.anchor),
        recurring_template_id=outcome.recurring_template_id,
        recurring_created=len(outcome.members),
        recurring_skipped=len(outcome.skipped),
    )


@router.post("/{reservation_id}/status", response_model=ReservationOut)
def update_reservation_status(
    reservation_id: str,
    payload: ReservationStatusUpdate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
    scheduler: ReservationScheduler = Depends(get_scheduler),
) -> ReservationOut:
    reservation = scheduler.change_status(reservation_id, payload.status)
    log_activity(
        db,
        user=current_user,
        action="reservation.status",
        entity_type="reservation",
        entity_id=reservation_id,
        details={"status": payload.status.value},
    )
    db.commit()
    db.refresh(reservation)
    return reservation


@router.post("/{reservation_id}/cancel", response_model=ReservationCancelResult)
def cancel_reservation(
    reservation_id: str,
    payload: ReservationCancel,
    reservation: Reservation = Depends(require_reservation_owner_or_roles(*MANAGER_ROLES)),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    scheduler: ReservationScheduler = Depends(get_scheduler),
) -> ReservationCancelResult:
    scope = payload.scope if reservation.recurring_template_id else "single"
    cancelled = scheduler.cancel_reservation(reservation_id, scope=scope)
    log_activity(
        db,
        user=current_user,
        action="reservation.cancel",
        entity_type="reservation",
        entity_id=reservation_id,
        details={"scope": scope, "cancelled": cancelled},
    )
    db.commit()
    return ReservationCancelResult(scope=scope, cancelled=cancelled)
