from __future__ import annotations

from collections.abc import Iterable
from datetime import date
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from roombook.models.cleaning import CleaningObservationType, CleaningReport
from roombook.models.room import Room

logger = logging.getLogger(__name__)


def reports_for_date(db: Session, cleaning_date: date) -> list[tuple[CleaningReport, Room | None]]:
    rows = db.execute(
        select(CleaningReport, Room)
        .outerjoin(Room, Room.id == CleaningReport.room_id)
        .where(CleaningReport.cleaning_date == cleaning_date)
        .order_by(Room.name, CleaningReport.id)
    ).all()
    return [(report, room) for report, room in rows]


def generate_daily_reports(db: Session, cleaning_date: date) -> tuple[list[CleaningReport], int]:
    """Create a pending report for every room that has none on ``cleaning_date``.

    Returns the new reports and the number that already existed. The caller commits.
    """
    covered = set(
        db.execute(select(CleaningReport.room_id).where(CleaningReport.cleaning_date == cleaning_date)).scalars()
    )
    rooms = db.execute(select(Room).order_by(Room.name)).scalars()
    created = [
        CleaningReport(room_id=room.id, cleaning_date=cleaning_date, is_cleaned=False, observations=[])
        for room in rooms
        if room.id not in covered
    ]
    db.add_all(created)
    db.flush()
    logger.info(
        "Generated %d cleaning report(s) for %s; %d already existed",
        len(created),
        cleaning_date.isoformat(),
        len(covered),
    )
    return created, len(covered)


def unknown_observation_ids(db: Session, observation_ids: Iterable[str]) -> list[str]:
    requested = set(observation_ids)
    if not requested:
        return []
    known = set(
        db.execute(select(CleaningObservationType.id).where(CleaningObservationType.id.in_(requested))).scalars()
    )
    return sorted(requested - known)


def summarize_reports(reports: Iterable[CleaningReport]) -> dict[str, int]:
    items = list(reports)
    completed = sum(1 for item in items if item.is_cleaned)
    return {
        "total": len(items),
        "completed": completed,
        "pending": len(items) - completed,
        "with_observations": sum(1 for item in items if item.observations),
    }
