from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from roombook.api.deps import MANAGER_ROLES, get_current_user, get_db, require_roles
from roombook.core.config import get_settings
from roombook.models.cleaning import CleaningObservationType, CleaningReport
from roombook.models.room import Room
from roombook.models.user import User
from roombook.schemas.cleaning import (
    CleaningObservationsUpdate,
    CleaningReportGenerate,
    CleaningReportGenerateResult,
    CleaningReportOut,
    CleaningRoomOut,
    CleaningStatusUpdate,
    CleaningSummaryOut,
    ObservationTypeCreate,
    ObservationTypeOut,
    ObservationTypeUpdate,
)
from roombook.services.audit import log_activity
from roombook.services.cleaning import (
    generate_daily_reports,
    reports_for_date,
    summarize_reports,
    unknown_observation_ids,
)

router = APIRouter()

settings = get_settings()


def _today() -> date:
    return datetime.now(ZoneInfo(settings.timezone)).date()


def _report_out(report: CleaningReport, room: Room | None) -> CleaningReportOut:
    out = CleaningReportOut.model_validate(report)
    out.room = CleaningRoomOut.model_validate(room) if room is not None else None
    return out


def _get_report(db: Session, report_id: str) -> CleaningReport:
    report = db.get(CleaningReport, report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cleaning report not found")
    return report


@router.get("/observation-types", response_model=list[ObservationTypeOut])
def list_observation_types(
    active_only: bool = True,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ObservationTypeOut]:
    query = select(CleaningObservationType).order_by(CleaningObservationType.category, CleaningObservationType.name)
    if active_only:
        query = query.where(CleaningObservationType.is_active.is_(True))
    return list(db.execute(query).scalars())


@router.post("/observation-types", response_model=ObservationTypeOut, status_code=status.HTTP_201_CREATED)
def create_observation_type(
    payload: ObservationTypeCreate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> ObservationTypeOut:
    observation_type = CleaningObservationType(**payload.model_dump())
    db.add(observation_type)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="cleaning.observation_type.create",
        entity_type="cleaning_observation_type",
        entity_id=observation_type.id,
        details={"name": observation_type.name},
    )
    db.commit()
    db.refresh(observation_type)
    return observation_type


@router.put("/observation-types/{type_id}", response_model=ObservationTypeOut)
def update_observation_type(
    type_id: str,
    payload: ObservationTypeUpdate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> ObservationTypeOut:
    observation_type = db.get(CleaningObservationType, type_id)
    if observation_type is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Observation type not found")
    data = payload.model_dump(exclude_unset=True)
    for key, value in data.items():
        setattr(observation_type, key, value)
    db.commit()
    db.refresh(observation_type)
    return observation_type


@router.get("/", response_model=list[CleaningReportOut])
def list_cleaning_reports(
    cleaning_date: date | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[CleaningReportOut]:
    return [_report_out(report, room) for report, room in reports_for_date(db, cleaning_date or _today())]


@router.get("/summary", response_model=CleaningSummaryOut)
def cleaning_summary(
    cleaning_date: date | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CleaningSummaryOut:
    day = cleaning_date or _today()
    reports = [report for report, _ in reports_for_date(db, day)]
    return CleaningSummaryOut(cleaning_date=day, **summarize_reports(reports))


@router.post("/generate", response_model=CleaningReportGenerateResult)
def generate_cleaning_reports(
    payload: CleaningReportGenerate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> CleaningReportGenerateResult:
    created, existing = generate_daily_reports(db, payload.cleaning_date)
    if created:
        log_activity(
            db,
            user=current_user,
            action="cleaning.generate",
            entity_type="cleaning_report",
            details={"cleaning_date": payload.cleaning_date.isoformat(), "created": len(created)},
        )
    db.commit()
    return CleaningReportGenerateResult(cleaning_date=payload.cleaning_date, created=len(created), existing=existing)


@router.get("/{report_id}", response_model=CleaningReportOut)
def get_cleaning_report(
    report_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CleaningReportOut:
    report = _get_report(db, report_id)
    return _report_out(report, db.get(Room, report.room_id))


@router.post("/{report_id}/status", response_model=CleaningReportOut)
def update_cleaning_status(
    report_id: str,
    payload: CleaningStatusUpdate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> CleaningReportOut:
    report = _get_report(db, report_id)
    report.is_cleaned = payload.is_cleaned
    report.cleaned_at = datetime.now(timezone.utc) if payload.is_cleaned else None
    if payload.cleaned_by:
        report.cleaned_by = payload.cleaned_by
    log_activity(
        db,
        user=current_user,
        action="cleaning.status",
        entity_type="cleaning_report",
        entity_id=report.id,
        details={"is_cleaned": payload.is_cleaned},
    )
    db.commit()
    db.refresh(report)
    return _report_out(report, db.get(Room, report.room_id))


@router.put("/{report_id}/observations", response_model=CleaningReportOut)
def update_cleaning_observations(
    report_id: str,
    payload: CleaningObservationsUpdate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> CleaningReportOut:
    report = _get_report(db, report_id)
    unknown = unknown_observation_ids(db, payload.observations)
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown observation types: {', '.join(unknown)}",
        )
    report.observations = payload.observations
    report.notes = payload.notes
    db.commit()
    db.refresh(report)
    return _report_out(report, db.get(Room, report.room_id))
