from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from roombook.api.deps import MANAGER_ROLES, get_current_user, get_db, require_roles
from roombook.models.academic_period import AcademicPeriod
from roombook.models.user import User
from roombook.schemas.academic_period import AcademicPeriodCreate, AcademicPeriodOut, AcademicPeriodUpdate
from roombook.services.audit import log_activity

router = APIRouter()


def _get_period(db: Session, period_id: str) -> AcademicPeriod:
    period = db.get(AcademicPeriod, period_id)
    if period is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Academic period not found")
    return period


@router.get("/", response_model=list[AcademicPeriodOut])
def list_academic_periods(
    active_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[AcademicPeriodOut]:
    query = select(AcademicPeriod).order_by(AcademicPeriod.start_date.desc())
    if active_only:
        query = query.where(AcademicPeriod.is_active.is_(True))
    return list(db.execute(query).scalars())


@router.post("/", response_model=AcademicPeriodOut, status_code=status.HTTP_201_CREATED)
def create_academic_period(
    payload: AcademicPeriodCreate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> AcademicPeriodOut:
    period = AcademicPeriod(**payload.model_dump())
    db.add(period)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="academic_period.create",
        entity_type="academic_period",
        entity_id=period.id,
        details={"name": period.name},
    )
    db.commit()
    db.refresh(period)
    return period


@router.put("/{period_id}", response_model=AcademicPeriodOut)
def update_academic_period(
    period_id: str,
    payload: AcademicPeriodUpdate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> AcademicPeriodOut:
    period = _get_period(db, period_id)
    data = payload.model_dump(exclude_unset=True)
    start_date = data.get("start_date", period.start_date)
    end_date = data.get("end_date", period.end_date)
    if end_date <= start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must be after start_date")

    for key, value in data.items():
        setattr(period, key, value)
    if data:
        log_activity(
            db,
            user=current_user,
            action="academic_period.update",
            entity_type="academic_period",
            entity_id=period.id,
        )
    db.commit()
    db.refresh(period)
    return period


@router.post("/{period_id}/toggle-active", response_model=AcademicPeriodOut)
def toggle_academic_period(
    period_id: str,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> AcademicPeriodOut:
    period = _get_period(db, period_id)
    period.is_active = not period.is_active
    log_activity(
        db,
        user=current_user,
        action="academic_period.toggle",
        entity_type="academic_period",
        entity_id=period.id,
        details={"is_active": period.is_active},
    )
    db.commit()
    db.refresh(period)
    return period


@router.delete("/{period_id}")
def delete_academic_period(
    period_id: str,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> dict:
    period = _get_period(db, period_id)
    log_activity(
        db,
        user=current_user,
        action="academic_period.delete",
        entity_type="academic_period",
        entity_id=period.id,
    )
    db.delete(period)
    db.commit()
    return {"success": True}
