from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from roombook.api.deps import MANAGER_ROLES, get_current_user, get_db, require_roles
from roombook.models.faculty import Faculty
from roombook.models.room import Room
from roombook.models.user import User
from roombook.schemas.faculty import FacultyCreate, FacultyOut, FacultyUpdate
from roombook.services.audit import log_activity

router = APIRouter()


@router.get("/", response_model=list[FacultyOut])
def list_faculties(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[FacultyOut]:
    return list(db.execute(select(Faculty).order_by(Faculty.name)).scalars())


@router.get("/{faculty_id}", response_model=FacultyOut)
def get_faculty(
    faculty_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FacultyOut:
    faculty = db.get(Faculty, faculty_id)
    if faculty is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Faculty not found")
    return faculty


@router.post("/", response_model=FacultyOut, status_code=status.HTTP_201_CREATED)
def create_faculty(
    payload: FacultyCreate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> FacultyOut:
    existing = db.execute(select(Faculty).where(Faculty.code == payload.code)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Faculty code already exists")
    faculty = Faculty(**payload.model_dump())
    db.add(faculty)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="faculty.create",
        entity_type="faculty",
        entity_id=faculty.id,
        details={"code": faculty.code},
    )
    db.commit()
    db.refresh(faculty)
    return faculty


@router.put("/{faculty_id}", response_model=FacultyOut)
def update_faculty(
    faculty_id: str,
    payload: FacultyUpdate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> FacultyOut:
    faculty = db.get(Faculty, faculty_id)
    if faculty is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Faculty not found")

    data = payload.model_dump(exclude_unset=True)
    if "code" in data:
        existing = db.execute(
            select(Faculty).where(Faculty.code == data["code"], Faculty.id != faculty_id)
        ).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Faculty code already exists")

    for key, value in data.items():
        setattr(faculty, key, value)
    if data:
        log_activity(db, user=current_user, action="faculty.update", entity_type="faculty", entity_id=faculty.id)
    db.commit()
    db.refresh(faculty)
    return faculty


@router.delete("/{faculty_id}")
def delete_faculty(
    faculty_id: str,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> dict:
    faculty = db.get(Faculty, faculty_id)
    if faculty is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Faculty not found")
    in_use = db.execute(select(Room.id).where(Room.faculty_id == faculty_id).limit(1)).first()
    if in_use:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Faculty still has rooms assigned")
    log_activity(db, user=current_user, action="faculty.delete", entity_type="faculty", entity_id=faculty.id)
    db.delete(faculty)
    db.commit()
    return {"success": True}
