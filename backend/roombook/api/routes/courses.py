from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from roombook.api.deps import MANAGER_ROLES, get_current_user, get_db, require_roles
from roombook.models.academic_period import AcademicPeriod
from roombook.models.course import Course
from roombook.models.user import User, UserRole
from roombook.schemas.course import CourseCreate, CourseOut, CourseUpdate
from roombook.services.audit import log_activity

router = APIRouter()


def _validate_references(db: Session, data: dict) -> None:
    professor_id = data.get("professor_id")
    if professor_id is not None:
        professor = db.get(User, professor_id)
        if professor is None or professor.role != UserRole.professor:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Professor does not exist")
    period_id = data.get("academic_period_id")
    if period_id is not None and db.get(AcademicPeriod, period_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Academic period does not exist")


@router.get("/", response_model=list[CourseOut])
def list_courses(
    department: str | None = None,
    academic_period_id: str | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[CourseOut]:
    query = select(Course).order_by(Course.code)
    if department:
        query = query.where(Course.department == department)
    if academic_period_id:
        query = query.where(Course.academic_period_id == academic_period_id)
    return list(db.execute(query).scalars())


@router.get("/{course_id}", response_model=CourseOut)
def get_course(
    course_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CourseOut:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


@router.post("/", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> CourseOut:
    existing = db.execute(select(Course).where(Course.code == payload.code)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course code already exists")
    data = payload.model_dump()
    _validate_references(db, data)
    course = Course(**data)
    db.add(course)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="course.create",
        entity_type="course",
        entity_id=course.id,
        details={"code": course.code},
    )
    db.commit()
    db.refresh(course)
    return course


@router.put("/{course_id}", response_model=CourseOut)
def update_course(
    course_id: str,
    payload: CourseUpdate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> CourseOut:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")

    data = payload.model_dump(exclude_unset=True)
    if "code" in data:
        existing = db.execute(
            select(Course).where(Course.code == data["code"], Course.id != course_id)
        ).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course code already exists")
    _validate_references(db, data)

    for key, value in data.items():
        setattr(course, key, value)
    if data:
        log_activity(db, user=current_user, action="course.update", entity_type="course", entity_id=course.id)
    db.commit()
    db.refresh(course)
    return course


@router.delete("/{course_id}")
def delete_course(
    course_id: str,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> dict:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    log_activity(db, user=current_user, action="course.delete", entity_type="course", entity_id=course.id)
    db.delete(course)
    db.commit()
    return {"success": True}
