"""Seed demo accounts, rooms and a recurring class for RoomBook.

Run:
  PYTHONPATH=backend python scripts/seed_demo_data.py
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from datetime import date, time, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import select

from roombook.core.config import get_settings
from roombook.core.exceptions import ReservationConflictError
from roombook.core.security import get_password_hash
from roombook.db.bootstrap import ensure_runtime_schema
from roombook.db.session import SessionLocal
from roombook.models.academic_period import AcademicPeriod, AcademicPeriodType
from roombook.models.course import Course
from roombook.models.faculty import Faculty
from roombook.models.room import Room
from roombook.models.user import User, UserRole
from roombook.schemas.reservation import ReservationCreate
from roombook.services.reservation_store import SqlAlchemyReservationStore
from roombook.services.reservations import ReservationScheduler

DEFAULT_PASSWORD = os.getenv("SEED_DEFAULT_PASSWORD", "RoomBook123!")
EMAIL_DOMAIN = os.getenv("SEED_EMAIL_DOMAIN", "university.edu").strip().lower() or "university.edu"

DEMO_ACCOUNTS = {
    "admin": {"name": "Demo Admin", "role": UserRole.admin, "department": "Administration"},
    "coordinator": {"name": "Demo Coordinator", "role": UserRole.coordinator, "department": "Engineering"},
    "professor": {"name": "Demo Professor", "role": UserRole.professor, "department": "Computer Science"},
    "student": {"name": "Demo Student", "role": UserRole.student, "department": "Computer Science"},
}

DEMO_ROOMS = [
    {"name": "Lecture Hall 101", "code": "ENG-101", "building": "Engineering", "floor": 1, "capacity": 120,
     "room_type": "lecture", "features": ["projector", "microphone", "sound_system"]},
    {"name": "Computer Lab 2", "code": "ENG-L2", "building": "Engineering", "floor": 2, "capacity": 32,
     "room_type": "lab", "features": ["computer", "projector", "whiteboard"]},
]


def _upsert_user(*, key: str, name: str, role: UserRole, department: str) -> User:
    email = f"{key}.demo@{EMAIL_DOMAIN}"
    with SessionLocal() as session:
        user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if user is None:
            user = User(
                name=name,
                email=email,
                hashed_password=get_password_hash(DEFAULT_PASSWORD),
                role=role,
                department=department,
                is_active=True,
            )
            session.add(user)
        else:
            user.role = role
            user.is_active = True
        session.commit()
        session.refresh(user)
        return user


def _upsert_faculty() -> Faculty:
    with SessionLocal() as session:
        faculty = session.execute(select(Faculty).where(Faculty.code == "ENG")).scalar_one_or_none()
        if faculty is None:
            faculty = Faculty(name="Faculty of Engineering", code="ENG", campus="Main Campus")
            session.add(faculty)
            session.commit()
            session.refresh(faculty)
        return faculty


def _upsert_rooms(faculty: Faculty) -> list[Room]:
    rooms: list[Room] = []
    with SessionLocal() as session:
        for item in DEMO_ROOMS:
            room = session.execute(select(Room).where(Room.code == item["code"])).scalar_one_or_none()
            if room is None:
                room = Room(**item, faculty_id=faculty.id)
                session.add(room)
            rooms.append(room)
        session.commit()
        for room in rooms:
            session.refresh(room)
    return rooms


def _upsert_course(professor: User) -> Course:
    today = date.today()
    with SessionLocal() as session:
        period = session.execute(
            select(AcademicPeriod).where(AcademicPeriod.name == f"Semester {today.year}")
        ).scalar_one_or_none()
        if period is None:
            period = AcademicPeriod(
                name=f"Semester {today.year}",
                period_type=AcademicPeriodType.semester,
                start_date=today,
                end_date=today + timedelta(weeks=16),
            )
            session.add(period)
            session.flush()

        course = session.execute(select(Course).where(Course.code == "CS201")).scalar_one_or_none()
        if course is None:
            course = Course(
                code="CS201",
                name="Data Structures",
                department="Computer Science",
                credits=4,
                max_students=90,
                professor_id=professor.id,
                academic_period_id=period.id,
            )
            session.add(course)
        session.commit()
        session.refresh(course)
        return course


def _book_weekly_class(room: Room, course: Course, professor: User) -> None:
    settings = get_settings()
    first_monday = date.today() + timedelta(days=(7 - date.today().weekday()) % 7 or 7)
    draft = ReservationCreate(
        title=f"{course.code} {course.name}",
        room_id=room.id,
        course_id=course.id,
        date=first_monday,
        start_time=time(9, 0),
        end_time=time(10, 30),
        event_type="class",
        attendee_count=course.max_students or 0,
        equipment_needed=["projector"],
        recurrence={
            "frequency": "weekly",
            "days_of_week": [1, 3],
            "termination": {"type": "occurrences", "count": 15},
        },
    )
    with SessionLocal() as session:
        scheduler = ReservationScheduler(
            SqlAlchemyReservationStore(session),
            tz=ZoneInfo(settings.timezone),
            month_overflow=settings.recurrence_month_overflow,
        )
        try:
            outcome = scheduler.create_reservation(draft, created_by=professor.id)
        except ReservationConflictError as exc:
            print(f"Weekly class already booked: {exc.message}")
            return
        print(
            f"Booked {course.code} in {room.code}: anchor {outcome.anchor.id}, "
            f"{len(outcome.members)} occurrence(s), {len(outcome.skipped)} skipped"
        )


def _print_accounts(items: Iterable[tuple[str, User]]) -> None:
    print("\nDemo accounts ready:")
    for label, user in items:
        print(f"  - {label}: {user.email} | role={user.role.value}")
    print(f"\nPassword for all demo accounts: {DEFAULT_PASSWORD}")


def main() -> None:
    ensure_runtime_schema()
    created_users: dict[str, User] = {}
    for key, item in DEMO_ACCOUNTS.items():
        created_users[key] = _upsert_user(key=key, **item)

    faculty = _upsert_faculty()
    rooms = _upsert_rooms(faculty)
    course = _upsert_course(created_users["professor"])
    _book_weekly_class(rooms[0], course, created_users["professor"])
    _print_accounts(created_users.items())


if __name__ == "__main__":
    main()
