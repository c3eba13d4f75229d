import logging
from datetime import datetime, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest
from fastapi import BackgroundTasks
from sqlalchemy import select

from roombook.models.course import Course
from roombook.models.notification import Notification, NotificationType
from roombook.models.reservation import Reservation, ReservationStatus
from roombook.models.room import Room
from roombook.models.user import User, UserRole
from roombook.services import reservation_notifier
from roombook.services.reservation_notifier import (
    EmailReservationNotifier,
    notification_recipients,
    personalized_message,
    render_reservation_email,
)


def _user(db, name, role, is_active=True):
    user = User(
        name=name,
        email=f"{name.lower().replace(' ', '.')}@example.edu",
        hashed_password="x",
        role=role,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    return user


def _seed(db):
    admin = _user(db, "Ada Admin", UserRole.admin)
    _user(db, "Old Admin", UserRole.admin, is_active=False)
    coordinator = _user(db, "Cora Coordinator", UserRole.coordinator)
    professor = _user(db, "Paul Professor", UserRole.professor)
    _user(db, "Sam Student", UserRole.student)

    room = Room(name="Lab 3", code="LAB-3", capacity=30)
    course = Course(code="CH100", name="Chemistry", department="Science", professor_id=professor.id)
    db.add_all([room, course])
    db.commit()

    reservation = Reservation(
        room_id=room.id,
        course_id=course.id,
        title="Titration <practical>",
        description="Bring goggles",
        start_datetime=datetime(2026, 3, 2, 14, 0, tzinfo=timezone.utc),
        end_datetime=datetime(2026, 3, 2, 16, 0, tzinfo=timezone.utc),
        status=ReservationStatus.pending,
        equipment_needed=[],
        created_by=coordinator.id,
    )
    db.add(reservation)
    db.commit()
    return SimpleNamespace(
        admin=admin,
        coordinator=coordinator,
        professor=professor,
        room=room,
        course=course,
        reservation=reservation,
    )


def test_recipients_are_staff_professor_and_creator(db_session):
    seeded = _seed(db_session)

    recipients = notification_recipients(db_session, seeded.reservation, seeded.course)

    assert [user.name for user in recipients] == ["Ada Admin", "Cora Coordinator", "Paul Professor"]


def test_notifier_records_notifications_and_queues_emails(db_session):
    seeded = _seed(db_session)
    tasks = BackgroundTasks()
    notifier = EmailReservationNotifier(db_session, tasks)

    notifier.notify_reservation_event(seeded.reservation.id, "created")

    notifications = list(db_session.execute(select(Notification)).scalars())
    assert len(notifications) == 3
    assert {item.user_id for item in notifications} == {
        seeded.admin.id,
        seeded.coordinator.id,
        seeded.professor.id,
    }
    assert all(item.notification_type == NotificationType.reservation for item in notifications)
    assert all(item.title == "Room Reservation - New Reservation" for item in notifications)

    assert len(tasks.tasks) == 3
    assert all(task.func is reservation_notifier.deliver_email_quietly for task in tasks.tasks)
    assert {task.kwargs["to_email"] for task in tasks.tasks} == {
        "ada.admin@example.edu",
        "cora.coordinator@example.edu",
        "paul.professor@example.edu",
    }


def test_notifier_delivers_inline_without_background_tasks(db_session, monkeypatch):
    seeded = _seed(db_session)
    sent = []
    monkeypatch.setattr(reservation_notifier, "deliver_email_quietly", lambda **kwargs: sent.append(kwargs))

    EmailReservationNotifier(db_session).notify_reservation_event(seeded.reservation.id, "deleted")

    assert len(sent) == 3
    assert all(item["subject"] == "Room Reservation - Reservation Cancelled" for item in sent)


def test_notifier_can_skip_email(db_session):
    seeded = _seed(db_session)
    tasks = BackgroundTasks()

    EmailReservationNotifier(db_session, tasks, deliver_email=False).notify_reservation_event(
        seeded.reservation.id, "updated"
    )

    assert tasks.tasks == []
    assert len(list(db_session.execute(select(Notification)).scalars())) == 3


def test_failure_midway_discards_partial_notifications(db_session, monkeypatch):
    seeded = _seed(db_session)
    rendered = []
    original_render = reservation_notifier.render_reservation_email

    def render_then_fail(**kwargs):
        if rendered:
            raise ValueError("template error")
        rendered.append(kwargs["recipient"].id)
        return original_render(**kwargs)

    monkeypatch.setattr(reservation_notifier, "render_reservation_email", render_then_fail)

    with pytest.raises(ValueError):
        EmailReservationNotifier(db_session, BackgroundTasks()).notify_reservation_event(
            seeded.reservation.id, "created"
        )
    db_session.commit()

    assert len(rendered) == 1
    assert list(db_session.execute(select(Notification)).scalars()) == []


def test_missing_reservation_is_logged(db_session, caplog):
    with caplog.at_level(logging.WARNING, logger="roombook.services.reservation_notifier"):
        EmailReservationNotifier(db_session).notify_reservation_event("missing", "created")

    assert "Reservation missing not found" in caplog.text


def test_rendered_email_is_escaped_and_localized(db_session):
    seeded = _seed(db_session)

    rendered = render_reservation_email(
        reservation=seeded.reservation,
        recipient=seeded.professor,
        event_type="updated",
        room_name=seeded.room.name,
        course_name=seeded.course.name,
        creator_name=seeded.coordinator.name,
        tz=ZoneInfo("America/New_York"),
    )

    assert rendered.subject == "Room Reservation - Reservation Updated"
    assert "Time: 09:00 - 11:00" in rendered.text_content
    assert "Date: Monday, March 02, 2026" in rendered.text_content
    assert "Titration &lt;practical&gt;" in rendered.html_content
    assert "<practical>" not in rendered.html_content
    assert "As the course professor" in rendered.message


def test_personalized_message_per_role():
    staff = personalized_message(UserRole.admin, "New Reservation", "Exam", "Cora", None)
    student = personalized_message(UserRole.student, "New Reservation", "Exam", "Cora", "Physics")

    assert 'created by Cora' in staff
    assert "As admin" in staff
    assert 'for the course "Physics"' in student
    assert "enrolled student" in student
