from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
import html
import logging

from fastapi import BackgroundTasks
from sqlalchemy import select
from sqlalchemy.orm import Session

from roombook.models.course import Course
from roombook.models.notification import NotificationType
from roombook.models.reservation import Reservation
from roombook.models.room import Room
from roombook.models.user import User, UserRole
from roombook.services.notifications import create_notification, deliver_email_quietly

logger = logging.getLogger(__name__)

EVENT_TEXT = {
    "created": "New Reservation",
    "updated": "Reservation Updated",
    "deleted": "Reservation Cancelled",
}


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    message: str
    text_content: str
    html_content: str


def event_text(event_type: str) -> str:
    return EVENT_TEXT.get(event_type, "Reservation Update")


def personalized_message(
    role: UserRole,
    event_label: str,
    title: str,
    creator_name: str,
    course_name: str | None,
) -> str:
    course_text = f' for the course "{course_name}"' if course_name else ""
    event_label = event_label.lower()
    if role == UserRole.professor:
        return (
            f'A {event_label} was registered: "{title}"{course_text}. '
            "As the course professor, you are being notified about this schedule change."
        )
    if role == UserRole.student:
        return (
            f'A {event_label} was registered: "{title}"{course_text}. '
            "As an enrolled student, we are keeping you informed about class schedule changes."
        )
    if role in {UserRole.admin, UserRole.coordinator}:
        return (
            f'A {event_label} was registered: "{title}" created by {creator_name}{course_text}. '
            f"As {role.value}, you receive this notification for your information."
        )
    return f'A {event_label} was registered: "{title}" by {creator_name}{course_text}.'


def _as_local(value: datetime, tz: tzinfo | None) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz or timezone.utc)


def render_reservation_email(
    *,
    reservation: Reservation,
    recipient: User,
    event_type: str,
    room_name: str,
    course_name: str | None,
    creator_name: str,
    tz: tzinfo | None = None,
) -> RenderedEmail:
    label = event_text(event_type)
    subject = f"Room Reservation - {label}"
    start = _as_local(reservation.start_datetime, tz)
    end = _as_local(reservation.end_datetime, tz)
    date_text = start.strftime("%A, %B %d, %Y")
    time_text = f"{start:%H:%M} - {end:%H:%M}"
    message = personalized_message(recipient.role, label, reservation.title, creator_name, course_name)

    rows: list[tuple[str, str]] = [
        ("Title", reservation.title),
        ("Date", date_text),
        ("Time", time_text),
        ("Room", room_name),
    ]
    if course_name:
        rows.append(("Course", course_name))
    if reservation.description:
        rows.append(("Description", reservation.description))

    text_lines = [subject, "", f"Hello {recipient.name},", "", message, ""]
    text_lines.extend(f"{name}: {value}" for name, value in rows)
    text_lines.extend(["", "This is an automated message from the Room Reservation System."])

    table_rows = "".join(
        f"<tr><td style=\"padding: 8px 0; font-weight: bold; color: #555;\">{html.escape(name)}:</td>"
        f"<td style=\"padding: 8px 0; color: #333;\">{html.escape(value)}</td></tr>"
        for name, value in rows
    )
    html_content = (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;\">"
        f"<h2 style=\"color: #333;\">{html.escape(subject)}</h2>"
        f"<p>Hello {html.escape(recipient.name)},</p>"
        f"<p>{html.escape(message)}</p>"
        "<h3 style=\"color: #333;\">Reservation Details</h3>"
        f"<table style=\"width: 100%; border-collapse: collapse;\">{table_rows}</table>"
        "<p style=\"color: #666; font-size: 14px;\">"
        "This is an automated message from the Room Reservation System.</p>"
        "</div>"
    )
    return RenderedEmail(subject=subject, message=message, text_content="\n".join(text_lines), html_content=html_content)


def notification_recipients(db: Session, reservation: Reservation, course: Course | None) -> list[User]:
    """Active admins and coordinators, the course professor and the creator, without duplicates."""
    recipients: dict[str, User] = {}
    staff = db.execute(
        select(User)
        .where(
            User.role.in_([UserRole.admin, UserRole.coordinator]),
            User.is_active.is_(True),
        )
        .order_by(User.name)
    ).scalars()
    for user in staff:
        recipients[user.id] = user

    for user_id in (course.professor_id if course else None, reservation.created_by):
        if not user_id or user_id in recipients:
            continue
        user = db.get(User, user_id)
        if user is not None and user.is_active:
            recipients[user.id] = user
    return list(recipients.values())


class EmailReservationNotifier:
    """Records in-app notifications and queues e-mails for a reservation event.

    E-mails are handed to ``background_tasks`` so they go out after the
    response is sent; without it they are delivered inline. Delivery failures
    are logged and never propagate.
    """

    def __init__(
        self,
        db: Session,
        background_tasks: BackgroundTasks | None = None,
        *,
        deliver_email: bool = True,
        tz: tzinfo | None = None,
    ) -> None:
        self.db = db
        self.background_tasks = background_tasks
        self.deliver_email = deliver_email
        self.tz = tz

    def notify_reservation_event(self, reservation_id: str, event_type: str) -> None:
        reservation = self.db.get(Reservation, reservation_id)
        if reservation is None:
            logger.warning("Reservation %s not found; skipping %s notification", reservation_id, event_type)
            return

        room = self.db.get(Room, reservation.room_id)
        course = self.db.get(Course, reservation.course_id) if reservation.course_id else None
        creator = self.db.get(User, reservation.created_by) if reservation.created_by else None
        recipients = notification_recipients(self.db, reservation, course)
        logger.info(
            "Processing %s notification for reservation %s: %d recipient(s)",
            event_type,
            reservation_id,
            len(recipients),
        )

        try:
            for recipient in recipients:
                rendered = render_reservation_email(
                    reservation=reservation,
                    recipient=recipient,
                    event_type=event_type,
                    room_name=room.name if room else "Unspecified room",
                    course_name=course.name if course else None,
                    creator_name=creator.name if creator else "User",
                    tz=self.tz,
                )
                create_notification(
                    self.db,
                    recipient=recipient,
                    title=rendered.subject,
                    message=rendered.message,
                    notification_type=NotificationType.reservation,
                )
                if self.deliver_email and recipient.email:
                    self._queue_email(recipient.email, rendered)
            self.db.commit()
        except Exception:
            # Drop notifications flushed for earlier recipients; the session is shared with the store.
            self.db.rollback()
            raise

    def _queue_email(self, to_email: str, rendered: RenderedEmail) -> None:
        kwargs = {
            "to_email": to_email,
            "subject": rendered.subject,
            "text_content": rendered.text_content,
            "html_content": rendered.html_content,
        }
        if self.background_tasks is not None:
            self.background_tasks.add_task(deliver_email_quietly, **kwargs)
            return
        deliver_email_quietly(**kwargs)
