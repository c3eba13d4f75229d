from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from roombook.models.notification import Notification, NotificationType
from roombook.models.user import User
from roombook.services.email import EmailDeliveryError, send_email

logger = logging.getLogger(__name__)


def deliver_email_quietly(*, to_email: str, subject: str, text_content: str, html_content: str | None = None) -> bool:
    """Send one e-mail, logging instead of raising on transport failure."""
    try:
        send_email(to_email=to_email, subject=subject, text_content=text_content, html_content=html_content)
    except EmailDeliveryError:
        logger.warning("Notification email delivery failed for %s", to_email, exc_info=True)
        return False
    return True


def create_notification(
    db: Session,
    *,
    recipient: User,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.system,
) -> Notification:
    record = Notification(
        user_id=recipient.id,
        title=title,
        message=message,
        notification_type=notification_type,
    )
    db.add(record)
    db.flush()
    return record
