from __future__ import annotations

from dataclasses import dataclass
from email.message import EmailMessage
import logging
import smtplib
import ssl
import time

from roombook.core.config import get_settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    pass


@dataclass(frozen=True)
class SmtpEndpoint:
    host: str
    port: int
    username: str | None
    password: str
    from_email: str
    from_name: str | None
    use_tls: bool
    use_ssl: bool


def _build_message(endpoint: SmtpEndpoint, *, to_email: str, subject: str, text_content: str, html_content: str | None) -> EmailMessage:
    message = EmailMessage()
    if endpoint.from_name:
        message["From"] = f"{endpoint.from_name} <{endpoint.from_email}>"
    else:
        message["From"] = endpoint.from_email
    message["To"] = to_email
    message["Subject"] = subject
    message.set_content(text_content)
    if html_content:
        message.add_alternative(html_content, subtype="html")
    return message


def resolve_endpoints(settings) -> list[SmtpEndpoint]:
    endpoints: list[SmtpEndpoint] = []
    if settings.smtp_host and settings.smtp_from_email:
        endpoints.append(
            SmtpEndpoint(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username,
                password=settings.smtp_password or "",
                from_email=settings.smtp_from_email,
                from_name=settings.smtp_from_name,
                use_tls=settings.smtp_use_tls,
                use_ssl=settings.smtp_use_ssl,
            )
        )
    backup_from = settings.smtp_backup_from_email or settings.smtp_from_email
    if settings.smtp_backup_host and backup_from:
        backup = SmtpEndpoint(
            host=settings.smtp_backup_host,
            port=settings.smtp_backup_port,
            username=settings.smtp_backup_username,
            password=settings.smtp_backup_password or "",
            from_email=backup_from,
            from_name=settings.smtp_from_name,
            use_tls=settings.smtp_backup_use_tls,
            use_ssl=settings.smtp_backup_use_ssl,
        )
        if all((item.host, item.port) != (backup.host, backup.port) for item in endpoints):
            endpoints.append(backup)
    if not endpoints:
        raise EmailDeliveryError("SMTP is not configured")
    return endpoints


def _deliver(endpoint: SmtpEndpoint, message: EmailMessage, timeout: int) -> None:
    if endpoint.use_ssl:
        with smtplib.SMTP_SSL(endpoint.host, endpoint.port, timeout=timeout) as smtp:
            if endpoint.username:
                smtp.login(endpoint.username, endpoint.password)
            smtp.send_message(message)
        return

    with smtplib.SMTP(endpoint.host, endpoint.port, timeout=timeout) as smtp:
        if endpoint.use_tls:
            smtp.starttls(context=ssl.create_default_context())
        if endpoint.username:
            smtp.login(endpoint.username, endpoint.password)
        smtp.send_message(message)


def _is_connection_issue(exc: Exception) -> bool:
    return isinstance(
        exc,
        (
            smtplib.SMTPConnectError,
            smtplib.SMTPServerDisconnected,
            smtplib.SMTPHeloError,
            OSError,
            TimeoutError,
        ),
    )


def send_email(*, to_email: str, subject: str, text_content: str, html_content: str | None = None) -> None:
    """Deliver through the primary endpoint, falling back to the backup one.

    Connection problems are retried with linear backoff; authentication and
    rejection errors move straight to the next endpoint.
    """
    settings = get_settings()
    endpoints = resolve_endpoints(settings)
    timeout = max(1, settings.smtp_timeout_seconds)
    retry_attempts = max(1, settings.smtp_retry_attempts)
    retry_backoff_seconds = max(0.0, settings.smtp_retry_backoff_seconds)

    last_error: Exception | None = None
    last_error_message = "Unable to deliver email"

    for endpoint in endpoints:
        message = _build_message(
            endpoint,
            to_email=to_email,
            subject=subject,
            text_content=text_content,
            html_content=html_content,
        )
        for attempt in range(1, retry_attempts + 1):
            try:
                _deliver(endpoint, message, timeout)
                return
            except smtplib.SMTPAuthenticationError as exc:  # pragma: no cover - transport-specific behavior
                last_error = exc
                last_error_message = "SMTP authentication failed"
                break
            except (smtplib.SMTPRecipientsRefused, smtplib.SMTPSenderRefused, smtplib.SMTPDataError) as exc:
                last_error = exc
                last_error_message = "SMTP message rejected"
                break
            except Exception as exc:
                last_error = exc
                if not _is_connection_issue(exc):
                    last_error_message = "Unable to deliver email"
                    break
                last_error_message = "SMTP connection failed"
                if attempt < retry_attempts and retry_backoff_seconds > 0:
                    time.sleep(retry_backoff_seconds * attempt)
        logger.info("SMTP endpoint %s:%s failed: %s", endpoint.host, endpoint.port, last_error_message)

    raise EmailDeliveryError(last_error_message) from last_error
