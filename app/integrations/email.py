from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailNotConfigured(RuntimeError):
    pass


def smtp_ready() -> bool:
    return bool(settings.smtp_host and (settings.smtp_from or settings.smtp_user))


def _sender() -> str:
    return settings.smtp_from or settings.smtp_user or ""


def _login(server: smtplib.SMTP) -> None:
    # Gmail app passwords are often copied with spaces every 4 chars.
    password = (settings.smtp_password or "").replace(" ", "")
    if settings.smtp_user and password:
        server.login(settings.smtp_user, password)


def _deliver(msg: EmailMessage, context: ssl.SSLContext) -> None:
    host = settings.smtp_host or ""
    if settings.smtp_use_tls:
        with smtplib.SMTP(host, settings.smtp_port, timeout=15) as server:
            server.starttls(context=context)
            _login(server)
            server.send_message(msg)
        return

    with smtplib.SMTP_SSL(host, settings.smtp_port, context=context, timeout=15) as server:
        _login(server)
        server.send_message(msg)


def build_outreach_message(*, to: str, subject: str, body: str) -> EmailMessage:
    """Raises ``ValueError`` when a header value carries a line break."""
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = _sender()
    msg["To"] = to
    msg.set_content(body)
    return msg


def send_outreach_email(*, to: str, subject: str, body: str) -> bool:
    """Send one outreach message as plain text. Returns False when delivery failed."""
    if not smtp_ready():
        raise EmailNotConfigured("Email sending is not configured. Set SMTP_HOST and SMTP_FROM.")

    try:
        msg = build_outreach_message(to=to, subject=subject, body=body)
    except ValueError as exc:
        logger.warning("outreach_email_rejected: %s", exc)
        return False

    try:
        _deliver(msg, ssl.create_default_context())
    except (smtplib.SMTPException, OSError) as exc:
        logger.exception(
            "outreach_email_failed host=%s port=%s mode=%s: %s",
            settings.smtp_host,
            settings.smtp_port,
            "STARTTLS" if settings.smtp_use_tls else "SSL",
            exc,
        )
        return False
    logger.info("outreach_email_sent to_domain=%s", to.rsplit("@", 1)[-1])
    return True
