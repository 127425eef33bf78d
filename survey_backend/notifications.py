"""Thank-you mails sent after a response has been recorded.

Delivery is best effort. :meth:`NotificationDispatcher.notify` never raises;
the outcome is returned as a :class:`DeliveryResult` and surfaces to the
client only as the ``email_sent`` flag.
"""
import html
import logging
import smtplib
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional, Protocol

from starlette.concurrency import run_in_threadpool

from . import config, errors

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DeliveryResult:
    success: bool
    detail: str
    message_id: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)


class Mailer(Protocol):
    async def send(self, recipient: str, subject: str, body: str) -> str:
        """Deliver an HTML mail and return its message id."""
        ...


class SmtpMailer:
    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        timeout: float = 10,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _build_message(self, recipient: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = recipient
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(body, subtype="html")
        return message

    def _send_blocking(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(message)

    async def send(self, recipient: str, subject: str, body: str) -> str:
        message = self._build_message(recipient, subject, body)
        try:
            # smtplib blocks; keep it off the event loop
            await run_in_threadpool(self._send_blocking, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise errors.NotificationFailed(details=str(exc)) from exc
        return message["Message-ID"]


class ConsoleMailer:
    """Logs mails instead of sending them (no SMTP credentials configured)."""

    async def send(self, recipient: str, subject: str, body: str) -> str:
        message_id = f"<{uuid.uuid4()}@console>"
        logger.info("Console mail %s to %s: %s", message_id, recipient, subject)
        logger.debug("Console mail body:\n%s", body)
        return message_id


def render_thank_you_email(
    respondent_name: str, survey_title: str, sent_at: datetime, reference: str
) -> str:
    name = html.escape(respondent_name)
    title = html.escape(survey_title)
    formatted_date = f"{sent_at:%B} {sent_at.day}, {sent_at:%Y}"
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Thank You for Your Survey Response</title>
</head>
<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #eaeaea; border-radius: 5px;">
    <div style="text-align: center; padding: 20px; background-color: #f8f9fa;">
      <h1 style="color: #4a86e8; margin: 0; font-size: 24px;">Thank You!</h1>
      <p style="margin: 5px 0 0 0; color: #666;">Your feedback is important to us</p>
    </div>
    <div style="padding: 20px; background-color: #ffffff;">
      <p>Hello <strong>{name}</strong>,</p>
      <p>Thank you for taking the time to complete our <strong>{title}</strong> on {formatted_date}.</p>
      <p>Our team carefully reviews all submissions to improve our services.</p>
    </div>
    <div style="padding: 20px; text-align: center; font-size: 12px; color: #777; border-top: 1px solid #eaeaea;">
      <p>Best regards,<br><strong>Career Services Team</strong></p>
      <p>Timestamp: {sent_at.isoformat()} | Ref: {html.escape(reference)}</p>
    </div>
  </div>
</body>
</html>
"""


class NotificationDispatcher:
    def __init__(
        self,
        mailer: Mailer,
        default_survey_title: str = config.DEFAULT_SURVEY_TITLE,
        reference: str = config.SERVICE_USERNAME,
    ):
        self.mailer = mailer
        self.default_survey_title = default_survey_title
        self.reference = reference

    async def notify(
        self,
        respondent_name: str,
        respondent_email: str,
        survey_title: Optional[str] = None,
    ) -> DeliveryResult:
        title = survey_title or self.default_survey_title
        sent_at = _utcnow()
        subject = f"Thank You for Completing Our {title}"
        body = render_thank_you_email(respondent_name, title, sent_at, self.reference)

        logger.info(
            "Sending thank you email to %s (%s)", respondent_name, respondent_email
        )
        try:
            message_id = await self.mailer.send(respondent_email, subject, body)
        except Exception as exc:
            # Delivery problems must never reach the caller as an error
            logger.warning("Error sending email to %s: %s", respondent_email, exc)
            return DeliveryResult(success=False, detail=str(exc), timestamp=sent_at)

        logger.info("Email sent: %s", message_id)
        return DeliveryResult(
            success=True, detail="sent", message_id=message_id, timestamp=sent_at
        )


def build_mailer() -> Mailer:
    if config.EMAIL_USER and config.EMAIL_PASS:
        return SmtpMailer(
            host=config.EMAIL_HOST,
            port=config.EMAIL_PORT,
            sender=config.EMAIL_FROM,
            username=config.EMAIL_USER,
            password=config.EMAIL_PASS,
            use_tls=config.EMAIL_USE_TLS,
            timeout=config.EMAIL_TIMEOUT,
        )
    logger.info("No email credentials found, thank-you mails are logged only")
    return ConsoleMailer()


_dispatcher: Optional[NotificationDispatcher] = None


def get_notification_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency; the dispatcher is built on first use."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher(build_mailer())
    return _dispatcher
