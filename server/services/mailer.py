"""SMTP mailer for account confirmation emails."""

import asyncio
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr
from typing import Protocol

from loguru import logger

from server.services.errors import EmailDeliveryError
from server.settings import Settings, global_settings

CONFIRMATION_SUBJECT = "Confirm Your M.A.M.A. Account"


class Mailer(Protocol):
    async def send_confirmation_code(
        self, recipient: str, code: str, ttl_minutes: int
    ) -> None: ...


def build_confirmation_message(
    sender: str, recipient: str, code: str, ttl_minutes: int
) -> EmailMessage:
    """Build the text + HTML confirmation email."""
    message = EmailMessage()
    message["From"] = sender
    message["To"] = recipient
    message["Subject"] = CONFIRMATION_SUBJECT
    message.set_content(
        f"Your confirmation code is: {code}. It expires in {ttl_minutes} minutes."
    )
    message.add_alternative(
        "<h3>Confirm Your Account</h3>"
        f"<p>Your confirmation code is: <b>{code}</b></p>"
        f"<p>This code expires in {ttl_minutes} minutes.</p>",
        subtype="html",
    )
    return message


class SmtpMailer:
    """Sends mail through the configured SMTP server."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or global_settings

    @property
    def sender(self) -> str:
        return formataddr((self.settings.mail_from_name, self.settings.smtp_user))

    def is_configured(self) -> bool:
        return bool(self.settings.smtp_host)

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.smtp_secure:
            return smtplib.SMTP_SSL(
                s.smtp_host,
                s.smtp_port,
                timeout=s.smtp_timeout,
                context=ssl.create_default_context(),
            )

        smtp = smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout)
        try:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls(context=ssl.create_default_context())
                smtp.ehlo()
        except Exception:
            smtp.close()
            raise
        return smtp

    def send_message(self, message: EmailMessage) -> None:
        """Send a message synchronously."""
        with self._connect() as smtp:
            if self.settings.smtp_user:
                smtp.login(self.settings.smtp_user, self.settings.smtp_pass)
            smtp.send_message(message)

    async def send_confirmation_code(
        self, recipient: str, code: str, ttl_minutes: int
    ) -> None:
        """Send a confirmation code email.

        Args:
            recipient: Destination address
            code: Confirmation code
            ttl_minutes: Minutes until the code expires

        Raises:
            EmailDeliveryError: SMTP is not configured or sending failed
        """
        if not self.is_configured():
            raise EmailDeliveryError(recipient, "SMTP_HOST is not configured")

        message = build_confirmation_message(
            self.sender, recipient, code, ttl_minutes
        )
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.send_message, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending confirmation email to {recipient}: {e}")
            raise EmailDeliveryError(recipient, str(e)) from e

        logger.info(f"Confirmation email sent to {recipient}")
