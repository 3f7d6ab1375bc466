"""
Appointment confirmation emails
"""
import logging
import smtplib
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from fastapi import Request

from doctors_portal.core import config

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    def notify(self, email: str, treatment: str, appointment_date: date, slot: str) -> None:
        ...


class EmailNotifier:
    """Sends booking confirmations over SMTP."""

    def __init__(
        self,
        server: str = config.MAIL_SERVER,
        port: int = config.MAIL_PORT,
        use_tls: bool = config.MAIL_USE_TLS,
        username: str = config.MAIL_USERNAME,
        password: str = config.MAIL_PASSWORD,
        sender: str = config.MAIL_DEFAULT_SENDER,
        timeout: float = config.MAIL_TIMEOUT_SECONDS,
    ):
        self.server = server
        self.port = port
        self.use_tls = use_tls
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.password)

    def build_message(self, email: str, treatment: str, appointment_date: date, slot: str) -> MIMEMultipart:
        formatted_date = appointment_date.strftime('%b %d, %Y')

        msg = MIMEMultipart('alternative')
        msg['Subject'] = f'Your appointment for {treatment} on {formatted_date} at {slot} is confirmed'
        msg['From'] = self.sender
        msg['To'] = email

        text = f"""
Hello,

Your appointment for {treatment} is confirmed.

Looking forward to seeing you on {formatted_date} at {slot}.

Doctors Portal
        """
        html = f"""
<div>
    <p>Hello,</p>
    <h3>Your appointment for {treatment} is confirmed</h3>
    <p>Looking forward to seeing you on {formatted_date} at {slot}.</p>
    <p>Doctors Portal</p>
</div>
        """
        msg.attach(MIMEText(text, 'plain'))
        msg.attach(MIMEText(html, 'html'))
        return msg

    def notify(self, email: str, treatment: str, appointment_date: date, slot: str) -> None:
        if not self.is_configured:
            logger.warning("Email not configured. Skipping confirmation for %s.", email)
            return

        msg = self.build_message(email, treatment, appointment_date, slot)
        with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            smtp.login(self.username, self.password)
            smtp.send_message(msg)
        logger.info("Booking confirmation sent to %s", email)


def get_notifier(request: Request) -> NotificationSender:
    return request.app.state.notifier
