# invoice_dashboard/services/email_service.py
"""
Outbound email for payment reminders (SMTP).

EmailService is built once at startup from Settings and kept on app.state;
handlers receive it through the `get_email_service` dependency.
"""
import logging
import smtplib
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from email.message import EmailMessage
from email.utils import make_msgid

from jinja2 import TemplateError

from ..core.config import Settings
from ..core.templates import format_currency, format_long_date, templates

logger = logging.getLogger(__name__)

REMINDER_TEMPLATE = "email/payment_reminder.html"


@dataclass
class ReminderResult:
    """Outcome of one reminder. A failed delivery is reported, not raised."""

    success: bool
    message_id: str | None = None
    error: str | None = None


class EmailService:
    """
    Sends formatted payment reminders through an SMTP server.
    """

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_user
        self.password = settings.smtp_password
        self.sender = settings.email_from or settings.smtp_user
        self.use_tls = settings.smtp_use_tls
        self.timeout = settings.smtp_timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.sender)

    def build_reminder_message(
        self,
        recipient_address: str,
        recipient_name: str,
        amount: Decimal,
        due_date: date,
        note: str | None = None,
    ) -> EmailMessage:
        """Plain-text + HTML reminder with a fresh Message-ID."""
        formatted_amount = format_currency(amount)
        formatted_date = format_long_date(due_date)

        html_body = templates.env.get_template(REMINDER_TEMPLATE).render(
            client_name=recipient_name,
            amount=formatted_amount,
            due_date=formatted_date,
            description=note,
        )
        plain_body = (
            f"Dear {recipient_name},\n\n"
            f"This is a friendly reminder that you have an outstanding payment.\n\n"
            f"Amount Due: {formatted_amount}\n"
            f"Due Date: {formatted_date}\n"
        )
        if note:
            plain_body += f"Description: {note}\n"
        plain_body += "\nThank you for your business!\n"

        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = recipient_address
        msg["Subject"] = f"Payment Reminder - {recipient_name}"
        msg["Message-ID"] = make_msgid()
        msg.set_content(plain_body)
        msg.add_alternative(html_body, subtype="html")
        return msg

    def send_payment_reminder(
        self,
        recipient_address: str,
        recipient_name: str,
        amount: Decimal,
        due_date: date,
        note: str | None = None,
    ) -> ReminderResult:
        """
        Send one reminder. Never raises: configuration, rendering and SMTP
        errors come back as a failed ReminderResult.
        """
        if not self.is_configured:
            logger.warning(f"SMTP not configured. Reminder to {recipient_address} not sent.")
            return ReminderResult(success=False, error="Email service not configured")
        if not recipient_address:
            return ReminderResult(success=False, error="Missing recipient email")

        try:
            msg = self.build_reminder_message(
                recipient_address, recipient_name, amount, due_date, note
            )
        except (TemplateError, ValueError) as e:
            logger.error(f"Error rendering reminder for {recipient_address}: {e}")
            return ReminderResult(success=False, error=str(e))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending payment reminder to {recipient_address}: {e}")
            return ReminderResult(success=False, error=str(e))

        logger.info(f"Payment reminder sent to {recipient_address}: {msg['Message-ID']}")
        return ReminderResult(success=True, message_id=msg["Message-ID"])
