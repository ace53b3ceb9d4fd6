# invoice_dashboard/services/reminder_service.py
"""
Reminder emails for payments and clients, with an email log per client.
"""
import logging
import uuid
from datetime import date
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.constants import EmailStatus, EmailType, PaymentStatus
from ..core.exceptions import InvalidArgumentError
from ..models import EmailLog, Payment
from ..utils.money import ZERO, to_money
from .client_service import ClientService
from .email_service import EmailService, ReminderResult
from .payment_service import PaymentService

logger = logging.getLogger(__name__)


class ReminderService:
    """
    Sends reminders through an EmailService and records each attempt.
    """

    def __init__(self, session: Session, email_service: EmailService):
        self.session = session
        self.email_service = email_service
        self.client_service = ClientService(session)
        self.payment_service = PaymentService(session)

    def send_payment_reminder(self, payment_id: int) -> ReminderResult:
        """Reminder for the amount and due date of one payment."""
        payment = self.payment_service.get_payment_by_id(payment_id)
        result = self.email_service.send_payment_reminder(
            payment["client_email"],
            payment["client_name"],
            to_money(payment["amount"]),
            payment["due_date"],
            payment.get("description"),
        )
        self._log(payment["client_id"], EmailType.PAYMENT_REMINDER, result)
        return result

    def send_client_reminder(self, client_id: uuid.UUID) -> ReminderResult:
        """
        Reminder for the client's final amount. The due date is the earliest
        open (pending or overdue) payment, or today when there is none.
        """
        client = self.client_service.get_by_id(client_id)
        amount = to_money(client.final_amount)
        if amount <= ZERO:
            raise InvalidArgumentError(f"Client {client.name} has no amount to remind.")

        statement = (
            select(Payment.due_date)
            .where(
                Payment.client_id == client_id,
                Payment.status.in_([PaymentStatus.PENDING.value, PaymentStatus.OVERDUE.value]),
            )
            .order_by(Payment.due_date.asc())
        )
        due_date = self.session.exec(statement).first() or date.today()

        result = self.email_service.send_payment_reminder(
            client.email, client.name, amount, due_date, None
        )
        self._log(client.id, EmailType.CLIENT_REMINDER, result)
        return result

    def send_bulk_reminders(self) -> List[Dict[str, Any]]:
        """One reminder per overdue payment. Failures are reported per item."""
        results = []
        for payment in self.payment_service.get_overdue_payments():
            result = self.email_service.send_payment_reminder(
                payment["client_email"],
                payment["client_name"],
                to_money(payment["amount"]),
                payment["due_date"],
                payment.get("description"),
            )
            self._log(payment["client_id"], EmailType.BULK_REMINDER, result)
            results.append(
                {
                    "payment_id": payment["id"],
                    "client_name": payment["client_name"],
                    "success": result.success,
                    "message_id": result.message_id,
                    "error": result.error,
                }
            )
        sent = sum(1 for r in results if r["success"])
        logger.info(f"Bulk reminders processed: {sent}/{len(results)} sent.")
        return results

    def get_email_logs(self, client_id: uuid.UUID) -> List[Dict[str, Any]]:
        statement = (
            select(EmailLog)
            .where(EmailLog.client_id == client_id)
            .order_by(EmailLog.sent_at.desc(), EmailLog.id.desc())
        )
        return [log.model_dump() for log in self.session.exec(statement).all()]

    def _log(self, client_id: uuid.UUID, email_type: EmailType, result: ReminderResult):
        entry = EmailLog(
            client_id=client_id,
            email_type=email_type.value,
            status=(EmailStatus.SENT if result.success else EmailStatus.FAILED).value,
            message_id=result.message_id,
            error=result.error,
        )
        try:
            self.session.add(entry)
            self.session.commit()
        except SQLAlchemyError as e:
            # The email already left; a missing log row must not turn it into a failure
            self.session.rollback()
            logger.error(f"Error logging {email_type.value} email for client {client_id}: {e}")
