# invoice_dashboard/services/payment_service.py
"""
Payment service layer using SQLModel ORM.

Every create/update/delete recomputes the affected client's final amount
before returning. The overdue sweep resynchronizes every client afterwards.
"""
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.constants import PaymentStatus
from ..core.exceptions import InvalidArgumentError, NotFoundError, StoreUnavailableError
from ..models import Client, Payment
from ..utils.money import to_positive_money
from .base_service import BaseCRUDService
from .final_amount_service import FinalAmountService

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("amount", "due_date", "status", "description")


class PaymentService(BaseCRUDService[Payment]):
    """
    Service layer for Payment operations using SQLModel ORM.
    """

    def __init__(self, session: Session, final_amounts: Optional[FinalAmountService] = None):
        """
        Initialize with a SQLModel session.

        Args:
            session: SQLModel Session instance
            final_amounts: Synchronizer to notify on changes (built from the
                same session when omitted)
        """
        super().__init__(session, Payment)
        self.final_amounts = final_amounts or FinalAmountService(session)

    # --- Queries ---
    def _with_client_info(self, statement) -> List[Dict[str, Any]]:
        try:
            rows = self.session.exec(statement).all()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Error reading payments: {e}") from e
        results = []
        for payment, client_name, client_email, client_company in rows:
            payment_dict = payment.model_dump()
            payment_dict["client_name"] = client_name
            payment_dict["client_email"] = client_email
            payment_dict["client_company"] = client_company
            results.append(payment_dict)
        return results

    def _joined_select(self):
        return select(Payment, Client.name, Client.email, Client.company).join(
            Client, Payment.client_id == Client.id
        )

    def get_all_payments(self) -> List[Dict[str, Any]]:
        """All payments with client info, soonest due first."""
        statement = self._joined_select().order_by(Payment.due_date.asc(), Payment.id)
        return self._with_client_info(statement)

    def get_payment_by_id(self, payment_id: int) -> Dict[str, Any]:
        """Get a single payment with client info."""
        statement = self._joined_select().where(Payment.id == payment_id)
        results = self._with_client_info(statement)
        if not results:
            raise NotFoundError(f"Payment {payment_id} not found.")
        return results[0]

    def get_payments_for_client(self, client_id: uuid.UUID) -> List[Dict[str, Any]]:
        """Get all payments for a client, latest due date first."""
        statement = (
            select(Payment)
            .where(Payment.client_id == client_id)
            .order_by(Payment.due_date.desc(), Payment.id.desc())
        )
        return [payment.model_dump() for payment in self.session.exec(statement).all()]

    def get_overdue_payments(self) -> List[Dict[str, Any]]:
        """Overdue payments with client info, oldest due date first."""
        statement = (
            self._joined_select()
            .where(Payment.status == PaymentStatus.OVERDUE.value)
            .order_by(Payment.due_date.asc(), Payment.id)
        )
        return self._with_client_info(statement)

    # --- Mutations ---
    def create_payment(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a new payment and resync the client's final amount.

        Args:
            data: client_id, amount, due_date, and optionally status, description

        Returns:
            Created payment as dict
        """
        client_id = data.get("client_id")
        if not client_id:
            raise InvalidArgumentError("client_id is required")
        if not data.get("due_date"):
            raise InvalidArgumentError("due_date is required")
        if not self.session.get(Client, client_id):
            raise NotFoundError(f"Client {client_id} not found.")

        payment_data = {
            "client_id": client_id,
            "amount": to_positive_money(data.get("amount")),
            "due_date": _to_date(data["due_date"]),
            "status": _to_status(data.get("status") or PaymentStatus.PENDING).value,
            "description": data.get("description"),
        }
        new_payment = self.create(payment_data)
        logger.info(f"Payment {new_payment.id} registered for client {client_id}.")

        self.final_amounts.recompute_and_store(new_payment.client_id)
        # The recompute commit expired the instance
        self.session.refresh(new_payment)
        return new_payment.model_dump()

    def update_payment(self, payment_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """Update amount, due date, status or description, then resync the client."""
        changes = {key: value for key, value in data.items() if key in UPDATABLE_FIELDS}
        if not changes:
            raise InvalidArgumentError("No fields to update provided.")

        if "amount" in changes:
            changes["amount"] = to_positive_money(changes["amount"])
        if "due_date" in changes:
            if not changes["due_date"]:
                raise InvalidArgumentError("due_date is required")
            changes["due_date"] = _to_date(changes["due_date"])
        if "status" in changes:
            changes["status"] = _to_status(changes["status"]).value

        payment = self.update(payment_id, changes)
        self.final_amounts.recompute_and_store(payment.client_id)
        self.session.refresh(payment)
        return payment.model_dump()

    def delete_payment(self, payment_id: int) -> None:
        """Delete a payment, then resync its client."""
        payment = self.get_by_id(payment_id)
        client_id = payment.client_id
        self.delete(payment_id)
        logger.info(f"Payment {payment_id} deleted for client {client_id}.")
        self.final_amounts.recompute_and_store(client_id)

    def mark_overdue_payments(self, today: Optional[date] = None) -> int:
        """
        Flip pending payments whose due date has passed to overdue, then
        resynchronize every client.

        Returns:
            Number of payments marked overdue.
        """
        today = today or date.today()
        statement = (
            update(Payment)
            .where(Payment.due_date < today, Payment.status == PaymentStatus.PENDING.value)
            .values(status=PaymentStatus.OVERDUE.value, updated_at=datetime.now(timezone.utc))
        )
        try:
            result = self.session.exec(statement)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreUnavailableError(f"Error updating overdue payments: {e}") from e

        updated = result.rowcount or 0
        logger.info(f"{updated} payments marked as overdue.")
        self.final_amounts.sync_all()
        return updated


def _to_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise InvalidArgumentError(f"due_date must be an ISO date (YYYY-MM-DD), got {value!r}")


def _to_status(value) -> PaymentStatus:
    try:
        return PaymentStatus(value)
    except ValueError:
        allowed = ", ".join(status.value for status in PaymentStatus)
        raise InvalidArgumentError(f"status must be one of: {allowed}")
