# invoice_dashboard/services/client_service.py
"""
Client service layer using SQLModel ORM.
"""
import logging
import uuid
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.constants import PaymentStatus
from ..core.exceptions import InvalidArgumentError, StoreUnavailableError
from ..models import Client, Payment
from ..utils.money import ZERO, to_money
from .base_service import BaseCRUDService

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("name", "email", "company", "phone")


class ClientService(BaseCRUDService[Client]):
    """
    Service layer for Client operations using SQLModel ORM.
    `final_amount` is owned by FinalAmountService and is not writable here.
    """

    def __init__(self, session: Session):
        super().__init__(session, Client)

    def get_all_clients(self) -> List[Dict[str, Any]]:
        """
        Get all clients with their payment totals, ordered by name.
        Totals are summed as Decimal here, not with SQL SUM.
        """
        try:
            rows = self.session.exec(select(Client).order_by(Client.name, Client.id)).all()
            payments = self.session.exec(
                select(Payment.client_id, Payment.status, Payment.amount)
            ).all()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Error reading clients: {e}") from e

        clients = {}
        for client in rows:
            client_dict = client.model_dump()
            client_dict["total_payments"] = 0
            client_dict["pending_amount"] = ZERO
            client_dict["overdue_amount"] = ZERO
            clients[client.id] = client_dict

        for client_id, status, amount in payments:
            client_dict = clients.get(client_id)
            if client_dict is None:
                continue
            client_dict["total_payments"] += 1
            if status == PaymentStatus.PENDING:
                client_dict["pending_amount"] += to_money(amount)
            elif status == PaymentStatus.OVERDUE:
                client_dict["overdue_amount"] += to_money(amount)
        return list(clients.values())

    def get_client_by_id(self, client_id: uuid.UUID) -> Dict[str, Any]:
        """Get a single client by ID."""
        return self.get_by_id(client_id).model_dump()

    def create_client(self, client_data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a new client. The final amount always starts at zero."""
        data = _clean_contact_fields(client_data)
        if not data.get("name") or not data.get("email"):
            raise InvalidArgumentError("Name and email are required")
        self._ensure_email_available(data["email"])

        new_client = self.create({**data, "final_amount": ZERO})
        logger.info(f"Client {new_client.id} ({new_client.name}) created.")
        return new_client.model_dump()

    def update_client(self, client_id: uuid.UUID, client_update: Dict[str, Any]) -> Dict[str, Any]:
        """Update contact fields of an existing client."""
        data = _clean_contact_fields(client_update)
        if not data:
            raise InvalidArgumentError("No fields to update provided.")
        if "name" in data and not data["name"]:
            raise InvalidArgumentError("Name cannot be empty")
        if "email" in data:
            if not data["email"]:
                raise InvalidArgumentError("Email cannot be empty")
            self._ensure_email_available(data["email"], exclude_id=client_id)

        return self.update(client_id, data).model_dump()

    def delete_client(self, client_id: uuid.UUID):
        """Delete a client. The store cascades to its payments and email logs."""
        self.delete(client_id)
        logger.info(f"Client {client_id} deleted.")

    def get_summary(self) -> Dict[str, Any]:
        """Totals shown at the top of the dashboard."""
        clients = self.get_all_clients()
        return {
            "total_clients": len(clients),
            "total_pending": sum((c["pending_amount"] for c in clients), ZERO),
            "total_overdue": sum((c["overdue_amount"] for c in clients), ZERO),
            "overdue_clients": sum(1 for c in clients if c["overdue_amount"] > ZERO),
            "total_final_amount": sum((to_money(c["final_amount"]) for c in clients), ZERO),
        }

    def _ensure_email_available(self, email: str, exclude_id: uuid.UUID | None = None):
        statement = select(Client.id).where(Client.email == email)
        if exclude_id is not None:
            statement = statement.where(Client.id != exclude_id)
        if self.session.exec(statement).first() is not None:
            raise InvalidArgumentError("Email already exists")


def _clean_contact_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {}
    for key in CONTACT_FIELDS:
        if key in data:
            value = data[key]
            cleaned[key] = value.strip() if isinstance(value, str) else value
    return cleaned
