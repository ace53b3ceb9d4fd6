# invoice_dashboard/api/clients/models.py
import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from ...core.constants import PaymentStatus


# --- Pydantic models (Client) ---
class Client(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    company: str | None = None
    phone: str | None = None
    final_amount: Decimal = Decimal("0.00")
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class ClientWithTotals(Client):
    total_payments: int = 0
    pending_amount: Decimal = Decimal("0.00")
    overdue_amount: Decimal = Decimal("0.00")


class ClientCreate(BaseModel):
    name: str
    email: str
    company: str | None = None
    phone: str | None = None


class ClientUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    company: str | None = None
    phone: str | None = None


class FinalAmountOverride(BaseModel):
    final_amount: Decimal | None = None


class DashboardSummary(BaseModel):
    total_clients: int
    total_pending: Decimal
    total_overdue: Decimal
    overdue_clients: int
    total_final_amount: Decimal


class ClientPayment(BaseModel):
    id: int
    client_id: uuid.UUID
    amount: Decimal
    due_date: date
    status: PaymentStatus
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)
