import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from ...core.constants import PaymentStatus


# --- Pydantic models (Payments) ---
class PaymentBase(BaseModel):
    amount: Decimal
    due_date: date
    status: PaymentStatus = PaymentStatus.PENDING
    description: str | None = None


class PaymentCreate(PaymentBase):
    client_id: uuid.UUID


class PaymentUpdate(BaseModel):
    amount: Decimal | None = None
    due_date: date | None = None
    status: PaymentStatus | None = None
    description: str | None = None


class Payment(PaymentBase):
    id: int
    client_id: uuid.UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class PaymentWithClient(Payment):
    client_name: str
    client_email: str
    client_company: str | None = None


class OverdueSweepResult(BaseModel):
    updated: int
    message: str


class SyncResult(BaseModel):
    total_clients: int
    synced: int
    failed: int
    message: str


class ClientSyncResult(BaseModel):
    client_id: uuid.UUID
    final_amount: Decimal
