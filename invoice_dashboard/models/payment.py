# invoice_dashboard/models/payment.py
"""
Payment model for client payment tracking.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String
from sqlmodel import Field, SQLModel

from ..core.constants import PaymentStatus


class Payment(SQLModel, table=True):
    """
    Payment model representing amounts billed to a client.

    Fields:
    - id: Auto-increment primary key
    - client_id: Foreign key to clients table (required, cascades on delete)
    - amount: Amount billed, two decimal places (required, > 0)
    - due_date: Date the payment is due (required)
    - status: pending / paid / overdue
    - description: Free text
    """

    __tablename__ = "payments"

    id: int | None = Field(default=None, primary_key=True)
    client_id: uuid.UUID = Field(
        foreign_key="clients.id", ondelete="CASCADE", nullable=False, index=True
    )
    amount: Decimal = Field(max_digits=10, decimal_places=2, nullable=False)
    due_date: date = Field(nullable=False)
    status: PaymentStatus = Field(
        default=PaymentStatus.PENDING, sa_type=String(16), nullable=False, index=True
    )
    description: str | None = Field(default=None)
    created_at: datetime | None = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime | None = Field(default_factory=lambda: datetime.now(timezone.utc))
