# invoice_dashboard/models/client.py
"""
Client model for freelance customer management.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlmodel import Field, SQLModel


class Client(SQLModel, table=True):
    """
    Client model representing billed customers.

    Fields:
    - id: UUID primary key
    - name: Client name (required)
    - email: Email address (required, unique)
    - company: Company name
    - phone: Contact phone
    - final_amount: Amount to bill/remind. Kept equal to the sum of pending
      payments by FinalAmountService, but can be overridden manually.
    - created_at: Registration timestamp
    - updated_at: Last modification timestamp
    """

    __tablename__ = "clients"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(nullable=False)
    email: str = Field(nullable=False, unique=True, index=True)
    company: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)
    final_amount: Decimal = Field(
        default=Decimal("0.00"), max_digits=10, decimal_places=2, nullable=False
    )
    created_at: Optional[datetime] = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Payments are looked up by client_id (see PaymentService)
