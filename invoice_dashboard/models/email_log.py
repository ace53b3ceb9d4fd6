import uuid
from datetime import datetime, timezone

from sqlalchemy import String
from sqlmodel import Field, SQLModel

from ..core.constants import EmailStatus, EmailType


class EmailLog(SQLModel, table=True):
    """One row per reminder email attempt."""

    __tablename__ = "email_logs"

    id: int | None = Field(default=None, primary_key=True)
    client_id: uuid.UUID = Field(
        foreign_key="clients.id", ondelete="CASCADE", nullable=False, index=True
    )
    email_type: EmailType = Field(sa_type=String(32), nullable=False)
    status: EmailStatus = Field(sa_type=String(16), nullable=False)
    message_id: str | None = Field(default=None)
    error: str | None = Field(default=None)
    sent_at: datetime | None = Field(default_factory=lambda: datetime.now(timezone.utc))
