import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ...core.constants import EmailStatus, EmailType


class ReminderResponse(BaseModel):
    success: bool
    message: str
    message_id: str | None = None
    error: str | None = None


class BulkReminderItem(BaseModel):
    payment_id: int
    client_name: str
    success: bool
    message_id: str | None = None
    error: str | None = None


class BulkReminderResponse(BaseModel):
    success: bool
    message: str
    sent: int
    failed: int
    results: list[BulkReminderItem]


class EmailTestRequest(BaseModel):
    to: str
    message: str


class EmailLogEntry(BaseModel):
    id: int
    client_id: uuid.UUID
    email_type: EmailType
    status: EmailStatus
    message_id: str | None = None
    error: str | None = None
    sent_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)
