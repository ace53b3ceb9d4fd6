"""
Centralized constants for the dashboard.
Removes "magic strings" and gives strong typing to common values.
"""

from enum import Enum, unique


@unique
class PaymentStatus(str, Enum):
    """Lifecycle states of a payment."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


@unique
class EmailType(str, Enum):
    """Kinds of reminder emails recorded in the email log."""

    PAYMENT_REMINDER = "payment_reminder"
    CLIENT_REMINDER = "client_reminder"
    BULK_REMINDER = "bulk_reminder"


@unique
class EmailStatus(str, Enum):
    """Delivery outcome of a reminder email."""

    SENT = "sent"
    FAILED = "failed"


def counts_toward_final_amount(status: PaymentStatus | str) -> bool:
    """
    Whether a payment with this status is part of the client's final amount.

    Only pending payments count. Overdue amounts are excluded, so a client
    whose payments are all overdue reports a final amount of zero.
    """
    status = PaymentStatus(status)
    if status is PaymentStatus.PENDING:
        return True
    if status is PaymentStatus.PAID:
        return False
    if status is PaymentStatus.OVERDUE:
        return False
    raise ValueError(f"Unhandled payment status: {status!r}")


# Badge colours used by the dashboard template.
STATUS_BADGE_COLORS = {
    PaymentStatus.PENDING: "#f59e0b",
    PaymentStatus.PAID: "#16a34a",
    PaymentStatus.OVERDUE: "#dc2626",
}
