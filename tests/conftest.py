import os
from datetime import date
from decimal import Decimal

# Force tests to use in-memory SQLite by default to avoid touching any real DB.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SYNC_VERIFY_DELAY", "0")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, select

from invoice_dashboard import models  # noqa: F401
from invoice_dashboard.db.engine_sync import build_engine, get_sync_session
from invoice_dashboard.models import Client, Payment
from invoice_dashboard.services.email_service import ReminderResult


class FakeEmailService:
    """Records reminders instead of talking to an SMTP server."""

    is_configured = True

    def __init__(self):
        self.sent = []
        self.fail_with = None

    def send_payment_reminder(self, recipient_address, recipient_name, amount, due_date, note=None):
        self.sent.append(
            {
                "to": recipient_address,
                "name": recipient_name,
                "amount": amount,
                "due_date": due_date,
                "note": note,
            }
        )
        if self.fail_with:
            return ReminderResult(success=False, error=self.fail_with)
        return ReminderResult(success=True, message_id=f"<reminder-{len(self.sent)}@test>")


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def api_client(engine, email_service):
    from invoice_dashboard.api.reminders.main import get_email_service
    from invoice_dashboard.main import app

    def override_get_session():
        with Session(engine) as sess:
            yield sess

    app.dependency_overrides[get_sync_session] = override_get_session
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.state.email_service = email_service
    yield TestClient(app)
    app.dependency_overrides.clear()


# --- helpers ---

def make_client(session, name="Acme", email=None, final_amount=Decimal("0.00")) -> Client:
    client = Client(
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}@example.com",
        final_amount=final_amount,
    )
    session.add(client)
    session.commit()
    session.refresh(client)
    return client


def insert_payment(session, client, amount, status="pending", due_date=date(2030, 1, 1), description=None) -> Payment:
    """Insert a payment row directly, without triggering any recomputation."""
    payment = Payment(
        client_id=client.id,
        amount=Decimal(amount),
        due_date=due_date,
        status=status,
        description=description,
    )
    session.add(payment)
    session.commit()
    session.refresh(payment)
    return payment


def stored_final_amount(session, client_id) -> Decimal:
    return session.exec(select(Client.final_amount).where(Client.id == client_id)).one()
