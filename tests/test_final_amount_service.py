import logging
import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from conftest import insert_payment, make_client, stored_final_amount
from invoice_dashboard.core.constants import PaymentStatus, counts_toward_final_amount
from invoice_dashboard.core.exceptions import (
    InvalidArgumentError,
    NotFoundError,
    StoreUnavailableError,
)
from invoice_dashboard.models import Client, EmailLog, Payment
from invoice_dashboard.services import final_amount_service as fas_module
from invoice_dashboard.services.final_amount_service import FinalAmountService


@pytest.fixture
def service(session):
    return FinalAmountService(session, verify_delay=0, max_verify_attempts=2)


def test_recompute_counts_only_pending_payments(session, service):
    acme = make_client(session, "Acme")
    insert_payment(session, acme, "500.00", PaymentStatus.PENDING.value)
    insert_payment(session, acme, "200.00", PaymentStatus.OVERDUE.value)
    insert_payment(session, acme, "300.00", PaymentStatus.PAID.value)

    result = service.recompute_and_store(acme.id)

    assert result == Decimal("500.00")
    assert stored_final_amount(session, acme.id) == Decimal("500.00")


def test_recompute_is_exact_to_the_cent(session, service):
    client = make_client(session, "Cents")
    for amount in ("0.10", "0.20", "19.99", "19.99", "19.99"):
        insert_payment(session, client, amount)

    assert service.recompute_and_store(client.id) == Decimal("60.27")
    assert stored_final_amount(session, client.id) == Decimal("60.27")


def test_recompute_is_idempotent(session, service):
    client = make_client(session)
    insert_payment(session, client, "125.50")

    first = service.recompute_and_store(client.id)
    second = service.recompute_and_store(client.id)

    assert first == second == Decimal("125.50")
    assert stored_final_amount(session, client.id) == Decimal("125.50")


def test_client_without_payments_has_zero(session, service):
    client = make_client(session, final_amount=Decimal("80.00"))

    assert service.recompute_and_store(client.id) == Decimal("0.00")
    assert stored_final_amount(session, client.id) == Decimal("0.00")


def test_overdue_and_paid_amounts_do_not_count(session, service):
    # A client whose payments are all overdue reports zero. This is the
    # current behavior even though those amounts are still owed.
    client = make_client(session)
    insert_payment(session, client, "200.00", PaymentStatus.OVERDUE.value)
    insert_payment(session, client, "300.00", PaymentStatus.PAID.value)

    assert service.recompute_and_store(client.id) == Decimal("0.00")


def test_recompute_overwrites_manual_override(session, service):
    client = make_client(session)
    insert_payment(session, client, "40.00")
    service.override_final_amount(client.id, "999.99")

    assert service.recompute_and_store(client.id) == Decimal("40.00")


def test_recompute_unknown_client_raises_not_found(service):
    with pytest.raises(NotFoundError):
        service.recompute_and_store(uuid.uuid4())


def test_recompute_touches_updated_at(session, service):
    client = make_client(session)
    before = client.updated_at

    service.recompute_and_store(client.id)
    session.refresh(client)

    assert client.updated_at >= before


def test_store_failure_surfaces_as_store_unavailable(session, service, monkeypatch):
    client = make_client(session)
    insert_payment(session, client, "10.00")

    def failing_commit():
        raise OperationalError("UPDATE clients", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "commit", failing_commit)

    with pytest.raises(StoreUnavailableError):
        service.recompute_and_store(client.id)


def test_override_sets_value(session, service):
    client = make_client(session)

    assert service.override_final_amount(client.id, 750) == Decimal("750.00")
    assert stored_final_amount(session, client.id) == Decimal("750.00")


def test_override_accepts_zero(session, service):
    client = make_client(session, final_amount=Decimal("10.00"))

    assert service.override_final_amount(client.id, "0") == Decimal("0.00")


@pytest.mark.parametrize("value", [-1, "-0.01", "abc", None])
def test_override_rejects_invalid_values(session, service, value):
    client = make_client(session)

    with pytest.raises(InvalidArgumentError):
        service.override_final_amount(client.id, value)
    assert stored_final_amount(session, client.id) == Decimal("0.00")


def test_override_unknown_client_raises_not_found(service):
    with pytest.raises(NotFoundError):
        service.override_final_amount(uuid.uuid4(), 10)


def test_sync_all_updates_every_client(session, service):
    clients = [make_client(session, f"Client {i}", final_amount=Decimal("999.00")) for i in range(3)]
    insert_payment(session, clients[0], "100.00")
    insert_payment(session, clients[1], "50.25")
    insert_payment(session, clients[1], "49.75")
    insert_payment(session, clients[2], "70.00", PaymentStatus.PAID.value)

    assert service.sync_all() == 3
    assert stored_final_amount(session, clients[0].id) == Decimal("100.00")
    assert stored_final_amount(session, clients[1].id) == Decimal("100.00")
    assert stored_final_amount(session, clients[2].id) == Decimal("0.00")


def test_sync_all_continues_past_a_failing_client(session, service, monkeypatch):
    good = make_client(session, "Good", final_amount=Decimal("5.00"))
    bad = make_client(session, "Bad")
    original = service.recompute_and_store

    def flaky(client_id):
        if client_id == bad.id:
            raise StoreUnavailableError("database is locked")
        return original(client_id)

    monkeypatch.setattr(service, "recompute_and_store", flaky)

    assert service.sync_all() == 1
    assert stored_final_amount(session, good.id) == Decimal("0.00")


def test_sync_all_with_no_clients(service):
    assert service.sync_all() == 0


def test_verify_returns_value_when_read_back_matches(session, service, monkeypatch):
    client = make_client(session)
    insert_payment(session, client, "33.33")
    sleeps = []
    monkeypatch.setattr(fas_module.time, "sleep", sleeps.append)

    assert service.recompute_and_verify(client.id) == Decimal("33.33")
    # One pause between the write and the read-back
    assert sleeps == [0]


def test_verify_retries_once_after_mismatch(session, service, monkeypatch):
    client = make_client(session)
    insert_payment(session, client, "33.33")
    reads = iter([Decimal("0.00"), Decimal("33.33")])
    sleeps = []
    monkeypatch.setattr(service, "_read_back", lambda client_id: next(reads))
    monkeypatch.setattr(fas_module.time, "sleep", sleeps.append)

    assert service.recompute_and_verify(client.id) == Decimal("33.33")
    assert sleeps == [0, 0]


def test_verify_logs_persistent_mismatch_without_raising(session, service, monkeypatch, caplog):
    client = make_client(session)
    insert_payment(session, client, "12.00")
    sleeps = []
    monkeypatch.setattr(service, "_read_back", lambda client_id: Decimal("1.00"))
    monkeypatch.setattr(fas_module.time, "sleep", sleeps.append)

    with caplog.at_level(logging.WARNING, logger=fas_module.__name__):
        result = service.recompute_and_verify(client.id)

    assert result == Decimal("12.00")
    # Bounded: two read-backs, each after a pause
    assert len(sleeps) == 2
    assert any("anomaly" in record.getMessage() for record in caplog.records)
    assert stored_final_amount(session, client.id) == Decimal("12.00")


def test_status_matching_is_exhaustive():
    assert counts_toward_final_amount(PaymentStatus.PENDING) is True
    assert counts_toward_final_amount("paid") is False
    assert counts_toward_final_amount(PaymentStatus.OVERDUE) is False
    with pytest.raises(ValueError):
        counts_toward_final_amount("cancelled")


def test_new_rows_get_timezone_aware_timestamps():
    client = Client(name="Acme", email="acme@example.com")
    payment = Payment(client_id=client.id, amount=Decimal("1.00"), due_date=date(2030, 1, 1))
    log = EmailLog(client_id=client.id, email_type="client_reminder", status="sent")

    for value in (client.created_at, client.updated_at, payment.created_at, payment.updated_at, log.sent_at):
        assert value.tzinfo is not None


def test_recompute_writes_timezone_aware_updated_at(session, service):
    client = make_client(session)
    insert_payment(session, client, "10.00")
    flushed = []

    def capture(sess, flush_context, instances):
        flushed.extend(obj.updated_at for obj in sess.dirty if isinstance(obj, Client))

    event.listen(session, "before_flush", capture)
    try:
        service.recompute_and_store(client.id)
    finally:
        event.remove(session, "before_flush", capture)

    assert flushed
    assert all(value.tzinfo is not None for value in flushed)
