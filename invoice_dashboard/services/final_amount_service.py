# invoice_dashboard/services/final_amount_service.py
"""
Keeps each client's persisted `final_amount` equal to the sum of its pending
payments.

Every payment mutation ends with `recompute_and_store` for the affected client,
which overwrites whatever was stored before, including a manual override.
Between runs the stored value may be stale; nothing enforces it continuously.
Concurrent writers for the same client are not coordinated: the last commit wins.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.config import get_settings
from ..core.constants import counts_toward_final_amount
from ..core.exceptions import NotFoundError, StoreUnavailableError
from ..models import Client, Payment
from ..utils.money import CENTS, ZERO, to_money, to_non_negative_money

logger = logging.getLogger(__name__)


class FinalAmountService:
    """
    Recomputes, verifies and overrides the client `final_amount` field.
    """

    def __init__(
        self,
        session: Session,
        verify_delay: float | None = None,
        max_verify_attempts: int | None = None,
    ):
        """
        Args:
            session: SQLModel Session instance
            verify_delay: Seconds to wait before re-reading after a mismatch
            max_verify_attempts: Upper bound on read-backs in recompute_and_verify
        """
        settings = get_settings()
        self.session = session
        self.verify_delay = settings.sync_verify_delay if verify_delay is None else verify_delay
        attempts = settings.sync_verify_attempts if max_verify_attempts is None else max_verify_attempts
        self.max_verify_attempts = max(1, attempts)

    def pending_total(self, client_id: uuid.UUID) -> Decimal:
        """Sum of the client's payments that count toward the final amount."""
        statement = select(Payment.status, Payment.amount).where(Payment.client_id == client_id)
        total = ZERO
        for status, amount in self.session.exec(statement).all():
            if counts_toward_final_amount(status):
                total += to_money(amount)
        return total.quantize(CENTS)

    def recompute_and_store(self, client_id: uuid.UUID) -> Decimal:
        """
        Recompute the pending sum and persist it as the client's final amount.

        Returns:
            The new final amount.

        Raises:
            NotFoundError: the client does not exist.
            StoreUnavailableError: reading or writing failed (rolled back).
        """
        try:
            client = self.session.get(Client, client_id)
            if not client:
                raise NotFoundError(f"Client {client_id} not found.")
            total = self.pending_total(client_id)
            self._write(client, total)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error storing final_amount for client {client_id}: {e}")
            raise StoreUnavailableError(f"Could not update final amount: {e}") from e

        logger.debug(f"final_amount for client {client_id} -> {total}")
        return total

    def recompute_and_verify(self, client_id: uuid.UUID) -> Decimal:
        """
        Same as recompute_and_store, then waits `verify_delay` and reads the
        value back from the store.

        A mismatch triggers another write, pause and read-back, at most
        `max_verify_attempts` read-backs in total. A mismatch that persists is
        logged, not raised.
        """
        expected = self.recompute_and_store(client_id)
        stored = None

        for attempt in range(1, self.max_verify_attempts + 1):
            time.sleep(self.verify_delay)
            stored = self._read_back(client_id)
            if stored is not None and stored == expected:
                return expected
            if attempt < self.max_verify_attempts:
                logger.warning(
                    f"final_amount for client {client_id} reads {stored}, expected {expected}. "
                    f"Rewriting (attempt {attempt}/{self.max_verify_attempts})"
                )
                expected = self.recompute_and_store(client_id)

        logger.error(
            f"final_amount anomaly for client {client_id}: stored {stored}, expected {expected}"
        )
        return expected

    def sync_all(self) -> int:
        """
        Recompute the final amount of every client, one client at a time.

        Best effort: a client that fails is logged and skipped.

        Returns:
            Number of clients synchronized.
        """
        try:
            client_ids = self.session.exec(select(Client.id).order_by(Client.name)).all()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreUnavailableError(f"Could not list clients: {e}") from e

        synced = 0
        for client_id in client_ids:
            try:
                self.recompute_and_store(client_id)
                synced += 1
            except NotFoundError:
                # Deleted while the sweep was running
                logger.info(f"Client {client_id} disappeared during sync, skipped.")
            except StoreUnavailableError as e:
                logger.error(f"Could not sync final amount for client {client_id}: {e}")

        logger.info(f"Final amounts synchronized for {synced}/{len(client_ids)} clients.")
        return synced

    def override_final_amount(self, client_id: uuid.UUID, value) -> Decimal:
        """
        Write `value` as the final amount without recomputing.
        It stays until the next payment change for this client.

        Raises:
            InvalidArgumentError: value is missing, not a number or negative.
            NotFoundError: the client does not exist.
        """
        amount = to_non_negative_money(value, field="final_amount")
        try:
            client = self.session.get(Client, client_id)
            if not client:
                raise NotFoundError(f"Client {client_id} not found.")
            self._write(client, amount)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreUnavailableError(f"Could not override final amount: {e}") from e

        logger.info(f"final_amount for client {client_id} manually set to {amount}")
        return amount

    # --- Helpers ---
    def _write(self, client: Client, value: Decimal) -> None:
        client.final_amount = value
        client.updated_at = datetime.now(timezone.utc)
        self.session.add(client)
        self.session.commit()

    def _read_back(self, client_id: uuid.UUID) -> Decimal | None:
        """Read final_amount straight from the store, bypassing the identity map."""
        try:
            value = self.session.exec(
                select(Client.final_amount).where(Client.id == client_id)
            ).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreUnavailableError(f"Could not read back final amount: {e}") from e
        return None if value is None else to_money(value)
