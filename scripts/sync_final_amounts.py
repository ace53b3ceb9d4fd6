"""
Recompute every client's final amount from its pending payments.

Usage:
    python scripts/sync_final_amounts.py [--mark-overdue]
"""
import argparse
import logging
import os
import sys

# Add project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), ".."))

from dotenv import load_dotenv

load_dotenv()

from sqlmodel import Session

from invoice_dashboard.core.exceptions import StoreUnavailableError
from invoice_dashboard.db.engine_sync import create_sync_db_and_tables, sync_engine
from invoice_dashboard.services.final_amount_service import FinalAmountService
from invoice_dashboard.services.payment_service import PaymentService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - [SyncFinalAmounts] - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("SyncFinalAmounts")


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument(
        "--mark-overdue",
        action="store_true",
        help="mark past-due pending payments as overdue before syncing",
    )
    args = parser.parse_args()

    create_sync_db_and_tables()
    try:
        with Session(sync_engine) as session:
            final_amounts = FinalAmountService(session)
            if args.mark_overdue:
                # The overdue sweep already resyncs every client
                updated = PaymentService(session, final_amounts).mark_overdue_payments()
                logger.info(f"{updated} payments marked overdue.")
            else:
                final_amounts.sync_all()
    except StoreUnavailableError as e:
        logger.error(f"Update failed: {e}")
        return 1

    logger.info("Final amounts updated successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
