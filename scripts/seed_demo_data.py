#!/usr/bin/env python3
"""Create the ledger tables if needed and load a handful of demo transactions."""
from __future__ import annotations

import argparse
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlalchemy import select  # noqa: E402

from ledger.core.log import get_logger, init_logging, log_context  # noqa: E402
from ledger.db.session import session_scope  # noqa: E402
from ledger.models import Base, User  # noqa: E402
from ledger.schemas import DateRangeFilter, TransactionCreate, TransactionFilter  # noqa: E402
from ledger.services import TransactionsService  # noqa: E402

logger = get_logger(__name__)

DEMO_USERS = (
    ("alice", "alice@example.com"),
    ("bob", "bob@example.com"),
)

# (username, type, amount, date)
DEMO_TRANSACTIONS = (
    ("alice", "deposit", "250.00", datetime(2023, 11, 1, 9, 30)),
    ("alice", "withdrawal", "-40.00", datetime(2023, 11, 5, 18, 0)),
    ("bob", "deposit", "1200.00", datetime(2023, 10, 30, 12, 0)),
    ("bob", "withdrawal", "75.25", datetime(2023, 11, 3, 8, 15)),
)


def _ensure_users(session) -> dict[str, int]:
    ids: dict[str, int] = {}
    for username, email in DEMO_USERS:
        user = session.scalars(select(User).where(User.username == username)).first()
        if user is None:
            user = User(username=username, email=email, password_hash="!")
            session.add(user)
            session.flush()
            logger.info("Created demo user %s (id=%s)", username, user.id)
        ids[username] = user.id
    session.commit()
    return ids


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--url", help="SQLAlchemy URL overriding the configured database")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    if args.log_level:
        init_logging(level=args.log_level)

    with session_scope(args.url) as session:
        Base.metadata.create_all(session.get_bind())
        user_ids = _ensure_users(session)
        service = TransactionsService.for_session(session)

        with log_context.scoped(script="seed_demo_data"):
            for username, txn_type, amount, when in DEMO_TRANSACTIONS:
                service.add(
                    TransactionCreate(
                        user_id=user_ids[username],
                        transaction_type=txn_type,
                        amount=Decimal(amount),
                        transaction_date=when,
                    )
                )

            logger.info("Total transactions: %d", len(service.get_all()))
            logger.info("Deposits: %d", len(service.get_by_type("DEPOSIT")))
            november = DateRangeFilter(
                start_date=datetime(2023, 11, 1), end_date=datetime(2023, 11, 30, 23, 59, 59)
            )
            logger.info("November: %d", len(service.get_by_date_range(november)))
            page = service.get_filtered(
                TransactionFilter(
                    user_id=user_ids["alice"],
                    start_date=datetime(2023, 1, 1),
                    end_date=datetime(2023, 12, 31),
                    transaction_type="deposit",
                    limit=5,
                )
            )
            for record in page:
                logger.info(
                    "alice %s %s on %s",
                    record.transaction_type,
                    format(record.amount, "f"),
                    record.transaction_date.date().isoformat(),
                )


if __name__ == "__main__":
    main()
