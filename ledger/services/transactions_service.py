"""Transaction lookups and filtering on top of a transaction store."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session

from ledger.core.errors import InvalidInputError
from ledger.core.log import get_logger, log_context
from ledger.domain.predicates import TransactionPredicate
from ledger.models import Transaction
from ledger.repositories.transactions import SqlTransactionStore, TransactionStore
from ledger.schemas.transactions import (
    DateRangeAndTypeFilter,
    DateRangeFilter,
    TransactionCreate,
    TransactionFilter,
    TransactionRecord,
    UserSummary,
)

LOGGER = get_logger(__name__)


def _is_unset(value: datetime | None) -> bool:
    return value is None or value == datetime.min


def _require_date_range(date_filter: DateRangeFilter | None) -> tuple[datetime, datetime]:
    if date_filter is None or _is_unset(date_filter.start_date) or _is_unset(date_filter.end_date):
        raise InvalidInputError("Invalid date range")
    return date_filter.start_date, date_filter.end_date  # type: ignore[return-value]


def _to_record(row: Transaction, *, include_user: bool) -> TransactionRecord:
    user = UserSummary.model_validate(row.user) if include_user and row.user is not None else None
    return TransactionRecord(
        id=row.id,
        user_id=row.user_id,
        transaction_type=row.transaction_type,
        amount=row.amount,
        transaction_date=row.transaction_date,
        created_at=row.created_at,
        user=user,
    )


def _to_records(rows: Iterable[Transaction], *, include_user: bool) -> list[TransactionRecord]:
    return [_to_record(row, include_user=include_user) for row in rows]


class TransactionsService:
    """Create, fetch and filter user transactions.

    Lookups that find nothing return ``None`` (single record) or an empty
    list; only bad arguments raise ``InvalidInputError``. Store failures
    propagate as ``StorageFaultError`` without retries.

    Type matching is not uniform: ``get_by_type`` ignores letter case while
    ``get_by_date_range_and_type`` and ``get_filtered`` compare the type
    exactly. Callers relying on either behaviour should not assume the other.

    The owning user is joined by ``get_all``, ``get_by_id``, ``get_by_type``,
    ``get_by_date_range`` and ``get_filtered``; the other operations return
    records with ``user`` left as ``None``.
    """

    def __init__(self, store: TransactionStore) -> None:
        self._store = store

    @classmethod
    def for_session(cls, session: Session) -> "TransactionsService":
        return cls(SqlTransactionStore(session))

    def get_all(self) -> list[TransactionRecord]:
        LOGGER.debug("Fetching all transactions")
        rows = self._store.query_all(with_user=True)
        return _to_records(rows, include_user=True)

    def get_by_id(self, transaction_id: int) -> TransactionRecord | None:
        row = self._store.query_by_id(transaction_id, with_user=True)
        if row is None:
            LOGGER.debug("Transaction %s not found", transaction_id)
            return None
        return _to_record(row, include_user=True)

    def add(self, record: TransactionCreate | None) -> TransactionRecord:
        """Persist ``record`` and return it with its assigned id.

        Each call writes a new row, even for identical input.
        """

        if record is None:
            raise InvalidInputError("Transaction cannot be null.")
        with log_context.scoped(operation="add", user_id=record.user_id):
            row = self._store.insert(record)
            LOGGER.info("Created transaction %s", row.id)
        return _to_record(row, include_user=False)

    def get_by_user_id(self, user_id: int) -> list[TransactionRecord]:
        predicate = TransactionPredicate.everything().for_user(user_id)
        rows = self._store.query(predicate)
        return _to_records(rows, include_user=False)

    def get_by_type(self, transaction_type: str | None) -> list[TransactionRecord]:
        """Transactions whose type equals ``transaction_type`` ignoring case.

        A missing or blank type yields an empty list without a store query.
        """

        if transaction_type is None or not transaction_type.strip():
            return []
        predicate = TransactionPredicate.everything().of_type(transaction_type, case_insensitive=True)
        rows = self._store.query(predicate, with_user=True)
        return _to_records(rows, include_user=True)

    def get_by_date_range(self, date_filter: DateRangeFilter | None) -> list[TransactionRecord]:
        """Transactions dated within the inclusive ``[start_date, end_date]``."""

        start, end = _require_date_range(date_filter)
        predicate = TransactionPredicate.everything().between(start, end)
        rows = self._store.query(predicate, with_user=True)
        return _to_records(rows, include_user=True)

    def get_by_date_range_and_type(
        self, date_filter: DateRangeAndTypeFilter | None
    ) -> list[TransactionRecord]:
        """Inclusive date range plus a case-sensitive type match.

        No stored type equals a missing one, so ``transaction_type=None``
        yields an empty list.
        """

        start, end = _require_date_range(date_filter)
        transaction_type = date_filter.transaction_type  # type: ignore[union-attr]
        if transaction_type is None:
            return []
        predicate = TransactionPredicate.everything().between(start, end).of_type(transaction_type)
        rows = self._store.query(predicate)
        return _to_records(rows, include_user=False)

    def get_filtered(self, txn_filter: TransactionFilter | None) -> list[TransactionRecord]:
        """One page of a user's transactions, newest first.

        Matches user, inclusive date range and exact type, then skips
        ``offset`` rows and takes ``limit``. Zero or negative paging values
        are passed to the store unchanged and behave as the store defines.
        """

        if txn_filter is None:
            raise InvalidInputError("Filter cannot be null.")
        predicate = (
            TransactionPredicate.everything()
            .for_user(txn_filter.user_id)
            .between(txn_filter.start_date, txn_filter.end_date)
            .of_type(txn_filter.transaction_type)
        )
        with log_context.scoped(operation="filter", user_id=txn_filter.user_id):
            rows = self._store.query(
                predicate,
                with_user=True,
                newest_first=True,
                skip=txn_filter.offset,
                take=txn_filter.limit,
            )
            LOGGER.debug("Filter matched %d transactions", len(rows))
        return _to_records(rows, include_user=True)
