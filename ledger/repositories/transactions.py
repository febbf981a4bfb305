"""Transaction store: persistence of transaction rows behind a narrow interface."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.sql.elements import ColumnElement

from ledger.core.errors import StorageFaultError
from ledger.core.log import get_logger, timeit
from ledger.db.functions import fold_case
from ledger.domain.predicates import TransactionPredicate
from ledger.models import Transaction
from ledger.schemas.transactions import TransactionCreate

LOGGER = get_logger(__name__)


class TransactionStore(Protocol):
    """Capabilities the query service needs from persistence."""

    def insert(self, record: TransactionCreate) -> Transaction:
        ...

    def query_all(self, *, with_user: bool) -> Sequence[Transaction]:
        ...

    def query_by_id(self, transaction_id: int, *, with_user: bool) -> Transaction | None:
        ...

    def query(
        self,
        predicate: TransactionPredicate,
        *,
        with_user: bool = False,
        newest_first: bool = False,
        skip: int | None = None,
        take: int | None = None,
    ) -> Sequence[Transaction]:
        ...


class SqlTransactionStore:
    """``TransactionStore`` over a SQLAlchemy session.

    The session is owned by the caller. Writes commit immediately; any
    ``SQLAlchemyError`` rolls the session back and surfaces as
    ``StorageFaultError``.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def insert(self, record: TransactionCreate) -> Transaction:
        entity = Transaction(**record.model_dump())
        context = {"user_id": record.user_id, "transaction_type": record.transaction_type}
        try:
            self._session.add(entity)
            self._session.commit()
            # Pulls the generated id and created_at back from the database.
            self._session.refresh(entity)
        except SQLAlchemyError as exc:
            self._session.rollback()
            LOGGER.exception("Failed to insert transaction for user %s", record.user_id)
            raise StorageFaultError("insert", context) from exc
        LOGGER.debug("Inserted transaction %s for user %s", entity.id, entity.user_id)
        return entity

    def query_all(self, *, with_user: bool) -> list[Transaction]:
        statement = self._select(with_user).order_by(Transaction.id)
        return self._fetch("query_all", statement, {})

    def query_by_id(self, transaction_id: int, *, with_user: bool) -> Transaction | None:
        statement = self._select(with_user).where(Transaction.id == transaction_id)
        rows = self._fetch("query_by_id", statement, {"id": transaction_id})
        return rows[0] if rows else None

    def query(
        self,
        predicate: TransactionPredicate,
        *,
        with_user: bool = False,
        newest_first: bool = False,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[Transaction]:
        """Return rows matching ``predicate``.

        ``newest_first`` orders by transaction date descending and breaks ties
        by descending id; otherwise rows come back in id order. ``skip`` is
        applied before ``take``; both are handed to the database as-is.
        """

        statement = self._select(with_user).where(*self._clauses(predicate))
        if newest_first:
            statement = statement.order_by(
                Transaction.transaction_date.desc(), Transaction.id.desc()
            )
        else:
            statement = statement.order_by(Transaction.id)
        if skip is not None:
            statement = statement.offset(skip)
        if take is not None:
            statement = statement.limit(take)

        context: dict[str, Any] = predicate.describe()
        if skip is not None or take is not None:
            context.update(skip=skip, take=take)
        return self._fetch("query", statement, context)

    @staticmethod
    def _select(with_user: bool) -> Select[tuple[Transaction]]:
        statement = select(Transaction)
        if with_user:
            statement = statement.options(selectinload(Transaction.user))
        return statement

    @staticmethod
    def _clauses(predicate: TransactionPredicate) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        if predicate.user_id is not None:
            clauses.append(Transaction.user_id == predicate.user_id)
        if predicate.transaction_type is not None:
            if predicate.fold_type_case:
                # fold_case matches the lower() registered on SQLite connections.
                clauses.append(
                    func.lower(Transaction.transaction_type)
                    == fold_case(predicate.transaction_type)
                )
            else:
                clauses.append(Transaction.transaction_type == predicate.transaction_type)
        if predicate.start is not None:
            clauses.append(Transaction.transaction_date >= predicate.start)
        if predicate.end is not None:
            clauses.append(Transaction.transaction_date <= predicate.end)
        return clauses

    def _fetch(
        self,
        operation: str,
        statement: Select[tuple[Transaction]],
        context: Mapping[str, Any],
    ) -> list[Transaction]:
        try:
            with timeit(f"transactions.{operation}", logger=LOGGER, level=logging.DEBUG) as timer:
                rows = list(self._session.scalars(statement).all())
                timer.add(len(rows))
        except SQLAlchemyError as exc:
            self._session.rollback()
            LOGGER.exception("Transaction %s failed", operation)
            raise StorageFaultError(operation, context) from exc
        return rows
