"""Shared fixtures: an in-memory database and a service bound to it."""
from __future__ import annotations

import os

# Settings are cached on first use, which happens at import time below.
os.environ.setdefault("LOG_DIR", "")

from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from ledger.core.log import init_logging, shutdown_logging
from ledger.models import Base, User
from ledger.schemas import TransactionCreate
from ledger.services import TransactionsService


@pytest.fixture(scope="session", autouse=True)
def _quiet_logging() -> Iterator[None]:
    init_logging(level="DEBUG", log_dir=None, queue=False, rich_tracebacks=False)
    yield
    shutdown_logging()


@pytest.fixture()
def session() -> Iterator[Session]:
    """Provide an in-memory database session for each test."""

    engine = create_engine("sqlite:///:memory:", future=True)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, future=True)
    with SessionLocal() as session:
        yield session
    engine.dispose()


@pytest.fixture()
def service(session: Session) -> TransactionsService:
    return TransactionsService.for_session(session)


@pytest.fixture()
def make_user(session: Session) -> Callable[..., User]:
    def _make(user_id: int, username: str | None = None) -> User:
        name = username or f"user{user_id}"
        user = User(id=user_id, username=name, email=f"{name}@test.com", password_hash="xvhsdjek")
        session.add(user)
        session.commit()
        return user

    return _make


def new_transaction(
    user_id: int,
    transaction_type: str,
    when: datetime,
    amount: str = "10.00",
) -> TransactionCreate:
    return TransactionCreate(
        user_id=user_id,
        transaction_type=transaction_type,
        amount=Decimal(amount),
        transaction_date=when,
    )
