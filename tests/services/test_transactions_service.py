"""Tests for the transaction query service."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ledger.core.errors import InvalidInputError, StorageFaultError
from ledger.schemas import (
    DateRangeAndTypeFilter,
    DateRangeFilter,
    TransactionFilter,
)
from ledger.services import TransactionsService
from tests.conftest import new_transaction


@pytest.fixture()
def scenario(service: TransactionsService, make_user) -> dict[str, int]:
    """T1/T2 for user 1 in early November, T3 for user 2 in late October."""

    make_user(1)
    make_user(2)
    t1 = service.add(new_transaction(1, "deposit", datetime(2023, 11, 1)))
    t2 = service.add(new_transaction(1, "withdrawal", datetime(2023, 11, 5)))
    t3 = service.add(new_transaction(2, "deposit", datetime(2023, 10, 30)))
    return {"T1": t1.id, "T2": t2.id, "T3": t3.id}


def _ids(records) -> set[int]:
    return {record.id for record in records}


def test_add_assigns_identifier_and_created_at(service: TransactionsService, make_user) -> None:
    make_user(1)

    created = service.add(new_transaction(1, "deposit", datetime(2023, 11, 1, 9, 30), "125.50"))

    assert created.id is not None
    assert created.created_at is not None
    assert created.amount == Decimal("125.50")
    assert created.user is None


def test_add_then_get_by_id_round_trips_fields(service: TransactionsService, make_user) -> None:
    make_user(7, "Test User")
    payload = new_transaction(7, "withdrawal", datetime(2023, 11, 5, 18, 0), "-40.00")

    created = service.add(payload)
    fetched = service.get_by_id(created.id)

    assert fetched is not None
    assert fetched.id == created.id
    assert fetched.user_id == payload.user_id
    assert fetched.transaction_type == payload.transaction_type
    assert fetched.amount == payload.amount
    assert fetched.transaction_date == payload.transaction_date
    assert fetched.user is not None
    assert fetched.user.id == 7
    assert fetched.user.username == "Test User"


def test_add_is_not_idempotent(service: TransactionsService, make_user) -> None:
    make_user(1)
    payload = new_transaction(1, "deposit", datetime(2023, 11, 1))

    first = service.add(payload)
    second = service.add(payload)

    assert first.id != second.id
    assert len(service.get_all()) == 2


def test_add_rejects_missing_record(service: TransactionsService) -> None:
    with pytest.raises(InvalidInputError):
        service.add(None)


def test_get_all_returns_every_record_with_user(service: TransactionsService, scenario) -> None:
    records = service.get_all()

    assert _ids(records) == set(scenario.values())
    assert all(record.user is not None for record in records)


def test_get_by_id_returns_none_when_missing(service: TransactionsService) -> None:
    assert service.get_by_id(999) is None


def test_get_by_user_id_returns_only_that_user(service: TransactionsService, scenario) -> None:
    records = service.get_by_user_id(1)

    assert _ids(records) == {scenario["T1"], scenario["T2"]}
    assert all(record.user_id == 1 for record in records)
    assert all(record.user is None for record in records)


def test_get_by_user_id_returns_empty_list_without_matches(
    service: TransactionsService, scenario
) -> None:
    assert service.get_by_user_id(42) == []


def test_get_by_type_ignores_case(service: TransactionsService, scenario) -> None:
    upper = service.get_by_type("DEPOSIT")
    lower = service.get_by_type("deposit")
    mixed = service.get_by_type("DePoSiT")

    assert _ids(upper) == {scenario["T1"], scenario["T3"]}
    assert _ids(lower) == _ids(upper) == _ids(mixed)
    assert all(record.user is not None for record in upper)


def test_get_by_type_matches_stored_mixed_case(service: TransactionsService, make_user) -> None:
    make_user(1)
    stored = service.add(new_transaction(1, "Deposit", datetime(2023, 11, 1)))

    assert _ids(service.get_by_type("deposit")) == {stored.id}


@pytest.mark.parametrize("blank", [None, "", "   ", "\t\n"])
def test_get_by_type_blank_returns_empty(service: TransactionsService, scenario, blank) -> None:
    assert service.get_by_type(blank) == []


def test_get_by_date_range_bounds_are_inclusive(service: TransactionsService, scenario) -> None:
    records = service.get_by_date_range(
        DateRangeFilter(start_date=datetime(2023, 11, 1), end_date=datetime(2023, 11, 5))
    )

    assert _ids(records) == {scenario["T1"], scenario["T2"]}
    assert all(record.user is not None for record in records)


def test_get_by_date_range_single_instant(service: TransactionsService, scenario) -> None:
    instant = datetime(2023, 10, 30)

    records = service.get_by_date_range(DateRangeFilter(start_date=instant, end_date=instant))

    assert _ids(records) == {scenario["T3"]}


@pytest.mark.parametrize(
    "start, end",
    [
        (None, datetime(2023, 11, 5)),
        (datetime(2023, 11, 1), None),
        (datetime.min, datetime(2023, 11, 5)),
        (datetime(2023, 11, 1), datetime.min),
    ],
)
def test_get_by_date_range_rejects_unset_bounds(
    service: TransactionsService, start, end
) -> None:
    with pytest.raises(InvalidInputError):
        service.get_by_date_range(DateRangeFilter(start_date=start, end_date=end))


def test_get_by_date_range_rejects_missing_filter(service: TransactionsService) -> None:
    with pytest.raises(InvalidInputError):
        service.get_by_date_range(None)


def test_get_by_date_range_and_type_matches_type_exactly(
    service: TransactionsService, scenario
) -> None:
    window = {"start_date": datetime(2023, 10, 1), "end_date": datetime(2023, 11, 30)}

    exact = service.get_by_date_range_and_type(
        DateRangeAndTypeFilter(transaction_type="deposit", **window)
    )
    upper = service.get_by_date_range_and_type(
        DateRangeAndTypeFilter(transaction_type="DEPOSIT", **window)
    )

    assert _ids(exact) == {scenario["T1"], scenario["T3"]}
    assert upper == []
    assert all(record.user is None for record in exact)


def test_get_by_date_range_and_type_without_type_is_empty(
    service: TransactionsService, scenario
) -> None:
    records = service.get_by_date_range_and_type(
        DateRangeAndTypeFilter(start_date=datetime(2023, 10, 1), end_date=datetime(2023, 11, 30))
    )

    assert records == []


def test_get_by_date_range_and_type_rejects_unset_dates(service: TransactionsService) -> None:
    with pytest.raises(InvalidInputError):
        service.get_by_date_range_and_type(
            DateRangeAndTypeFilter(end_date=datetime(2023, 11, 5), transaction_type="deposit")
        )


def test_get_filtered_orders_newest_first(service: TransactionsService, make_user) -> None:
    make_user(1)
    make_user(2)
    older = service.add(new_transaction(1, "deposit", datetime(2023, 11, 1)))
    newer = service.add(new_transaction(1, "deposit", datetime(2023, 11, 20)))
    service.add(new_transaction(1, "withdrawal", datetime(2023, 11, 10)))
    service.add(new_transaction(2, "deposit", datetime(2023, 11, 15)))
    service.add(new_transaction(1, "deposit", datetime(2023, 12, 2)))

    records = service.get_filtered(
        TransactionFilter(
            user_id=1,
            start_date=datetime(2023, 11, 1),
            end_date=datetime(2023, 11, 30),
            transaction_type="deposit",
        )
    )

    assert [record.id for record in records] == [newer.id, older.id]
    assert all(record.user is not None for record in records)


def test_get_filtered_pages_are_disjoint(service: TransactionsService, make_user) -> None:
    make_user(1)
    created = [
        service.add(new_transaction(1, "deposit", datetime(2023, 11, day)))
        for day in (3, 1, 9, 5, 7)
    ]
    by_newest = sorted(created, key=lambda record: record.transaction_date, reverse=True)

    def page(offset: int):
        return service.get_filtered(
            TransactionFilter(
                user_id=1,
                start_date=datetime(2023, 11, 1),
                end_date=datetime(2023, 11, 30),
                transaction_type="deposit",
                offset=offset,
                limit=2,
            )
        )

    first, second = page(0), page(2)

    assert len(first) == len(second) == 2
    assert _ids(first).isdisjoint(_ids(second))
    assert _ids(first) | _ids(second) == {record.id for record in by_newest[:4]}


def test_get_filtered_type_is_case_sensitive(service: TransactionsService, scenario) -> None:
    records = service.get_filtered(
        TransactionFilter(
            user_id=1,
            start_date=datetime(2023, 1, 1),
            end_date=datetime(2023, 12, 31),
            transaction_type="Deposit",
        )
    )

    assert records == []


def test_get_filtered_rejects_missing_filter(service: TransactionsService) -> None:
    with pytest.raises(InvalidInputError):
        service.get_filtered(None)


def test_record_serializes_amount_as_plain_decimal(service: TransactionsService, make_user) -> None:
    make_user(1)
    created = service.add(new_transaction(1, "deposit", datetime(2023, 11, 1), "1200.50"))

    assert created.model_dump(mode="json")["amount"] == "1200.50"


class _RecordingStore:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def insert(self, record):
        self.calls.append("insert")
        raise AssertionError("store should not be reached")

    def query_all(self, *, with_user):
        self.calls.append("query_all")
        return []

    def query_by_id(self, transaction_id, *, with_user):
        self.calls.append("query_by_id")
        return None

    def query(self, predicate, **kwargs):
        self.calls.append("query")
        return []


def test_invalid_input_never_reaches_the_store() -> None:
    store = _RecordingStore()
    service = TransactionsService(store)

    assert service.get_by_type("  ") == []
    with pytest.raises(InvalidInputError):
        service.add(None)
    with pytest.raises(InvalidInputError):
        service.get_by_date_range(DateRangeFilter())
    with pytest.raises(InvalidInputError):
        service.get_filtered(None)

    assert store.calls == []


def test_storage_faults_propagate_from_the_store() -> None:
    engine = create_engine("sqlite:///:memory:", future=True)
    service = TransactionsService.for_session(sessionmaker(bind=engine, future=True)())

    with pytest.raises(StorageFaultError) as excinfo:
        service.get_by_user_id(1)

    assert excinfo.value.operation == "query"


def test_get_by_type_folds_non_ascii_letters(service: TransactionsService, make_user) -> None:
    make_user(1)
    stored = service.add(new_transaction(1, "Épargne", datetime(2023, 11, 1)))
    service.add(new_transaction(1, "deposit", datetime(2023, 11, 2)))

    assert _ids(service.get_by_type("Épargne")) == {stored.id}
    assert _ids(service.get_by_type("ÉPARGNE")) == {stored.id}
    assert _ids(service.get_by_type("épargne")) == {stored.id}


def test_long_transaction_type_is_stored_in_full(service: TransactionsService, make_user) -> None:
    make_user(1)
    long_type = "recurring-standing-order-withdrawal-to-savings"

    created = service.add(new_transaction(1, long_type, datetime(2023, 11, 1)))

    assert service.get_by_id(created.id).transaction_type == long_type


def test_fetched_record_dumps_with_user(service: TransactionsService, make_user) -> None:
    make_user(1, "alice")
    created = service.add(new_transaction(1, "deposit", datetime(2023, 11, 1), "-40.00"))

    dumped = service.get_by_id(created.id).model_dump()

    assert dumped["amount"] == "-40.00"
    assert dumped["user"] == {"id": 1, "username": "alice", "email": "alice@test.com"}
    assert '"amount":"-40.00"' in service.get_by_id(created.id).model_dump_json()
