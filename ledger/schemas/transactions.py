"""Schemas for transaction payloads and the filters used to query them."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from ledger.models.transaction import TRANSACTION_TYPE_MAX_LENGTH


class UserSummary(BaseModel):
    """Public projection of the user owning a transaction."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str


class TransactionCreate(BaseModel):
    """Caller-supplied fields of a new transaction."""

    user_id: int
    transaction_type: str = Field(max_length=TRANSACTION_TYPE_MAX_LENGTH)
    amount: Decimal = Field(max_digits=18, decimal_places=2)
    transaction_date: datetime


class TransactionRecord(BaseModel):
    """Stored transaction as returned by the query service.

    ``user`` is only populated by lookups that join the owning user.
    """

    id: int
    user_id: int
    transaction_type: str
    amount: Decimal
    transaction_date: datetime
    created_at: datetime
    user: UserSummary | None = None

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> str:
        return format(value, "f")


class DateRangeFilter(BaseModel):
    """Inclusive transaction date bounds.

    Both bounds may be left unset here; the service rejects an unset bound.
    """

    start_date: datetime | None = None
    end_date: datetime | None = None


class DateRangeAndTypeFilter(DateRangeFilter):
    """Inclusive date bounds combined with an exact transaction type."""

    transaction_type: str | None = None


class TransactionFilter(BaseModel):
    """Per-user date range and type filter with offset pagination."""

    user_id: int
    start_date: datetime
    end_date: datetime
    transaction_type: str
    offset: int = 0
    limit: int = 10
