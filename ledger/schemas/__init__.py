"""Pydantic schemas for request and response payloads."""

from .transactions import (
    DateRangeAndTypeFilter,
    DateRangeFilter,
    TransactionCreate,
    TransactionFilter,
    TransactionRecord,
    UserSummary,
)

__all__ = [
    "DateRangeAndTypeFilter",
    "DateRangeFilter",
    "TransactionCreate",
    "TransactionFilter",
    "TransactionRecord",
    "UserSummary",
]
