"""Service layer entrypoints for domain logic."""

from .transactions_service import TransactionsService

__all__ = ["TransactionsService"]
