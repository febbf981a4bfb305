"""Persistence adapters."""

from .transactions import SqlTransactionStore, TransactionStore

__all__ = ["SqlTransactionStore", "TransactionStore"]
