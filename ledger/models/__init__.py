"""Database models for the ledger domain."""
from __future__ import annotations

from .base import Base
from .transaction import Transaction
from .user import User

__all__ = [
    "Base",
    "Transaction",
    "User",
]
