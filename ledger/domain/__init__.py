"""Domain value objects independent of the storage layer."""

from .predicates import TransactionPredicate

__all__ = ["TransactionPredicate"]
