"""Storage-neutral conjunctive predicates over transactions."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass(frozen=True, slots=True)
class TransactionPredicate:
    """AND of optional field comparisons; unset fields do not constrain.

    ``transaction_type`` is matched exactly unless ``fold_type_case`` is set,
    in which case both sides are compared lower-cased.
    """

    user_id: int | None = None
    transaction_type: str | None = None
    fold_type_case: bool = False
    start: datetime | None = None
    end: datetime | None = None

    @classmethod
    def everything(cls) -> "TransactionPredicate":
        return cls()

    def for_user(self, user_id: int) -> "TransactionPredicate":
        return replace(self, user_id=user_id)

    def of_type(self, transaction_type: str, *, case_insensitive: bool = False) -> "TransactionPredicate":
        if case_insensitive:
            return replace(self, transaction_type=transaction_type.lower(), fold_type_case=True)
        return replace(self, transaction_type=transaction_type, fold_type_case=False)

    def between(self, start: datetime, end: datetime) -> "TransactionPredicate":
        """Constrain ``transaction_date`` to ``start <= date <= end``."""

        return replace(self, start=start, end=end)

    def describe(self) -> dict[str, object]:
        """Set fields only, for log context and error reports."""

        values = {
            "user_id": self.user_id,
            "transaction_type": self.transaction_type,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
        }
        return {key: value for key, value in values.items() if value is not None}
