"""Exceptions raised by the ledger service and its store."""
from __future__ import annotations

from typing import Any, Mapping


class InvalidInputError(ValueError):
    """Raised when a caller supplies a missing argument or an unset date."""


class StorageFaultError(RuntimeError):
    """Wraps a persistence failure with the operation that triggered it."""

    def __init__(self, operation: str, context: Mapping[str, Any] | None = None) -> None:
        self.operation = operation
        self.context = dict(context or {})
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        message = f"Storage failure during {operation}"
        if details:
            message = f"{message} ({details})"
        super().__init__(message)
