"""ORM model for user transactions."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .base import ID_TYPE, Base
from .user import User

TRANSACTION_TYPE_MAX_LENGTH = 255


class Transaction(Base):
    """A single deposit, withdrawal or other movement recorded for a user.

    ``transaction_type`` is free-form; "deposit" and "withdrawal" are the
    conventional values. ``amount`` may be negative.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "transaction_date"),
    )

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ID_TYPE, ForeignKey("users.id"), nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(TRANSACTION_TYPE_MAX_LENGTH), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    transaction_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.current_timestamp()
    )

    user: Mapped[User] = relationship(back_populates="transactions")
