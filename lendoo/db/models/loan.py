"""
Loan model - the lifecycle record created at checkout. Never hard-deleted.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from lendoo.db.base import Base
from lendoo.services.loan_states import LoanStatus

if TYPE_CHECKING:
    from lendoo.db.models.item import Item
    from lendoo.db.models.user import User


class LoanStatusType(TypeDecorator):
    """Stores the canonical status string; parses on the way in and out so unknown values never leak."""

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return LoanStatus.parse(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return LoanStatus.parse(value)


class Loan(Base):
    """Loan entity. Owner is snapshotted from the item at checkout."""

    __tablename__ = "loans"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("items.id"), nullable=False, index=True)
    borrower_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    actual_return_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[LoanStatus] = mapped_column(LoanStatusType(), nullable=False, index=True)
    daily_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    rental_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    deposit_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    deposit_returned: Mapped[bool] = mapped_column(default=False, nullable=False)
    extension_requested: Mapped[bool] = mapped_column(default=False, nullable=False)
    proposed_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    item: Mapped["Item"] = relationship("Item")
    borrower: Mapped["User"] = relationship("User", foreign_keys=[borrower_id])
    owner: Mapped["User"] = relationship("User", foreign_keys=[owner_id])

    def __repr__(self) -> str:
        return f"<Loan(id={self.id}, item={self.item_id}, status={self.status})>"
