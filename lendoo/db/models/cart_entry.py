"""
CartEntry model - a borrower's staged, not yet submitted loan.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lendoo.db.base import Base

if TYPE_CHECKING:
    from lendoo.db.models.item import Item


class CartEntry(Base):
    """One row per (borrower, item). Holds no inventory."""

    __tablename__ = "cart_entries"
    __table_args__ = (
        UniqueConstraint("borrower_id", "item_id", name="uq_cart_entries_borrower_item"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    borrower_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("items.id"), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    deposit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    item: Mapped["Item"] = relationship("Item")

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days

    def __repr__(self) -> str:
        return f"<CartEntry(id={self.id}, borrower={self.borrower_id}, item={self.item_id})>"
