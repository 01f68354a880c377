"""
Loan repository - lifecycle queries and status compare-and-set.
"""

from collections.abc import Iterable
from datetime import date
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from lendoo.db.models import Loan
from lendoo.db.repositories.base_repository import BaseRepository
from lendoo.services.loan_states import LoanStatus


class LoanRepository(BaseRepository[Loan]):
    """Loan queries. Projections eager-load item and both parties."""

    def __init__(self, session):
        super().__init__(session, Loan)

    def _with_parties(self, stmt):
        # Bulk status updates bypass the identity map, so list reads overwrite it.
        return stmt.execution_options(populate_existing=True).options(
            selectinload(Loan.item),
            selectinload(Loan.borrower),
            selectinload(Loan.owner),
        )

    async def compare_and_set(
        self, id: int, expected: LoanStatus, *, where: tuple = (), **values: Any
    ) -> bool:
        """UPDATE loans SET ... WHERE id = :id AND status = :expected [AND where...]. True if this call won."""
        result = await self.execute(
            update(Loan)
            .where(Loan.id == id, Loan.status == expected, *where)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def start_due(self, on: date) -> int:
        """Flip every approved loan whose start date has come to active. Returns count."""
        result = await self.execute(
            update(Loan)
            .where(Loan.status == LoanStatus.APPROVED, Loan.start_date <= on)
            .values(status=LoanStatus.ACTIVE)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def list_for_borrower(self, borrower_id: int) -> list[Loan]:
        stmt = self._with_parties(
            select(Loan).where(
                Loan.borrower_id == borrower_id,
                Loan.status != LoanStatus.CART,
            )
        )
        result = await self.execute(stmt.order_by(Loan.created_at.desc(), Loan.id.desc()))
        return list(result.scalars().all())

    async def list_for_owner(
        self, owner_id: int, statuses: Iterable[LoanStatus] | None = None
    ) -> list[Loan]:
        stmt = select(Loan).where(Loan.owner_id == owner_id, Loan.status != LoanStatus.CART)
        if statuses is not None:
            stmt = stmt.where(Loan.status.in_(list(statuses)))
        stmt = self._with_parties(stmt).order_by(Loan.created_at.desc(), Loan.id.desc())
        result = await self.execute(stmt)
        return list(result.scalars().all())
