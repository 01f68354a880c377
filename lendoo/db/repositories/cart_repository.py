"""
Cart repository - staged cart entries per borrower.
"""

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from lendoo.db.models import CartEntry
from lendoo.db.repositories.base_repository import BaseRepository


class CartRepository(BaseRepository[CartEntry]):
    def __init__(self, session):
        super().__init__(session, CartEntry)

    async def get_for_borrower_item(self, borrower_id: int, item_id: int) -> CartEntry | None:
        result = await self.execute(
            select(CartEntry).where(
                CartEntry.borrower_id == borrower_id,
                CartEntry.item_id == item_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_borrower(self, borrower_id: int) -> list[CartEntry]:
        """Entries in insertion order, with their item loaded."""
        result = await self.execute(
            select(CartEntry)
            .where(CartEntry.borrower_id == borrower_id)
            .options(selectinload(CartEntry.item))
            .order_by(CartEntry.id)
        )
        return list(result.scalars().all())
