"""
Item repository - item queries and the atomic inventory updates.
Reserve and release are single conditional UPDATEs decided by affected row count,
never read-then-write, so two borrowers racing for the last unit cannot both win.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from lendoo.db.models import Item
from lendoo.db.repositories.base_repository import BaseRepository


class ItemRepository(BaseRepository[Item]):
    """Item-specific queries. Uses selectinload to avoid N+1 when loading owner."""

    def __init__(self, session):
        super().__init__(session, Item)

    async def list_available(
        self,
        *,
        category: str | None = None,
        exclude_owner_id: int | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Item]:
        """Active items with at least one free unit, newest first. No limit returns them all."""
        stmt = (
            select(Item)
            .where(Item.is_active.is_(True), Item.available_quantity > 0)
            .options(selectinload(Item.owner))
        )
        if category is not None:
            stmt = stmt.where(Item.category == category)
        if exclude_owner_id is not None:
            stmt = stmt.where(Item.owner_id != exclude_owner_id)
        stmt = stmt.order_by(Item.created_at.desc(), Item.id.desc()).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.execute(stmt)
        return list(result.scalars().all())

    async def list_by_owner(self, owner_id: int, *, include_inactive: bool = False) -> list[Item]:
        stmt = select(Item).where(Item.owner_id == owner_id).options(selectinload(Item.owner))
        if not include_inactive:
            stmt = stmt.where(Item.is_active.is_(True))
        result = await self.execute(stmt.order_by(Item.created_at.desc(), Item.id.desc()))
        return list(result.scalars().all())

    async def decrement_available(self, id: int) -> bool:
        """available -= 1 where available > 0 and the item is listed. True if a unit was taken."""
        result = await self.execute(
            update(Item)
            .where(Item.id == id, Item.is_active.is_(True), Item.available_quantity > 0)
            .values(available_quantity=Item.available_quantity - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def increment_available(self, id: int) -> bool:
        """available += 1 where available < total. False means the release would overflow."""
        result = await self.execute(
            update(Item)
            .where(Item.id == id, Item.available_quantity < Item.total_quantity)
            .values(available_quantity=Item.available_quantity + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def resize(self, id: int, new_total: int) -> bool:
        """Change total quantity keeping units on loan; fails if fewer than the units out."""
        units_out = Item.total_quantity - Item.available_quantity
        result = await self.execute(
            update(Item)
            .where(Item.id == id, units_out <= new_total)
            .values(
                available_quantity=new_total - units_out,
                total_quantity=new_total,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
