"""
Catalog service - item listing and inventory accounting.

Inventory only moves through ``reserve_unit``/``release_unit``; both delegate to a
single conditional UPDATE in the repository and then re-read the row so callers
see the post-update quantity.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from lendoo.core.exceptions import (
    InvariantViolation,
    LendooError,
    NotFoundError,
    OutOfStock,
    PermissionDenied,
    ValidationError,
)
from lendoo.db.models import Item
from lendoo.db.repositories.item_repository import ItemRepository
from lendoo.db.repositories.user_repository import UserRepository
from lendoo.schemas.item import ItemCreate, ItemUpdate, ItemResponse

logger = logging.getLogger(__name__)


@dataclass
class ImageUpload:
    data: bytes
    content_type: str


def _money(value, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} is not a number") from None
    if not amount.is_finite():
        raise ValidationError(f"{field} is not a number")
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    return amount


def _required_text(value: str | None, field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    return text


def item_to_response(item: Item) -> ItemResponse:
    return ItemResponse.model_validate(item)


class CatalogService:
    """Item CRUD, availability listing and unit reservation."""

    def __init__(
        self,
        item_repo: ItemRepository,
        user_repo: UserRepository,
        *,
        storage=None,
        cache=None,
        indexer=None,
    ):
        self.item_repo = item_repo
        self.user_repo = user_repo
        self.storage = storage
        self.cache = cache
        self.indexer = indexer

    async def add_item(
        self, owner_id: int, data: ItemCreate, image: ImageUpload | None = None
    ) -> Item:
        """Create a listing with available = total = quantity (default 1)."""
        name = _required_text(data.name, "name")
        description = _required_text(data.description, "description")
        daily_price = _money(data.daily_price, "daily price")
        deposit = _money(data.deposit_amount, "deposit")
        quantity = 1 if data.quantity is None else data.quantity
        if quantity < 1:
            raise ValidationError("quantity must be at least 1")
        if await self.user_repo.get_by_id(owner_id) is None:
            raise NotFoundError(f"user {owner_id} not found")

        image_url = await self._upload_image(image) if image is not None else None

        item = Item(
            owner_id=owner_id,
            name=name,
            description=description,
            daily_price=daily_price,
            deposit_amount=deposit,
            category=data.category,
            location=data.location,
            latitude=data.latitude,
            longitude=data.longitude,
            total_quantity=quantity,
            available_quantity=quantity,
            image_url=image_url,
            is_active=True,
        )
        item = await self.item_repo.add(item)
        logger.info("item %s listed by user %s (quantity=%s)", item.id, owner_id, quantity)
        self._publish(item)
        return item

    async def _upload_image(self, image: ImageUpload) -> str | None:
        """Upload failures never block listing; the item is created without a photo."""
        if self.storage is None:
            logger.warning("no blob storage configured, item created without image")
            return None
        try:
            return await self.storage.upload(image.data, image.content_type)
        except LendooError as e:
            logger.warning("image upload failed, creating item without image: %s", e)
            return None

    async def get_item(self, item_id: int) -> ItemResponse:
        """Item detail, including removed items (history stays viewable)."""
        if self.cache is not None:
            cached = await self.cache.get(item_id)
            if cached:
                return ItemResponse(**cached)
        item = await self.item_repo.get_by_id(item_id, fresh=True)
        if item is None:
            raise NotFoundError(f"item {item_id} not found")
        resp = item_to_response(item)
        if self.cache is not None:
            await self.cache.set(item_id, resp.model_dump(mode="json"))
        return resp

    async def list_available(
        self,
        *,
        category: str | None = None,
        exclude_owner_id: int | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Item]:
        """Every listed item with a free unit. The HTTP layer pages with ``skip``/``limit``."""
        return await self.item_repo.list_available(
            category=category,
            exclude_owner_id=exclude_owner_id,
            skip=skip,
            limit=limit,
        )

    async def list_owned(self, owner_id: int, include_inactive: bool = False) -> list[Item]:
        return await self.item_repo.list_by_owner(owner_id, include_inactive=include_inactive)

    async def update_item(self, owner_id: int, item_id: int, data: ItemUpdate) -> Item:
        if data.quantity is not None and data.quantity < 1:
            raise ValidationError("quantity must be at least 1")
        item = await self._owned_item(owner_id, item_id)
        if data.name is not None:
            item.name = _required_text(data.name, "name")
        if data.description is not None:
            item.description = _required_text(data.description, "description")
        if data.daily_price is not None:
            item.daily_price = _money(data.daily_price, "daily price")
        if data.deposit_amount is not None:
            item.deposit_amount = _money(data.deposit_amount, "deposit")
        if data.category is not None:
            item.category = data.category
        if data.location is not None:
            item.location = data.location
        if data.latitude is not None:
            item.latitude = data.latitude
        if data.longitude is not None:
            item.longitude = data.longitude
        await self.item_repo.flush()

        if data.quantity is not None and data.quantity != item.total_quantity:
            if not await self.item_repo.resize(item_id, data.quantity):
                raise ValidationError(
                    f"quantity cannot drop below the {item.units_out} unit(s) currently on loan"
                )
        item = await self.item_repo.get_by_id(item_id, fresh=True)
        await self._changed(item)
        return item

    async def remove_item(self, owner_id: int, item_id: int) -> Item:
        """Soft removal: the row stays so loan history keeps resolving it."""
        item = await self._owned_item(owner_id, item_id)
        item.is_active = False
        await self.item_repo.flush()
        item = await self.item_repo.get_by_id(item_id, fresh=True)
        if self.cache is not None:
            await self.cache.invalidate(item_id)
        if self.indexer is not None:
            self.indexer.item_removed(item_id)
        logger.info("item %s removed from catalog by owner %s", item_id, owner_id)
        return item

    async def reserve_unit(self, item_id: int) -> Item:
        """Take one unit. OutOfStock when none is free or the item is no longer listed."""
        if not await self.item_repo.decrement_available(item_id):
            item = await self.item_repo.get_by_id(item_id, fresh=True)
            if item is None:
                raise NotFoundError(f"item {item_id} not found")
            raise OutOfStock(f"item {item_id} has no available unit")
        item = await self.item_repo.get_by_id(item_id, fresh=True)
        await self._changed(item)
        return item

    async def release_unit(self, item_id: int) -> Item:
        """Give one unit back. Overflowing total means a unit was released twice."""
        if not await self.item_repo.increment_available(item_id):
            item = await self.item_repo.get_by_id(item_id, fresh=True)
            if item is None:
                raise NotFoundError(f"item {item_id} not found")
            logger.error(
                "invariant violation: release of item %s would exceed total quantity %s",
                item_id,
                item.total_quantity,
            )
            raise InvariantViolation(
                f"release of item {item_id} would exceed its total quantity"
            )
        item = await self.item_repo.get_by_id(item_id, fresh=True)
        await self._changed(item)
        return item

    async def _owned_item(self, owner_id: int, item_id: int) -> Item:
        item = await self.item_repo.get_by_id(item_id, fresh=True)
        if item is None:
            raise NotFoundError(f"item {item_id} not found")
        if item.owner_id != owner_id:
            raise PermissionDenied("only the owner can change this item")
        return item

    async def _changed(self, item: Item) -> None:
        if self.cache is not None:
            await self.cache.invalidate(item.id)
        self._publish(item)

    def _publish(self, item: Item) -> None:
        if self.indexer is not None:
            self.indexer.item_changed(item)
