"""
Item endpoints - catalog listing and owner CRUD.
Thin controller; the catalog service holds the rules.
"""

import base64
import binascii

from fastapi import APIRouter, Query, status

from lendoo.config import get_settings
from lendoo.core.dependencies import Catalog, CurrentUserId
from lendoo.core.exceptions import ValidationError
from lendoo.schemas.item import ItemCreate, ItemResponse, ItemUpdate
from lendoo.services.catalog_service import ImageUpload, item_to_response

router = APIRouter()
settings = get_settings()


def _decode_image(data: ItemCreate) -> ImageUpload | None:
    if not data.image_base64:
        return None
    try:
        raw = base64.b64decode(data.image_base64, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("image is not valid base64") from None
    return ImageUpload(data=raw, content_type=data.image_content_type)


@router.get("", response_model=list[ItemResponse])
async def list_items(
    catalog: Catalog,
    user_id: CurrentUserId,
    category: str | None = None,
    include_mine: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
):
    """Items with a free unit. The caller's own listings are hidden unless asked for."""
    items = await catalog.list_available(
        category=category,
        exclude_owner_id=None if include_mine else user_id,
        skip=skip,
        limit=limit,
    )
    return [item_to_response(i) for i in items]


@router.get("/mine", response_model=list[ItemResponse])
async def list_my_items(catalog: Catalog, user_id: CurrentUserId, include_removed: bool = False):
    items = await catalog.list_owned(user_id, include_inactive=include_removed)
    return [item_to_response(i) for i in items]


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(catalog: Catalog, item_id: int, user_id: CurrentUserId):
    return await catalog.get_item(item_id)


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(catalog: Catalog, data: ItemCreate, user_id: CurrentUserId):
    """List a new item owned by the caller. A failed photo upload still creates the item."""
    item = await catalog.add_item(user_id, data, image=_decode_image(data))
    return item_to_response(item)


@router.patch("/{item_id}", response_model=ItemResponse)
async def update_item(catalog: Catalog, item_id: int, data: ItemUpdate, user_id: CurrentUserId):
    item = await catalog.update_item(user_id, item_id, data)
    return item_to_response(item)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_item(catalog: Catalog, item_id: int, user_id: CurrentUserId):
    """Soft removal; loans on the item keep resolving it."""
    await catalog.remove_item(user_id, item_id)
