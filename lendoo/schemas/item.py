"""Item request/response schemas - catalog contract.

Business rules (non-negative prices, quantity >= 1, non-empty text) are enforced by the
catalog service so direct callers get the same errors as HTTP clients.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class ItemBase(BaseModel):
    name: str
    description: str
    daily_price: Decimal
    deposit_amount: Decimal = Decimal("0")
    category: str | None = None
    location: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class ItemCreate(ItemBase):
    quantity: int | None = None
    # Optional photo, base64 encoded
    image_base64: str | None = None
    image_content_type: str = "image/jpeg"


class ItemUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    daily_price: Decimal | None = None
    deposit_amount: Decimal | None = None
    category: str | None = None
    location: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    quantity: int | None = None


class ItemResponse(ItemBase):
    id: int
    owner_id: int
    total_quantity: int
    available_quantity: int
    image_url: str | None = None
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
