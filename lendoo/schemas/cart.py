"""Cart request/response schemas."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from lendoo.services.loan_states import MAX_RENTAL_DAYS


class CartAdd(BaseModel):
    item_id: int
    days: int | None = Field(None, ge=1, le=MAX_RENTAL_DAYS)


class CartDurationUpdate(BaseModel):
    # Zero or less removes the entry
    days: int = Field(le=MAX_RENTAL_DAYS)


class CartEntryResponse(BaseModel):
    id: int
    borrower_id: int
    item_id: int
    item_name: str
    item_image_url: str | None = None
    daily_price: Decimal
    start_date: date
    end_date: date
    days: int
    fee: Decimal
    deposit: Decimal


class CartResponse(BaseModel):
    entries: list[CartEntryResponse]
    total_fee: Decimal
    total_deposit: Decimal


class CheckoutEntryResult(BaseModel):
    entry_id: int
    item_id: int
    ok: bool
    loan_id: int | None = None
    error_code: str | None = None
    error: str | None = None
    retryable: bool = False


class CheckoutReport(BaseModel):
    """Per-entry outcome of submitting the cart; partial success is normal."""

    results: list[CheckoutEntryResult]

    @property
    def submitted(self) -> list[CheckoutEntryResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[CheckoutEntryResult]:
        return [r for r in self.results if not r.ok]
