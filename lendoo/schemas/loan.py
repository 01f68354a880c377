"""Loan request/response schemas and reconciliation views."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from lendoo.schemas.user import PartySummary
from lendoo.services.loan_states import MAX_RENTAL_DAYS, LoanStatus


class LoanResponse(BaseModel):
    id: int
    item_id: int
    borrower_id: int
    owner_id: int
    start_date: date
    end_date: date
    actual_return_date: datetime | None = None
    status: LoanStatus
    daily_price: Decimal
    rental_fee: Decimal
    deposit_paid: Decimal
    deposit_returned: bool
    extension_requested: bool
    proposed_end_date: date | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ItemSnapshot(BaseModel):
    id: int
    name: str
    description: str | None = None
    image_url: str | None = None
    is_active: bool = False


class LoanView(LoanResponse):
    """Loan joined with its item and the other party, as shown in loan lists."""

    item: ItemSnapshot
    counterparty: PartySummary


class RejectRequest(BaseModel):
    reason: str | None = None


class ExtensionRequest(BaseModel):
    extra_days: int | None = Field(None, ge=1, le=MAX_RENTAL_DAYS)


class ConfirmReturnRequest(BaseModel):
    deposit_returned: bool = True
    notes: str | None = None
