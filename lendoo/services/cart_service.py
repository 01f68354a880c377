"""
Cart service - per-borrower staging before loan requests are submitted.

The cart never touches inventory. Availability is checked optimistically when an item
is added; the real reservation happens at checkout, entry by entry.
"""

import logging
from decimal import Decimal

from lendoo.config import get_settings
from lendoo.core.clock import Clock, utcnow
from lendoo.core.exceptions import (
    InvariantViolation,
    LendooError,
    NotFoundError,
    OutOfStock,
    PermissionDenied,
    ValidationError,
)
from lendoo.db.models import CartEntry, Item
from lendoo.db.repositories.cart_repository import CartRepository
from lendoo.db.repositories.item_repository import ItemRepository
from lendoo.schemas.cart import (
    CartEntryResponse,
    CartResponse,
    CheckoutEntryResult,
    CheckoutReport,
)
from lendoo.services.loan_service import LoanService
from lendoo.services.loan_states import compute_fee, end_date_for, rental_days

logger = logging.getLogger(__name__)


def entry_to_response(entry: CartEntry, item: Item | None = None) -> CartEntryResponse:
    item = item or entry.item
    return CartEntryResponse(
        id=entry.id,
        borrower_id=entry.borrower_id,
        item_id=entry.item_id,
        item_name=item.name if item is not None else f"Item #{entry.item_id}",
        item_image_url=item.image_url if item is not None else None,
        daily_price=item.daily_price if item is not None else Decimal("0"),
        start_date=entry.start_date,
        end_date=entry.end_date,
        days=entry.days,
        fee=entry.fee,
        deposit=entry.deposit,
    )


class CartService:
    def __init__(
        self,
        cart_repo: CartRepository,
        item_repo: ItemRepository,
        loans: LoanService,
        clock: Clock = utcnow,
    ):
        self.cart_repo = cart_repo
        self.item_repo = item_repo
        self.loans = loans
        self.clock = clock

    async def add_to_cart(self, borrower_id: int, item_id: int, days: int | None = None) -> CartEntry:
        """Stage an item. Adding an item already in the cart extends that entry by ``days``."""
        if days is None:
            days = get_settings().default_rental_days
        if days < 1:
            raise ValidationError("rental duration must be at least one day")

        item = await self.item_repo.get_by_id(item_id, fresh=True)
        if item is None:
            raise NotFoundError(f"item {item_id} not found")
        if item.owner_id == borrower_id:
            raise ValidationError("you cannot borrow your own item")
        if not item.is_active or item.available_quantity <= 0:
            raise OutOfStock(f"item {item_id} has no available unit")

        entry = await self.cart_repo.get_for_borrower_item(borrower_id, item_id)
        if entry is not None:
            return await self._set_duration(entry, item, entry.days + days)

        start = self.clock().date()
        entry = CartEntry(
            borrower_id=borrower_id,
            item_id=item_id,
            start_date=start,
            end_date=end_date_for(start, days),
            fee=compute_fee(days, item.daily_price),
            deposit=item.deposit_amount,
        )
        entry = await self.cart_repo.add(entry)
        logger.info("user %s added item %s to cart for %d day(s)", borrower_id, item_id, days)
        return entry

    async def update_duration(self, borrower_id: int, entry_id: int, new_days: int) -> CartEntry | None:
        """Recompute end date and fee. Fewer than one day removes the entry and returns None."""
        entry = await self._own_entry(borrower_id, entry_id)
        if new_days < 1:
            await self._delete(entry)
            return None
        item = await self.item_repo.get_by_id(entry.item_id, fresh=True)
        if item is None:
            raise NotFoundError(f"item {entry.item_id} not found")
        return await self._set_duration(entry, item, new_days)

    async def remove_from_cart(self, borrower_id: int, entry_id: int) -> None:
        entry = await self._own_entry(borrower_id, entry_id)
        await self._delete(entry)

    async def list_cart(self, borrower_id: int) -> CartResponse:
        entries = await self.cart_repo.list_for_borrower(borrower_id)
        views = [entry_to_response(e) for e in entries]
        return CartResponse(
            entries=views,
            total_fee=sum((v.fee for v in views), Decimal("0")),
            total_deposit=sum((v.deposit for v in views), Decimal("0")),
        )

    async def checkout_all(self, borrower_id: int) -> CheckoutReport:
        """Submit every entry as a loan request. Not atomic: each entry succeeds or fails on its own.

        Submitted entries leave the cart; failed ones stay and are reported. Only an
        InvariantViolation aborts the whole run.
        """
        results = []
        for entry in await self.cart_repo.list_for_borrower(borrower_id):
            try:
                loan = await self.loans.checkout(borrower_id, entry)
            except InvariantViolation:
                raise
            except LendooError as e:
                logger.info("checkout of cart entry %s failed: %s", entry.id, e)
                results.append(
                    CheckoutEntryResult(
                        entry_id=entry.id,
                        item_id=entry.item_id,
                        ok=False,
                        error_code=e.code,
                        error=e.message,
                        retryable=e.retryable,
                    )
                )
                continue
            results.append(
                CheckoutEntryResult(entry_id=entry.id, item_id=entry.item_id, ok=True, loan_id=loan.id)
            )
            await self.cart_repo.delete(entry)

        report = CheckoutReport(results=results)
        logger.info(
            "user %s checked out cart: %d submitted, %d failed",
            borrower_id, len(report.submitted), len(report.failed),
        )
        return report

    async def _own_entry(self, borrower_id: int, entry_id: int) -> CartEntry:
        entry = await self.cart_repo.get_by_id(entry_id, fresh=True)
        if entry is None:
            raise NotFoundError(f"cart entry {entry_id} not found")
        if entry.borrower_id != borrower_id:
            raise PermissionDenied("cart entry belongs to another user")
        return entry

    async def _set_duration(self, entry: CartEntry, item: Item, days: int) -> CartEntry:
        entry.end_date = end_date_for(entry.start_date, days)
        entry.fee = compute_fee(rental_days(entry.start_date, entry.end_date), item.daily_price)
        await self.cart_repo.flush()
        return entry

    async def _delete(self, entry: CartEntry) -> None:
        await self.cart_repo.delete(entry)
        logger.info("cart entry %s removed", entry.id)
