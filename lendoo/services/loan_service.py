"""
Loan lifecycle service - the status state machine applied to stored loans.

Each event:
  1. loads the loan and checks the acting user's role on it,
  2. asks ``next_status`` whether the event is legal from the current status,
  3. writes the new status with a compare-and-set on the status it read.
Losing the compare-and-set means another request moved the loan first; the event is
then an InvalidTransition, so inventory side effects run at most once per loan.

Checkout is a two-step saga: reserve a unit, then insert the loan inside a SAVEPOINT.
If the insert fails the reserved unit is released before the error propagates.
"""

import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError

from lendoo.config import get_settings
from lendoo.core.clock import Clock, utcnow
from lendoo.core.exceptions import (
    InvalidTransition,
    LendooError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
    translate_storage_error,
)
from lendoo.core.metrics import checkout_failures, loan_transitions
from lendoo.db.models import CartEntry, Loan
from lendoo.db.repositories.loan_repository import LoanRepository
from lendoo.services.catalog_service import CatalogService
from lendoo.services.loan_states import (
    RELEASING_EVENTS,
    LoanEvent,
    LoanStatus,
    compute_fee,
    end_date_for,
    next_status,
    rental_days,
)

logger = logging.getLogger(__name__)

OWNER = "owner"
BORROWER = "borrower"
PARTY = "party"


def _append_note(existing: str | None, text: str | None) -> str | None:
    if not text:
        return existing
    return f"{existing}\n{text}" if existing else text


class LoanService:
    """Loan lifecycle: checkout, owner decisions, returns and extensions."""

    def __init__(
        self,
        loan_repo: LoanRepository,
        catalog: CatalogService,
        clock: Clock = utcnow,
    ):
        self.loan_repo = loan_repo
        self.catalog = catalog
        self.clock = clock

    def today(self) -> date:
        return self.clock().date()

    # --- checkout ---

    async def checkout(self, borrower_id: int, entry: CartEntry) -> Loan:
        """Turn a cart entry into a pending loan holding one reserved unit.

        The cart entry itself is left alone; the cart service removes it on success.
        """
        if entry.borrower_id != borrower_id:
            raise PermissionDenied("cart entry belongs to another user")
        target = next_status(LoanStatus.CART, LoanEvent.CHECKOUT)

        item = await self.catalog.item_repo.get_by_id(entry.item_id, fresh=True)
        if item is None:
            raise NotFoundError(f"item {entry.item_id} not found")
        if item.owner_id == borrower_id:
            raise ValidationError("you cannot borrow your own item")
        days = rental_days(entry.start_date, entry.end_date)
        if days < 1:
            raise ValidationError("rental duration must be at least one day")

        try:
            item = await self.catalog.reserve_unit(item.id)
        except LendooError as e:
            checkout_failures.labels(reason=e.code).inc()
            raise

        loan = Loan(
            item_id=item.id,
            borrower_id=borrower_id,
            owner_id=item.owner_id,
            start_date=entry.start_date,
            end_date=entry.end_date,
            status=target,
            daily_price=item.daily_price,
            rental_fee=compute_fee(days, item.daily_price),
            deposit_paid=item.deposit_amount,
            deposit_returned=False,
            extension_requested=False,
        )
        try:
            async with self.loan_repo.session.begin_nested():
                loan = await self.loan_repo.add(loan)
        except (SQLAlchemyError, LendooError) as exc:
            logger.warning(
                "loan insert failed for item %s, releasing reserved unit: %s", item.id, exc
            )
            checkout_failures.labels(reason="persist").inc()
            await self.catalog.release_unit(item.id)
            translated = translate_storage_error(exc)
            if translated is exc:
                raise
            raise translated from exc

        loan_transitions.labels(event=LoanEvent.CHECKOUT.value).inc()
        logger.info(
            "loan %s pending: item %s borrower %s owner %s fee %s",
            loan.id, item.id, borrower_id, item.owner_id, loan.rental_fee,
        )
        return loan

    # --- owner decisions ---

    async def approve(self, owner_id: int, loan_id: int) -> Loan:
        return await self._transition(owner_id, loan_id, LoanEvent.APPROVE, OWNER)

    async def reject(self, owner_id: int, loan_id: int, reason: str | None = None) -> Loan:
        loan = await self._load(loan_id)
        self._authorize(loan, owner_id, OWNER)
        return await self._transition(
            owner_id,
            loan_id,
            LoanEvent.REJECT,
            OWNER,
            loan=loan,
            notes=_append_note(loan.notes, reason),
        )

    async def confirm_return(
        self,
        owner_id: int,
        loan_id: int,
        deposit_returned: bool = True,
        notes: str | None = None,
    ) -> Loan:
        loan = await self._load(loan_id)
        self._authorize(loan, owner_id, OWNER)
        return await self._transition(
            owner_id,
            loan_id,
            LoanEvent.CONFIRM_RETURN,
            OWNER,
            loan=loan,
            actual_return_date=self.clock(),
            deposit_returned=deposit_returned,
            extension_requested=False,
            proposed_end_date=None,
            notes=_append_note(loan.notes, notes),
        )

    # --- start date ---

    async def start(self, actor_id: int, loan_id: int) -> Loan:
        """Explicit start trigger. The owner may hand over early; the borrower waits for the start date."""
        loan = await self._load(loan_id)
        role = self._authorize(loan, actor_id, PARTY)
        if role == BORROWER and loan.start_date > self.today():
            raise ValidationError(f"loan {loan_id} starts on {loan.start_date.isoformat()}")
        return await self._transition(actor_id, loan_id, LoanEvent.START, PARTY, loan=loan)

    async def start_due_loans(self) -> int:
        """Activate every approved loan whose start date has come."""
        count = await self.loan_repo.start_due(self.today())
        if count:
            loan_transitions.labels(event=LoanEvent.START.value).inc(count)
            logger.info("started %d due loan(s)", count)
        return count

    # --- borrower requests ---

    async def request_return(self, borrower_id: int, loan_id: int) -> Loan:
        loan = await self._load_current(loan_id)
        return await self._transition(
            borrower_id, loan_id, LoanEvent.REQUEST_RETURN, BORROWER, loan=loan
        )

    async def request_extension(
        self, borrower_id: int, loan_id: int, extra_days: int | None = None
    ) -> Loan:
        if extra_days is None:
            extra_days = get_settings().default_extension_days
        if extra_days < 1:
            raise ValidationError("extension must be at least one day")
        loan = await self._load_current(loan_id)
        self._authorize(loan, borrower_id, BORROWER)
        if loan.extension_requested:
            raise InvalidTransition(
                f"loan {loan_id} already has an extension request pending",
                current=loan.status,
                event=LoanEvent.REQUEST_EXTENSION,
            )
        return await self._transition(
            borrower_id,
            loan_id,
            LoanEvent.REQUEST_EXTENSION,
            BORROWER,
            loan=loan,
            where=(Loan.extension_requested.is_(False),),
            extension_requested=True,
            proposed_end_date=end_date_for(loan.end_date, extra_days),
        )

    # --- owner extension decisions ---

    async def accept_extension(self, owner_id: int, loan_id: int) -> Loan:
        """Move the end date to the proposed one and reprice the whole loan at the snapshot rate."""
        loan = await self._load_current(loan_id)
        self._authorize(loan, owner_id, OWNER)
        self._require_extension(loan, LoanEvent.ACCEPT_EXTENSION)
        new_days = rental_days(loan.start_date, loan.proposed_end_date)
        return await self._transition(
            owner_id,
            loan_id,
            LoanEvent.ACCEPT_EXTENSION,
            OWNER,
            loan=loan,
            where=(Loan.extension_requested.is_(True),),
            end_date=loan.proposed_end_date,
            rental_fee=compute_fee(new_days, loan.daily_price),
            extension_requested=False,
            proposed_end_date=None,
        )

    async def decline_extension(self, owner_id: int, loan_id: int) -> Loan:
        loan = await self._load_current(loan_id)
        self._authorize(loan, owner_id, OWNER)
        self._require_extension(loan, LoanEvent.DECLINE_EXTENSION)
        return await self._transition(
            owner_id,
            loan_id,
            LoanEvent.DECLINE_EXTENSION,
            OWNER,
            loan=loan,
            where=(Loan.extension_requested.is_(True),),
            extension_requested=False,
            proposed_end_date=None,
        )

    # --- reads ---

    async def get_loan(self, actor_id: int, loan_id: int) -> Loan:
        loan = await self._load_current(loan_id)
        self._authorize(loan, actor_id, PARTY)
        return loan

    # --- internals ---

    async def _load(self, loan_id: int) -> Loan:
        loan = await self.loan_repo.get_by_id(loan_id, fresh=True)
        if loan is None:
            raise NotFoundError(f"loan {loan_id} not found")
        return loan

    async def _load_current(self, loan_id: int) -> Loan:
        """Load a loan, first activating it if it is approved and its start date has come."""
        loan = await self._load(loan_id)
        if loan.status is LoanStatus.APPROVED and loan.start_date <= self.today():
            if await self.loan_repo.compare_and_set(
                loan.id, LoanStatus.APPROVED, status=LoanStatus.ACTIVE
            ):
                loan_transitions.labels(event=LoanEvent.START.value).inc()
                logger.info("loan %s started on read (start date %s)", loan.id, loan.start_date)
            loan = await self._load(loan_id)
        return loan

    def _authorize(self, loan: Loan, actor_id: int, role: str) -> str:
        """Return the actor's role on the loan, or raise PermissionDenied if it does not match ``role``."""
        if actor_id == loan.owner_id:
            actual = OWNER
        elif actor_id == loan.borrower_id:
            actual = BORROWER
        else:
            raise PermissionDenied(f"user {actor_id} is not a party to loan {loan.id}")
        if role != PARTY and role != actual:
            raise PermissionDenied(f"only the {role} can do this on loan {loan.id}")
        return actual

    def _require_extension(self, loan: Loan, event: LoanEvent) -> None:
        next_status(loan.status, event)
        if not loan.extension_requested or loan.proposed_end_date is None:
            raise InvalidTransition(
                f"loan {loan.id} has no pending extension request",
                current=loan.status,
                event=event,
            )

    async def _transition(
        self,
        actor_id: int,
        loan_id: int,
        event: LoanEvent,
        role: str,
        *,
        loan: Loan | None = None,
        where: tuple = (),
        **values,
    ) -> Loan:
        if loan is None:
            loan = await self._load(loan_id)
        self._authorize(loan, actor_id, role)
        target = next_status(loan.status, event)
        if not await self.loan_repo.compare_and_set(
            loan.id, loan.status, where=where, status=target, **values
        ):
            current = await self._load(loan_id)
            raise InvalidTransition(
                f"loan {loan_id} changed concurrently (now {current.status.value})",
                current=current.status,
                event=event,
            )
        loan_transitions.labels(event=event.value).inc()
        logger.info(
            "loan %s: %s -> %s by user %s (%s)",
            loan_id, loan.status.value, target.value, actor_id, event.value,
        )
        if event in RELEASING_EVENTS:
            await self.catalog.release_unit(loan.item_id)
        return await self._load(loan_id)
