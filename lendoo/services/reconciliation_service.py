"""
Reconciliation service - read-only loan lists for the borrower and lender screens.

Each loan is joined with its item and the counterparty. A missing join degrades to
placeholder data instead of failing the list, and approved loans whose start date has
come are shown as active even if nothing has flipped them yet.
"""

from lendoo.core.clock import Clock, utcnow
from lendoo.db.models import Item, Loan, User
from lendoo.db.repositories.loan_repository import LoanRepository
from lendoo.schemas.loan import ItemSnapshot, LoanResponse, LoanView
from lendoo.schemas.user import PartySummary
from lendoo.services.loan_states import LoanStatus, effective_status


def item_snapshot(item_id: int, item: Item | None) -> ItemSnapshot:
    if item is None:
        return ItemSnapshot(id=item_id, name=f"Item #{item_id}")
    return ItemSnapshot(
        id=item.id,
        name=item.name or f"Item #{item_id}",
        description=item.description,
        image_url=item.image_url,
        is_active=item.is_active,
    )


def party_summary(user_id: int, user: User | None) -> PartySummary:
    if user is None:
        return PartySummary(id=user_id, display_name=f"User #{user_id}")
    return PartySummary(id=user.id, display_name=user.display_name, email=user.email)


class ReconciliationService:
    """Derived loan views. Never writes."""

    def __init__(self, loan_repo: LoanRepository, clock: Clock = utcnow):
        self.loan_repo = loan_repo
        self.clock = clock

    def to_view(self, loan: Loan, viewer_id: int) -> LoanView:
        if viewer_id == loan.borrower_id:
            counterparty = party_summary(loan.owner_id, loan.owner)
        else:
            counterparty = party_summary(loan.borrower_id, loan.borrower)
        data = {field: getattr(loan, field) for field in LoanResponse.model_fields}
        data["status"] = effective_status(loan.status, loan.start_date, self.clock().date())
        return LoanView(
            **data,
            item=item_snapshot(loan.item_id, loan.item),
            counterparty=counterparty,
        )

    async def my_borrowed_loans(self, user_id: int) -> list[LoanView]:
        loans = await self.loan_repo.list_for_borrower(user_id)
        return [self.to_view(loan, user_id) for loan in loans]

    async def my_lent_loans(self, user_id: int) -> list[LoanView]:
        loans = await self.loan_repo.list_for_owner(user_id)
        return [self.to_view(loan, user_id) for loan in loans]

    async def pending_requests_for_owner(self, user_id: int) -> list[LoanView]:
        """Pending requests on the owner's items, newest first."""
        loans = await self.loan_repo.list_for_owner(user_id, statuses=[LoanStatus.PENDING])
        return [self.to_view(loan, user_id) for loan in loans]
