"""
Loan endpoints - loan lists and lifecycle actions.
Each action maps to one lifecycle event; illegal ones come back as 409 invalid_transition.
"""

from fastapi import APIRouter

from lendoo.core.dependencies import CurrentUserId, Loans, Reconciliation
from lendoo.schemas.loan import (
    ConfirmReturnRequest,
    ExtensionRequest,
    LoanResponse,
    LoanView,
    RejectRequest,
)

router = APIRouter()


@router.get("/borrowed", response_model=list[LoanView])
async def borrowed(views: Reconciliation, user_id: CurrentUserId):
    return await views.my_borrowed_loans(user_id)


@router.get("/lent", response_model=list[LoanView])
async def lent(views: Reconciliation, user_id: CurrentUserId):
    return await views.my_lent_loans(user_id)


@router.get("/requests", response_model=list[LoanView])
async def pending_requests(views: Reconciliation, user_id: CurrentUserId):
    """Pending requests on the caller's items, newest first."""
    return await views.pending_requests_for_owner(user_id)


@router.get("/{loan_id}", response_model=LoanResponse)
async def get_loan(loans: Loans, loan_id: int, user_id: CurrentUserId):
    return await loans.get_loan(user_id, loan_id)


@router.post("/{loan_id}/approve", response_model=LoanResponse)
async def approve(loans: Loans, loan_id: int, user_id: CurrentUserId):
    return await loans.approve(user_id, loan_id)


@router.post("/{loan_id}/reject", response_model=LoanResponse)
async def reject(loans: Loans, loan_id: int, user_id: CurrentUserId, data: RejectRequest | None = None):
    return await loans.reject(user_id, loan_id, reason=data.reason if data else None)


@router.post("/{loan_id}/start", response_model=LoanResponse)
async def start(loans: Loans, loan_id: int, user_id: CurrentUserId):
    return await loans.start(user_id, loan_id)


@router.post("/{loan_id}/return-request", response_model=LoanResponse)
async def request_return(loans: Loans, loan_id: int, user_id: CurrentUserId):
    return await loans.request_return(user_id, loan_id)


@router.post("/{loan_id}/return-confirm", response_model=LoanResponse)
async def confirm_return(
    loans: Loans, loan_id: int, user_id: CurrentUserId, data: ConfirmReturnRequest | None = None
):
    data = data or ConfirmReturnRequest()
    return await loans.confirm_return(
        user_id, loan_id, deposit_returned=data.deposit_returned, notes=data.notes
    )


@router.post("/{loan_id}/extension-request", response_model=LoanResponse)
async def request_extension(
    loans: Loans, loan_id: int, user_id: CurrentUserId, data: ExtensionRequest | None = None
):
    return await loans.request_extension(user_id, loan_id, extra_days=data.extra_days if data else None)


@router.post("/{loan_id}/extension/accept", response_model=LoanResponse)
async def accept_extension(loans: Loans, loan_id: int, user_id: CurrentUserId):
    return await loans.accept_extension(user_id, loan_id)


@router.post("/{loan_id}/extension/decline", response_model=LoanResponse)
async def decline_extension(loans: Loans, loan_id: int, user_id: CurrentUserId):
    return await loans.decline_extension(user_id, loan_id)
