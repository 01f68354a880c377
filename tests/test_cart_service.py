"""
Cart service - staging, duration pricing and partial checkout.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from lendoo.core.exceptions import (
    NotFoundError,
    OutOfStock,
    PermissionDenied,
    ValidationError,
)
from lendoo.services.loan_states import LoanStatus

TODAY = date(2026, 10, 19)


@pytest.mark.asyncio
async def test_add_defaults_to_three_days(cart, borrower, make_item):
    item = await make_item(price="10.00", deposit="25.00")
    entry = await cart.add_to_cart(borrower.id, item.id)
    assert entry.start_date == TODAY
    assert entry.end_date == TODAY + timedelta(days=3)
    assert entry.fee == Decimal("30.00")
    assert entry.deposit == Decimal("25.00")


@pytest.mark.asyncio
async def test_update_duration_reprices_without_touching_catalog(cart, catalog, borrower, make_item):
    item = await make_item(price="15.00")
    entry = await cart.add_to_cart(borrower.id, item.id, days=3)
    assert entry.fee == Decimal("45.00")

    updated = await cart.update_duration(borrower.id, entry.id, 4)
    assert updated.fee == Decimal("60.00")
    assert updated.end_date == TODAY + timedelta(days=4)
    assert (await catalog.get_item(item.id)).available_quantity == 1


@pytest.mark.asyncio
async def test_adding_same_item_extends_entry(cart, borrower, make_item):
    item = await make_item(price="10.00")
    first = await cart.add_to_cart(borrower.id, item.id, days=2)
    again = await cart.add_to_cart(borrower.id, item.id, days=3)
    assert again.id == first.id
    assert again.days == 5
    assert again.fee == Decimal("50.00")
    assert len((await cart.list_cart(borrower.id)).entries) == 1


@pytest.mark.asyncio
async def test_duration_below_one_day_removes_entry(cart, borrower, make_item):
    item = await make_item()
    entry = await cart.add_to_cart(borrower.id, item.id)
    assert await cart.update_duration(borrower.id, entry.id, 0) is None
    assert (await cart.list_cart(borrower.id)).entries == []


@pytest.mark.asyncio
async def test_add_and_remove_leave_availability_alone(cart, catalog, borrower, make_item):
    item = await make_item(quantity=2)
    entry = await cart.add_to_cart(borrower.id, item.id)
    await cart.remove_from_cart(borrower.id, entry.id)
    assert (await catalog.get_item(item.id)).available_quantity == 2
    with pytest.raises(NotFoundError):
        await cart.remove_from_cart(borrower.id, entry.id)


@pytest.mark.asyncio
async def test_add_rejects_bad_requests(cart, catalog, owner, borrower, make_item):
    item = await make_item()
    with pytest.raises(ValidationError):
        await cart.add_to_cart(owner.id, item.id)
    with pytest.raises(ValidationError):
        await cart.add_to_cart(borrower.id, item.id, days=0)
    with pytest.raises(NotFoundError):
        await cart.add_to_cart(borrower.id, 4242)

    await catalog.reserve_unit(item.id)
    with pytest.raises(OutOfStock):
        await cart.add_to_cart(borrower.id, item.id)


@pytest.mark.asyncio
async def test_entries_belong_to_their_borrower(cart, borrower, other_borrower, make_item):
    item = await make_item()
    entry = await cart.add_to_cart(borrower.id, item.id)
    with pytest.raises(PermissionDenied):
        await cart.update_duration(other_borrower.id, entry.id, 5)
    with pytest.raises(PermissionDenied):
        await cart.remove_from_cart(other_borrower.id, entry.id)


@pytest.mark.asyncio
async def test_list_cart_totals(cart, borrower, make_item):
    drill = await make_item(price="10.00", deposit="50.00")
    tent = await make_item(name="Tent", price="7.50", deposit="20.00")
    await cart.add_to_cart(borrower.id, drill.id, days=2)
    await cart.add_to_cart(borrower.id, tent.id, days=4)

    view = await cart.list_cart(borrower.id)
    assert [e.item_name for e in view.entries] == ["Cordless drill", "Tent"]
    assert view.total_fee == Decimal("50.00")
    assert view.total_deposit == Decimal("70.00")


@pytest.mark.asyncio
async def test_checkout_all_reports_partial_success(cart, catalog, loans, borrower, other_borrower, make_item):
    drill = await make_item()
    tent = await make_item(name="Tent")
    first = await cart.add_to_cart(borrower.id, drill.id)
    second = await cart.add_to_cart(borrower.id, tent.id)

    # Someone else takes the last tent between staging and checkout.
    await catalog.reserve_unit(tent.id)

    report = await cart.checkout_all(borrower.id)
    assert [r.entry_id for r in report.submitted] == [first.id]
    [failed] = report.failed
    assert failed.entry_id == second.id
    assert failed.error_code == OutOfStock.code
    assert not failed.retryable

    loan = await loans.get_loan(borrower.id, report.submitted[0].loan_id)
    assert loan.status is LoanStatus.PENDING
    remaining = (await cart.list_cart(borrower.id)).entries
    assert [e.id for e in remaining] == [second.id]


@pytest.mark.asyncio
async def test_checkout_empty_cart(cart, borrower):
    report = await cart.checkout_all(borrower.id)
    assert report.results == []


@pytest.mark.asyncio
async def test_absurd_duration_is_validation_error(cart, borrower, make_item):
    item = await make_item()
    with pytest.raises(ValidationError):
        await cart.add_to_cart(borrower.id, item.id, days=10**7)

    entry = await cart.add_to_cart(borrower.id, item.id, days=2)
    with pytest.raises(ValidationError):
        await cart.add_to_cart(borrower.id, item.id, days=10**7)
    with pytest.raises(ValidationError):
        await cart.update_duration(borrower.id, entry.id, 10**7)
