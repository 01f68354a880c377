"""
Loan status state machine - transition table, status parsing, fee arithmetic.
"""

from datetime import date
from decimal import Decimal

import pytest

from lendoo.core.exceptions import InvalidTransition, ValidationError
from lendoo.services.loan_states import (
    LoanEvent,
    LoanStatus,
    allowed_events,
    compute_fee,
    effective_status,
    end_date_for,
    next_status,
    rental_days,
)


def test_checkout_moves_cart_to_pending():
    assert next_status(LoanStatus.CART, LoanEvent.CHECKOUT) is LoanStatus.PENDING


@pytest.mark.parametrize(
    "current,event",
    [
        (LoanStatus.ACTIVE, LoanEvent.APPROVE),
        (LoanStatus.APPROVED, LoanEvent.APPROVE),
        (LoanStatus.REJECTED, LoanEvent.REJECT),
        (LoanStatus.RETURNED, LoanEvent.CONFIRM_RETURN),
        (LoanStatus.PENDING, LoanEvent.REQUEST_RETURN),
        (LoanStatus.ACTIVE, LoanEvent.CONFIRM_RETURN),
        (LoanStatus.RETURN_REQUESTED, LoanEvent.ACCEPT_EXTENSION),
    ],
)
def test_illegal_events_raise_invalid_transition(current, event):
    with pytest.raises(InvalidTransition) as excinfo:
        next_status(current, event)
    assert excinfo.value.current is current
    assert excinfo.value.event is event


def test_terminal_statuses_accept_no_event():
    for status in (LoanStatus.RETURNED, LoanStatus.REJECTED):
        assert status.is_terminal
        assert allowed_events(status) == []


def test_extension_events_keep_status():
    assert next_status(LoanStatus.ACTIVE, LoanEvent.REQUEST_EXTENSION) is LoanStatus.ACTIVE
    assert (
        next_status(LoanStatus.RETURN_REQUESTED, LoanEvent.REQUEST_EXTENSION)
        is LoanStatus.RETURN_REQUESTED
    )
    assert next_status(LoanStatus.ACTIVE, LoanEvent.ACCEPT_EXTENSION) is LoanStatus.ACTIVE


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("pending", LoanStatus.PENDING),
        ("  Active ", LoanStatus.ACTIVE),
        ("panier", LoanStatus.CART),
        ("en attente", LoanStatus.PENDING),
        ("approuvé", LoanStatus.APPROVED),
        ("actif", LoanStatus.ACTIVE),
        ("en cours", LoanStatus.ACTIVE),
        ("demande_retour", LoanStatus.RETURN_REQUESTED),
        ("retourné", LoanStatus.RETURNED),
        ("rejeté", LoanStatus.REJECTED),
    ],
)
def test_parse_accepts_canonical_and_legacy_labels(raw, expected):
    assert LoanStatus.parse(raw) is expected


def test_parse_rejects_unknown_status():
    with pytest.raises(ValidationError):
        LoanStatus.parse("lost")
    with pytest.raises(ValidationError):
        LoanStatus.parse(3)


def test_approved_loan_is_effectively_active_once_start_date_arrives():
    start = date(2026, 10, 19)
    assert effective_status(LoanStatus.APPROVED, start, date(2026, 10, 18)) is LoanStatus.APPROVED
    assert effective_status(LoanStatus.APPROVED, start, start) is LoanStatus.ACTIVE
    assert effective_status(LoanStatus.PENDING, start, start) is LoanStatus.PENDING


def test_fee_and_dates():
    start = date(2026, 10, 19)
    end = end_date_for(start, 3)
    assert end == date(2026, 10, 22)
    assert rental_days(start, end) == 3
    assert compute_fee(3, Decimal("10.00")) == Decimal("30.00")
    assert compute_fee(4, Decimal("15")) == Decimal("60.00")
    assert compute_fee(3, Decimal("0.333")) == Decimal("1.00")


def test_end_before_start_is_invalid():
    with pytest.raises(ValidationError):
        rental_days(date(2026, 10, 19), date(2026, 10, 18))
    with pytest.raises(ValidationError):
        end_date_for(date(2026, 10, 19), 0)
