"""
Loan status state machine and rental arithmetic.

Statuses form a closed enum; every lifecycle event goes through ``next_status`` so the
transition table lives in one place. Fee and day arithmetic used by the cart and the
loan service is here too, so no caller recomputes prices on its own.
"""

from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

from lendoo.core.exceptions import InvalidTransition, ValidationError

CENT = Decimal("0.01")

# Upper bound accepted from clients for a rental or extension length.
MAX_RENTAL_DAYS = 365


class LoanStatus(str, Enum):
    CART = "cart"
    PENDING = "pending"
    APPROVED = "approved"
    ACTIVE = "active"
    RETURN_REQUESTED = "return_requested"
    RETURNED = "returned"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @classmethod
    def parse(cls, value: "LoanStatus | str") -> "LoanStatus":
        """Normalize a stored or client-supplied status. Unknown strings raise ValidationError."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValidationError(f"invalid loan status: {value!r}")
        key = value.strip().lower()
        try:
            return cls(key)
        except ValueError:
            pass
        try:
            return _LEGACY_ALIASES[key]
        except KeyError:
            raise ValidationError(f"unknown loan status: {value!r}") from None


TERMINAL_STATUSES = frozenset({LoanStatus.RETURNED, LoanStatus.REJECTED})

# Older mobile builds wrote French labels; they are read back as canonical statuses.
_LEGACY_ALIASES = {
    "panier": LoanStatus.CART,
    "en attente": LoanStatus.PENDING,
    "en_attente": LoanStatus.PENDING,
    "approuvé": LoanStatus.APPROVED,
    "approuve": LoanStatus.APPROVED,
    "actif": LoanStatus.ACTIVE,
    "en cours": LoanStatus.ACTIVE,
    "demande_retour": LoanStatus.RETURN_REQUESTED,
    "retourné": LoanStatus.RETURNED,
    "retourne": LoanStatus.RETURNED,
    "rejeté": LoanStatus.REJECTED,
    "rejete": LoanStatus.REJECTED,
}


class LoanEvent(str, Enum):
    CHECKOUT = "checkout"
    APPROVE = "approve"
    REJECT = "reject"
    START = "start"
    REQUEST_RETURN = "request_return"
    REQUEST_EXTENSION = "request_extension"
    ACCEPT_EXTENSION = "accept_extension"
    DECLINE_EXTENSION = "decline_extension"
    CONFIRM_RETURN = "confirm_return"


# (from, event) -> to. Extension events keep the status unchanged.
TRANSITIONS: dict[tuple[LoanStatus, LoanEvent], LoanStatus] = {
    (LoanStatus.CART, LoanEvent.CHECKOUT): LoanStatus.PENDING,
    (LoanStatus.PENDING, LoanEvent.APPROVE): LoanStatus.APPROVED,
    (LoanStatus.PENDING, LoanEvent.REJECT): LoanStatus.REJECTED,
    (LoanStatus.APPROVED, LoanEvent.START): LoanStatus.ACTIVE,
    (LoanStatus.ACTIVE, LoanEvent.REQUEST_RETURN): LoanStatus.RETURN_REQUESTED,
    (LoanStatus.ACTIVE, LoanEvent.REQUEST_EXTENSION): LoanStatus.ACTIVE,
    (LoanStatus.RETURN_REQUESTED, LoanEvent.REQUEST_EXTENSION): LoanStatus.RETURN_REQUESTED,
    (LoanStatus.ACTIVE, LoanEvent.ACCEPT_EXTENSION): LoanStatus.ACTIVE,
    (LoanStatus.ACTIVE, LoanEvent.DECLINE_EXTENSION): LoanStatus.ACTIVE,
    (LoanStatus.RETURN_REQUESTED, LoanEvent.DECLINE_EXTENSION): LoanStatus.RETURN_REQUESTED,
    (LoanStatus.RETURN_REQUESTED, LoanEvent.CONFIRM_RETURN): LoanStatus.RETURNED,
}

# Events whose completion hands the reserved unit back to the catalog.
RELEASING_EVENTS = frozenset({LoanEvent.REJECT, LoanEvent.CONFIRM_RETURN})


def next_status(current: LoanStatus | str, event: LoanEvent) -> LoanStatus:
    """Apply ``event`` to ``current``. Raises InvalidTransition when the pair is not in the table."""
    status = LoanStatus.parse(current)
    try:
        return TRANSITIONS[(status, event)]
    except KeyError:
        raise InvalidTransition(
            f"cannot {event.value} a loan that is {status.value}",
            current=status,
            event=event,
        ) from None


def allowed_events(current: LoanStatus | str) -> list[LoanEvent]:
    status = LoanStatus.parse(current)
    return [event for (src, event) in TRANSITIONS if src is status]


def effective_status(status: LoanStatus, start_date: date, on: date) -> LoanStatus:
    """Approved loans whose start date has come are active; nothing runs to flip them."""
    if status is LoanStatus.APPROVED and start_date <= on:
        return LoanStatus.ACTIVE
    return status


def rental_days(start: date, end: date) -> int:
    """Billable days between start and end. End before start is a ValidationError."""
    if end < start:
        raise ValidationError("end date is before start date")
    return (end - start).days


def end_date_for(start: date, days: int) -> date:
    if days < 1:
        raise ValidationError("rental duration must be at least one day")
    try:
        return start + timedelta(days=days)
    except OverflowError:
        raise ValidationError("rental duration too long") from None


def compute_fee(days: int, daily_price: Decimal) -> Decimal:
    if days < 0:
        raise ValidationError("rental duration cannot be negative")
    return (Decimal(days) * Decimal(daily_price)).quantize(CENT, rounding=ROUND_HALF_UP)
