"""
Clock abstraction. Services take a clock instead of reading the wall time so lifecycle
rules (lazy activation, return dates, cart start dates) can be pinned in tests.
"""

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def fixed_clock(moment: datetime) -> Clock:
    """Clock that always returns ``moment``."""
    return lambda: moment
