"""
Domain error taxonomy for the rental lifecycle engine.

Every service raises one of these; the API layer renders them through a single
exception handler. ``retryable`` tells callers whether backing off and trying
again can succeed.
"""

from sqlalchemy import exc as sa_exc


class LendooError(Exception):
    """Base exception for lendoo domain errors."""

    code = "error"
    status_code = 400
    retryable = False

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or (self.__class__.__doc__ or "").strip()

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code, "retryable": self.retryable}


class ValidationError(LendooError):
    """Malformed input."""

    code = "validation_error"
    status_code = 422


class NotFoundError(LendooError):
    """Referenced entity does not exist."""

    code = "not_found"
    status_code = 404


class PermissionDenied(LendooError):
    """Acting user is not allowed to perform this operation."""

    code = "permission_denied"
    status_code = 403


class OutOfStock(LendooError):
    """No unit of the item is available."""

    code = "out_of_stock"
    status_code = 409


class InvalidTransition(LendooError):
    """Lifecycle event is not legal from the loan's current status."""

    code = "invalid_transition"
    status_code = 409

    def __init__(self, message: str = "", *, current=None, event=None):
        super().__init__(message)
        self.current = current
        self.event = event


class InvariantViolation(LendooError):
    """Internal consistency breach."""

    code = "invariant_violation"
    status_code = 500


class TransientError(LendooError):
    """Storage or network temporarily unavailable."""

    code = "transient_error"
    status_code = 503
    retryable = True


# Storage failures worth retrying; anything else is a defect or bad input.
TRANSIENT_DB_ERRORS = (
    sa_exc.OperationalError,
    sa_exc.TimeoutError,
    sa_exc.DisconnectionError,
)


def translate_storage_error(exc: Exception) -> Exception:
    """Map a storage-level exception to TransientError when retryable, else return it unchanged."""
    if isinstance(exc, LendooError):
        return exc
    if isinstance(exc, TRANSIENT_DB_ERRORS):
        return TransientError(f"storage unavailable: {exc.__class__.__name__}")
    if isinstance(exc, sa_exc.DBAPIError) and exc.connection_invalidated:
        return TransientError("storage connection lost")
    return exc
