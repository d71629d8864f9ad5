"""Domain errors raised by the billing services.

Routes let these propagate; ``register_error_handlers`` maps each class to an
HTTP status with the same ``{"detail": ...}`` body FastAPI uses for
``HTTPException``.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class BillingError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class AccountingMismatchError(BillingError):
    """Split amounts do not add up to the invoice or schedule total."""


class NotFoundError(BillingError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateError(BillingError):
    """The requested transition is not allowed from the current state."""


class IntegrityViolationError(BillingError):
    """Stored rows break the sum(owed) == total invariant."""

    status_code = status.HTTP_409_CONFLICT


async def billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BillingError, billing_error_handler)
