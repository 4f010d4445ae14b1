"""
Error taxonomy for the launchpad settlement engine.

Every failure surfaced by the engine is a LaunchpadError subclass carrying a stable
``code`` and the HTTP status the web layer answers with. Nothing is retried inside the
engine: callers resubmit a fresh request.
"""
from decimal import Decimal
from typing import List, Optional


class LaunchpadError(Exception):
    """Base class of every typed failure raised by the engine."""
    code = "LAUNCHPAD_ERROR"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class ValidationFailedError(LaunchpadError):
    """Malformed input or an unmet balance condition, detected before any mutation."""
    code = "VALIDATION_FAILED"
    http_status = 400

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = list(fields or [])

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.fields:
            body["fields"] = self.fields
        return body


class InsufficientBalanceError(ValidationFailedError):
    """The payer does not hold enough of a token to cover a transfer."""
    code = "INSUFFICIENT_BALANCE"


class SlippageToleranceExceededError(LaunchpadError):
    """The trade outcome is worse for the caller than the bound they supplied."""
    code = "SLIPPAGE_TOLERANCE_EXCEEDED"
    http_status = 409


class InvalidDecimalError(LaunchpadError):
    """A quantity carries more fractional digits than the token allows."""
    code = "INVALID_DECIMAL"
    http_status = 400

    def __init__(self, quantity: Decimal, decimals: int):
        super().__init__(
            f"Quantity {quantity} has more than {decimals} decimal places, "
            f"which the token does not support."
        )
        self.quantity = quantity
        self.decimals = decimals


class NotFoundError(LaunchpadError):
    code = "NOT_FOUND"
    http_status = 404


class UnauthorizedError(LaunchpadError):
    code = "UNAUTHORIZED"
    http_status = 403


class PreConditionFailedError(LaunchpadError):
    """A required piece of platform state (e.g. fee configuration) is missing."""
    code = "PRECONDITION_FAILED"
    http_status = 412


class ConfigurationError(LaunchpadError):
    """Raised when settings loaded from the environment are invalid."""
    code = "CONFIGURATION_ERROR"
