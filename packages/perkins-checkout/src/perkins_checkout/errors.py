"""Checkout error taxonomy."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation message."""
    field: str
    message: str


class CheckoutError(Exception):
    """Base exception for checkout errors."""
    pass


class ValidationError(CheckoutError):
    """Raised when required shipping fields are missing or invalid."""

    def __init__(self, message: str, errors: Optional[List[FieldError]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class NetworkError(CheckoutError):
    """Raised on transport failures talking to an external service."""
    pass


class ConfigurationError(CheckoutError):
    """Raised when server-side credentials are missing."""
    pass


class InvalidRateError(CheckoutError):
    """Raised when an exchange rate is not strictly positive."""
    pass


class InvalidTransition(CheckoutError):
    """Raised when an event is not defined for the current checkout step."""
    pass


class SubmissionInProgress(CheckoutError):
    """Raised when confirm is requested while a submission is in flight."""
    pass


class CartError(CheckoutError):
    """Base exception for cart mutation rejections."""

    def __init__(self, message: str, product_id: str = ""):
        super().__init__(message)
        self.product_id = product_id


class QuantityLimitExceeded(CartError):
    """Raised when a line is already at the per-product unit cap."""
    pass


class OutOfStock(CartError):
    """Raised when adding a product with no stock."""
    pass


class InsufficientStock(CartError):
    """Raised when the requested quantity exceeds available stock."""
    pass


class ExternalServiceError(CheckoutError):
    """Non-success response from a collaborator service."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PaymentPreferenceError(ExternalServiceError):
    """Payment preference could not be created."""
    pass


class SchedulingError(ExternalServiceError):
    """Delivery could not be scheduled."""
    pass
