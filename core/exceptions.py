"""
Custom exceptions for the MOCA portal.

Exception Hierarchy:
    MocaPortalError (base)
    ├── ValidationError              - user input rejected (flashed, not retried)
    │   ├── PrescriptionNotOrderableError
    │   ├── EmptyCartError
    │   ├── AuthenticationError
    │   └── PaymentDeclinedError
    ├── OrderError                   - order lifecycle failures
    │   ├── OrderNotFoundError
    │   ├── InvalidTransitionError
    │   └── TrackingNumberExhaustedError
    └── StoreError                   - persistence layer failure

Usage:
    Validation errors carry a user-facing message and are flashed directly.
    Everything else is logged and reported with a generic failure message.
"""

from typing import Optional, Dict, Any


class MocaPortalError(Exception):
    """
    Base exception for all portal errors.

    Lets callers catch every application-specific error with one clause.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# VALIDATION ERRORS - surfaced to the user as a blocking message
# =============================================================================

class ValidationError(MocaPortalError):
    """Base class for input the user can correct."""


class PrescriptionNotOrderableError(ValidationError):
    """
    Prescription is not active or has no repeats left.

    Only active prescriptions with repeats remaining can be added to a cart.
    """

    def __init__(self, prescription_id: str, status: str, repeats: int):
        message = "This prescription cannot be ordered"
        details = {
            "prescription_id": prescription_id,
            "status": status,
            "repeats": repeats,
        }
        super().__init__(message, details)
        self.prescription_id = prescription_id


class EmptyCartError(ValidationError):
    """Checkout was attempted with no cart lines."""

    def __init__(self, message: str = "Your cart is empty"):
        super().__init__(message)


class AuthenticationError(ValidationError):
    """Login code or admin credentials did not match."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class PaymentDeclinedError(ValidationError):
    """
    Mock payment could not be confirmed.

    Raised when required card fields are missing from the payment form.
    """

    def __init__(self, message: str = "Payment failed. Please try again.",
                 missing_fields: Optional[list] = None):
        details = {"missing_fields": missing_fields} if missing_fields else None
        super().__init__(message, details)
        self.missing_fields = missing_fields or []


# =============================================================================
# ORDER ERRORS - lifecycle violations
# =============================================================================

class OrderError(MocaPortalError):
    """Base class for order lifecycle failures."""

    def __init__(self, message: str, order_id: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        error_details = details or {}
        if order_id:
            error_details["order_id"] = order_id
        super().__init__(message, error_details)
        self.order_id = order_id


class OrderNotFoundError(OrderError):
    """No order with the given identifier exists in the collection."""

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found", order_id)


class InvalidTransitionError(OrderError):
    """
    Requested status change is not a legal forward step.

    Orders only move awaiting_payment -> processing -> shipped.
    """

    def __init__(self, order_id: str, current_status: str, target_status: str):
        message = (
            f"Order {order_id} cannot move from {current_status} to {target_status}"
        )
        details = {
            "current_status": current_status,
            "target_status": target_status,
        }
        super().__init__(message, order_id, details)
        self.current_status = current_status
        self.target_status = target_status


class TrackingNumberTakenError(OrderError):
    """Tracking number is already carried by another order."""

    def __init__(self, order_id: str, tracking_number: str):
        message = f"Tracking number {tracking_number} is already issued"
        super().__init__(message, order_id, {"tracking_number": tracking_number})
        self.tracking_number = tracking_number


class TrackingNumberExhaustedError(OrderError):
    """Could not draw an unused tracking number within the attempt limit."""

    def __init__(self, order_id: str, attempts: int):
        message = f"No unique tracking number found after {attempts} attempts"
        super().__init__(message, order_id, {"attempts": attempts})
        self.attempts = attempts


# =============================================================================
# PERSISTENCE ERRORS
# =============================================================================

class StoreError(MocaPortalError):
    """The order repository could not read or write its backing storage."""
