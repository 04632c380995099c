"""
Core module for the MOCA portal.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
"""

from .exceptions import (
    MocaPortalError,
    ValidationError,
    PrescriptionNotOrderableError,
    EmptyCartError,
    AuthenticationError,
    PaymentDeclinedError,
    OrderError,
    OrderNotFoundError,
    InvalidTransitionError,
    TrackingNumberTakenError,
    TrackingNumberExhaustedError,
    StoreError,
)

__all__ = [
    "MocaPortalError",
    "ValidationError",
    "PrescriptionNotOrderableError",
    "EmptyCartError",
    "AuthenticationError",
    "PaymentDeclinedError",
    "OrderError",
    "OrderNotFoundError",
    "InvalidTransitionError",
    "TrackingNumberTakenError",
    "TrackingNumberExhaustedError",
    "StoreError",
]
