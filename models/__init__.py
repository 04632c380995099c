"""
Data models for the MOCA portal.

This module contains dataclasses for:
- Prescription: Read-only catalog record
- Cart / CartLine: Patient's in-session selection
- CartSnapshot: Frozen copy of the cart handed to order creation
- Order / OrderItem / OrderStatus: Placed orders and their lifecycle
"""

from .prescription import Prescription, PrescriptionStatus, to_money
from .order import (
    Order,
    OrderItem,
    OrderStatus,
    CartSnapshot,
    PaymentConfirmation,
    NEXT_STATUS,
)
from .cart import Cart, CartLine, CartAddResult

__all__ = [
    # Catalog models
    "Prescription",
    "PrescriptionStatus",
    "to_money",
    # Cart models
    "Cart",
    "CartLine",
    "CartAddResult",
    "CartSnapshot",
    # Order models
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentConfirmation",
    "NEXT_STATUS",
]
