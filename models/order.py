"""
Order data models.

An order is created once from a cart snapshot and afterwards only its
status and tracking number change:

    awaiting_payment -> processing -> shipped

``delivered`` exists for parity with the relational schema but no
transition in the portal reaches it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from decimal import Decimal
from typing import Dict, Any, List, Optional, Tuple

from .prescription import Prescription, to_money


PAYMENT_METHOD = "Power Board"
SHIPPING_ADDRESS_PLACEHOLDER = "Mock Address"


class OrderStatus(Enum):
    """
    Status of an order.

    Lifecycle:
        AWAITING_PAYMENT -> PROCESSING -> SHIPPED
    """

    AWAITING_PAYMENT = "awaiting_payment"
    """Initial state, set when the order is created at checkout."""

    PROCESSING = "processing"
    """Pharmacy team is preparing the order."""

    SHIPPED = "shipped"
    """Dispatched with a tracking number. Terminal in the portal."""

    DELIVERED = "delivered"
    """Schema-only state; never reached."""

    @property
    def label(self) -> str:
        """Human-readable status for display."""
        return self.value.replace("_", " ").title()


# Forward-only progression: current status -> the only legal next status
NEXT_STATUS: Dict[OrderStatus, OrderStatus] = {
    OrderStatus.AWAITING_PAYMENT: OrderStatus.PROCESSING,
    OrderStatus.PROCESSING: OrderStatus.SHIPPED,
}


@dataclass(frozen=True)
class OrderItem:
    """
    One ordered line, copied out of the cart at checkout.

    Holds its own copy of the prescription fields so later catalog changes
    cannot alter a placed order.
    """

    prescription_id: str
    name: str
    strength: str
    quantity: int
    price: Decimal
    interval: str
    quantity_selected: int

    @property
    def line_total(self) -> Decimal:
        return to_money(self.price * self.quantity_selected)

    @classmethod
    def from_prescription(cls, prescription: Prescription, quantity_selected: int) -> "OrderItem":
        return cls(
            prescription_id=prescription.id,
            name=prescription.name,
            strength=prescription.strength,
            quantity=prescription.quantity,
            price=prescription.price,
            interval=prescription.interval,
            quantity_selected=quantity_selected,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prescription": {
                "id": self.prescription_id,
                "name": self.name,
                "strength": self.strength,
                "quantity": self.quantity,
                "price": str(self.price),
                "interval": self.interval,
            },
            "quantity_selected": self.quantity_selected,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderItem":
        rx = data.get("prescription", {})
        return cls(
            prescription_id=rx.get("id", ""),
            name=rx.get("name", ""),
            strength=rx.get("strength", ""),
            quantity=int(rx.get("quantity", 0)),
            price=to_money(rx.get("price", "0")),
            interval=rx.get("interval", ""),
            quantity_selected=int(data.get("quantity_selected", 0)),
        )


@dataclass(frozen=True)
class CartSnapshot:
    """
    Immutable copy of a cart taken at checkout.

    This is the only data the order lifecycle receives from the cart.
    """

    items: Tuple[OrderItem, ...]

    @property
    def subtotal(self) -> Decimal:
        return to_money(sum((item.line_total for item in self.items), Decimal("0")))


@dataclass(frozen=True)
class PaymentConfirmation:
    """Proof that payment for a checkout amount was confirmed."""

    reference: str
    amount: Decimal
    method: str = PAYMENT_METHOD
    confirmed_at: str = ""


@dataclass
class Order:
    """
    A patient's medication order.

    Monetary fields are fixed at creation; ``total`` always equals
    ``subtotal + shipping_fee``. Only ``status`` and ``tracking_number``
    change afterwards.
    """

    id: str
    patient_email: str
    items: List[OrderItem]
    subtotal: Decimal
    shipping_fee: Decimal
    total: Decimal
    status: OrderStatus
    created_at: str
    """ISO-8601 UTC timestamp."""

    payment_method: str = PAYMENT_METHOD
    shipping_address: str = SHIPPING_ADDRESS_PLACEHOLDER
    tracking_number: Optional[str] = None
    payment_reference: str = ""
    updated_at: str = ""

    extra: Dict[str, Any] = field(default_factory=dict)
    """Unknown keys read from storage, written back untouched."""

    @property
    def next_status(self) -> Optional[OrderStatus]:
        return NEXT_STATUS.get(self.status)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON storage."""
        data = dict(self.extra)
        data.update({
            "id": self.id,
            "patient_email": self.patient_email,
            "items": [item.to_dict() for item in self.items],
            "subtotal": str(self.subtotal),
            "shipping_fee": str(self.shipping_fee),
            "total": str(self.total),
            "status": self.status.value,
            "created_at": self.created_at,
            "payment_method": self.payment_method,
            "shipping_address": self.shipping_address,
            "tracking_number": self.tracking_number,
            "payment_reference": self.payment_reference,
            "updated_at": self.updated_at,
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        """
        Create Order from a stored dictionary.

        Raises:
            KeyError / ValueError: if required fields are missing or invalid
        """
        known = {
            "id", "patient_email", "items", "subtotal", "shipping_fee", "total",
            "status", "created_at", "payment_method", "shipping_address",
            "tracking_number", "payment_reference", "updated_at",
        }
        return cls(
            id=data["id"],
            patient_email=data["patient_email"],
            items=[OrderItem.from_dict(item) for item in data.get("items", [])],
            subtotal=to_money(data["subtotal"]),
            shipping_fee=to_money(data["shipping_fee"]),
            total=to_money(data["total"]),
            status=OrderStatus(data["status"]),
            created_at=data["created_at"],
            payment_method=data.get("payment_method", PAYMENT_METHOD),
            shipping_address=data.get("shipping_address", SHIPPING_ADDRESS_PLACEHOLDER),
            tracking_number=data.get("tracking_number"),
            payment_reference=data.get("payment_reference", ""),
            updated_at=data.get("updated_at", ""),
            extra={k: v for k, v in data.items() if k not in known},
        )
