"""
Shopping cart model.

The cart lives in the patient's session under ``cartItems`` and is
discarded on checkout or logout.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Dict, Any, List, Optional

from core.exceptions import EmptyCartError, PrescriptionNotOrderableError
from .order import CartSnapshot, OrderItem
from .prescription import Prescription, to_money


class CartAddResult(Enum):
    """Outcome of adding a prescription to the cart."""

    ADDED = "Added to cart!"
    MERGED = "Quantity updated in cart"


@dataclass
class CartLine:
    """A prescription paired with the quantity the patient is ordering."""

    prescription: Prescription
    quantity_selected: int

    @property
    def line_total(self) -> Decimal:
        return to_money(self.prescription.price * self.quantity_selected)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prescription": self.prescription.to_dict(),
            "quantity_selected": self.quantity_selected,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartLine":
        return cls(
            prescription=Prescription.from_dict(data["prescription"]),
            quantity_selected=int(data["quantity_selected"]),
        )


class Cart:
    """
    Mapping from prescription identity to selected quantity.

    Adding a prescription already in the cart increases its line by the
    prescription's full quantity rather than creating a second line.
    """

    def __init__(self, lines: Optional[List[CartLine]] = None):
        self._lines: List[CartLine] = list(lines or [])

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def find(self, prescription_id: str) -> Optional[CartLine]:
        for line in self._lines:
            if line.prescription.id == prescription_id:
                return line
        return None

    def add(self, prescription: Prescription) -> CartAddResult:
        """
        Add a prescription at its full quantity.

        Raises:
            PrescriptionNotOrderableError: if the prescription is not active
                or has no repeats left. The cart is left unchanged.
        """
        if not prescription.is_orderable:
            raise PrescriptionNotOrderableError(
                prescription.id, prescription.status.value, prescription.repeats
            )

        existing = self.find(prescription.id)
        if existing:
            existing.quantity_selected += prescription.quantity
            return CartAddResult.MERGED

        self._lines.append(CartLine(prescription, prescription.quantity))
        return CartAddResult.ADDED

    def total(self) -> Decimal:
        """Sum of price * quantity over all lines."""
        return to_money(sum((line.line_total for line in self._lines), Decimal("0")))

    def clear(self) -> None:
        self._lines.clear()

    def checkout(self) -> CartSnapshot:
        """
        Take an immutable snapshot of the cart and empty it.

        Raises:
            EmptyCartError: if there are no lines
        """
        if not self._lines:
            raise EmptyCartError()

        snapshot = self.snapshot()
        self.clear()
        return snapshot

    def snapshot(self) -> CartSnapshot:
        """Immutable copy of the current lines without clearing the cart."""
        return CartSnapshot(items=tuple(
            OrderItem.from_prescription(line.prescription, line.quantity_selected)
            for line in self._lines
        ))

    def to_list(self) -> List[Dict[str, Any]]:
        """Convert to a list for session storage."""
        return [line.to_dict() for line in self._lines]

    @classmethod
    def from_list(cls, data: Any) -> "Cart":
        """
        Rebuild a cart from session data.

        Malformed data yields an empty cart.
        """
        if not isinstance(data, list):
            return cls()
        try:
            return cls([CartLine.from_dict(item) for item in data])
        except (KeyError, TypeError, ValueError, InvalidOperation):
            return cls()
