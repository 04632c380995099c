"""
Prescription data model.

Prescriptions are supplied by the catalog and never modified by the portal.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Any, Union


CENTS = Decimal("0.01")


def to_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """
    Convert a number to a Decimal rounded to cents.

    Floats go through str() so 12.5 becomes Decimal("12.50"), not the
    binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


class PrescriptionStatus(Enum):
    """Eligibility status of a prescription."""

    ACTIVE = "active"
    EXPIRED = "expired"
    USED = "used"


@dataclass(frozen=True)
class Prescription:
    """
    A medication authorization issued to a patient.

    Only active prescriptions with repeats remaining can be ordered.
    """

    id: str
    name: str
    strength: str
    quantity: int
    """Number of units in one fill."""

    repeats: int
    """Refills remaining."""

    prescribed_date: str
    expiry_date: str
    status: PrescriptionStatus
    interval: str
    """Dosing interval, e.g. 'Once daily'."""

    price: Decimal
    """Price per unit."""

    @property
    def is_orderable(self) -> bool:
        return self.status == PrescriptionStatus.ACTIVE and self.repeats > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for session storage."""
        data = asdict(self)
        data["status"] = self.status.value
        data["price"] = str(self.price)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Prescription":
        """Create from dictionary (e.g., from session or catalog data)."""
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            strength=data.get("strength", ""),
            quantity=int(data.get("quantity", 0)),
            repeats=int(data.get("repeats", 0)),
            prescribed_date=data.get("prescribed_date", ""),
            expiry_date=data.get("expiry_date", ""),
            status=PrescriptionStatus(data.get("status", "active")),
            interval=data.get("interval", ""),
            price=to_money(data.get("price", "0")),
        )
