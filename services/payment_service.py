"""
Mock payment gateway.

Stands in for the Power Board integration. Confirmation is the explicit
"payment confirmed" event that gates order creation; nothing is charged.
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict

from core.exceptions import PaymentDeclinedError
from models.order import PAYMENT_METHOD, PaymentConfirmation
from models.prescription import to_money
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

REQUIRED_CARD_FIELDS = ("card_number", "expiry_date", "cvv", "name_on_card")


class MockPaymentGateway:
    """
    Accepts any payment whose card form is filled in.

    Attributes:
        method: Payment method label recorded on orders
    """

    method = PAYMENT_METHOD

    def __init__(self, latency_seconds: float = 0.0, sleep: Callable[[float], None] = time.sleep):
        self._latency_seconds = latency_seconds
        self._sleep = sleep

    def confirm(self, amount: Decimal, card: Dict[str, str]) -> PaymentConfirmation:
        """
        Confirm payment of ``amount``.

        Args:
            amount: Total to charge
            card: Card form fields (card_number, expiry_date, cvv, name_on_card)

        Returns:
            PaymentConfirmation for exactly ``amount``

        Raises:
            PaymentDeclinedError: if any card field is blank
        """
        missing = [name for name in REQUIRED_CARD_FIELDS if not (card.get(name) or "").strip()]
        if missing:
            raise PaymentDeclinedError("Please fill in all payment details.", missing)

        if self._latency_seconds > 0:
            self._sleep(self._latency_seconds)

        confirmation = PaymentConfirmation(
            reference=f"PB-{uuid.uuid4().hex[:12].upper()}",
            amount=to_money(amount),
            method=self.method,
            confirmed_at=datetime.now(timezone.utc).isoformat(),
        )
        last4 = card["card_number"].strip()[-4:]
        logger.info(f"Payment {confirmation.reference} confirmed: {confirmation.amount} (card ending {last4})")
        return confirmation
