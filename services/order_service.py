"""
Order lifecycle service.

Creates orders from cart snapshots and moves them forward through

    awaiting_payment -> processing -> shipped

No transition cancels, refunds or reverts an order. Monetary fields are
written once at creation and never touched by a transition.

Flow:
    1. Patient route takes a CartSnapshot from the session cart
    2. Payment gateway confirms the amount (PaymentConfirmation)
    3. order_service.create(snapshot, email, confirmation) stores the order
    4. Admin routes call advance_to_processing / advance_to_shipped

Every call persists through the OrderRepository before returning; there
is no background queue and nothing is retried.

Usage:
    service = OrderService(StoreOrderRepository(SharedStore()))
    order = service.create(cart.checkout(), "patient@example.com", confirmation)
    service.advance_to_processing(order.id)
    shipped = service.advance_to_shipped(order.id)
    shipped.tracking_number  # 'ST12345678'
"""

from __future__ import annotations

import random
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional

from core.exceptions import (
    InvalidTransitionError,
    OrderNotFoundError,
    PaymentDeclinedError,
    TrackingNumberExhaustedError,
    TrackingNumberTakenError,
)
from models.order import CartSnapshot, Order, OrderStatus, PaymentConfirmation
from models.prescription import to_money
from logging_config import get_logger
from .order_repository import OrderRepository


# Module logger
logger = get_logger(__name__)

DEFAULT_SHIPPING_FEE = Decimal("33.00")
ORDER_ID_PREFIX = "MOCA-"
TRACKING_PREFIX = "ST"
TRACKING_MIN = 10000000
TRACKING_MAX = 99999999

# Admin dashboard action names, keyed by the status they move an order to
ACTION_MARK_PROCESSING = "mark_processing"
ACTION_MARK_SHIPPED = "mark_shipped"

_ACTIONS = {
    OrderStatus.PROCESSING: ACTION_MARK_PROCESSING,
    OrderStatus.SHIPPED: ACTION_MARK_SHIPPED,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_tracking_number(rng: Optional[random.Random] = None) -> str:
    """
    Draw a tracking number: ``ST`` followed by 8 digits.

    Digits are uniform over [10000000, 99999999].
    """
    rng = rng or random
    return f"{TRACKING_PREFIX}{rng.randint(TRACKING_MIN, TRACKING_MAX)}"


def available_action(order: Order) -> Optional[str]:
    """
    Admin action offered for an order in its current status.

    Returns:
        "mark_processing" for awaiting_payment, "mark_shipped" for
        processing, None once shipped (tracking display only)
    """
    return _ACTIONS.get(order.next_status)


# fromisoformat accepts a trailing "Z" only from Python 3.11
_UTC_SUFFIX = re.compile(r"Z$")


def _created_at_key(order: Order) -> datetime:
    try:
        created = datetime.fromisoformat(_UTC_SUFFIX.sub("+00:00", order.created_at))
    except (TypeError, ValueError):
        return datetime.min.replace(tzinfo=timezone.utc)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def newest_first(orders: List[Order]) -> List[Order]:
    """
    Sort orders by creation time, most recent first.

    Orders with equal timestamps keep reverse insertion order (the one
    appended later comes first).
    """
    return sorted(reversed(orders), key=_created_at_key, reverse=True)


class OrderService:
    """
    Service owning order creation and status transitions.

    Attributes:
        shipping_fee: Flat fee added to every order's subtotal
    """

    def __init__(
        self,
        repository: OrderRepository,
        shipping_fee: Decimal = DEFAULT_SHIPPING_FEE,
        clock: Callable[[], datetime] = _utcnow,
        rng: Optional[random.Random] = None,
        max_tracking_attempts: int = 10,
    ):
        """
        Initialize order service.

        Args:
            repository: Storage for the order collection
            shipping_fee: Flat shipping fee per order
            clock: Returns the current UTC time (injectable for tests)
            rng: Random source for tracking numbers
            max_tracking_attempts: Draws before giving up on a unique number
        """
        self._repository = repository
        self.shipping_fee = to_money(shipping_fee)
        self._clock = clock
        self._rng = rng or random.Random()
        self._max_tracking_attempts = max_tracking_attempts

        logger.info(f"OrderService initialized (shipping fee {self.shipping_fee})")

    @property
    def repository(self) -> OrderRepository:
        return self._repository

    def quote(self, snapshot: CartSnapshot) -> Decimal:
        """Total the patient will be charged for ``snapshot``."""
        return to_money(snapshot.subtotal + self.shipping_fee)

    # =========================================================================
    # CREATION
    # =========================================================================

    def create(
        self,
        snapshot: CartSnapshot,
        owner_email: str,
        payment: PaymentConfirmation,
    ) -> Order:
        """
        Create an order from a cart snapshot after payment is confirmed.

        The snapshot is assumed non-empty; the cart refuses to check out
        when empty.

        Args:
            snapshot: Immutable cart copy
            owner_email: Patient the order belongs to
            payment: Confirmation for exactly the order total

        Returns:
            The stored order in awaiting_payment status

        Raises:
            PaymentDeclinedError: if the confirmed amount differs from the total
        """
        subtotal = snapshot.subtotal
        total = to_money(subtotal + self.shipping_fee)

        if to_money(payment.amount) != total:
            raise PaymentDeclinedError(
                f"Payment of {payment.amount} does not match order total {total}"
            )

        now = self._clock()
        order = Order(
            id="",
            patient_email=owner_email,
            items=list(snapshot.items),
            subtotal=subtotal,
            shipping_fee=self.shipping_fee,
            total=total,
            status=OrderStatus.AWAITING_PAYMENT,
            created_at=now.isoformat(),
            payment_method=payment.method,
            payment_reference=payment.reference,
            updated_at=now.isoformat(),
        )

        # Time-derived id; step forward a millisecond on collision
        stamp = int(now.timestamp() * 1000)
        while True:
            order.id = f"{ORDER_ID_PREFIX}{stamp}"
            if self._repository.add(order):
                break
            logger.debug(f"Order id {order.id} taken, trying next")
            stamp += 1

        logger.info(
            f"Order {order.id} created for {owner_email}: "
            f"{len(order.items)} items, total {order.total}"
        )
        return order

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def advance_to_processing(self, order_id: str) -> Order:
        """
        Move an order from awaiting_payment to processing.

        Raises:
            OrderNotFoundError: unknown order id
            InvalidTransitionError: order is not awaiting payment
        """
        order = self._transition(order_id, OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)
        logger.info(f"Order {order_id} marked as processing")
        return order

    def advance_to_shipped(self, order_id: str) -> Order:
        """
        Move an order from processing to shipped and issue a tracking number.

        Raises:
            OrderNotFoundError: unknown order id
            InvalidTransitionError: order is not processing
            TrackingNumberExhaustedError: no unused tracking number was drawn
        """
        current = self._require(order_id)
        if current.status != OrderStatus.PROCESSING:
            raise InvalidTransitionError(
                order_id, current.status.value, OrderStatus.SHIPPED.value
            )

        # Uniqueness is checked by the repository inside the same atomic update
        for _ in range(self._max_tracking_attempts):
            tracking_number = generate_tracking_number(self._rng)
            try:
                order = self._transition(
                    order_id, OrderStatus.PROCESSING, OrderStatus.SHIPPED, tracking_number
                )
            except TrackingNumberTakenError:
                logger.warning(f"Tracking number {tracking_number} already issued, redrawing")
                continue
            logger.info(f"Order {order_id} shipped with tracking {tracking_number}")
            return order

        raise TrackingNumberExhaustedError(order_id, self._max_tracking_attempts)

    def _transition(
        self,
        order_id: str,
        expected: OrderStatus,
        target: OrderStatus,
        tracking_number: Optional[str] = None,
    ) -> Order:
        return self._repository.update_status(
            order_id,
            expected,
            target,
            tracking_number=tracking_number,
            updated_at=self._clock().isoformat(),
        )

    # =========================================================================
    # VIEWS
    # =========================================================================

    def get(self, order_id: str) -> Optional[Order]:
        return self._repository.get(order_id)

    def _require(self, order_id: str) -> Order:
        order = self._repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def orders_for_patient(self, email: str) -> List[Order]:
        """Orders owned by ``email`` (exact match), newest first."""
        return newest_first([o for o in self._repository.list_all() if o.patient_email == email])

    def all_orders(self) -> List[Order]:
        """Every order, newest first."""
        return newest_first(self._repository.list_all())
