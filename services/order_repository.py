"""
Order persistence.

The order lifecycle depends only on the ``OrderRepository`` interface,
which offers atomic create, read and update-by-identifier operations.

Implementations:
    - StoreOrderRepository: JSON list under ``allOrders`` in the SharedStore.
      Each write overwrites the whole collection while holding the store
      lock, so concurrent transitions cannot lose each other's updates.
    - SqlOrderRepository: SQLAlchemy ``orders`` table with a status check
      constraint and a unique tracking number. Status changes are a single
      ``UPDATE ... WHERE id = :id AND status = :expected`` (compare-and-swap).

Both backends refuse a tracking number already carried by another order
inside the same atomic update, raising ``TrackingNumberTakenError``.

Usage:
    repo = StoreOrderRepository(SharedStore())
    repo.add(order)
    repo.update_status(order.id, OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)
"""

from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from decimal import InvalidOperation
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from core.exceptions import (
    InvalidTransitionError,
    OrderNotFoundError,
    StoreError,
    TrackingNumberTakenError,
)
from models.order import Order, OrderItem, OrderStatus
from models.prescription import to_money
from logging_config import get_logger
from .database import OrderRecord
from .store import ALL_ORDERS_KEY, SharedStore


# Module logger
logger = get_logger(__name__)

# Errors raised when a stored record cannot be turned back into an Order
MALFORMED_RECORD_ERRORS = (KeyError, TypeError, ValueError, InvalidOperation)


class OrderRepository(ABC):
    """Storage interface for the order collection."""

    @abstractmethod
    def add(self, order: Order) -> bool:
        """
        Insert a new order.

        Returns:
            False if an order with the same id already exists (nothing written)
        """

    @abstractmethod
    def get(self, order_id: str) -> Optional[Order]:
        """Return the order with ``order_id``, or None (also for unreadable records)."""

    @abstractmethod
    def list_all(self) -> List[Order]:
        """Return every readable order in insertion order."""

    @abstractmethod
    def update_status(
        self,
        order_id: str,
        expected: OrderStatus,
        new_status: OrderStatus,
        tracking_number: Optional[str] = None,
        updated_at: str = "",
    ) -> Order:
        """
        Atomically move an order from ``expected`` to ``new_status``.

        Raises:
            OrderNotFoundError: no readable order with ``order_id``
            InvalidTransitionError: the order's status is not ``expected``
            TrackingNumberTakenError: another order already has ``tracking_number``
        """


# =============================================================================
# SHARED STORE BACKEND
# =============================================================================

class StoreOrderRepository(OrderRepository):
    """
    Order collection kept as one JSON list in the shared store.

    Records that cannot be parsed are skipped on read and preserved on
    write, so a single corrupt entry does not hide or destroy the rest.
    """

    def __init__(self, store: SharedStore, key: str = ALL_ORDERS_KEY):
        self._store = store
        self._key = key

    def _read_records(self) -> List[Dict[str, Any]]:
        records = self._store.get_json(self._key)
        if not isinstance(records, list):
            if records is not None:
                logger.warning(f"'{self._key}' is not a list, treating as empty")
            return []
        return records

    @staticmethod
    def _parse(record: Any) -> Optional[Order]:
        if not isinstance(record, dict):
            return None
        try:
            return Order.from_dict(record)
        except MALFORMED_RECORD_ERRORS as e:
            logger.warning(f"Skipping malformed order record: {e}")
            return None

    def add(self, order: Order) -> bool:
        with self._store.transaction():
            records = self._read_records()
            if any(isinstance(r, dict) and r.get("id") == order.id for r in records):
                return False
            records.append(order.to_dict())
            self._store.set_json(self._key, records)
        return True

    def get(self, order_id: str) -> Optional[Order]:
        for record in self._read_records():
            if isinstance(record, dict) and record.get("id") == order_id:
                return self._parse(record)
        return None

    def list_all(self) -> List[Order]:
        orders = []
        for record in self._read_records():
            order = self._parse(record)
            if order:
                orders.append(order)
        return orders

    def update_status(
        self,
        order_id: str,
        expected: OrderStatus,
        new_status: OrderStatus,
        tracking_number: Optional[str] = None,
        updated_at: str = "",
    ) -> Order:
        with self._store.transaction():
            records = self._read_records()
            for index, record in enumerate(records):
                if not (isinstance(record, dict) and record.get("id") == order_id):
                    continue

                order = self._parse(record)
                if order is None:
                    break

                if order.status != expected:
                    raise InvalidTransitionError(
                        order_id, order.status.value, new_status.value
                    )

                if tracking_number is not None and any(
                    isinstance(other, dict)
                    and other.get("tracking_number") == tracking_number
                    and other.get("id") != order_id
                    for other in records
                ):
                    raise TrackingNumberTakenError(order_id, tracking_number)

                order.status = new_status
                if tracking_number is not None:
                    order.tracking_number = tracking_number
                order.updated_at = updated_at

                records[index] = order.to_dict()
                self._store.set_json(self._key, records)
                return order

        raise OrderNotFoundError(order_id)


# =============================================================================
# SQL BACKEND
# =============================================================================

class SqlOrderRepository(OrderRepository):
    """
    Order collection in the SQLAlchemy ``orders`` table.

    Rows are returned in ``seq`` order, which is insertion order. A
    process-wide lock serializes sessions because an in-memory SQLite
    database shares a single connection.
    """

    def __init__(self, engine: Engine):
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        self._lock = threading.RLock()
        logger.info(f"SQL order repository ready at {engine.url}")

    def close(self) -> None:
        self._engine.dispose()

    @staticmethod
    def _to_record(order: Order) -> OrderRecord:
        return OrderRecord(
            id=order.id,
            patient_email=order.patient_email,
            items=json.dumps([item.to_dict() for item in order.items]),
            subtotal=str(order.subtotal),
            shipping_fee=str(order.shipping_fee),
            total=str(order.total),
            status=order.status.value,
            tracking_number=order.tracking_number,
            payment_method=order.payment_method,
            payment_reference=order.payment_reference,
            shipping_address=order.shipping_address,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

    @staticmethod
    def _to_order(record: OrderRecord) -> Optional[Order]:
        try:
            return Order(
                id=record.id,
                patient_email=record.patient_email,
                items=[OrderItem.from_dict(item) for item in json.loads(record.items)],
                subtotal=to_money(record.subtotal),
                shipping_fee=to_money(record.shipping_fee),
                total=to_money(record.total),
                status=OrderStatus(record.status),
                created_at=record.created_at,
                payment_method=record.payment_method,
                shipping_address=record.shipping_address,
                tracking_number=record.tracking_number,
                payment_reference=record.payment_reference,
                updated_at=record.updated_at,
            )
        except MALFORMED_RECORD_ERRORS as e:
            logger.warning(f"Skipping malformed order row {record.id}: {e}")
            return None

    @staticmethod
    def _select(order_id: str):
        return select(OrderRecord).where(OrderRecord.id == order_id)

    def add(self, order: Order) -> bool:
        with self._lock, self._session_factory() as session:
            if session.scalar(self._select(order.id)) is not None:
                return False
            session.add(self._to_record(order))
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if session.scalar(self._select(order.id)) is not None:
                    return False
                raise StoreError(f"Failed to insert order {order.id}", {"error": str(e)}) from e
        return True

    def get(self, order_id: str) -> Optional[Order]:
        with self._lock, self._session_factory() as session:
            record = session.scalar(self._select(order_id))
            return self._to_order(record) if record is not None else None

    def list_all(self) -> List[Order]:
        with self._lock, self._session_factory() as session:
            records = session.scalars(select(OrderRecord).order_by(OrderRecord.seq)).all()
            return [order for order in map(self._to_order, records) if order]

    def update_status(
        self,
        order_id: str,
        expected: OrderStatus,
        new_status: OrderStatus,
        tracking_number: Optional[str] = None,
        updated_at: str = "",
    ) -> Order:
        values = {"status": new_status.value, "updated_at": updated_at}
        if tracking_number is not None:
            values["tracking_number"] = tracking_number

        statement = (
            update(OrderRecord)
            .where(OrderRecord.id == order_id, OrderRecord.status == expected.value)
            .values(**values)
        )

        with self._lock, self._session_factory() as session:
            record = session.scalar(self._select(order_id))
            if record is None or self._to_order(record) is None:
                raise OrderNotFoundError(order_id)

            try:
                result = session.execute(statement)
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if tracking_number is None:
                    raise StoreError(f"Failed to update order {order_id}", {"error": str(e)}) from e
                raise TrackingNumberTakenError(order_id, tracking_number) from e
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(f"Failed to update order {order_id}", {"error": str(e)}) from e

            session.refresh(record)
            if result.rowcount == 0:
                raise InvalidTransitionError(order_id, record.status, new_status.value)
            return self._to_order(record)
