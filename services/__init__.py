"""
Services layer for the MOCA portal.

This module contains the business logic services:
- SharedStore: Process-wide key/value store of JSON blobs
- OrderRepository: Atomic order storage (shared store or SQLAlchemy)
- database: SQLAlchemy schema for the orders table
- OrderService: Order creation and status transitions
- CatalogService: Read-only prescription catalog
- AuthService: Patient one-time code and admin credential checks
- MockPaymentGateway: Payment confirmation stand-in

Request Model:
    Flask request thread
    ├── routes read/write the signed session (auth flags, cart)
    └── OrderService -> OrderRepository (locked / transactional writes)
"""

from .store import SharedStore, ALL_ORDERS_KEY
from .database import OrderRecord, create_database_engine
from .order_repository import OrderRepository, SqlOrderRepository, StoreOrderRepository
from .order_service import OrderService, available_action, generate_tracking_number
from .catalog_service import CatalogService
from .auth_service import AuthService
from .payment_service import MockPaymentGateway

__all__ = [
    "SharedStore",
    "ALL_ORDERS_KEY",
    "OrderRecord",
    "create_database_engine",
    "OrderRepository",
    "StoreOrderRepository",
    "SqlOrderRepository",
    "OrderService",
    "available_action",
    "generate_tracking_number",
    "CatalogService",
    "AuthService",
    "MockPaymentGateway",
]
