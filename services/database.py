"""
SQLAlchemy schema for the relational order backend.

One ``orders`` table. Line items are a frozen checkout snapshot that is
never queried on its own, so they live in a JSON text column. Money is
stored as decimal strings to keep cents exact.
"""

from sqlalchemy import CheckConstraint, Column, Integer, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from models.order import PAYMENT_METHOD, OrderStatus


Base = declarative_base()

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")

_STATUS_VALUES = ", ".join(f"'{status.value}'" for status in OrderStatus)


class OrderRecord(Base):
    """Row in the ``orders`` table."""

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="orders_status_check"),
    )

    seq = Column(Integer, primary_key=True, autoincrement=True)  # insertion order
    id = Column(String(40), unique=True, index=True, nullable=False)
    patient_email = Column(String(255), index=True, nullable=False)
    items = Column(Text, nullable=False)
    subtotal = Column(String(20), nullable=False)
    shipping_fee = Column(String(20), nullable=False, default="33.00")
    total = Column(String(20), nullable=False)
    status = Column(
        String(32), index=True, nullable=False, default=OrderStatus.AWAITING_PAYMENT.value
    )
    tracking_number = Column(String(16), unique=True, nullable=True)
    payment_method = Column(String(50), nullable=False, default=PAYMENT_METHOD)
    payment_reference = Column(String(64), nullable=False, default="")
    shipping_address = Column(Text, nullable=False, default="")
    created_at = Column(String(40), index=True, nullable=False)
    updated_at = Column(String(40), nullable=False, default="")

    def __repr__(self):
        return f"<OrderRecord(id='{self.id}', status='{self.status}')>"


def create_database_engine(url: str = "sqlite://") -> Engine:
    """
    Create an engine and the ``orders`` table if it is missing.

    An in-memory SQLite database exists per connection, so it is pinned to
    a single shared connection.
    """
    options = {}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if url in IN_MEMORY_URLS:
            options["poolclass"] = StaticPool

    engine = create_engine(url, **options)
    Base.metadata.create_all(engine)
    return engine
