"""
Unit tests for the order repositories and the shared store.

Both repository backends run the same contract tests.
"""

import json
import threading
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import InvalidTransitionError, OrderNotFoundError, TrackingNumberTakenError
from models.order import Order, OrderItem, OrderStatus
from services.database import OrderRecord, create_database_engine
from services.order_repository import SqlOrderRepository, StoreOrderRepository
from services.store import ALL_ORDERS_KEY, SharedStore


# Fixtures

def _order(order_id="MOCA-1", email="patient@example.com", created_at="2026-10-16T09:00:00+00:00"):
    item = OrderItem(
        prescription_id="rx-001",
        name="Paracetamol",
        strength="500mg",
        quantity=20,
        price=Decimal("12.50"),
        interval="As needed",
        quantity_selected=20,
    )
    return Order(
        id=order_id,
        patient_email=email,
        items=[item],
        subtotal=Decimal("250.00"),
        shipping_fee=Decimal("33.00"),
        total=Decimal("283.00"),
        status=OrderStatus.AWAITING_PAYMENT,
        created_at=created_at,
    )


@pytest.fixture(params=["store", "sql"])
def repository(request):
    if request.param == "store":
        yield StoreOrderRepository(SharedStore())
    else:
        repo = SqlOrderRepository(create_database_engine("sqlite://"))
        yield repo
        repo.close()


class TestRepositoryContract:
    """Behaviour shared by every repository backend."""

    def test_add_and_get(self, repository):
        assert repository.add(_order()) is True

        stored = repository.get("MOCA-1")

        assert stored.total == Decimal("283.00")
        assert stored.items[0].name == "Paracetamol"
        assert stored.status == OrderStatus.AWAITING_PAYMENT

    def test_duplicate_id_is_refused(self, repository):
        repository.add(_order(email="first@example.com"))

        assert repository.add(_order(email="second@example.com")) is False
        assert repository.get("MOCA-1").patient_email == "first@example.com"

    def test_get_missing_returns_none(self, repository):
        assert repository.get("MOCA-404") is None

    def test_list_all_keeps_insertion_order(self, repository):
        for order_id in ("MOCA-3", "MOCA-1", "MOCA-2"):
            repository.add(_order(order_id))

        assert [o.id for o in repository.list_all()] == ["MOCA-3", "MOCA-1", "MOCA-2"]

    def test_update_status_compare_and_swap(self, repository):
        repository.add(_order())

        updated = repository.update_status(
            "MOCA-1", OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING, updated_at="t1"
        )

        assert updated.status == OrderStatus.PROCESSING
        assert updated.updated_at == "t1"
        assert repository.get("MOCA-1").status == OrderStatus.PROCESSING

    def test_update_with_stale_expected_status_fails(self, repository):
        repository.add(_order())
        repository.update_status("MOCA-1", OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)

        with pytest.raises(InvalidTransitionError) as exc_info:
            repository.update_status("MOCA-1", OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)

        assert exc_info.value.current_status == "processing"

    def test_update_missing_order(self, repository):
        with pytest.raises(OrderNotFoundError):
            repository.update_status("MOCA-404", OrderStatus.PROCESSING, OrderStatus.SHIPPED)

    def test_tracking_number_recorded(self, repository):
        repository.add(_order())
        repository.update_status("MOCA-1", OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)

        repository.update_status(
            "MOCA-1", OrderStatus.PROCESSING, OrderStatus.SHIPPED, tracking_number="ST12345678"
        )

        assert repository.get("MOCA-1").tracking_number == "ST12345678"

    def test_tracking_number_taken_by_another_order(self, repository):
        for order_id in ("MOCA-1", "MOCA-2"):
            repository.add(_order(order_id))
            repository.update_status(order_id, OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)
        repository.update_status(
            "MOCA-1", OrderStatus.PROCESSING, OrderStatus.SHIPPED, tracking_number="ST12345678"
        )

        with pytest.raises(TrackingNumberTakenError) as exc_info:
            repository.update_status(
                "MOCA-2", OrderStatus.PROCESSING, OrderStatus.SHIPPED, tracking_number="ST12345678"
            )

        assert exc_info.value.tracking_number == "ST12345678"
        second = repository.get("MOCA-2")
        assert second.status == OrderStatus.PROCESSING
        assert second.tracking_number is None

    def test_update_leaves_other_orders_alone(self, repository):
        repository.add(_order("MOCA-1"))
        repository.add(_order("MOCA-2"))

        repository.update_status("MOCA-2", OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)

        assert repository.get("MOCA-1").status == OrderStatus.AWAITING_PAYMENT


class TestStoreOrderRepository:
    """Behaviour specific to the shared-store backend."""

    def test_orders_live_under_all_orders_key(self):
        store = SharedStore()
        StoreOrderRepository(store).add(_order())

        records = store.get_json(ALL_ORDERS_KEY)

        assert isinstance(records, list)
        assert records[0]["id"] == "MOCA-1"
        assert records[0]["total"] == "283.00"

    def test_malformed_collection_is_treated_as_empty(self):
        store = SharedStore()
        store.set_raw(ALL_ORDERS_KEY, "{not json")
        repository = StoreOrderRepository(store)

        assert repository.list_all() == []
        assert repository.add(_order()) is True
        assert [o.id for o in repository.list_all()] == ["MOCA-1"]

    def test_malformed_record_is_skipped_but_kept(self):
        store = SharedStore()
        store.set_json(ALL_ORDERS_KEY, [{"id": "broken"}, _order("MOCA-2").to_dict()])
        repository = StoreOrderRepository(store)

        assert [o.id for o in repository.list_all()] == ["MOCA-2"]

        repository.update_status("MOCA-2", OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)
        assert store.get_json(ALL_ORDERS_KEY)[0] == {"id": "broken"}

    def test_malformed_record_is_not_found_for_update(self):
        store = SharedStore()
        store.set_json(ALL_ORDERS_KEY, [{"id": "MOCA-1", "status": "bogus"}])
        repository = StoreOrderRepository(store)

        assert repository.get("MOCA-1") is None
        with pytest.raises(OrderNotFoundError):
            repository.update_status("MOCA-1", OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)

        assert store.get_json(ALL_ORDERS_KEY) == [{"id": "MOCA-1", "status": "bogus"}]

    def test_concurrent_transitions_do_not_lose_updates(self):
        repository = StoreOrderRepository(SharedStore())
        ids = [f"MOCA-{i}" for i in range(20)]
        for order_id in ids:
            repository.add(_order(order_id))

        def advance(order_id):
            repository.update_status(order_id, OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)

        threads = [threading.Thread(target=advance, args=(order_id,)) for order_id in ids]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(o.status == OrderStatus.PROCESSING for o in repository.list_all())

    def test_only_one_racing_transition_wins(self):
        repository = StoreOrderRepository(SharedStore())
        repository.add(_order())
        outcomes = []

        def advance():
            try:
                repository.update_status("MOCA-1", OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)
                outcomes.append("ok")
            except InvalidTransitionError:
                outcomes.append("rejected")

        threads = [threading.Thread(target=advance) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("rejected") == 7


class TestSqlOrderRepository:
    """Behaviour specific to the SQLAlchemy backend."""

    @pytest.fixture
    def engine(self):
        engine = create_database_engine("sqlite://")
        yield engine
        engine.dispose()

    def test_status_check_constraint(self, engine):
        with Session(engine) as session:
            session.add(OrderRecord(
                id="MOCA-1", patient_email="p@example.com", items="[]",
                subtotal="0.00", total="33.00", status="lost", created_at="t0",
            ))
            with pytest.raises(IntegrityError):
                session.commit()

    def test_malformed_row_is_skipped_and_not_found(self, engine):
        repository = SqlOrderRepository(engine)
        repository.add(_order("MOCA-2"))
        with Session(engine) as session:
            session.add(OrderRecord(
                id="MOCA-1", patient_email="p@example.com", items="{not json",
                subtotal="0.00", total="33.00", created_at="t0",
            ))
            session.commit()

        assert repository.get("MOCA-1") is None
        assert [o.id for o in repository.list_all()] == ["MOCA-2"]
        with pytest.raises(OrderNotFoundError):
            repository.update_status("MOCA-1", OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)

    def test_file_database_survives_reopen(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'orders.db'}"
        first = SqlOrderRepository(create_database_engine(url))
        first.add(_order())
        first.update_status("MOCA-1", OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)
        first.close()

        reopened = SqlOrderRepository(create_database_engine(url))

        assert reopened.get("MOCA-1").status == OrderStatus.PROCESSING
        reopened.close()

    def test_only_one_racing_transition_wins(self, engine):
        repository = SqlOrderRepository(engine)
        repository.add(_order())
        outcomes = []

        def advance():
            try:
                repository.update_status("MOCA-1", OrderStatus.AWAITING_PAYMENT, OrderStatus.PROCESSING)
                outcomes.append("ok")
            except InvalidTransitionError:
                outcomes.append("rejected")

        threads = [threading.Thread(target=advance) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("rejected") == 7


class TestSharedStore:
    """Tests for the key/value JSON store."""

    def test_missing_key_is_none(self):
        assert SharedStore().get_json("currentOrder") is None

    def test_malformed_json_is_none(self):
        store = SharedStore()
        store.set_raw("cartItems", "[1, 2")

        assert store.get_json("cartItems") is None

    def test_remove_and_clear(self):
        store = SharedStore()
        store.set_json("a", 1)
        store.set_json("b", 2)

        store.remove("a")
        assert store.get_json("a") is None

        assert store.clear() == 1
        assert store.get_json("b") is None

    def test_file_persistence(self, tmp_path):
        path = tmp_path / "store.json"
        store = SharedStore(path)
        StoreOrderRepository(store).add(_order())

        reopened = StoreOrderRepository(SharedStore(path))

        assert reopened.get("MOCA-1").total == Decimal("283.00")

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("not json", encoding="utf-8")

        store = SharedStore(path)

        assert store.get_json(ALL_ORDERS_KEY) is None

    def test_file_holds_json_strings(self, tmp_path):
        path = tmp_path / "store.json"
        SharedStore(path).set_json("adminEmail", "admin@moca.com")

        data = json.loads(path.read_text(encoding="utf-8"))

        assert data == {"adminEmail": '"admin@moca.com"'}
