"""
Unit tests for the shopping cart.
"""

from decimal import Decimal

import pytest

from core.exceptions import EmptyCartError, PrescriptionNotOrderableError
from models.cart import Cart, CartAddResult
from models.prescription import Prescription
from services.catalog_service import CatalogService


# Fixtures

@pytest.fixture
def catalog():
    return CatalogService()


@pytest.fixture
def paracetamol(catalog):
    return catalog.get("rx-001")


def _prescription(**overrides):
    data = {
        "id": "rx-100",
        "name": "Test Med",
        "strength": "10mg",
        "quantity": 10,
        "repeats": 1,
        "status": "active",
        "interval": "Once daily",
        "price": "2.00",
    }
    data.update(overrides)
    return Prescription.from_dict(data)


class TestCartAdd:
    """Tests for adding prescriptions to the cart."""

    def test_add_new_line_defaults_to_full_quantity(self, paracetamol):
        cart = Cart()

        result = cart.add(paracetamol)

        assert result == CartAddResult.ADDED
        assert len(cart) == 1
        assert cart.lines[0].quantity_selected == 20

    def test_add_same_prescription_merges_by_full_quantity(self, paracetamol):
        cart = Cart()
        cart.add(paracetamol)

        result = cart.add(paracetamol)

        assert result == CartAddResult.MERGED
        assert len(cart) == 1
        assert cart.lines[0].quantity_selected == 40

    def test_rejects_prescription_without_repeats(self):
        cart = Cart()
        cart.add(_prescription(id="rx-keep"))

        with pytest.raises(PrescriptionNotOrderableError) as exc_info:
            cart.add(_prescription(id="rx-none", repeats=0))

        assert exc_info.value.message == "This prescription cannot be ordered"
        assert [line.prescription.id for line in cart.lines] == ["rx-keep"]
        assert cart.lines[0].quantity_selected == 10

    @pytest.mark.parametrize("status", ["expired", "used"])
    def test_rejects_inactive_prescription(self, status):
        cart = Cart()

        with pytest.raises(PrescriptionNotOrderableError):
            cart.add(_prescription(status=status))

        assert len(cart) == 0

    def test_catalog_used_prescription_is_rejected(self, catalog):
        with pytest.raises(PrescriptionNotOrderableError):
            Cart().add(catalog.get("rx-003"))


class TestCartTotal:
    """Tests for cart totals."""

    def test_empty_cart_total_is_zero(self):
        assert Cart().total() == Decimal("0.00")

    def test_total_is_price_times_quantity(self, paracetamol):
        cart = Cart()
        cart.add(paracetamol)

        assert cart.total() == Decimal("250.00")

    def test_total_over_several_lines(self, catalog):
        cart = Cart()
        cart.add(catalog.get("rx-001"))
        cart.add(catalog.get("rx-002"))

        # 12.50 * 20 + 15.80 * 30
        assert cart.total() == Decimal("724.00")

    def test_total_has_no_side_effects(self, paracetamol):
        cart = Cart()
        cart.add(paracetamol)

        cart.total()
        cart.total()

        assert cart.lines[0].quantity_selected == 20


class TestCartCheckout:
    """Tests for taking a checkout snapshot."""

    def test_empty_cart_checkout_fails(self):
        with pytest.raises(EmptyCartError) as exc_info:
            Cart().checkout()

        assert exc_info.value.message == "Your cart is empty"

    def test_checkout_returns_snapshot_and_clears(self, paracetamol):
        cart = Cart()
        cart.add(paracetamol)

        snapshot = cart.checkout()

        assert len(cart) == 0
        assert len(snapshot.items) == 1
        assert snapshot.items[0].prescription_id == "rx-001"
        assert snapshot.items[0].quantity_selected == 20
        assert snapshot.subtotal == Decimal("250.00")

    def test_snapshot_is_independent_of_cart(self, paracetamol):
        cart = Cart()
        cart.add(paracetamol)
        snapshot = cart.snapshot()

        cart.add(paracetamol)

        assert snapshot.items[0].quantity_selected == 20
        assert cart.lines[0].quantity_selected == 40


class TestCartSerialization:
    """Tests for session storage of the cart."""

    def test_round_trip_through_session_list(self, catalog):
        cart = Cart()
        cart.add(catalog.get("rx-001"))
        cart.add(catalog.get("rx-002"))

        restored = Cart.from_list(cart.to_list())

        assert restored.total() == cart.total()
        assert [line.prescription.id for line in restored.lines] == ["rx-001", "rx-002"]

    @pytest.mark.parametrize("data", [None, "not-a-list", [{"oops": 1}], [{"prescription": {}, "quantity_selected": 1}]])
    def test_malformed_data_gives_empty_cart(self, data):
        assert len(Cart.from_list(data)) == 0
