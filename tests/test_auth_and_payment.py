"""
Unit tests for the mock authentication and payment services.
"""

from decimal import Decimal
from unittest.mock import Mock

import pytest

from core.exceptions import AuthenticationError, PaymentDeclinedError
from services.auth_service import AuthService
from services.payment_service import MockPaymentGateway


CARD = {
    "name_on_card": "Pat Example",
    "card_number": "4111111111111111",
    "expiry_date": "12/30",
    "cvv": "123",
}


# Fixtures

@pytest.fixture
def auth():
    return AuthService()


class TestPatientCode:
    """Tests for the one-time code flow."""

    def test_request_code_returns_fixed_code(self, auth):
        assert auth.request_code("patient@example.com") == "123456"

    @pytest.mark.parametrize("email", ["", "   ", "no-at-sign", "a@b", "two@@example.com"])
    def test_request_code_rejects_bad_email(self, auth, email):
        with pytest.raises(AuthenticationError):
            auth.request_code(email)

    def test_verify_correct_code(self, auth):
        assert auth.verify_code(" patient@example.com ", "123456") == "patient@example.com"

    @pytest.mark.parametrize("code", ["", "654321", "12345", "1234567"])
    def test_verify_wrong_code(self, auth, code):
        with pytest.raises(AuthenticationError) as exc_info:
            auth.verify_code("patient@example.com", code)

        assert "Invalid OTP" in exc_info.value.message

    def test_configured_code(self):
        auth = AuthService(otp_code="999000")

        assert auth.verify_code("patient@example.com", "999000") == "patient@example.com"
        with pytest.raises(AuthenticationError):
            auth.verify_code("patient@example.com", "123456")

    def test_simulated_latency_sleeps(self):
        sleep = Mock()
        auth = AuthService(latency_seconds=1.0, sleep=sleep)

        auth.verify_code("patient@example.com", "123456")

        sleep.assert_called_once_with(1.0)


class TestAdminCredentials:
    """Tests for admin email/password checks."""

    def test_valid_pair(self, auth):
        assert auth.verify_admin("admin@moca.com", "password123") == "admin@moca.com"

    @pytest.mark.parametrize("email,password", [
        ("admin@moca.com", "wrong"),
        ("other@moca.com", "password123"),
        ("", ""),
    ])
    def test_invalid_pair(self, auth, email, password):
        with pytest.raises(AuthenticationError) as exc_info:
            auth.verify_admin(email, password)

        assert exc_info.value.message == "Invalid email or password"


class TestMockPaymentGateway:
    """Tests for payment confirmation."""

    def test_confirms_amount(self):
        confirmation = MockPaymentGateway().confirm(Decimal("283"), CARD)

        assert confirmation.amount == Decimal("283.00")
        assert confirmation.method == "Power Board"
        assert confirmation.reference.startswith("PB-")
        assert confirmation.confirmed_at

    def test_missing_fields_are_declined(self):
        card = dict(CARD, cvv="", name_on_card="  ")

        with pytest.raises(PaymentDeclinedError) as exc_info:
            MockPaymentGateway().confirm(Decimal("10"), card)

        assert exc_info.value.missing_fields == ["cvv", "name_on_card"]

    def test_references_are_unique(self):
        gateway = MockPaymentGateway()

        refs = {gateway.confirm(Decimal("1"), CARD).reference for _ in range(20)}

        assert len(refs) == 20
