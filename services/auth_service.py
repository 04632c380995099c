"""
Authentication checks for patients and admins.

Patient flow:
    1. request_code(email) -> the one-time code, shown to the user out-of-band
    2. verify_code(email, code) must match the configured code exactly

Admin flow:
    verify_admin(email, password) against the single configured pair

The service only answers yes/no. Routes record the outcome in the signed,
expiring Flask session (``isAuthenticated`` / ``isAdminAuthenticated``).
No lockout, throttling or code rotation.
"""

from __future__ import annotations

import hmac
import re
import time
from typing import Callable

from core.exceptions import AuthenticationError
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _matches(supplied: str, expected: str) -> bool:
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


class AuthService:
    """Mock credential checks with simulated network latency."""

    def __init__(
        self,
        otp_code: str = "123456",
        admin_email: str = "admin@moca.com",
        admin_password: str = "password123",
        latency_seconds: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._otp_code = otp_code
        self._admin_email = admin_email
        self._admin_password = admin_password
        self._latency_seconds = latency_seconds
        self._sleep = sleep

    def _simulate_latency(self) -> None:
        if self._latency_seconds > 0:
            self._sleep(self._latency_seconds)

    @staticmethod
    def validate_email(email: str) -> str:
        """
        Return the trimmed email.

        Raises:
            AuthenticationError: if it does not look like an email address
        """
        email = (email or "").strip()
        if not EMAIL_PATTERN.match(email):
            raise AuthenticationError("Please enter a valid email address")
        return email

    def request_code(self, email: str) -> str:
        """
        Issue the one-time code for ``email``.

        Returns:
            The code to present to the user
        """
        email = self.validate_email(email)
        self._simulate_latency()
        logger.info(f"One-time code issued for {email}")
        return self._otp_code

    def verify_code(self, email: str, code: str) -> str:
        """
        Check a patient's one-time code.

        Returns:
            The authenticated email

        Raises:
            AuthenticationError: invalid email or wrong code
        """
        email = self.validate_email(email)
        self._simulate_latency()

        if not _matches((code or "").strip(), self._otp_code):
            logger.warning(f"Invalid one-time code for {email}")
            raise AuthenticationError("Invalid OTP. Please try again.")

        logger.info(f"Patient {email} authenticated")
        return email

    def verify_admin(self, email: str, password: str) -> str:
        """
        Check admin credentials.

        Returns:
            The authenticated admin email

        Raises:
            AuthenticationError: email or password mismatch
        """
        email = (email or "").strip()
        self._simulate_latency()

        email_ok = _matches(email, self._admin_email)
        password_ok = _matches(password or "", self._admin_password)
        if not (email_ok and password_ok):
            logger.warning(f"Failed admin login for {email or '<blank>'}")
            raise AuthenticationError("Invalid email or password")

        logger.info(f"Admin {email} authenticated")
        return email
