"""
Configuration for the MOCA portal.

Values come from the environment (optionally a .env file). The mock
credentials below are for the prototype phase only.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    SESSION_COOKIE_NAME = "moca_portal_session"
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    PERMANENT_SESSION_LIFETIME = int(os.environ.get("SESSION_LIFETIME_SECONDS", "3600"))
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")

    # Debug mode
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # ==========================================================================
    # Order storage
    # ==========================================================================
    # ORDER_BACKEND: "store" keeps orders as JSON under "allOrders" in the
    #   shared key/value store; "sql" uses the SQLAlchemy orders table.
    # STORE_PATH: JSON file backing the shared store (empty = memory only)
    # DATABASE_URL: SQLAlchemy URL for the sql backend
    # ==========================================================================
    ORDER_BACKEND = os.environ.get("ORDER_BACKEND", "store")
    STORE_PATH = os.environ.get("STORE_PATH", str(BASE_DIR / "instance" / "store.json"))
    DATABASE_URL = os.environ.get(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'instance' / 'orders.db'}"
    )

    # Pricing
    SHIPPING_FEE = os.environ.get("SHIPPING_FEE", "33.00")

    # ==========================================================================
    # Mock authentication (prototype only)
    # ==========================================================================
    PATIENT_OTP_CODE = os.environ.get("PATIENT_OTP_CODE", "123456")
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@moca.com")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "password123")

    # Artificial delay before login checks and payment, in seconds
    SIMULATED_LATENCY_SECONDS = float(os.environ.get("SIMULATED_LATENCY_SECONDS", "1.0"))
    PAYMENT_LATENCY_SECONDS = float(os.environ.get("PAYMENT_LATENCY_SECONDS", "2.0"))


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    SECRET_KEY = "test-secret-key"
    STORE_PATH = ""
    ORDER_BACKEND = "store"
    DATABASE_URL = "sqlite://"
    SHIPPING_FEE = "33.00"
    PATIENT_OTP_CODE = "123456"
    ADMIN_EMAIL = "admin@moca.com"
    ADMIN_PASSWORD = "password123"
    SIMULATED_LATENCY_SECONDS = 0.0
    PAYMENT_LATENCY_SECONDS = 0.0
