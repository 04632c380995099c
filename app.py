"""
MOCA Portal - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration (.env + config classes)
2. Builds the order repository (shared store or SQLAlchemy)
3. Creates the order, catalog, auth and payment services
4. Registers route blueprints
5. Sets up error handlers and context processors

ARCHITECTURE:
    Flask request thread
    ├── signed session: auth flags, cart, current order id
    └── OrderService -> OrderRepository (atomic per-order updates)
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
from decimal import Decimal
from pathlib import Path
from typing import Union

from dotenv import load_dotenv
from flask import Flask, flash, redirect, url_for

from logging_config import setup_logging, get_logger
from routes import register_blueprints
from routes.helpers import current_admin_email, current_patient_email, load_cart
from services.auth_service import AuthService
from services.catalog_service import CatalogService
from services.database import IN_MEMORY_URLS, create_database_engine
from services.order_repository import OrderRepository, SqlOrderRepository, StoreOrderRepository
from services.order_service import OrderService
from services.payment_service import MockPaymentGateway
from services.store import SharedStore


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In a frozen bundle: the directory containing the executable
    In development: the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).parent


def _build_repository(app: Flask) -> OrderRepository:
    backend = app.config.get("ORDER_BACKEND", "store")

    if backend == "sql":
        url = app.config.get("DATABASE_URL") or "sqlite://"
        if url.startswith("sqlite:///") and url not in IN_MEMORY_URLS:
            Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
        repository = SqlOrderRepository(create_database_engine(url))
        atexit.register(repository.close)
        return repository

    if backend != "store":
        raise ValueError(f"Unknown ORDER_BACKEND: {backend}")

    store_path = app.config.get("STORE_PATH")
    store = SharedStore(Path(store_path) if store_path else None)
    app.config["SHARED_STORE"] = store
    return StoreOrderRepository(store)


def create_app(config_object: Union[str, object] = "config.Config") -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path or class passed to app.config.from_object

    Returns:
        Configured Flask application
    """
    # .env next to the app takes precedence over the shell environment
    env_file = _get_base_path() / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production" and not app.config.get("TESTING")

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting MOCA portal in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    repository = _build_repository(app)
    app.config["ORDER_SERVICE"] = OrderService(
        repository,
        shipping_fee=Decimal(str(app.config.get("SHIPPING_FEE", "33.00"))),
    )
    app.config["CATALOG_SERVICE"] = CatalogService()
    app.config["AUTH_SERVICE"] = AuthService(
        otp_code=app.config["PATIENT_OTP_CODE"],
        admin_email=app.config["ADMIN_EMAIL"],
        admin_password=app.config["ADMIN_PASSWORD"],
        latency_seconds=app.config.get("SIMULATED_LATENCY_SECONDS", 0.0),
    )
    app.config["PAYMENT_GATEWAY"] = MockPaymentGateway(
        latency_seconds=app.config.get("PAYMENT_LATENCY_SECONDS", 0.0),
    )
    logger.info(f"Order backend: {type(repository).__name__}")

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # CONTEXT PROCESSORS
    # =========================================================================

    @app.context_processor
    def inject_identity():
        """Inject signed-in identities and cart size into all templates."""
        return {
            "patient_email": current_patient_email(),
            "admin_email": current_admin_email(),
            "cart_count": len(load_cart()),
        }

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(404)
    def handle_not_found(e):
        flash("Page not found.", "warning")
        return redirect(url_for("main.index"))

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        flash("An unexpected error occurred. Please try again.", "error")
        return redirect(url_for("main.index"))

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
