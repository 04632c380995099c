"""
Flask route blueprints for the MOCA portal.

This module contains all route handlers organized by functionality:
- main: Landing redirect and health check
- auth: Patient one-time code sign-in
- dashboard: Prescriptions, cart and My Orders
- checkout: Mock payment, order creation, success page
- admin: Admin sign-in and order status management
- api: JSON endpoints

Each blueprint is registered with the Flask app in create_app().
"""

from .main import main_bp
from .auth import auth_bp
from .dashboard import dashboard_bp
from .checkout import checkout_bp
from .admin import admin_bp
from .api import api_bp

__all__ = [
    "main_bp",
    "auth_bp",
    "dashboard_bp",
    "checkout_bp",
    "admin_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(api_bp)
