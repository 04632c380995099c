"""
Main routes (landing page, health check).
"""

from flask import Blueprint, current_app, redirect, url_for

from .helpers import current_patient_email

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    """Send signed-in patients to their dashboard, everyone else to login."""
    if current_patient_email():
        return redirect(url_for("dashboard.dashboard"))
    return redirect(url_for("auth.login"))


@main_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    order_service = current_app.config.get("ORDER_SERVICE")
    if order_service:
        try:
            order_service.all_orders()
            health_status["checks"]["orders"] = "ok"
        except Exception as e:
            health_status["checks"]["orders"] = f"error: {e}"
            health_status["status"] = "degraded"
    else:
        health_status["checks"]["orders"] = "not_available"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
