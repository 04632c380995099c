"""
API routes (JSON endpoints).

Handles:
- /api/orders - Signed-in patient's orders, newest first
- /api/admin/orders - All orders with available actions
- /api/admin/orders/<id>/processing, /shipped - Status transitions

Errors come back as {"error": ..., "message": ...} with a 4xx/5xx code:
404 unknown order, 409 illegal transition, 500 anything else.
"""

from flask import Blueprint

from core.exceptions import InvalidTransitionError, OrderError, OrderNotFoundError
from logging_config import get_logger
from services.order_service import available_action
from .helpers import current_admin_email, current_patient_email, service


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _error(error: str, message: str, status: int):
    return {"error": error, "message": message}, status


@api_bp.route("/orders", methods=["GET"])
def patient_orders():
    """Orders owned by the signed-in patient."""
    email = current_patient_email()
    if not email:
        return _error("unauthorized", "Patient sign-in required", 401)

    orders = service("ORDER_SERVICE").orders_for_patient(email)
    return {"orders": [order.to_dict() for order in orders]}


@api_bp.route("/admin/orders", methods=["GET"])
def admin_orders():
    """Every order, newest first, each with the action its status allows."""
    if not current_admin_email():
        return _error("unauthorized", "Admin sign-in required", 401)

    orders = service("ORDER_SERVICE").all_orders()
    return {
        "orders": [
            dict(order.to_dict(), available_action=available_action(order))
            for order in orders
        ]
    }


def _transition(order_id: str, transition):
    if not current_admin_email():
        return _error("unauthorized", "Admin sign-in required", 401)

    try:
        order = transition(order_id)
    except OrderNotFoundError as e:
        return _error("not_found", e.message, 404)
    except InvalidTransitionError as e:
        return _error("invalid_transition", e.message, 409)
    except OrderError as e:
        logger.error(f"Order {order_id} transition failed: {e}")
        return _error("order_error", e.message, 500)
    except Exception as e:
        logger.error(f"Order {order_id} transition failed: {e}", exc_info=True)
        return _error("internal_error", "Error updating order status", 500)

    return {"order": order.to_dict()}


@api_bp.route("/admin/orders/<order_id>/processing", methods=["POST"])
def advance_to_processing(order_id: str):
    return _transition(order_id, service("ORDER_SERVICE").advance_to_processing)


@api_bp.route("/admin/orders/<order_id>/shipped", methods=["POST"])
def advance_to_shipped(order_id: str):
    return _transition(order_id, service("ORDER_SERVICE").advance_to_shipped)
