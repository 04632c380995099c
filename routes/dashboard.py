"""
Patient dashboard routes.

Shows prescriptions, the cart and the patient's own orders.
"""

from flask import (
    Blueprint,
    flash,
    redirect,
    render_template,
    url_for,
)

from core.exceptions import PrescriptionNotOrderableError
from logging_config import get_logger
from .helpers import (
    current_patient_email,
    load_cart,
    patient_required,
    save_cart,
    service,
)


# Module logger
logger = get_logger(__name__)

dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.route("/dashboard", methods=["GET"])
@patient_required
def dashboard():
    """Display prescriptions, cart summary and My Orders."""
    email = current_patient_email()
    catalog = service("CATALOG_SERVICE")
    order_service = service("ORDER_SERVICE")

    try:
        orders = order_service.orders_for_patient(email)
    except Exception as e:
        logger.error(f"Failed to load orders for {email}: {e}", exc_info=True)
        flash("Could not load your orders right now.", "error")
        orders = []

    cart = load_cart()
    return render_template(
        "dashboard.html",
        email=email,
        prescriptions=catalog.list_prescriptions(),
        cart=cart,
        cart_total=cart.total(),
        orders=orders,
    )


@dashboard_bp.route("/cart/add/<prescription_id>", methods=["POST"])
@patient_required
def add_to_cart(prescription_id: str):
    """Add a prescription to the session cart at its full quantity."""
    prescription = service("CATALOG_SERVICE").get(prescription_id)
    if prescription is None:
        flash("Prescription not found.", "error")
        return redirect(url_for("dashboard.dashboard"))

    cart = load_cart()
    try:
        result = cart.add(prescription)
    except PrescriptionNotOrderableError as e:
        flash(e.message, "error")
        return redirect(url_for("dashboard.dashboard"))

    save_cart(cart)
    logger.debug(f"Cart now holds {len(cart)} lines, total {cart.total()}")
    flash(result.value, "success")
    return redirect(url_for("dashboard.dashboard"))
