"""
Checkout routes.

Handles mock payment and order creation.
Takes a FROZEN cart snapshot, confirms payment for its total, then
creates the order. The session cart is only cleared once the order exists.
"""

from flask import (
    Blueprint,
    flash,
    redirect,
    render_template,
    request,
    session,
    url_for,
)

from core.exceptions import EmptyCartError, PaymentDeclinedError
from logging_config import get_logger
from services.payment_service import REQUIRED_CARD_FIELDS
from .helpers import (
    CART_ITEMS,
    CURRENT_ORDER,
    MAX_FIELD_LENGTH,
    current_patient_email,
    load_cart,
    patient_required,
    sanitize_text,
    service,
)


# Module logger
logger = get_logger(__name__)

checkout_bp = Blueprint("checkout", __name__)


def _render_checkout(cart, status: int = 200):
    order_service = service("ORDER_SERVICE")
    snapshot = cart.snapshot()
    return render_template(
        "checkout.html",
        cart=cart,
        subtotal=snapshot.subtotal,
        shipping_fee=order_service.shipping_fee,
        total=order_service.quote(snapshot),
    ), status


@checkout_bp.route("/checkout", methods=["GET", "POST"])
@patient_required
def checkout():
    """
    Display order summary and process payment.

    GET: Show cart lines, subtotal, shipping fee and total
    POST: Confirm payment, create order, redirect to success page
    """
    cart = load_cart()
    if not len(cart):
        flash(EmptyCartError().message, "warning")
        return redirect(url_for("dashboard.dashboard"))

    if request.method == "GET":
        return _render_checkout(cart)

    email = current_patient_email()
    order_service = service("ORDER_SERVICE")
    gateway = service("PAYMENT_GATEWAY")

    card = {
        name: sanitize_text(request.form.get(name), max_length=MAX_FIELD_LENGTH)
        for name in REQUIRED_CARD_FIELDS
    }

    try:
        # STEP 1: Immutable snapshot; the session cart stays intact until success
        snapshot = cart.checkout()

        # STEP 2: Explicit payment confirmation for the quoted total
        confirmation = gateway.confirm(order_service.quote(snapshot), card)

        # STEP 3: Create the order
        order = order_service.create(snapshot, email, confirmation)

    except (EmptyCartError, PaymentDeclinedError) as e:
        flash(e.message, "error")
        return _render_checkout(load_cart(), 400)

    except Exception as e:
        logger.error(f"Checkout failed for {email}: {e}", exc_info=True)
        flash("Payment failed. Please try again.", "error")
        return _render_checkout(load_cart(), 500)

    session.pop(CART_ITEMS, None)
    session[CURRENT_ORDER] = order.id
    session.modified = True

    return redirect(url_for("checkout.order_success"))


@checkout_bp.route("/order-success", methods=["GET"])
@patient_required
def order_success():
    """Display the order just placed."""
    order_id = session.get(CURRENT_ORDER)
    order = service("ORDER_SERVICE").get(order_id) if isinstance(order_id, str) else None

    if order is None or order.patient_email != current_patient_email():
        flash("No recent order found.", "warning")
        return redirect(url_for("dashboard.dashboard"))

    return render_template("order_success.html", order=order)
