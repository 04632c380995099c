"""
Admin routes.

Admin sign-in and the order management dashboard. The only order
operations offered are the two forward status transitions.
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

from core.exceptions import AuthenticationError, InvalidTransitionError, OrderNotFoundError
from logging_config import get_logger
from services.order_service import available_action
from .helpers import (
    ADMIN_EMAIL,
    IS_ADMIN_AUTHENTICATED,
    MAX_EMAIL_LENGTH,
    admin_required,
    current_admin_email,
    sanitize_text,
    service,
)


# Module logger
logger = get_logger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.route("/login", methods=["GET", "POST"])
def login():
    """
    Handle admin sign-in.

    GET: Display email/password form
    POST: Check credentials and redirect to the dashboard
    """
    if current_admin_email():
        return redirect(url_for("admin.dashboard"))

    if request.method == "POST":
        email = sanitize_text(request.form.get("email"), max_length=MAX_EMAIL_LENGTH)
        password = request.form.get("password", "")

        try:
            email = service("AUTH_SERVICE").verify_admin(email, password)
        except AuthenticationError as e:
            flash(e.message, "error")
            return render_template("admin_login.html", email=email), 401

        session.permanent = True
        session[IS_ADMIN_AUTHENTICATED] = True
        session[ADMIN_EMAIL] = email
        session.modified = True
        return redirect(url_for("admin.dashboard"))

    return render_template("admin_login.html", email="")


@admin_bp.route("/logout", methods=["POST"])
def logout():
    """Clear admin sign-in."""
    session.pop(IS_ADMIN_AUTHENTICATED, None)
    session.pop(ADMIN_EMAIL, None)
    session.modified = True
    flash("You have been signed out.", "success")
    return redirect(url_for("admin.login"))


@admin_bp.route("/dashboard", methods=["GET"])
@admin_required
def dashboard():
    """Display every order, newest first, with its available action."""
    try:
        orders = service("ORDER_SERVICE").all_orders()
    except Exception as e:
        logger.error(f"Error loading orders: {e}", exc_info=True)
        flash("Error loading orders.", "error")
        orders = []

    return render_template(
        "admin_dashboard.html",
        admin_email=current_admin_email(),
        orders=orders,
        actions={order.id: available_action(order) for order in orders},
    )


def _apply_transition(order_id: str, transition, done_message: str):
    try:
        order = transition(order_id)
    except OrderNotFoundError as e:
        flash(e.message, "error")
        return redirect(url_for("admin.dashboard"))
    except InvalidTransitionError as e:
        flash(e.message, "warning")
        return redirect(url_for("admin.dashboard"))
    except Exception as e:
        logger.error(f"Error updating order {order_id}: {e}", exc_info=True)
        flash("Error updating order status", "error")
        return redirect(url_for("admin.dashboard"))

    flash(done_message.format(order=order), "success")
    return redirect(url_for("admin.dashboard"))


@admin_bp.route("/orders/<order_id>/processing", methods=["POST"])
@admin_required
def mark_processing(order_id: str):
    """awaiting_payment -> processing."""
    return _apply_transition(
        order_id,
        service("ORDER_SERVICE").advance_to_processing,
        "Order {order.id} marked as processing",
    )


@admin_bp.route("/orders/<order_id>/shipped", methods=["POST"])
@admin_required
def mark_shipped(order_id: str):
    """processing -> shipped, issuing a tracking number."""
    return _apply_transition(
        order_id,
        service("ORDER_SERVICE").advance_to_shipped,
        "Order {order.id} marked as shipped. Tracking number: {order.tracking_number}",
    )
