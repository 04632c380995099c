"""
Patient login routes.

Two-step one-time code flow:
1. POST email -> code is issued and shown in a flash message
2. POST code  -> session is marked authenticated
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

from core.exceptions import AuthenticationError
from logging_config import get_logger
from .helpers import (
    CART_ITEMS,
    IS_AUTHENTICATED,
    MAX_EMAIL_LENGTH,
    PENDING_EMAIL,
    USER_EMAIL,
    current_patient_email,
    sanitize_text,
    service,
)


# Module logger
logger = get_logger(__name__)

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    """
    Handle patient sign-in.

    GET: Display email form (or code form if a code was already requested)
    POST: Request a code for an email, or verify the submitted code
    """
    if current_patient_email():
        return redirect(url_for("dashboard.dashboard"))

    auth_service = service("AUTH_SERVICE")

    if request.method == "POST" and request.form.get("action") == "restart":
        session.pop(PENDING_EMAIL, None)
        return redirect(url_for("auth.login"))

    if request.method == "POST":
        email = sanitize_text(
            request.form.get("email") or session.get(PENDING_EMAIL),
            max_length=MAX_EMAIL_LENGTH,
        )
        code = sanitize_text(request.form.get("code"), max_length=12)

        try:
            if not code:
                issued = auth_service.request_code(email)
                session[PENDING_EMAIL] = email
                flash(f"OTP sent to your email! Use code: {issued}", "info")
                return render_template("login.html", step="code", email=email)

            email = auth_service.verify_code(email, code)

        except AuthenticationError as e:
            flash(e.message, "error")
            step = "code" if code else "email"
            return render_template("login.html", step=step, email=email), 400

        session.pop(PENDING_EMAIL, None)
        session.permanent = True
        session[IS_AUTHENTICATED] = True
        session[USER_EMAIL] = email
        session.modified = True
        return redirect(url_for("dashboard.dashboard"))

    pending = session.get(PENDING_EMAIL)
    return render_template("login.html", step="code" if pending else "email", email=pending or "")


@auth_bp.route("/logout", methods=["POST"])
def logout():
    """Clear patient sign-in and cart."""
    email = session.get(USER_EMAIL)
    for key in (IS_AUTHENTICATED, USER_EMAIL, CART_ITEMS, PENDING_EMAIL):
        session.pop(key, None)
    session.modified = True
    if email:
        logger.info(f"Patient {email} signed out")
    flash("You have been signed out.", "success")
    return redirect(url_for("auth.login"))
