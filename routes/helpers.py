"""
Shared route helpers: input sanitizing, session cart access, access guards.
"""

from functools import wraps
from typing import Optional

import bleach
from flask import current_app, flash, redirect, session, url_for

from models.cart import Cart


# Session keys
IS_AUTHENTICATED = "isAuthenticated"
USER_EMAIL = "userEmail"
IS_ADMIN_AUTHENTICATED = "isAdminAuthenticated"
ADMIN_EMAIL = "adminEmail"
CART_ITEMS = "cartItems"
CURRENT_ORDER = "currentOrder"
PENDING_EMAIL = "pendingEmail"

MAX_EMAIL_LENGTH = 254
MAX_FIELD_LENGTH = 100


def sanitize_text(text: Optional[str], max_length: int = None) -> str:
    """
    Sanitize user input text to prevent XSS and injection attacks.

    Args:
        text: Raw input text
        max_length: Optional maximum length to enforce

    Returns:
        Sanitized text safe for storage and display
    """
    if not text:
        return ""
    text = text.strip()
    text = bleach.clean(text, tags=[], strip=True)
    if max_length and len(text) > max_length:
        text = text[:max_length]
    return text


def service(name: str):
    """Fetch a service registered on the app config by create_app()."""
    return current_app.config[name]


def current_patient_email() -> Optional[str]:
    if session.get(IS_AUTHENTICATED) is True and session.get(USER_EMAIL):
        return session[USER_EMAIL]
    return None


def current_admin_email() -> Optional[str]:
    if session.get(IS_ADMIN_AUTHENTICATED) is True and session.get(ADMIN_EMAIL):
        return session[ADMIN_EMAIL]
    return None


def load_cart() -> Cart:
    """Cart from the session; malformed data is treated as an empty cart."""
    return Cart.from_list(session.get(CART_ITEMS))


def save_cart(cart: Cart) -> None:
    if len(cart):
        session[CART_ITEMS] = cart.to_list()
    else:
        session.pop(CART_ITEMS, None)
    session.modified = True


def patient_required(view):
    """Redirect to the patient login page unless a patient is signed in."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_patient_email():
            flash("Please sign in to continue.", "warning")
            return redirect(url_for("auth.login"))
        return view(*args, **kwargs)
    return wrapped


def admin_required(view):
    """Redirect to the admin login page unless an admin is signed in."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_admin_email():
            flash("Admin sign-in required.", "warning")
            return redirect(url_for("admin.login"))
        return view(*args, **kwargs)
    return wrapped
