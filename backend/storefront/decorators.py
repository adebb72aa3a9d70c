# Overview: Request decorators for staff, customer and cart-scoped API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service, cart_service
from .services.cart_service import CartNotFoundError


CART_TOKEN_HEADER = "X-Cart-Token"


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1]


def require_staff(f):
    """
    Require a staff console session.

    Sets g.staff_session. Returns 401 for a missing, unknown, expired or
    revoked token.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401
        session = session_service.validate_session(token, session_service.KIND_STAFF)
        if not session:
            return jsonify({"error": "Invalid or expired token"}), 401
        g.staff_session = session
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function


def require_customer(f):
    """
    Require a customer account session.

    Sets g.customer to the authenticated Customer; its phone is the identity
    the account routes filter orders by.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401
        session = session_service.validate_session(token, session_service.KIND_CUSTOMER)
        if not session or not session.customer:
            return jsonify({"error": "Invalid or expired token"}), 401
        g.customer = session.customer
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function


def require_cart(f):
    """Load the cart named by the X-Cart-Token header into g.cart (404 if unknown)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            g.cart = cart_service.get_cart(request.headers.get(CART_TOKEN_HEADER))
        except CartNotFoundError as e:
            return jsonify({"error": str(e)}), 404
        return f(*args, **kwargs)

    return decorated_function
