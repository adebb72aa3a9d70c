# Overview: Customer account routes (register, PIN login, history, buy again) and public order tracking.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_cart, require_customer
from ..services import customer_service, order_service, session_service
from ..services.customer_service import CustomerValidationError
from ..services.order_service import OrderNotFoundError
from ..services.persistence import PersistenceError

account_bp = Blueprint("account", __name__, url_prefix="/api")


@account_bp.post("/account/register")
def register_route():
    """
    Register (or re-register) a customer.

    Body: {"name", "phone", "pin", "email"?}. Re-registering a phone replaces its PIN.
    """
    data = request.get_json(silent=True) or {}
    try:
        customer = customer_service.register_customer(
            data.get("name"), data.get("phone"), data.get("pin"), data.get("email"),
        )
        _, token = session_service.create_session(session_service.KIND_CUSTOMER, customer.id)
        return jsonify({"customer": customer.to_dict(), "token": token}), 201
    except CustomerValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError as e:
        current_app.logger.warning("Customer registration failed: %s", e)
        return jsonify({"error": str(e)}), 503


@account_bp.post("/account/login")
def login_route():
    data = request.get_json(silent=True) or {}
    customer = customer_service.authenticate(str(data.get("phone") or ""), data.get("pin"))
    if not customer:
        return jsonify({"error": "Invalid phone number or PIN"}), 401
    try:
        _, token = session_service.create_session(session_service.KIND_CUSTOMER, customer.id)
    except PersistenceError as e:
        current_app.logger.warning("Customer login failed: %s", e)
        return jsonify({"error": str(e)}), 503
    return jsonify({"customer": customer.to_dict(), "token": token}), 200


@account_bp.post("/account/logout")
@require_customer
def logout_route():
    session_service.revoke_session(g.session_token)
    return jsonify({"message": "Logged out"}), 200


@account_bp.get("/account/orders")
@require_customer
def order_history_route():
    orders = customer_service.order_history(g.customer.phone)
    return jsonify({"customer": g.customer.to_dict(), "orders": [o.to_dict() for o in orders]}), 200


@account_bp.post("/account/orders/<order_id>/reorder")
@require_customer
@require_cart
def reorder_route(order_id: str):
    """Buy again: re-add a past order's still-available items to the X-Cart-Token cart."""
    try:
        result = customer_service.buy_again(g.cart, order_id, g.customer.phone)
        return jsonify({"result": result.to_dict(), "cart": g.cart.to_dict()}), 200
    except OrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError as e:
        current_app.logger.warning("Reorder failed: %s", e)
        return jsonify({"error": str(e)}), 503


@account_bp.get("/orders/<order_id>")
def track_order_route(order_id: str):
    """Order confirmation / tracking by id."""
    try:
        order = order_service.get_order(order_id)
    except OrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"order": order.to_dict()}), 200
