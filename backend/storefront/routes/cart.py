# Overview: Cart routes; every mutation is persisted before the response.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_cart
from ..services import cart_service
from ..services.cart_service import CartError
from ..services.persistence import PersistenceError

cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


@cart_bp.post("")
def create_cart_route():
    """Start a cart. The returned token goes in the X-Cart-Token header from then on."""
    try:
        cart = cart_service.create_cart()
        return jsonify({"cart": cart.to_dict()}), 201
    except PersistenceError as e:
        current_app.logger.warning("Cart creation failed: %s", e)
        return jsonify({"error": str(e)}), 503


@cart_bp.get("")
@require_cart
def get_cart_route():
    return jsonify({"cart": g.cart.to_dict()}), 200


@cart_bp.post("/lines")
@require_cart
def add_line_route():
    """
    Add a product variant.

    Body: {"product_id": "1", "variant_index": 0, "quantity": 2}
    """
    data = request.get_json(silent=True) or {}
    if data.get("product_id") in (None, ""):
        return jsonify({"error": "product_id required"}), 400
    try:
        line = cart_service.add_to_cart(
            g.cart,
            str(data["product_id"]),
            data.get("variant_index", 0),
            data.get("quantity", 1),
        )
        return jsonify({"line": line.to_dict(), "cart": g.cart.to_dict()}), 201
    except CartError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except PersistenceError as e:
        current_app.logger.warning("Cart save failed: %s", e)
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to add cart line")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.delete("/lines")
@require_cart
def remove_line_route():
    """Remove a line by ?product_id=&variant_label=; removing an absent line is a no-op."""
    product_id = request.args.get("product_id")
    variant_label = request.args.get("variant_label")
    if not product_id or not variant_label:
        return jsonify({"error": "product_id and variant_label required"}), 400
    try:
        removed = cart_service.remove(g.cart, product_id, variant_label)
        return jsonify({"removed": removed, "cart": g.cart.to_dict()}), 200
    except PersistenceError as e:
        current_app.logger.warning("Cart save failed: %s", e)
        return jsonify({"error": str(e)}), 503


@cart_bp.delete("")
@require_cart
def clear_cart_route():
    try:
        cart_service.clear(g.cart)
        return jsonify({"cart": g.cart.to_dict()}), 200
    except PersistenceError as e:
        current_app.logger.warning("Cart save failed: %s", e)
        return jsonify({"error": str(e)}), 503
