# Overview: Checkout routes over the cart named by X-Cart-Token.

"""
Checkout API

PUT    /api/checkout/contact          draft name/phone/email
PUT    /api/checkout/fulfillment      Pickup | Delivery
POST   /api/checkout/delivery-zone    shopper position, or the geolocation failure
POST   /api/checkout/promotion        apply a referral code
DELETE /api/checkout/promotion        clear the applied code
GET    /api/checkout/summary          pricing breakdown and what blocks placement
POST   /api/checkout/orders           place the order
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_cart
from ..services import checkout_service
from ..services.catalog_store import CatalogStore
from ..services.checkout_service import CheckoutError, DeliveryZoneError
from ..services.delivery_zones import Coordinate
from ..services.order_service import OrderError
from ..services.persistence import PersistenceError
from ..services.pricing import format_money
from ..services.referrals import PromotionError
from ..validation import ValidationError, parse_amount

checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/checkout")


def _persistence_failed(e: PersistenceError):
    current_app.logger.warning("Checkout persistence failed: %s", e)
    return jsonify({"error": "Could not save your changes, please try again"}), 503


@checkout_bp.put("/contact")
@require_cart
def update_contact_route():
    data = request.get_json(silent=True) or {}
    try:
        cart = checkout_service.update_contact(g.cart, data)
        return jsonify({"cart": cart.to_dict()}), 200
    except CheckoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except PersistenceError as e:
        return _persistence_failed(e)


@checkout_bp.put("/fulfillment")
@require_cart
def set_fulfillment_route():
    data = request.get_json(silent=True) or {}
    try:
        settings = CatalogStore().get_settings()
        cart = checkout_service.set_fulfillment(g.cart, data.get("type"), settings)
        return jsonify({"cart": cart.to_dict()}), 200
    except CheckoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except PersistenceError as e:
        return _persistence_failed(e)


@checkout_bp.post("/delivery-zone")
@require_cart
def check_delivery_zone_route():
    """
    Body: {"lat": 40.77, "lng": -73.93}
       or {"location_error": "denied"} when the browser could not locate the shopper.
    """
    data = request.get_json(silent=True) or {}
    position = None
    if not data.get("location_error"):
        try:
            position = Coordinate(
                lat=parse_amount(data.get("lat"), "lat", minimum=-90, maximum=90),
                lng=parse_amount(data.get("lng"), "lng", minimum=-180, maximum=180),
            )
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400

    try:
        settings = CatalogStore().get_settings()
        resolution = checkout_service.check_delivery_zone(g.cart, position, settings)
        return jsonify({"resolution": resolution.to_dict(), "cart": g.cart.to_dict()}), 200
    except DeliveryZoneError as e:
        return jsonify({"error": str(e), "outcome": e.outcome, "details": e.details}), 400
    except CheckoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except PersistenceError as e:
        return _persistence_failed(e)


@checkout_bp.post("/promotion")
@require_cart
def apply_promotion_route():
    data = request.get_json(silent=True) or {}
    if not data.get("code"):
        return jsonify({"error": "code required"}), 400
    try:
        settings = CatalogStore().get_settings()
        cart = checkout_service.apply_promotion(g.cart, str(data["code"]), settings)
        return jsonify({"cart": cart.to_dict(), "summary": checkout_service.summary(cart, settings)}), 200
    except PromotionError as e:
        return jsonify({"error": str(e), "reason": e.reason, "details": e.details}), 400
    except CheckoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except PersistenceError as e:
        return _persistence_failed(e)


@checkout_bp.delete("/promotion")
@require_cart
def remove_promotion_route():
    try:
        cart = checkout_service.remove_promotion(g.cart)
        return jsonify({"cart": cart.to_dict()}), 200
    except PersistenceError as e:
        return _persistence_failed(e)


@checkout_bp.get("/summary")
@require_cart
def summary_route():
    try:
        settings = CatalogStore().get_settings()
        return jsonify(checkout_service.summary(g.cart, settings)), 200
    except PersistenceError as e:
        return _persistence_failed(e)
    except Exception:
        current_app.logger.exception("Failed to build checkout summary")
        return jsonify({"error": "Internal server error"}), 500


@checkout_bp.post("/orders")
@require_cart
def place_order_route():
    """Body: {"payment_method": "Cash"}. Returns the placed order and its shareable referral code."""
    data = request.get_json(silent=True) or {}
    if not data.get("payment_method"):
        return jsonify({"error": "payment_method required"}), 400
    try:
        settings = CatalogStore().get_settings()
        order = checkout_service.place_order(g.cart, data["payment_method"], settings)
        current_app.logger.info(
            "Order %s placed: %s %s total=%s",
            order.id, order.fulfillment_type, order.payment_method, format_money(order.total),
        )
        return jsonify({"order": order.to_dict()}), 201
    except PromotionError as e:
        return jsonify({"error": str(e), "reason": e.reason, "details": e.details}), 400
    except (CheckoutError, OrderError) as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except PersistenceError as e:
        return _persistence_failed(e)
    except Exception:
        current_app.logger.exception("Failed to place order")
        return jsonify({"error": "Internal server error"}), 500
