# Overview: Staff console routes (PIN login, orders, customers, dashboard, settings and zones).

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_staff
from ..services import order_service, reporting_service, session_service, settings_service
from ..services.catalog_store import CatalogStore
from ..services.order_service import OrderNotFoundError
from ..services.order_status import InvalidTransitionError, OrderStatus, parse_status
from ..services.persistence import PersistenceError
from ..services.settings_service import SettingsNotFoundError, SettingsValidationError

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _actor() -> str:
    return f"staff:{g.staff_session.id}"


def _json_error(exc: Exception):
    if isinstance(exc, (SettingsNotFoundError, OrderNotFoundError)):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, (SettingsValidationError, ValueError)):
        return jsonify({"error": str(exc)}), 400
    if isinstance(exc, InvalidTransitionError):
        return jsonify({"error": str(exc), "details": exc.details}), 409
    if isinstance(exc, PersistenceError):
        current_app.logger.warning("Admin persistence failed: %s", exc)
        return jsonify({"error": str(exc)}), 503
    current_app.logger.exception("Admin request failed")
    return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/login")
def login_route():
    """Body: {"pin": "4200"}. The PIN is the admin_pin store setting."""
    data = request.get_json(silent=True) or {}
    settings = CatalogStore().get_settings()
    if not session_service.staff_pin_matches(data.get("pin"), settings.admin_pin):
        current_app.logger.warning("Staff login rejected")
        return jsonify({"error": "Invalid PIN"}), 401
    try:
        _, token = session_service.create_session(session_service.KIND_STAFF)
    except PersistenceError as e:
        return _json_error(e)
    return jsonify({"token": token}), 200


@admin_bp.post("/logout")
@require_staff
def logout_route():
    session_service.revoke_session(g.session_token)
    return jsonify({"message": "Logged out"}), 200


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

@admin_bp.get("/orders")
@require_staff
def list_orders_route():
    """Newest first. ?status=Placed filters (status value or enum name)."""
    status = request.args.get("status")
    try:
        status_value = parse_status(status).value if status else None
    except InvalidTransitionError as e:
        return jsonify({"error": str(e)}), 400
    orders = order_service.list_orders(status_value)
    return jsonify({"orders": [o.to_dict() for o in orders], "count": len(orders)}), 200


@admin_bp.post("/orders/<order_id>/status")
@require_staff
def transition_order_route(order_id: str):
    """
    Move an order along the status machine.

    Body: {"status": "Accepted", "note": "optional"}
    Returns 409 for a transition that is not allowed from the current status.
    """
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        return jsonify({"error": "status required"}), 400
    try:
        order = order_service.transition_status(
            order_id, data["status"], changed_by=_actor(), note=data.get("note"),
        )
    except Exception as e:
        return _json_error(e)

    current_app.logger.info("Order %s moved to %s", order.id, order.status)
    body = {"order": order.to_dict()}
    if order.status == OrderStatus.PICKED_UP.value:
        body["pickup_message"] = order_service.pickup_message(order, CatalogStore().get_settings())
    return jsonify(body), 200


@admin_bp.get("/orders/<order_id>/history")
@require_staff
def order_history_route(order_id: str):
    try:
        order = order_service.get_order(order_id)
    except OrderNotFoundError as e:
        return _json_error(e)
    changes = sorted(order.status_changes, key=lambda c: c.occurred_at)
    return jsonify({"order_id": order.id, "changes": [c.to_dict() for c in changes]}), 200


# ---------------------------------------------------------------------------
# Customers and dashboard
# ---------------------------------------------------------------------------

@admin_bp.get("/customers")
@require_staff
def list_customers_route():
    profiles = reporting_service.customer_profiles(request.args.get("search"))
    return jsonify({"customers": [p.to_dict() for p in profiles], "count": len(profiles)}), 200


@admin_bp.get("/customers/<phone>/orders")
@require_staff
def customer_orders_route(phone: str):
    orders = CatalogStore().get_orders_for_phone(phone)
    return jsonify({"orders": [o.to_dict() for o in orders]}), 200


@admin_bp.get("/dashboard")
@require_staff
def dashboard_route():
    settings = CatalogStore().get_settings()
    stats = reporting_service.dashboard_stats(low_stock_threshold=settings.inventory.low_stock_threshold)
    return jsonify({"stats": stats.to_dict()}), 200


# ---------------------------------------------------------------------------
# Settings and delivery zones
# ---------------------------------------------------------------------------

@admin_bp.get("/settings")
@require_staff
def get_settings_route():
    settings = CatalogStore().get_settings()
    return jsonify({"settings": settings.to_dict()}), 200


@admin_bp.patch("/settings")
@require_staff
def patch_settings_route():
    """Body: a nested or dotted patch, e.g. {"financials": {"tax_rate": 8.875}}."""
    data = request.get_json(silent=True)
    try:
        settings = CatalogStore().save_settings(data, changed_by=_actor())
    except Exception as e:
        return _json_error(e)
    current_app.logger.info("Settings updated by %s", _actor())
    return jsonify({"settings": settings.to_dict()}), 200


@admin_bp.get("/zones")
@require_staff
def list_zones_route():
    zones = settings_service.list_zones()
    return jsonify({"zones": [z.to_dict() for z in zones]}), 200


@admin_bp.post("/zones")
@require_staff
def create_zone_route():
    data = request.get_json(silent=True) or {}
    try:
        zone = settings_service.create_zone(data, changed_by=_actor())
    except Exception as e:
        return _json_error(e)
    return jsonify({"zone": zone.to_dict()}), 201


@admin_bp.patch("/zones/<zone_id>")
@require_staff
def update_zone_route(zone_id: str):
    data = request.get_json(silent=True) or {}
    try:
        zone = settings_service.update_zone(zone_id, data, changed_by=_actor())
    except Exception as e:
        return _json_error(e)
    return jsonify({"zone": zone.to_dict()}), 200


@admin_bp.delete("/zones/<zone_id>")
@require_staff
def delete_zone_route(zone_id: str):
    try:
        settings_service.delete_zone(zone_id, changed_by=_actor())
    except Exception as e:
        return _json_error(e)
    return jsonify({"message": "Zone deleted"}), 200
