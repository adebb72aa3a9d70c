# Overview: Public storefront catalog routes.

from flask import Blueprint, jsonify, request

from ..services import products_service
from ..services.catalog_store import CatalogStore
from ..services.order_service import enabled_payment_methods

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/catalog")


@catalog_bp.get("/products")
def list_products_route():
    """Published products only; optional ?category= and ?brand= filters."""
    products = products_service.list_products(
        published_only=True,
        category=request.args.get("category"),
        brand=request.args.get("brand"),
    )
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@catalog_bp.get("/products/<product_id>")
def get_product_route(product_id: str):
    product = CatalogStore().get_product(product_id)
    if not product or not product.is_published:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": product.to_dict()}), 200


@catalog_bp.get("/revision")
def revision_route():
    """Poll target: re-read products/settings only when this value changes."""
    return jsonify({"revision": CatalogStore().revision()}), 200


@catalog_bp.get("/settings")
def storefront_settings_route():
    """The slice of store settings a shopper needs; no staff-only values."""
    settings = CatalogStore().get_settings()
    return jsonify({
        "store_name": settings.store_name,
        "maintenance_mode": settings.maintenance_mode,
        "currency_symbol": settings.financials.currency_symbol,
        "tax_rate": settings.financials.tax_rate,
        "min_order_amount": settings.financials.min_order_amount,
        "delivery_enabled": settings.delivery.enabled,
        "payment_methods": enabled_payment_methods(settings),
        "referral": {"enabled": settings.referral.enabled, "percentage": settings.referral.percentage},
        "loyalty": {"enabled": settings.loyalty.enabled, "points_per_dollar": settings.loyalty.points_per_dollar},
    }), 200
