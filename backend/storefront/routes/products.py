# Overview: Staff product administration routes.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_staff
from ..services import products_service
from ..services.persistence import PersistenceError
from ..services.products_service import ProductError, ProductNotFoundError
from ..validation import parse_bool, ValidationError

products_bp = Blueprint("products", __name__, url_prefix="/api/admin/products")


@products_bp.get("")
@require_staff
def list_products_route():
    """All products, unpublished included. ?published=true limits to the live catalog."""
    try:
        published_only = parse_bool(request.args.get("published", "false"), "published")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    products = products_service.list_products(
        published_only=published_only,
        category=request.args.get("category"),
        brand=request.args.get("brand"),
    )
    return jsonify({"products": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.post("")
@require_staff
def create_product_route():
    """
    Body: {"category", "brand", "name", "variants": [{"label", "price", "stock", "weight_grams"?}], ...}

    Aggregate stock is the sum of the variant stocks.
    """
    data = request.get_json(silent=True) or {}
    try:
        product = products_service.create_product(data)
        current_app.logger.info("Product %s created", product.id)
        return jsonify({"product": product.to_dict()}), 201
    except ProductError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except PersistenceError as e:
        current_app.logger.warning("Product save failed: %s", e)
        return jsonify({"error": str(e)}), 503


@products_bp.patch("/<product_id>")
@require_staff
def update_product_route(product_id: str):
    data = request.get_json(silent=True) or {}
    try:
        product = products_service.update_product(product_id, data)
        return jsonify({"product": product.to_dict()}), 200
    except ProductNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ProductError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except PersistenceError as e:
        current_app.logger.warning("Product save failed: %s", e)
        return jsonify({"error": str(e)}), 503


@products_bp.delete("/<product_id>")
@require_staff
def delete_product_route(product_id: str):
    try:
        products_service.delete_product(product_id)
        return jsonify({"message": "Product deleted"}), 200
    except ProductNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError as e:
        current_app.logger.warning("Product delete failed: %s", e)
        return jsonify({"error": str(e)}), 503
