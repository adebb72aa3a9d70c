# Overview: Staff catalog maintenance: products and their variants.

from __future__ import annotations

import secrets
from typing import Any

from ..extensions import db
from ..models import Product, ProductVariant
from ..validation import ValidationError, clean_str, parse_amount, parse_bool, parse_non_negative_int
from .catalog_store import CatalogStore
from .persistence import commit_or_raise


PRODUCT_TYPES = ("Cannabis", "Vape")
STRAINS = ("Indica", "Sativa", "Hybrid")

WRITABLE_FIELDS = {
    "product_type", "category", "brand", "name", "strain", "thc_percentage",
    "cbd_percentage", "puff_count", "image_url", "description", "is_published", "is_featured",
}
REQUIRED_ON_CREATE = ("category", "brand", "name", "variants")


class ProductError(Exception):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ProductNotFoundError(ProductError):
    pass


def _clean_variants(raw: Any) -> list[dict]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("variants must be a non-empty list")
    cleaned = []
    seen = set()
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"variants[{i}] must be an object")
        label = clean_str(item.get("label"), f"variants[{i}].label", required=True, max_length=32)
        if label in seen:
            raise ValidationError(f"Duplicate variant label: {label}")
        seen.add(label)
        cleaned.append({
            "label": label,
            "price": parse_amount(item.get("price"), f"variants[{i}].price"),
            "weight_grams": parse_amount(item.get("weight_grams", 0), f"variants[{i}].weight_grams"),
            "stock": parse_non_negative_int(item.get("stock", 0), f"variants[{i}].stock"),
        })
    return cleaned


def _clean_fields(data: dict) -> dict:
    unknown = set(data) - WRITABLE_FIELDS - {"variants", "id"}
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    fields: dict[str, Any] = {}
    for key in ("category", "brand", "name"):
        if key in data:
            fields[key] = clean_str(data[key], key, required=True, max_length=255)
    for key in ("image_url", "description"):
        if key in data:
            fields[key] = clean_str(data[key], key)
    if "product_type" in data:
        if data["product_type"] not in PRODUCT_TYPES:
            raise ValidationError(f"product_type must be one of {', '.join(PRODUCT_TYPES)}")
        fields["product_type"] = data["product_type"]
    if "strain" in data:
        if data["strain"] is not None and data["strain"] not in STRAINS:
            raise ValidationError(f"strain must be one of {', '.join(STRAINS)}")
        fields["strain"] = data["strain"]
    for key in ("thc_percentage", "cbd_percentage"):
        if key in data:
            fields[key] = None if data[key] is None else parse_amount(data[key], key, maximum=100)
    if "puff_count" in data:
        fields["puff_count"] = None if data["puff_count"] is None else parse_non_negative_int(data["puff_count"], "puff_count")
    for key in ("is_published", "is_featured"):
        if key in data:
            fields[key] = parse_bool(data[key], key)
    return fields


def _replace_variants(product: Product, variants: list[dict]) -> None:
    product.variants.clear()
    db.session.flush()
    for position, v in enumerate(variants):
        product.variants.append(ProductVariant(position=position, **v))
    product.recompute_stock()


def create_product(data: dict) -> Product:
    missing = [f for f in REQUIRED_ON_CREATE if data.get(f) in (None, "", [])]
    if missing:
        raise ProductError(f"Missing required fields: {', '.join(missing)}")
    try:
        fields = _clean_fields(data)
        variants = _clean_variants(data["variants"])
    except ValidationError as exc:
        raise ProductError(str(exc))

    product_id = clean_str(data.get("id"), "id", max_length=32) or secrets.token_hex(5)
    if db.session.get(Product, product_id):
        raise ProductError("Product id already exists", details={"id": product_id})

    product = Product(id=product_id, **fields)
    db.session.add(product)
    _replace_variants(product, variants)
    commit_or_raise("Failed to save product")
    return product


def update_product(product_id: str, data: dict) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise ProductNotFoundError("Product not found")
    try:
        fields = _clean_fields(data)
        variants = _clean_variants(data["variants"]) if "variants" in data else None
    except ValidationError as exc:
        raise ProductError(str(exc))

    for key, value in fields.items():
        setattr(product, key, value)
    if variants is not None:
        _replace_variants(product, variants)
    commit_or_raise("Failed to save product")
    return product


def delete_product(product_id: str) -> None:
    """Remove from the catalog. Past orders and carts keep their own snapshot."""
    product = db.session.get(Product, product_id)
    if not product:
        raise ProductNotFoundError("Product not found")
    db.session.delete(product)
    commit_or_raise("Failed to delete product")


def list_products(published_only: bool = False, category: str | None = None, brand: str | None = None,
                  store: CatalogStore | None = None) -> list[Product]:
    store = store or CatalogStore()
    products = store.get_products(published_only=published_only)
    if category:
        products = [p for p in products if p.category == category]
    if brand:
        products = [p for p in products if p.brand == brand]
    return products
