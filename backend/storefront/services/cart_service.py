# Overview: Cart aggregation; one line per (product, variant), persisted on every change.

"""
Cart Aggregator

add() merges by (product id, variant label) and does not look at stock; the
caller decides what may be added. add_to_cart() is that caller for the
storefront API: it refuses unpublished products, sold-out variants and
quantities beyond the variant's stock.

Any change to the lines sends the cart back to an unresolved delivery zone,
since the zone minimum depends on the subtotal.
"""

from __future__ import annotations

import secrets

from ..extensions import db
from ..models import Cart, CartLine, Product
from ..validation import ValidationError, parse_positive_int
from .persistence import commit_or_raise


class CartError(Exception):
    """Raised for cart operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class CartNotFoundError(CartError):
    pass


def create_cart() -> Cart:
    cart = Cart(token=secrets.token_urlsafe(24), fulfillment_type="Pickup")
    db.session.add(cart)
    commit_or_raise("Failed to create cart")
    return cart


def get_cart(token: str | None) -> Cart:
    if not token:
        raise CartNotFoundError("Cart token required")
    cart = db.session.query(Cart).filter_by(token=token).first()
    if not cart:
        raise CartNotFoundError("Cart not found")
    return cart


def find_line(cart: Cart, product_id: str, variant_label: str) -> CartLine | None:
    for line in cart.lines:
        if line.product_id == product_id and line.variant_label == variant_label:
            return line
    return None


def add(cart: Cart, product: Product, variant_index: int, quantity: int, *, commit: bool = True) -> CartLine:
    """Add `quantity` of one variant, merging into an existing line for the same key."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise CartError("Quantity must be a positive integer")
    variant = product.variant_at(variant_index)
    if variant is None:
        raise CartError("Variant not found", details={"product_id": product.id, "variant_index": variant_index})

    line = find_line(cart, product.id, variant.label)
    if line is not None:
        line.quantity += quantity
    else:
        line = CartLine(
            product_id=product.id,
            product_name=product.name,
            brand=product.brand,
            category=product.category,
            image_url=product.image_url,
            variant_label=variant.label,
            unit_price=variant.price,
            weight_grams=variant.weight_grams,
            quantity=quantity,
        )
        cart.lines.append(line)

    reset_zone_resolution(cart)
    if commit:
        commit_or_raise("Failed to save cart")
    return line


def remove(cart: Cart, product_id: str, variant_label: str) -> int:
    """Remove every line with this key; returns how many went. No-op when absent."""
    doomed = [l for l in cart.lines if l.product_id == product_id and l.variant_label == variant_label]
    for line in doomed:
        cart.lines.remove(line)
    if doomed:
        reset_zone_resolution(cart)
        commit_or_raise("Failed to save cart")
    return len(doomed)


def clear(cart: Cart, *, commit: bool = True) -> None:
    """Empty the cart and drop the checkout-session state that depended on it."""
    cart.lines.clear()
    cart.applied_referral_code = None
    reset_zone_resolution(cart)
    if commit:
        commit_or_raise("Failed to save cart")


def reset_zone_resolution(cart: Cart) -> None:
    cart.zone_status = "unresolved"
    cart.resolved_zone_id = None
    cart.resolved_zone_name = None
    cart.resolved_zone_fee = None
    cart.resolved_zone_min_order = None


def add_to_cart(cart: Cart, product_id: str, variant_index, quantity) -> CartLine:
    """
    Storefront add-to-cart with availability checks.

    Raises CartError when the product is unknown or unpublished, the variant
    is sold out, or the cart would hold more than the variant's stock.
    """
    try:
        variant_index = int(variant_index)
        quantity = parse_positive_int(quantity, "quantity")
    except (TypeError, ValueError) as exc:
        message = str(exc) if isinstance(exc, ValidationError) else "variant_index must be an integer"
        raise CartError(message)

    product = db.session.get(Product, product_id) if product_id else None
    if product is None or not product.is_published:
        raise CartError("Product not available", details={"product_id": product_id})

    variant = product.variant_at(variant_index)
    if variant is None:
        raise CartError("Variant not found", details={"product_id": product_id, "variant_index": variant_index})
    if variant.stock <= 0:
        raise CartError("This option is sold out", details={"product_id": product_id, "variant": variant.label})

    existing = find_line(cart, product.id, variant.label)
    in_cart = existing.quantity if existing else 0
    if in_cart + quantity > variant.stock:
        raise CartError(
            "Not enough stock",
            details={
                "product_id": product_id,
                "variant": variant.label,
                "available": variant.stock,
                "in_cart": in_cart,
                "requested": quantity,
            },
        )

    return add(cart, product, variant_index, quantity)
