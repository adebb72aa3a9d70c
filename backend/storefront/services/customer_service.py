# Overview: Customer accounts (phone + PIN), order history and buy-again.

"""
Customer accounts are keyed by normalized phone digits.

PINs are bcrypt-hashed. Registering an existing phone again replaces the name,
email and PIN; that is the only way to change a PIN (no reset flow).
"""

from __future__ import annotations

from dataclasses import dataclass, field

import bcrypt
from flask import current_app

from ..models import Cart, Customer
from ..validation import ValidationError, clean_str, normalize_phone
from . import cart_service
from .cart_service import CartError
from .catalog_store import CatalogStore
from .order_service import OrderNotFoundError


class CustomerValidationError(Exception):
    """Raised when registration or login input is malformed."""
    pass


def _config_int(key: str, default: int) -> int:
    try:
        return int(current_app.config.get(key, default))
    except RuntimeError:
        return default


def hash_pin(pin: str) -> str:
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(pin.encode("utf-8"), salt).decode("utf-8")


def verify_pin(pin: str, pin_hash: str) -> bool:
    try:
        return bcrypt.checkpw(pin.encode("utf-8"), pin_hash.encode("utf-8"))
    except ValueError:
        return False


def validate_phone(phone: str | None) -> str:
    digits = normalize_phone(phone)
    minimum = _config_int("PHONE_MIN_DIGITS", 4)
    if len(digits) < minimum:
        raise CustomerValidationError(f"Phone number must have at least {minimum} digits")
    return digits


def validate_pin(pin: str | None) -> str:
    pin = (pin or "").strip()
    minimum = _config_int("CUSTOMER_PIN_MIN_LENGTH", 4)
    if not pin.isdigit():
        raise CustomerValidationError("PIN must contain digits only")
    if len(pin) < minimum:
        raise CustomerValidationError(f"PIN must be at least {minimum} digits")
    return pin


def register_customer(name, phone, pin, email=None, store: CatalogStore | None = None) -> Customer:
    store = store or CatalogStore()
    phone = str(phone or "")
    try:
        name = clean_str(name, "name", required=True, max_length=128)
        email = clean_str(email, "email", max_length=255) or None
    except ValidationError as exc:
        raise CustomerValidationError(str(exc))
    digits = validate_phone(phone)
    pin = validate_pin(pin)

    customer = store.get_customer(digits)
    if customer is None:
        customer = Customer(id=digits)
    customer.name = name
    customer.phone = phone.strip()
    customer.email = email
    customer.pin_hash = hash_pin(pin)
    return store.save_customer(customer)


def authenticate(phone, pin, store: CatalogStore | None = None) -> Customer | None:
    store = store or CatalogStore()
    customer = store.get_customer(phone or "")
    if not customer or not pin:
        return None
    if not verify_pin(str(pin), customer.pin_hash):
        return None
    return customer


def order_history(phone: str, store: CatalogStore | None = None):
    """Orders placed under this phone (any formatting), newest first."""
    store = store or CatalogStore()
    return store.get_orders_for_phone(phone)


@dataclass
class BuyAgainResult:
    added: list[dict] = field(default_factory=list)
    partial: list[dict] = field(default_factory=list)
    missing: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "added": self.added,
            "partial": self.partial,
            "missing": self.missing,
            "added_count": len(self.added),
            "partial_count": len(self.partial),
            "missing_count": len(self.missing),
        }


def buy_again(cart: Cart, order_id: str, phone: str, store: CatalogStore | None = None) -> BuyAgainResult:
    """
    Re-add a past order's items to `cart` at today's prices.

    Items whose product is gone, unpublished, or whose variant no longer
    exists or is sold out are reported as missing. Quantities are clamped to
    what stock still allows given what the cart already holds.
    """
    store = store or CatalogStore()
    order = store.get_order((order_id or "").strip().upper())
    if not order or order.customer_phone_digits != normalize_phone(phone):
        raise OrderNotFoundError("Order not found")

    result = BuyAgainResult()
    for item in order.lines:
        ref = {"product_id": item.product_id, "variant_label": item.variant_label, "requested": item.quantity}
        product = store.get_product(item.product_id)
        if not product or not product.is_published:
            result.missing.append(ref)
            continue
        index = next((i for i, v in enumerate(product.variants) if v.label == item.variant_label), None)
        if index is None:
            result.missing.append(ref)
            continue
        variant = product.variants[index]
        existing = cart_service.find_line(cart, product.id, variant.label)
        available = variant.stock - (existing.quantity if existing else 0)
        if available <= 0:
            result.missing.append(ref)
            continue
        quantity = min(item.quantity, available)
        try:
            cart_service.add(cart, product, index, quantity)
        except CartError:
            result.missing.append(ref)
            continue
        entry = dict(ref, added=quantity)
        result.added.append(entry)
        if quantity < item.quantity:
            result.partial.append(entry)
    return result
