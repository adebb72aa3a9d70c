# Overview: Order finalization and staff status transitions.

"""
Order Finalizer

place_order turns a priced cart into an Order in one unit of work: the order,
its line snapshot and the emptied cart commit together or not at all.
Stock is not decremented here; staff manage stock separately.
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from ..models import Cart, Order, OrderLine, OrderStatusChange
from ..time_utils import utcnow
from ..validation import normalize_phone
from . import cart_service
from .catalog_store import CatalogStore, PersistenceError
from .order_status import OrderStatus, validate_transition
from .pricing import FULFILLMENT_DELIVERY, FULFILLMENT_TYPES, PricingBreakdown, loyalty_points_for
from .referrals import generate_referral_code
from .settings_service import StoreSettings, ZoneSpec


PAYMENT_CASH = "Cash"
PAYMENT_CARD = "Card"
PAYMENT_ONLINE = "Online"
PAYMENT_CRYPTO = "Crypto"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CARD, PAYMENT_ONLINE, PAYMENT_CRYPTO)

ORDER_ID_ALPHABET = string.ascii_uppercase + string.digits
ORDER_ID_LENGTH = 9


class OrderError(Exception):
    """Raised for order placement and lookup errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class OrderValidationError(OrderError):
    pass


class CheckoutBlockedError(OrderError):
    pass


class OrderNotFoundError(OrderError):
    pass


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    phone: str
    email: str | None = None


def enabled_payment_methods(settings: StoreSettings) -> list[str]:
    flags = {
        PAYMENT_CASH: settings.payments.cash_in_store,
        PAYMENT_CARD: settings.payments.card_in_store,
        PAYMENT_ONLINE: settings.payments.online,
        PAYMENT_CRYPTO: settings.payments.crypto,
    }
    return [method for method in PAYMENT_METHODS if flags[method]]


def generate_order_id(is_taken, *, attempts: int = 20) -> str:
    for _ in range(attempts):
        order_id = "".join(secrets.choice(ORDER_ID_ALPHABET) for _ in range(ORDER_ID_LENGTH))
        if not is_taken(order_id):
            return order_id
    raise OrderError("Could not allocate a unique order id")


def _check_preconditions(
    cart: Cart,
    customer: CustomerInfo,
    fulfillment_type: str,
    payment_method: str,
    breakdown: PricingBreakdown,
    resolved_zone: ZoneSpec | None,
    settings: StoreSettings,
) -> None:
    if not (customer.name or "").strip() or not (customer.phone or "").strip():
        raise OrderValidationError("Please fill in your name and phone number")
    if not normalize_phone(customer.phone):
        raise OrderValidationError("Phone number must contain digits")
    if not cart.lines:
        raise OrderValidationError("Cart is empty")
    if fulfillment_type not in FULFILLMENT_TYPES:
        raise OrderValidationError(f"Unknown fulfillment type: {fulfillment_type}")
    if payment_method not in enabled_payment_methods(settings):
        raise OrderValidationError(
            "Payment method not available",
            details={"payment_method": payment_method, "allowed": enabled_payment_methods(settings)},
        )
    if breakdown.fulfillment_type != fulfillment_type:
        raise OrderValidationError("Pricing does not match the selected fulfillment type")
    if fulfillment_type == FULFILLMENT_DELIVERY and settings.delivery.zones_configured:
        if resolved_zone is None or breakdown.delivery_zone_required:
            raise CheckoutBlockedError("Check your delivery location before placing the order")


def place_order(
    cart: Cart,
    customer: CustomerInfo,
    fulfillment_type: str,
    payment_method: str,
    breakdown: PricingBreakdown,
    resolved_zone: ZoneSpec | None,
    applied_promotion_code: str | None,
    *,
    settings: StoreSettings,
    store: CatalogStore | None = None,
) -> Order:
    """
    Finalize `cart` into a Placed order and empty the cart.

    Every precondition is checked before anything is written; a persistence
    failure rolls the whole unit back and raises PersistenceError.
    """
    store = store or CatalogStore()
    _check_preconditions(cart, customer, fulfillment_type, payment_method, breakdown, resolved_zone, settings)

    order = Order(
        id=generate_order_id(store.order_id_exists),
        customer_name=customer.name.strip(),
        customer_phone=customer.phone.strip(),
        customer_phone_digits=normalize_phone(customer.phone),
        customer_email=(customer.email or "").strip() or None,
        subtotal=breakdown.subtotal,
        discount_amount=breakdown.discount_amount,
        tax=breakdown.tax,
        delivery_fee=breakdown.delivery_fee,
        total=breakdown.taxable_amount + breakdown.tax + breakdown.delivery_fee,
        tax_rate=breakdown.tax_rate,
        discount_percentage=breakdown.discount_percentage,
        status=OrderStatus.PLACED.value,
        fulfillment_type=fulfillment_type,
        payment_method=payment_method,
        generated_referral_code=generate_referral_code(store.referral_code_exists),
        applied_referral_code=applied_promotion_code or None,
        delivery_zone_name=resolved_zone.name if (resolved_zone and fulfillment_type == FULFILLMENT_DELIVERY) else None,
        loyalty_points=loyalty_points_for(breakdown.subtotal, settings),
        created_at=utcnow(),
    )
    for position, line in enumerate(cart.lines):
        order.lines.append(OrderLine(
            position=position,
            product_id=line.product_id,
            product_name=line.product_name,
            brand=line.brand,
            category=line.category,
            variant_label=line.variant_label,
            unit_price=line.unit_price,
            weight_grams=line.weight_grams,
            quantity=line.quantity,
            line_total=line.unit_price * line.quantity,
        ))

    # Remember the contact for the next checkout on this cart
    cart.customer_name = order.customer_name
    cart.customer_phone = order.customer_phone
    cart.customer_email = order.customer_email

    try:
        order = store.save_order(order, commit=False)
        cart_service.clear(cart, commit=False)
    except SQLAlchemyError as exc:
        store.rollback()
        raise PersistenceError("Failed to save order") from exc
    store.commit("Failed to save order")
    return order


def get_order(order_id: str, store: CatalogStore | None = None) -> Order:
    store = store or CatalogStore()
    order = store.get_order((order_id or "").strip().upper())
    if not order:
        raise OrderNotFoundError("Order not found")
    return order


def list_orders(status: str | None = None, store: CatalogStore | None = None) -> list[Order]:
    store = store or CatalogStore()
    orders = store.get_orders()
    if status:
        orders = [o for o in orders if o.status == status]
    return orders


def transition_status(
    order_id: str,
    new_status: str,
    *,
    changed_by: str | None = None,
    note: str | None = None,
    store: CatalogStore | None = None,
) -> Order:
    """
    The single entry point for changing an order's status.

    Raises InvalidTransitionError for anything that is not an edge of the
    state machine (e.g. Cancelled -> Accepted); nothing is written then.
    """
    store = store or CatalogStore()
    order = get_order(order_id, store)
    target = validate_transition(order.status, new_status)

    store.session.add(OrderStatusChange(
        order_id=order.id,
        from_status=order.status,
        to_status=target.value,
        changed_by=changed_by,
        note=note,
        occurred_at=utcnow(),
    ))
    order.status = target.value
    store.save_order(order)
    return order


def pickup_message(order: Order, settings: StoreSettings) -> str | None:
    """Thank-you text staff send on pickup; None when messages are off."""
    if not settings.messages.enabled:
        return None
    return f"Hi {order.customer_name}, thanks for picking up from {settings.store_name}! {settings.messages.template}"
