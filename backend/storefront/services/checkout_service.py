# Overview: Checkout session over a cart; wires contact, fulfillment, zone, promotion and pricing into order placement.

"""
Checkout session state lives on the Cart row: draft contact, fulfillment type,
the applied-promotion slot and the last zone resolution. Each call here loads
settings fresh and prices the cart snapshot; nothing is cached between calls.

Ordering rules:
- a referral code can only be applied once a phone number is on file;
  changing the phone drops an applied code (the self-referral check used it)
- leaving Delivery drops the zone resolution
- the delivery-zone gate is enforced at placement, not before
"""

from __future__ import annotations

from ..models import Cart
from ..validation import ValidationError, clean_str, normalize_phone
from . import cart_service, order_service
from .catalog_store import CatalogStore
from .delivery_zones import (
    Coordinate,
    ZoneResolution,
    OUTCOME_MESSAGES,
    OUTCOME_RESOLVED,
    OUTCOME_UNRESOLVED,
    resolve_delivery_zone,
)
from .order_service import CheckoutBlockedError, CustomerInfo, enabled_payment_methods
from .persistence import commit_or_raise
from .pricing import (
    FULFILLMENT_DELIVERY,
    FULFILLMENT_PICKUP,
    FULFILLMENT_TYPES,
    PricingBreakdown,
    loyalty_points_for,
    meets_minimum_order,
    price_cart,
    subtotal_of,
)
from .referrals import REASON_PROGRAM_DISABLED, PromotionError, validate_referral_code
from .settings_service import StoreSettings, ZoneSpec


class CheckoutError(Exception):
    """Raised for checkout input and sequencing errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class DeliveryZoneError(CheckoutError):
    """Zone resolution failed; `outcome` is one of the delivery_zones OUTCOME_* codes."""
    def __init__(self, resolution: ZoneResolution):
        super().__init__(resolution.message, details=resolution.to_dict())
        self.outcome = resolution.outcome
        self.resolution = resolution


def update_contact(cart: Cart, data: dict) -> Cart:
    try:
        name = clean_str(data.get("name", cart.customer_name), "name", max_length=128)
        phone = clean_str(data.get("phone", cart.customer_phone), "phone", max_length=32)
        email = clean_str(data.get("email", cart.customer_email), "email", max_length=255)
    except ValidationError as exc:
        raise CheckoutError(str(exc))

    if normalize_phone(phone) != normalize_phone(cart.customer_phone):
        cart.applied_referral_code = None

    cart.customer_name = name or None
    cart.customer_phone = phone or None
    cart.customer_email = email or None
    commit_or_raise("Failed to save contact info")
    return cart


def set_fulfillment(cart: Cart, fulfillment_type: str, settings: StoreSettings) -> Cart:
    if fulfillment_type not in FULFILLMENT_TYPES:
        raise CheckoutError(
            "Unknown fulfillment type",
            details={"fulfillment_type": fulfillment_type, "allowed": list(FULFILLMENT_TYPES)},
        )
    if fulfillment_type == FULFILLMENT_DELIVERY and not settings.delivery.enabled:
        raise CheckoutError("Delivery is not available")

    if fulfillment_type != FULFILLMENT_DELIVERY:
        cart_service.reset_zone_resolution(cart)
    cart.fulfillment_type = fulfillment_type
    commit_or_raise("Failed to save checkout")
    return cart


def check_delivery_zone(cart: Cart, position: Coordinate | None, settings: StoreSettings) -> ZoneResolution:
    """
    Resolve the cart's delivery zone from the shopper's position.

    Always records the outcome on the cart. Raises DeliveryZoneError for any
    outcome other than resolved, so the caller can show it inline.
    """
    if cart.fulfillment_type != FULFILLMENT_DELIVERY:
        raise CheckoutError("Select delivery before checking your location")
    if not settings.delivery.zones_configured:
        raise CheckoutError("No delivery zones configured; the flat delivery fee applies")

    resolution = resolve_delivery_zone(position, settings.delivery.zones, subtotal_of(cart.lines))

    cart_service.reset_zone_resolution(cart)
    cart.zone_status = resolution.outcome
    if resolution.ok:
        cart.resolved_zone_id = resolution.zone.id
        cart.resolved_zone_name = resolution.zone.name
        cart.resolved_zone_fee = resolution.zone.fee
        cart.resolved_zone_min_order = resolution.zone.min_order
    commit_or_raise("Failed to save delivery zone")

    if not resolution.ok:
        raise DeliveryZoneError(resolution)
    return resolution


def resolved_zone(cart: Cart, settings: StoreSettings) -> ZoneSpec | None:
    """
    The zone to price with, looked up in current settings.

    A zone that was resolved but has since been deleted or deactivated no
    longer counts.
    """
    if cart.fulfillment_type != FULFILLMENT_DELIVERY or cart.zone_status != OUTCOME_RESOLVED:
        return None
    for zone in settings.delivery.zones:
        if zone.id == cart.resolved_zone_id and zone.active:
            return zone
    return None


def apply_promotion(cart: Cart, code: str, settings: StoreSettings, store: CatalogStore | None = None) -> Cart:
    """Fill the promotion slot. On any rejection the slot keeps its previous value."""
    store = store or CatalogStore()
    if not settings.referral.enabled:
        raise PromotionError(REASON_PROGRAM_DISABLED)
    if not normalize_phone(cart.customer_phone):
        raise CheckoutError("Enter your phone number before applying a referral code")

    cart.applied_referral_code = validate_referral_code(code, cart.customer_phone, store.get_orders())
    commit_or_raise("Failed to save referral code")
    return cart


def remove_promotion(cart: Cart) -> Cart:
    cart.applied_referral_code = None
    commit_or_raise("Failed to save referral code")
    return cart


def price(cart: Cart, settings: StoreSettings) -> PricingBreakdown:
    promotion = cart.applied_referral_code if settings.referral.enabled else None
    return price_cart(
        cart.lines,
        settings,
        fulfillment_type=cart.fulfillment_type,
        zone=resolved_zone(cart, settings),
        promotion_code=promotion,
    )


def blockers(cart: Cart, settings: StoreSettings, breakdown: PricingBreakdown) -> list[str]:
    """Reasons the cart cannot be placed right now, in the order a shopper fixes them."""
    reasons = []
    if not cart.lines:
        reasons.append("Cart is empty")
    if not meets_minimum_order(breakdown.subtotal, settings):
        short = settings.financials.min_order_amount - breakdown.subtotal
        reasons.append(
            f"Minimum order amount is {settings.financials.currency_symbol}{settings.financials.min_order_amount:.2f}. "
            f"Add {settings.financials.currency_symbol}{short:.2f} more to checkout."
        )
    if not (cart.customer_name or "").strip() or not normalize_phone(cart.customer_phone):
        reasons.append("Please fill in your name and phone number")
    if breakdown.delivery_zone_required:
        status = cart.zone_status if cart.zone_status in OUTCOME_MESSAGES else OUTCOME_UNRESOLVED
        if status == OUTCOME_RESOLVED:
            reasons.append("Your delivery zone is no longer available; check your location again")
        else:
            reasons.append(OUTCOME_MESSAGES[status])
    zone = resolved_zone(cart, settings)
    if zone is not None and breakdown.subtotal < zone.min_order:
        reasons.append(
            f"Minimum order for {zone.name} is {settings.financials.currency_symbol}{zone.min_order:.2f}"
        )
    return reasons


def summary(cart: Cart, settings: StoreSettings) -> dict:
    breakdown = price(cart, settings)
    return {
        "cart": cart.to_dict(),
        "pricing": breakdown.to_dict(settings.financials.currency_symbol),
        "min_order_amount": settings.financials.min_order_amount,
        "min_order_met": meets_minimum_order(breakdown.subtotal, settings),
        "payment_methods": enabled_payment_methods(settings),
        "fulfillment_types": [FULFILLMENT_PICKUP, FULFILLMENT_DELIVERY] if settings.delivery.enabled else [FULFILLMENT_PICKUP],
        "loyalty_points_preview": loyalty_points_for(breakdown.subtotal, settings),
        "referral_percentage": settings.referral.percentage if settings.referral.enabled else 0,
        "blockers": blockers(cart, settings, breakdown),
    }


def place_order(cart: Cart, payment_method: str, settings: StoreSettings, store: CatalogStore | None = None):
    """
    Run the checkout gates in order, then hand off to the order finalizer.

    1. minimum order
    2. delivery zone (Delivery with zones configured)
    3. applied referral code still redeemable
    """
    store = store or CatalogStore()
    subtotal = subtotal_of(cart.lines)
    if cart.lines and not meets_minimum_order(subtotal, settings):
        raise CheckoutError(
            "Minimum order not met",
            details={"min_order_amount": settings.financials.min_order_amount, "subtotal": subtotal},
        )

    zone = resolved_zone(cart, settings)
    if cart.fulfillment_type == FULFILLMENT_DELIVERY and settings.delivery.zones_configured:
        if zone is None:
            status = cart.zone_status if cart.zone_status != OUTCOME_RESOLVED else OUTCOME_UNRESOLVED
            raise CheckoutBlockedError(
                "Check your delivery location before placing the order",
                details={"zone_status": status},
            )
        if subtotal < zone.min_order:
            raise CheckoutBlockedError(
                f"Minimum order for {zone.name} is {zone.min_order:.2f}",
                details={"zone": zone.name, "min_order": zone.min_order, "subtotal": subtotal},
            )

    promotion = cart.applied_referral_code
    if promotion:
        try:
            if not settings.referral.enabled:
                raise PromotionError(REASON_PROGRAM_DISABLED)
            validate_referral_code(promotion, cart.customer_phone, store.get_orders())
        except PromotionError:
            cart.applied_referral_code = None
            commit_or_raise("Failed to save referral code")
            raise

    breakdown = price(cart, settings)
    customer = CustomerInfo(
        name=cart.customer_name or "",
        phone=cart.customer_phone or "",
        email=cart.customer_email,
    )
    return order_service.place_order(
        cart,
        customer,
        cart.fulfillment_type,
        payment_method,
        breakdown,
        zone,
        promotion,
        settings=settings,
        store=store,
    )
