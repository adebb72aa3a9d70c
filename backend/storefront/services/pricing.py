# Overview: Pure pricing computation for a cart snapshot.

"""
Pricing Engine

subtotal -> discount -> taxable amount -> tax -> delivery fee -> total.

Inputs are a snapshot: line prices come from the cart lines (captured when the
item was added), never from the live catalog, and settings are passed in by
the caller. Nothing here touches the database. Amounts are carried at full
float precision; only format_money rounds.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Iterable, Protocol

from .settings_service import StoreSettings, ZoneSpec


FULFILLMENT_PICKUP = "Pickup"
FULFILLMENT_DELIVERY = "Delivery"
FULFILLMENT_TYPES = (FULFILLMENT_PICKUP, FULFILLMENT_DELIVERY)


class PricedLine(Protocol):
    unit_price: float
    quantity: int


@dataclass(frozen=True)
class PricingBreakdown:
    subtotal: float
    discount_percentage: float
    discount_amount: float
    taxable_amount: float
    tax_rate: float
    tax: float
    delivery_fee: float
    total: float
    fulfillment_type: str
    delivery_zone_name: str | None = None
    applied_referral_code: str | None = None
    # Delivery with zones configured but none resolved: fee is 0 and checkout is blocked
    delivery_zone_required: bool = False

    def to_dict(self, currency_symbol: str = "$") -> dict:
        data = asdict(self)
        data["display"] = {
            name: format_money(getattr(self, name), currency_symbol)
            for name in ("subtotal", "discount_amount", "taxable_amount", "tax", "delivery_fee", "total")
        }
        return data


def format_money(amount: float, currency_symbol: str = "$") -> str:
    return f"{currency_symbol}{amount:.2f}"


def subtotal_of(lines: Iterable[PricedLine]) -> float:
    return sum(line.unit_price * line.quantity for line in lines)


def meets_minimum_order(subtotal: float, settings: StoreSettings) -> bool:
    """Store-wide minimum; independent of any delivery zone minimum."""
    return subtotal >= settings.financials.min_order_amount


def delivery_fee_for(
    fulfillment_type: str,
    settings: StoreSettings,
    zone: ZoneSpec | None,
) -> tuple[float, bool]:
    """
    Returns (fee, zone_required).

    Pickup is free. Delivery uses the resolved zone's fee; with no zones
    configured at all it falls back to the flat fee setting; with zones
    configured but none resolved the fee is 0 and the order cannot be placed.
    """
    if fulfillment_type != FULFILLMENT_DELIVERY:
        return 0.0, False
    if zone is not None:
        return zone.fee, False
    if not settings.delivery.zones_configured:
        return settings.financials.delivery_fee, False
    return 0.0, True


def price_cart(
    lines: Iterable[PricedLine],
    settings: StoreSettings,
    fulfillment_type: str = FULFILLMENT_PICKUP,
    zone: ZoneSpec | None = None,
    promotion_code: str | None = None,
) -> PricingBreakdown:
    if fulfillment_type not in FULFILLMENT_TYPES:
        raise ValueError(f"Unknown fulfillment type: {fulfillment_type}")

    subtotal = subtotal_of(lines)

    percentage = settings.referral.percentage if promotion_code else 0.0
    discount_amount = subtotal * (percentage / 100)
    taxable_amount = subtotal - discount_amount

    tax_rate = settings.financials.tax_rate
    tax = taxable_amount * (tax_rate / 100)

    delivery_fee, zone_required = delivery_fee_for(fulfillment_type, settings, zone)

    return PricingBreakdown(
        subtotal=subtotal,
        discount_percentage=percentage,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_rate=tax_rate,
        tax=tax,
        delivery_fee=delivery_fee,
        total=taxable_amount + tax + delivery_fee,
        fulfillment_type=fulfillment_type,
        delivery_zone_name=zone.name if (zone is not None and fulfillment_type == FULFILLMENT_DELIVERY) else None,
        applied_referral_code=promotion_code or None,
        delivery_zone_required=zone_required,
    )


def loyalty_points_for(subtotal: float, settings: StoreSettings) -> int:
    """Points earned on an order: floor(subtotal x points-per-dollar), 0 when loyalty is off."""
    if not settings.loyalty.enabled:
        return 0
    return int(subtotal * settings.loyalty.points_per_dollar)
