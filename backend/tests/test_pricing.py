"""Pricing engine over plain line snapshots; no database."""

from dataclasses import dataclass, replace

import pytest

from storefront.services.pricing import (
    FULFILLMENT_DELIVERY,
    FULFILLMENT_PICKUP,
    format_money,
    loyalty_points_for,
    meets_minimum_order,
    price_cart,
)
from storefront.services.settings_service import (
    DeliverySettings,
    FinancialSettings,
    LoyaltySettings,
    ReferralSettings,
    StoreSettings,
    ZoneSpec,
)


@dataclass
class Line:
    unit_price: float
    quantity: int


def make_settings(tax_rate=0, delivery_fee=10, min_order=0, referral_pct=10, zones=()):
    return StoreSettings(
        financials=FinancialSettings(tax_rate=tax_rate, delivery_fee=delivery_fee, min_order_amount=min_order),
        referral=ReferralSettings(enabled=True, percentage=referral_pct),
        delivery=DeliverySettings(enabled=True, zones=tuple(zones)),
    )


ZONE = ZoneSpec(id="z1", name="Midtown", lat=40.0, lng=-73.0, radius_miles=5, fee=7, min_order=30)


def test_pickup_with_tax_and_no_promotion():
    breakdown = price_cart([Line(50, 2)], make_settings(tax_rate=5))

    assert breakdown.subtotal == pytest.approx(100)
    assert breakdown.discount_amount == 0
    assert breakdown.tax == pytest.approx(5)
    assert breakdown.delivery_fee == 0
    assert breakdown.total == pytest.approx(105)


def test_referral_discount_applies_before_tax():
    breakdown = price_cart([Line(100, 1)], make_settings(tax_rate=5, referral_pct=20), promotion_code="REF-ABCDEF")

    assert breakdown.discount_percentage == 20
    assert breakdown.discount_amount == pytest.approx(20)
    assert breakdown.taxable_amount == pytest.approx(80)
    assert breakdown.tax == pytest.approx(4)
    assert breakdown.total == pytest.approx(84)
    assert breakdown.applied_referral_code == "REF-ABCDEF"


def test_delivery_without_zones_uses_flat_fee():
    breakdown = price_cart([Line(25, 2)], make_settings(delivery_fee=5), fulfillment_type=FULFILLMENT_DELIVERY)

    assert breakdown.delivery_fee == pytest.approx(5)
    assert breakdown.total == pytest.approx(55)
    assert breakdown.delivery_zone_required is False


def test_delivery_with_resolved_zone_uses_zone_fee():
    settings = make_settings(delivery_fee=10, zones=[ZONE])
    breakdown = price_cart([Line(40, 1)], settings, fulfillment_type=FULFILLMENT_DELIVERY, zone=ZONE)

    assert breakdown.delivery_fee == pytest.approx(7)
    assert breakdown.total == pytest.approx(47)
    assert breakdown.delivery_zone_name == "Midtown"


def test_delivery_with_zones_but_none_resolved_is_blocked_and_free():
    settings = make_settings(delivery_fee=10, zones=[ZONE])
    breakdown = price_cart([Line(40, 1)], settings, fulfillment_type=FULFILLMENT_DELIVERY)

    assert breakdown.delivery_fee == 0
    assert breakdown.delivery_zone_required is True


def test_pickup_ignores_zone_and_flat_fee():
    settings = make_settings(delivery_fee=10, zones=[ZONE])
    breakdown = price_cart([Line(40, 1)], settings, fulfillment_type=FULFILLMENT_PICKUP, zone=ZONE)

    assert breakdown.delivery_fee == 0
    assert breakdown.delivery_zone_name is None


def test_empty_cart_prices_to_zero():
    breakdown = price_cart([], make_settings(tax_rate=8.875))

    assert breakdown.subtotal == 0
    assert breakdown.total == 0


def test_full_precision_is_kept_until_display():
    breakdown = price_cart([Line(9.99, 3)], make_settings(tax_rate=8.875))

    assert breakdown.tax == pytest.approx(29.97 * 0.08875)
    assert breakdown.to_dict()["display"]["tax"] == "$2.66"
    assert format_money(2.5, "€") == "€2.50"


def test_unknown_fulfillment_type_is_rejected():
    with pytest.raises(ValueError):
        price_cart([Line(10, 1)], make_settings(), fulfillment_type="Drone")


def test_minimum_order_boundary_is_inclusive():
    settings = make_settings(min_order=50)

    assert meets_minimum_order(50, settings)
    assert not meets_minimum_order(49.99, settings)


def test_loyalty_points_floor_and_switch():
    settings = replace(make_settings(), loyalty=LoyaltySettings(enabled=True, points_per_dollar=1.5))

    assert loyalty_points_for(10.9, settings) == 16
    assert loyalty_points_for(10.9, replace(settings, loyalty=LoyaltySettings(enabled=False))) == 0
