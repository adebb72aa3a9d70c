"""Haversine distance and zone selection."""

import pytest

from storefront.services.delivery_zones import (
    OUTCOME_LOCATION_UNAVAILABLE,
    OUTCOME_MIN_ORDER_NOT_MET,
    OUTCOME_NO_COVERAGE,
    OUTCOME_RESOLVED,
    Coordinate,
    haversine_miles,
    resolve_delivery_zone,
)
from storefront.services.settings_service import ZoneSpec


ORIGIN = Coordinate(40.0, -74.0)
# One degree of latitude is ~69.09 miles at this earth radius
MILES_PER_DEG_LAT = 69.0934


def north_of(origin: Coordinate, miles: float) -> Coordinate:
    return Coordinate(origin.lat + miles / MILES_PER_DEG_LAT, origin.lng)


def zone(zone_id, fee=7, min_order=30, radius=5, center=ORIGIN, active=True):
    return ZoneSpec(
        id=zone_id, name=f"Zone {zone_id}", lat=center.lat, lng=center.lng,
        radius_miles=radius, fee=fee, min_order=min_order, active=active,
    )


def test_distance_to_self_is_zero():
    assert haversine_miles(ORIGIN, ORIGIN) == pytest.approx(0, abs=1e-9)


def test_distance_is_symmetric():
    other = Coordinate(34.05, -118.24)
    assert haversine_miles(ORIGIN, other) == pytest.approx(haversine_miles(other, ORIGIN))


def test_known_city_distance():
    nyc = Coordinate(40.7128, -74.0060)
    la = Coordinate(34.0522, -118.2437)
    assert haversine_miles(nyc, la) == pytest.approx(2445, rel=0.01)


def test_zone_three_miles_out_resolves_with_its_fee():
    shopper = north_of(ORIGIN, 3)
    result = resolve_delivery_zone(shopper, [zone("a")], subtotal=40)

    assert result.outcome == OUTCOME_RESOLVED
    assert result.ok
    assert result.zone.fee == 7
    assert result.distance_miles == pytest.approx(3, rel=0.01)


def test_below_zone_minimum_fails_and_names_the_zone():
    shopper = north_of(ORIGIN, 3)
    result = resolve_delivery_zone(shopper, [zone("a")], subtotal=20)

    assert result.outcome == OUTCOME_MIN_ORDER_NOT_MET
    assert not result.ok
    assert result.zone.id == "a"
    assert "30.00" in result.message


def test_outside_every_radius_is_no_coverage():
    shopper = north_of(ORIGIN, 12)
    result = resolve_delivery_zone(shopper, [zone("a"), zone("b", radius=10)], subtotal=100)

    assert result.outcome == OUTCOME_NO_COVERAGE
    assert result.zone is None


def test_cheapest_covering_zone_wins():
    shopper = north_of(ORIGIN, 1)
    zones = [zone("wide", fee=12, radius=10), zone("near", fee=5, radius=2)]

    assert resolve_delivery_zone(shopper, zones, subtotal=100).zone.id == "near"


def test_fee_tie_goes_to_first_listed_zone():
    shopper = north_of(ORIGIN, 1)
    zones = [zone("first", fee=5), zone("second", fee=5)]

    assert resolve_delivery_zone(shopper, zones, subtotal=100).zone.id == "first"
    assert resolve_delivery_zone(shopper, list(reversed(zones)), subtotal=100).zone.id == "second"


def test_inactive_zones_are_ignored():
    shopper = north_of(ORIGIN, 1)
    zones = [zone("cheap", fee=1, active=False), zone("open", fee=9)]

    assert resolve_delivery_zone(shopper, zones, subtotal=100).zone.id == "open"
    assert resolve_delivery_zone(shopper, zones[:1], subtotal=100).outcome == OUTCOME_NO_COVERAGE


def test_minimum_applies_to_the_cheapest_zone_only():
    # The cheaper zone's minimum is not met; a pricier covering zone is not tried instead
    shopper = north_of(ORIGIN, 1)
    zones = [zone("cheap", fee=3, min_order=80), zone("pricey", fee=9, min_order=0)]

    result = resolve_delivery_zone(shopper, zones, subtotal=50)
    assert result.outcome == OUTCOME_MIN_ORDER_NOT_MET
    assert result.zone.id == "cheap"


def test_radius_edge_is_inside():
    shopper = north_of(ORIGIN, 2)
    exact = haversine_miles(ORIGIN, shopper)

    assert resolve_delivery_zone(shopper, [zone("a", radius=exact + 1e-9)], subtotal=100).ok


def test_missing_position_is_location_unavailable():
    result = resolve_delivery_zone(None, [zone("a")], subtotal=100)

    assert result.outcome == OUTCOME_LOCATION_UNAVAILABLE
    assert result.to_dict()["zone_id"] is None


def test_resolution_is_deterministic():
    shopper = north_of(ORIGIN, 1.5)
    zones = [zone("a", fee=6), zone("b", fee=6), zone("c", fee=8)]

    results = {resolve_delivery_zone(shopper, zones, subtotal=60).zone.id for _ in range(5)}
    assert results == {"a"}
