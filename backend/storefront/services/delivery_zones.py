# Overview: Delivery-zone geofencing over haversine distance.

"""
Delivery Zone Resolver

Given the shopper's coordinate (or the fact that geolocation failed), the
configured zones and the current subtotal, pick the cheapest active zone whose
radius covers the shopper and enforce that zone's minimum order.

Fee ties go to the zone listed first; zones are listed by `position`, so the
same inputs always resolve the same way.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from .settings_service import ZoneSpec


EARTH_RADIUS_MILES = 3958.8

OUTCOME_RESOLVED = "resolved"
OUTCOME_NO_COVERAGE = "no_coverage"
OUTCOME_MIN_ORDER_NOT_MET = "min_order_not_met"
OUTCOME_LOCATION_UNAVAILABLE = "location_unavailable"
OUTCOME_UNRESOLVED = "unresolved"

OUTCOME_MESSAGES = {
    OUTCOME_RESOLVED: "Delivery available",
    OUTCOME_NO_COVERAGE: "Sorry, we don't deliver to your location yet",
    OUTCOME_MIN_ORDER_NOT_MET: "Minimum order not met for this zone",
    OUTCOME_LOCATION_UNAVAILABLE: "Location unavailable; allow location access and try again",
    OUTCOME_UNRESOLVED: "Delivery location not checked yet",
}


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float


@dataclass(frozen=True)
class ZoneResolution:
    outcome: str
    zone: ZoneSpec | None = None
    distance_miles: float | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == OUTCOME_RESOLVED

    @property
    def message(self) -> str:
        if self.outcome == OUTCOME_MIN_ORDER_NOT_MET and self.zone is not None:
            return f"Minimum order for {self.zone.name} is {self.zone.min_order:.2f}"
        return OUTCOME_MESSAGES[self.outcome]

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome,
            "ok": self.ok,
            "message": self.message,
            "zone_id": self.zone.id if self.zone else None,
            "zone_name": self.zone.name if self.zone else None,
            "fee": self.zone.fee if self.zone else None,
            "min_order": self.zone.min_order if self.zone else None,
            "distance_miles": self.distance_miles,
        }


def haversine_miles(a: Coordinate, b: Coordinate) -> float:
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def covering_zones(position: Coordinate, zones: Iterable[ZoneSpec]) -> list[tuple[ZoneSpec, float]]:
    """Active zones whose radius covers `position`, in input order, with distances."""
    covering = []
    for zone in zones:
        if not zone.active:
            continue
        distance = haversine_miles(position, Coordinate(zone.lat, zone.lng))
        if distance <= zone.radius_miles:
            covering.append((zone, distance))
    return covering


def resolve_delivery_zone(
    position: Coordinate | None,
    zones: Iterable[ZoneSpec],
    subtotal: float,
) -> ZoneResolution:
    """`position=None` means geolocation was denied or failed."""
    if position is None:
        return ZoneResolution(OUTCOME_LOCATION_UNAVAILABLE)

    best: tuple[ZoneSpec, float] | None = None
    for zone, distance in covering_zones(position, zones):
        # strict '<' keeps the first zone on a fee tie
        if best is None or zone.fee < best[0].fee:
            best = (zone, distance)

    if best is None:
        return ZoneResolution(OUTCOME_NO_COVERAGE)

    zone, distance = best
    if subtotal < zone.min_order:
        return ZoneResolution(OUTCOME_MIN_ORDER_NOT_MET, zone=zone, distance_miles=distance)
    return ZoneResolution(OUTCOME_RESOLVED, zone=zone, distance_miles=distance)
