# Overview: Service-layer operations for store settings and delivery zones.

"""
Store settings are loaded into an immutable StoreSettings value at call time
and passed explicitly into pricing and zone resolution. The only writer is
update_settings (plus the zone CRUD below); everything else reads.
"""

from __future__ import annotations

import secrets
from dataclasses import asdict, dataclass, field
from typing import Any

from ..extensions import db
from ..models import StoreSetting, SettingAudit, DeliveryZone
from ..settings_catalog import SETTINGS_CATALOG, SETTINGS_BY_KEY
from ..validation import ValidationError, parse_amount, parse_bool, clean_str
from .persistence import commit_or_raise


class SettingsError(ValueError):
    pass


class SettingsValidationError(SettingsError):
    pass


class SettingsNotFoundError(SettingsError):
    pass


@dataclass(frozen=True)
class FinancialSettings:
    tax_rate: float = 0
    delivery_fee: float = 10
    min_order_amount: float = 0
    currency_symbol: str = "$"


@dataclass(frozen=True)
class PaymentSettings:
    online: bool = False
    cash_in_store: bool = True
    card_in_store: bool = True
    crypto: bool = False


@dataclass(frozen=True)
class LoyaltySettings:
    enabled: bool = True
    points_per_dollar: float = 1


@dataclass(frozen=True)
class ReferralSettings:
    enabled: bool = True
    percentage: float = 10


@dataclass(frozen=True)
class MessageSettings:
    enabled: bool = True
    template: str = "Thanks for shopping with us! Enjoy your lift-off."


@dataclass(frozen=True)
class InventorySettings:
    low_stock_threshold: int = 5


@dataclass(frozen=True)
class ZoneSpec:
    """Read-only view of a DeliveryZone row, as consumed by zone resolution."""
    id: str
    name: str
    lat: float
    lng: float
    radius_miles: float
    fee: float
    min_order: float
    active: bool = True
    center_address: str | None = None


@dataclass(frozen=True)
class DeliverySettings:
    enabled: bool = False
    zones: tuple[ZoneSpec, ...] = ()

    @property
    def zones_configured(self) -> bool:
        return len(self.zones) > 0


@dataclass(frozen=True)
class StoreSettings:
    store_name: str = "Billionaire Level"
    admin_pin: str = "4200"
    maintenance_mode: bool = False
    financials: FinancialSettings = field(default_factory=FinancialSettings)
    payments: PaymentSettings = field(default_factory=PaymentSettings)
    loyalty: LoyaltySettings = field(default_factory=LoyaltySettings)
    referral: ReferralSettings = field(default_factory=ReferralSettings)
    messages: MessageSettings = field(default_factory=MessageSettings)
    inventory: InventorySettings = field(default_factory=InventorySettings)
    delivery: DeliverySettings = field(default_factory=DeliverySettings)

    def to_dict(self, include_sensitive: bool = False) -> dict:
        data = {
            "store_name": self.store_name,
            "maintenance_mode": self.maintenance_mode,
            "financials": asdict(self.financials),
            "payments": asdict(self.payments),
            "loyalty": asdict(self.loyalty),
            "referral": asdict(self.referral),
            "messages": asdict(self.messages),
            "inventory": asdict(self.inventory),
            "delivery": {
                "enabled": self.delivery.enabled,
                "zones": [asdict(z) for z in self.delivery.zones],
            },
        }
        if include_sensitive:
            data["admin_pin"] = self.admin_pin
        return data


_SECTIONS = {
    "financials": FinancialSettings,
    "payments": PaymentSettings,
    "loyalty": LoyaltySettings,
    "referral": ReferralSettings,
    "messages": MessageSettings,
    "inventory": InventorySettings,
}


def zone_spec(zone: DeliveryZone) -> ZoneSpec:
    return ZoneSpec(
        id=zone.id,
        name=zone.name,
        lat=zone.lat,
        lng=zone.lng,
        radius_miles=zone.radius_miles,
        fee=zone.fee,
        min_order=zone.min_order,
        active=bool(zone.is_active),
        center_address=zone.center_address,
    )


def _stored_values() -> dict[str, Any]:
    return {row.key: row.value for row in db.session.query(StoreSetting).all()}


def load_settings() -> StoreSettings:
    """
    Build the current StoreSettings.

    Keys never written fall back to catalog defaults, so settings added in a
    later release appear without a data migration.
    """
    stored = _stored_values()
    values = {row["key"]: stored.get(row["key"], row["default"]) for row in SETTINGS_CATALOG}

    sections: dict[str, dict[str, Any]] = {name: {} for name in _SECTIONS}
    top: dict[str, Any] = {}
    for key, value in values.items():
        if "." in key:
            section, attr = key.split(".", 1)
            if section in sections:
                sections[section][attr] = value
            continue
        top[key] = value

    zones = tuple(
        zone_spec(z)
        for z in db.session.query(DeliveryZone).order_by(DeliveryZone.position.asc(), DeliveryZone.created_at.asc()).all()
    )

    return StoreSettings(
        store_name=top["store_name"],
        admin_pin=str(top["admin_pin"]),
        maintenance_mode=bool(top["maintenance_mode"]),
        delivery=DeliverySettings(enabled=bool(values["delivery.enabled"]), zones=zones),
        **{name: cls(**sections[name]) for name, cls in _SECTIONS.items()},
    )


def _flatten(patch: dict, prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in patch.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


def validate_setting_value(key: str, value: Any) -> Any:
    row = SETTINGS_BY_KEY.get(key)
    if row is None:
        raise SettingsValidationError(f"Unknown setting: {key}")
    rules = row.get("validation") or {}
    value_type = row["type"]
    try:
        if value_type == "bool":
            return parse_bool(value, key)
        if value_type == "percent":
            return parse_amount(value, key, minimum=0, maximum=100)
        if value_type == "money":
            return parse_amount(value, key)
        if value_type == "int":
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(f"{key} must be a non-negative integer")
            return value
        if value_type == "pin":
            pin = clean_str(value, key, required=True)
            if not pin.isdigit():
                raise ValidationError(f"{key} must contain digits only")
            if len(pin) < rules.get("min_length", 0) or len(pin) > rules.get("max_length", 64):
                raise ValidationError(
                    f"{key} must be {rules['min_length']}-{rules['max_length']} digits"
                )
            return pin
        return clean_str(value, key, required=True, max_length=rules.get("max_length"))
    except ValidationError as exc:
        raise SettingsValidationError(str(exc))


def update_settings(patch: dict, *, changed_by: str | None = None) -> StoreSettings:
    """
    Validate and persist a (possibly nested) settings patch.

    The whole patch is validated before anything is written; a single bad key
    rejects the patch. Each changed key gets a SettingAudit row.
    """
    if not isinstance(patch, dict) or not patch:
        raise SettingsValidationError("Settings patch must be a non-empty object")

    flat = _flatten(patch)
    if "delivery.zones" in flat:
        raise SettingsValidationError("Delivery zones are managed through the zones endpoints")
    cleaned = {key: validate_setting_value(key, value) for key, value in flat.items()}

    existing = {row.key: row for row in db.session.query(StoreSetting).filter(StoreSetting.key.in_(cleaned.keys())).all()}
    for key, value in cleaned.items():
        row = existing.get(key)
        old_value = row.value if row else SETTINGS_BY_KEY[key]["default"]
        if row is None:
            row = StoreSetting(key=key)
            db.session.add(row)
        row.value = value
        row.updated_by = changed_by
        if old_value != value:
            audit_old, audit_new = old_value, value
            if SETTINGS_BY_KEY[key].get("is_sensitive"):
                audit_old, audit_new = "***", "***"
            db.session.add(SettingAudit(key=key, old_value=audit_old, new_value=audit_new, changed_by=changed_by))

    _commit()
    return load_settings()


def _commit() -> None:
    commit_or_raise("Failed to save settings")


# ---------------------------------------------------------------------------
# Delivery zones
# ---------------------------------------------------------------------------

def _clean_zone_payload(data: dict, *, partial: bool) -> dict:
    fields: dict[str, Any] = {}
    required = ("name", "lat", "lng", "radius_miles")
    if not partial:
        missing = [f for f in required if data.get(f) in (None, "")]
        if missing:
            raise SettingsValidationError(f"Missing required fields: {', '.join(missing)}")
    try:
        if "name" in data:
            fields["name"] = clean_str(data["name"], "name", required=True, max_length=128)
        if "center_address" in data:
            fields["center_address"] = clean_str(data["center_address"], "center_address", max_length=255)
        if "lat" in data:
            fields["lat"] = parse_amount(data["lat"], "lat", minimum=-90, maximum=90)
        if "lng" in data:
            fields["lng"] = parse_amount(data["lng"], "lng", minimum=-180, maximum=180)
        if "radius_miles" in data:
            fields["radius_miles"] = parse_amount(data["radius_miles"], "radius_miles")
        if "fee" in data:
            fields["fee"] = parse_amount(data["fee"], "fee")
        if "min_order" in data:
            fields["min_order"] = parse_amount(data["min_order"], "min_order")
        if "active" in data:
            fields["is_active"] = parse_bool(data["active"], "active")
    except ValidationError as exc:
        raise SettingsValidationError(str(exc))
    return fields


def list_zones() -> list[DeliveryZone]:
    return db.session.query(DeliveryZone).order_by(DeliveryZone.position.asc(), DeliveryZone.created_at.asc()).all()


def create_zone(data: dict, *, changed_by: str | None = None) -> DeliveryZone:
    fields = _clean_zone_payload(data, partial=False)
    last = db.session.query(db.func.max(DeliveryZone.position)).scalar()
    values = {"fee": 0, "min_order": 0, "is_active": True}
    values.update(fields)
    zone = DeliveryZone(
        id=secrets.token_hex(6),
        position=(last + 1) if last is not None else 0,
        **values,
    )
    db.session.add(zone)
    db.session.add(SettingAudit(key=f"delivery.zones.{zone.id}", old_value=None, new_value=zone.to_dict(), changed_by=changed_by))
    _commit()
    return zone


def update_zone(zone_id: str, data: dict, *, changed_by: str | None = None) -> DeliveryZone:
    zone = db.session.get(DeliveryZone, zone_id)
    if not zone:
        raise SettingsNotFoundError("Delivery zone not found")
    fields = _clean_zone_payload(data, partial=True)
    before = zone.to_dict()
    for key, value in fields.items():
        setattr(zone, key, value)
    db.session.add(SettingAudit(key=f"delivery.zones.{zone.id}", old_value=before, new_value=zone.to_dict(), changed_by=changed_by))
    _commit()
    return zone


def delete_zone(zone_id: str, *, changed_by: str | None = None) -> None:
    zone = db.session.get(DeliveryZone, zone_id)
    if not zone:
        raise SettingsNotFoundError("Delivery zone not found")
    db.session.add(SettingAudit(key=f"delivery.zones.{zone.id}", old_value=zone.to_dict(), new_value=None, changed_by=changed_by))
    db.session.delete(zone)
    _commit()
