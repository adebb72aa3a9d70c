from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class StoreSetting(db.Model):
    """
    Key-value store settings ("financials.tax_rate", "referral.percentage", ...).

    Keys missing from this table fall back to the defaults in settings_catalog.
    """
    __tablename__ = "store_settings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), nullable=False, unique=True, index=True)
    value = db.Column(db.JSON, nullable=True)

    updated_by = db.Column(db.String(64), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "key": self.key,
            "value": self.value,
            "updated_by": self.updated_by,
            "updated_at": to_utc_z(self.updated_at),
        }


class SettingAudit(db.Model):
    """Append-only record of every settings and delivery-zone change."""
    __tablename__ = "setting_audits"
    __table_args__ = (
        db.Index("ix_setting_audits_key_created", "key", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), nullable=False)
    old_value = db.Column(db.JSON, nullable=True)
    new_value = db.Column(db.JSON, nullable=True)
    changed_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "key": self.key,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "changed_by": self.changed_by,
            "created_at": to_utc_z(self.created_at),
        }


class DeliveryZone(db.Model):
    """
    Geofenced circular delivery area with its own flat fee and minimum order.

    Zones are listed in `position` order; that order breaks fee ties during
    resolution, so it must stay stable.
    """
    __tablename__ = "delivery_zones"
    __table_args__ = (
        db.CheckConstraint("radius_miles >= 0", name="ck_delivery_zones_radius"),
        db.CheckConstraint("fee >= 0", name="ck_delivery_zones_fee"),
        db.CheckConstraint("min_order >= 0", name="ck_delivery_zones_min_order"),
    )

    id = db.Column(db.String(32), primary_key=True)
    position = db.Column(db.Integer, nullable=False, default=0, index=True)

    name = db.Column(db.String(128), nullable=False)
    center_address = db.Column(db.String(255), nullable=True)
    lat = db.Column(db.Float, nullable=False)
    lng = db.Column(db.Float, nullable=False)
    radius_miles = db.Column(db.Float, nullable=False)
    fee = db.Column(db.Float, nullable=False, default=0)
    min_order = db.Column(db.Float, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "center_address": self.center_address,
            "lat": self.lat,
            "lng": self.lng,
            "radius_miles": self.radius_miles,
            "fee": self.fee,
            "min_order": self.min_order,
            "active": self.is_active,
        }
