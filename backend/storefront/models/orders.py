from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_epoch_ms


class Order(db.Model):
    """
    A finalized storefront order.

    Pricing components are written once at checkout from a single pricing
    breakdown; `status` is the only column staff change afterwards. Orders are
    never deleted, cancellation is a status.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_status_created", "status", "created_at"),
        db.Index("ix_orders_applied_referral_status", "applied_referral_code", "status"),
    )

    # Business identifier (e.g. "K3X9M2P7Q")
    id = db.Column(db.String(16), primary_key=True)

    customer_name = db.Column(db.String(128), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=False)
    customer_phone_digits = db.Column(db.String(32), nullable=False, index=True)
    customer_email = db.Column(db.String(255), nullable=True)

    # Pricing breakdown (full precision; rounded only for display)
    subtotal = db.Column(db.Float, nullable=False)
    discount_amount = db.Column(db.Float, nullable=False, default=0)
    tax = db.Column(db.Float, nullable=False, default=0)
    delivery_fee = db.Column(db.Float, nullable=False, default=0)
    total = db.Column(db.Float, nullable=False)
    tax_rate = db.Column(db.Float, nullable=False, default=0)
    discount_percentage = db.Column(db.Float, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="Placed", index=True)
    fulfillment_type = db.Column(db.String(16), nullable=False)  # Pickup, Delivery
    payment_method = db.Column(db.String(16), nullable=False)  # Cash, Card, Online, Crypto

    # Code this order hands out for sharing vs. code this order redeemed
    generated_referral_code = db.Column(db.String(16), nullable=False, unique=True, index=True)
    applied_referral_code = db.Column(db.String(32), nullable=True)

    delivery_zone_name = db.Column(db.String(128), nullable=True)
    loyalty_points = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    lines = db.relationship(
        "OrderLine",
        backref="order",
        order_by="OrderLine.position",
        cascade="all, delete-orphan",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def taxable_amount(self) -> float:
        return self.subtotal - self.discount_amount

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "items": [line.to_dict() for line in self.lines],
            "subtotal": self.subtotal,
            "discount_amount": self.discount_amount,
            "taxable_amount": self.taxable_amount,
            "tax": self.tax,
            "delivery_fee": self.delivery_fee,
            "total": self.total,
            "tax_rate": self.tax_rate,
            "discount_percentage": self.discount_percentage,
            "status": self.status,
            "type": self.fulfillment_type,
            "payment_method": self.payment_method,
            "generated_referral_code": self.generated_referral_code,
            "applied_referral_code": self.applied_referral_code,
            "delivery_zone_name": self.delivery_zone_name,
            "loyalty_points": self.loyalty_points,
            "timestamp": to_epoch_ms(self.created_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderLine(db.Model):
    """Snapshot of one cart line at the moment of purchase."""
    __tablename__ = "order_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(16), db.ForeignKey("orders.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(db.String(32), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(128), nullable=True)
    category = db.Column(db.String(64), nullable=True)

    variant_label = db.Column(db.String(32), nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
    weight_grams = db.Column(db.Float, nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Float, nullable=False)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "brand": self.brand,
            "category": self.category,
            "variant_label": self.variant_label,
            "unit_price": self.unit_price,
            "weight_grams": self.weight_grams,
            "quantity": self.quantity,
            "line_total": self.line_total,
        }


class OrderStatusChange(db.Model):
    """
    Append-only audit of staff status transitions.

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "order_status_changes"
    __table_args__ = (
        db.Index("ix_order_status_changes_order_occurred", "order_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(16), db.ForeignKey("orders.id"), nullable=False)
    from_status = db.Column(db.String(16), nullable=False)
    to_status = db.Column(db.String(16), nullable=False)
    changed_by = db.Column(db.String(64), nullable=True)
    note = db.Column(db.String(255), nullable=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", backref=db.backref("status_changes", lazy=True, order_by="OrderStatusChange.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "changed_by": self.changed_by,
            "note": self.note,
            "occurred_at": to_utc_z(self.occurred_at),
        }
