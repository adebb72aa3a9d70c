from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Cart(db.Model):
    """
    A shopper's cart and the checkout session that rides on it.

    Identified to the client by an opaque token. Besides the lines it holds the
    checkout draft: contact info, fulfillment type, the single applied-promotion
    slot and the last delivery-zone resolution. Every field survives a reload.
    """
    __tablename__ = "carts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(64), nullable=False, unique=True, index=True)

    # Draft contact info (checkout pre-fill)
    customer_name = db.Column(db.String(128), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True)

    fulfillment_type = db.Column(db.String(16), nullable=False, default="Pickup")  # Pickup, Delivery

    # Applied-promotion slot: None -> Applied -> None
    applied_referral_code = db.Column(db.String(32), nullable=True)

    # Delivery-zone resolution snapshot
    zone_status = db.Column(db.String(32), nullable=False, default="unresolved")
    resolved_zone_id = db.Column(db.String(32), nullable=True)
    resolved_zone_name = db.Column(db.String(128), nullable=True)
    resolved_zone_fee = db.Column(db.Float, nullable=True)
    resolved_zone_min_order = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    lines = db.relationship(
        "CartLine",
        backref="cart",
        order_by="CartLine.id",
        cascade="all, delete-orphan",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "lines": [line.to_dict() for line in self.lines],
            "item_count": self.item_count,
            "contact": {
                "name": self.customer_name or "",
                "phone": self.customer_phone or "",
                "email": self.customer_email or "",
            },
            "fulfillment_type": self.fulfillment_type,
            "applied_referral_code": self.applied_referral_code,
            "delivery_zone": {
                "status": self.zone_status,
                "zone_id": self.resolved_zone_id,
                "zone_name": self.resolved_zone_name,
                "fee": self.resolved_zone_fee,
                "min_order": self.resolved_zone_min_order,
            },
            "updated_at": to_utc_z(self.updated_at),
        }


class CartLine(db.Model):
    """
    One (product, variant) entry in a cart.

    The product and variant fields are copied at add time; pricing reads
    `unit_price` from here, never from the live catalog.
    """
    __tablename__ = "cart_lines"
    __table_args__ = (
        db.UniqueConstraint("cart_id", "product_id", "variant_label", name="uq_cart_lines_identity"),
        db.CheckConstraint("quantity > 0", name="ck_cart_lines_quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("carts.id"), nullable=False, index=True)

    # No FK: staff may delete a product while it still sits in someone's cart
    product_id = db.Column(db.String(32), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(128), nullable=True)
    category = db.Column(db.String(64), nullable=True)
    image_url = db.Column(db.String(512), nullable=True)

    variant_label = db.Column(db.String(32), nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
    weight_grams = db.Column(db.Float, nullable=False, default=0)

    quantity = db.Column(db.Integer, nullable=False)

    added_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "brand": self.brand,
            "category": self.category,
            "image_url": self.image_url,
            "variant_label": self.variant_label,
            "unit_price": self.unit_price,
            "weight_grams": self.weight_grams,
            "quantity": self.quantity,
            "line_total": self.line_total,
        }
