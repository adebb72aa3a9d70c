from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Product(db.Model):
    """
    Catalog product with one or more purchasable variants.

    A product that is not published is never offered for purchase, even when
    it still has variant stock.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_published_category", "is_published", "category"),
    )

    # Business identifier (e.g. "1", "k3x9m2p7q")
    id = db.Column(db.String(32), primary_key=True)

    product_type = db.Column(db.String(16), nullable=False, default="Cannabis")  # Cannabis, Vape
    category = db.Column(db.String(64), nullable=False, index=True)
    brand = db.Column(db.String(128), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)  # display name / flavor
    strain = db.Column(db.String(16), nullable=True)  # Indica, Sativa, Hybrid
    thc_percentage = db.Column(db.Float, nullable=True)
    cbd_percentage = db.Column(db.Float, nullable=True)
    puff_count = db.Column(db.Integer, nullable=True)

    # Aggregate stock, kept equal to the sum of variant stock on every save
    stock = db.Column(db.Integer, nullable=False, default=0)

    image_url = db.Column(db.String(512), nullable=True)
    description = db.Column(db.Text, nullable=True)
    is_published = db.Column(db.Boolean, nullable=False, default=True, index=True)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    variants = db.relationship(
        "ProductVariant",
        backref="product",
        order_by="ProductVariant.position",
        cascade="all, delete-orphan",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def recompute_stock(self) -> int:
        self.stock = sum(v.stock for v in self.variants)
        return self.stock

    def variant_at(self, index: int) -> "ProductVariant | None":
        if index < 0 or index >= len(self.variants):
            return None
        return self.variants[index]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_type": self.product_type,
            "category": self.category,
            "brand": self.brand,
            "name": self.name,
            "strain": self.strain,
            "thc_percentage": self.thc_percentage,
            "cbd_percentage": self.cbd_percentage,
            "puff_count": self.puff_count,
            "variants": [v.to_dict() for v in self.variants],
            "stock": self.stock,
            "image_url": self.image_url,
            "description": self.description,
            "is_published": self.is_published,
            "is_featured": self.is_featured,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductVariant(db.Model):
    """
    A purchasable size/quantity option ("3.5g", "10pk") with its own price and stock.

    A variant with stock 0 stays visible but cannot be added to a cart.
    """
    __tablename__ = "product_variants"
    __table_args__ = (
        db.UniqueConstraint("product_id", "label", name="uq_product_variants_label"),
        db.CheckConstraint("price >= 0", name="ck_product_variants_price"),
        db.CheckConstraint("stock >= 0", name="ck_product_variants_stock"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.String(32), db.ForeignKey("products.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    label = db.Column(db.String(32), nullable=False)
    price = db.Column(db.Float, nullable=False)
    weight_grams = db.Column(db.Float, nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "price": self.price,
            "weight_grams": self.weight_grams,
            "stock": self.stock,
        }
