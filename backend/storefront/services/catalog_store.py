# Overview: Catalog store over the database session; the persistence contract the checkout core relies on.

"""
CatalogStore

Durable products, orders, settings and customers, read-your-writes on a single
database. There is no locking: concurrent writers are last-write-wins, the
same as the browser storage this replaces.
"""

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Product, Order, Customer, StoreSetting, DeliveryZone
from ..validation import normalize_phone
from . import settings_service
from .persistence import PersistenceError, commit_or_raise
from .settings_service import StoreSettings


__all__ = ["CatalogStore", "PersistenceError"]


class CatalogStore:
    def __init__(self, session=None):
        self.session = session or db.session

    # -- products -------------------------------------------------------

    def get_products(self, published_only: bool = False) -> list[Product]:
        q = self.session.query(Product)
        if published_only:
            q = q.filter(Product.is_published.is_(True))
        return q.order_by(Product.created_at.asc(), Product.id.asc()).all()

    def get_product(self, product_id: str) -> Product | None:
        return self.session.get(Product, product_id)

    # -- orders ---------------------------------------------------------

    def get_orders(self) -> list[Order]:
        """All orders, newest first."""
        return self.session.query(Order).order_by(Order.created_at.desc(), Order.id.asc()).all()

    def get_order(self, order_id: str) -> Order | None:
        return self.session.get(Order, order_id)

    def get_orders_for_phone(self, phone: str) -> list[Order]:
        digits = normalize_phone(phone)
        if not digits:
            return []
        return (
            self.session.query(Order)
            .filter(Order.customer_phone_digits == digits)
            .order_by(Order.created_at.desc())
            .all()
        )

    def order_id_exists(self, order_id: str) -> bool:
        return self.session.get(Order, order_id) is not None

    def referral_code_exists(self, code: str) -> bool:
        return self.session.query(Order.id).filter(Order.generated_referral_code == code).first() is not None

    def save_order(self, order: Order, *, commit: bool = True) -> Order:
        """Insert when the id is unseen, otherwise replace in place."""
        order = self.session.merge(order)
        if commit:
            self.commit("Failed to save order")
        else:
            self.session.flush()
        return order

    # -- settings -------------------------------------------------------

    def get_settings(self) -> StoreSettings:
        return settings_service.load_settings()

    def save_settings(self, patch: dict, *, changed_by: str | None = None) -> StoreSettings:
        return settings_service.update_settings(patch, changed_by=changed_by)

    # -- customers ------------------------------------------------------

    def get_customer(self, phone: str) -> Customer | None:
        digits = normalize_phone(phone)
        if not digits:
            return None
        return self.session.get(Customer, digits)

    def save_customer(self, customer: Customer, *, commit: bool = True) -> Customer:
        customer = self.session.merge(customer)
        if commit:
            self.commit("Failed to save customer")
        return customer

    # -- change tracking ------------------------------------------------

    def revision(self) -> str:
        """
        Opaque token that changes whenever products, settings or zones change.

        Storefront clients poll this and re-read the catalog only when it moves.
        """
        stamps = [
            self.session.query(func.max(Product.updated_at)).scalar(),
            self.session.query(func.max(StoreSetting.updated_at)).scalar(),
            self.session.query(func.max(DeliveryZone.updated_at)).scalar(),
        ]
        counts = [
            self.session.query(func.count(Product.id)).scalar() or 0,
            self.session.query(func.count(DeliveryZone.id)).scalar() or 0,
        ]
        latest = max((s for s in stamps if s is not None), default=None)
        return f"{latest.isoformat() if latest else '0'}:{counts[0]}:{counts[1]}"

    # -- unit of work ---------------------------------------------------

    def commit(self, message: str = "Persistence failed") -> None:
        commit_or_raise(message)

    def rollback(self) -> None:
        self.session.rollback()
