from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Customer(db.Model):
    """
    Storefront customer account.

    Identified by normalized phone digits. The PIN is bcrypt-hashed and only
    changes when the same phone registers again; there is no reset flow.
    """
    __tablename__ = "customers"

    # Normalized phone digits
    id = db.Column(db.String(32), primary_key=True)

    name = db.Column(db.String(128), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    pin_hash = db.Column(db.String(128), nullable=False)

    joined_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "joined_at": to_utc_z(self.joined_at),
        }
