from __future__ import annotations

from ..extensions import db


class SessionToken(db.Model):
    """
    Bearer session for the staff console or a customer account.

    Only the SHA-256 of the token is stored. Staff sessions carry no subject;
    customer sessions point at the customer they authenticate.
    """
    __tablename__ = "session_tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)
    kind = db.Column(db.String(16), nullable=False, index=True)  # STAFF, CUSTOMER
    customer_id = db.Column(db.String(32), db.ForeignKey("customers.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    customer = db.relationship("Customer")
