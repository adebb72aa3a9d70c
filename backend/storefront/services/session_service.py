# Overview: Bearer session tokens for the staff console and customer accounts.

"""
Tokens are 32 random bytes sent to the client once; only their SHA-256 is
stored. Sessions expire after SESSION_TTL_HOURS and can be revoked on logout.
"""

import hashlib
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken
from ..time_utils import utcnow
from .persistence import commit_or_raise


KIND_STAFF = "STAFF"
KIND_CUSTOMER = "CUSTOMER"


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(kind: str, customer_id: str | None = None) -> tuple[SessionToken, str]:
    token = generate_token()
    ttl = timedelta(hours=int(current_app.config.get("SESSION_TTL_HOURS", 24)))
    session = SessionToken(
        token_hash=hash_token(token),
        kind=kind,
        customer_id=customer_id,
        created_at=utcnow(),
        expires_at=utcnow() + ttl,
    )
    db.session.add(session)
    commit_or_raise("Failed to create session")
    return session, token


def validate_session(token: str | None, kind: str) -> SessionToken | None:
    if not token:
        return None
    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token), kind=kind).first()
    if not session or session.revoked_at is not None:
        return None
    if session.expires_at <= utcnow():
        return None
    return session


def revoke_session(token: str) -> bool:
    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if not session or session.revoked_at is not None:
        return False
    session.revoked_at = utcnow()
    commit_or_raise("Failed to revoke session")
    return True


def staff_pin_matches(pin, admin_pin: str) -> bool:
    if pin is None:
        return False
    return secrets.compare_digest(str(pin).strip().encode("utf-8"), str(admin_pin).encode("utf-8"))
