# Overview: Referral code validation and issuance.

"""
Referral/Promotion Validator

A referral code is generated by every placed order for its customer to share.
Another customer may redeem it once for a percentage discount.

validate_referral_code is a pure scan over the order history: O(n) in the
number of orders per check. Fine for a single store; index
`orders.generated_referral_code` / `orders.applied_referral_code` lookups if
that ever stops being true. The redemption check is not atomic with order
creation, so two concurrent checkouts can both redeem the same code.
"""

from __future__ import annotations

import secrets
from typing import Callable, Iterable, Protocol

from ..validation import normalize_phone
from .order_status import OrderStatus


REASON_INVALID_CODE = "invalid_code"
REASON_SELF_REFERRAL = "self_referral"
REASON_ALREADY_REDEEMED = "already_redeemed"
REASON_PROGRAM_DISABLED = "program_disabled"

REASON_MESSAGES = {
    REASON_INVALID_CODE: "Invalid referral code",
    REASON_SELF_REFERRAL: "You can't use your own referral code",
    REASON_ALREADY_REDEEMED: "This referral code has already been redeemed",
    REASON_PROGRAM_DISABLED: "The referral program is not active",
}

# No 0/O or 1/I
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 6
CODE_PREFIX = "REF"


class ReferralOrder(Protocol):
    customer_phone: str
    status: str
    generated_referral_code: str | None
    applied_referral_code: str | None


class PromotionError(Exception):
    """Raised when a referral code cannot be applied. `reason` is one of the REASON_* codes."""
    def __init__(self, reason: str, details: dict | None = None):
        super().__init__(REASON_MESSAGES.get(reason, reason))
        self.reason = reason
        self.details = details or {}


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def validate_referral_code(
    code: str,
    applicant_phone: str | None,
    orders: Iterable[ReferralOrder],
) -> str:
    """
    Check `code` against the order history and return it normalized.

    An empty applicant phone never counts as a self-referral; the redemption
    check still runs.
    """
    normalized = normalize_code(code)
    if not normalized:
        raise PromotionError(REASON_INVALID_CODE)

    orders = list(orders)

    source = next((o for o in orders if o.generated_referral_code == normalized), None)
    if source is None:
        raise PromotionError(REASON_INVALID_CODE, details={"code": normalized})

    applicant_digits = normalize_phone(applicant_phone)
    if applicant_digits and normalize_phone(source.customer_phone) == applicant_digits:
        raise PromotionError(REASON_SELF_REFERRAL, details={"code": normalized})

    for order in orders:
        if order.applied_referral_code == normalized and order.status != OrderStatus.CANCELLED.value:
            raise PromotionError(REASON_ALREADY_REDEEMED, details={"code": normalized})

    return normalized


def generate_referral_code(is_taken: Callable[[str], bool], *, attempts: int = 20) -> str:
    """Random "REF-XXXXXX" code that `is_taken` reports as unused."""
    for _ in range(attempts):
        code = f"{CODE_PREFIX}-" + "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
        if not is_taken(code):
            return code
    raise RuntimeError("Could not allocate a unique referral code")
