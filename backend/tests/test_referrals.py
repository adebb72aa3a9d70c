"""Referral code validation against an in-memory order history."""

from dataclasses import dataclass

import pytest

from storefront.services.referrals import (
    CODE_ALPHABET,
    REASON_ALREADY_REDEEMED,
    REASON_INVALID_CODE,
    REASON_SELF_REFERRAL,
    PromotionError,
    generate_referral_code,
    validate_referral_code,
)


@dataclass
class FakeOrder:
    customer_phone: str
    status: str = "Placed"
    generated_referral_code: str | None = None
    applied_referral_code: str | None = None


@pytest.fixture
def history():
    return [FakeOrder(customer_phone="(555) 111-2222", generated_referral_code="REF-ABC234")]


def test_valid_code_is_normalized(history):
    assert validate_referral_code("  ref-abc234 ", "555-999-0000", history) == "REF-ABC234"


def test_unknown_code_is_invalid(history):
    with pytest.raises(PromotionError) as exc:
        validate_referral_code("REF-NOPE22", "5559990000", history)
    assert exc.value.reason == REASON_INVALID_CODE


def test_blank_code_is_invalid(history):
    with pytest.raises(PromotionError) as exc:
        validate_referral_code("   ", "5559990000", history)
    assert exc.value.reason == REASON_INVALID_CODE


def test_own_code_is_self_referral_regardless_of_formatting(history):
    with pytest.raises(PromotionError) as exc:
        validate_referral_code("REF-ABC234", "555.111.2222", history)
    assert exc.value.reason == REASON_SELF_REFERRAL


def test_empty_phone_is_not_treated_as_self_referral(history):
    assert validate_referral_code("REF-ABC234", "", history) == "REF-ABC234"


def test_code_redeemed_by_a_live_order_is_rejected(history):
    history.append(FakeOrder(customer_phone="5553334444", applied_referral_code="REF-ABC234", status="Ready"))
    with pytest.raises(PromotionError) as exc:
        validate_referral_code("REF-ABC234", "5559990000", history)
    assert exc.value.reason == REASON_ALREADY_REDEEMED


def test_cancelled_redemption_frees_the_code(history):
    history.append(FakeOrder(customer_phone="5553334444", applied_referral_code="REF-ABC234", status="Cancelled"))
    assert validate_referral_code("REF-ABC234", "5559990000", history) == "REF-ABC234"


def test_generated_codes_use_the_unambiguous_alphabet():
    code = generate_referral_code(lambda c: False)
    prefix, body = code.split("-")
    assert prefix == "REF"
    assert len(body) == 6
    assert set(body) <= set(CODE_ALPHABET)
    assert not set(body) & set("01IO")


def test_generation_skips_taken_codes():
    seen = []

    def is_taken(code):
        seen.append(code)
        return len(seen) < 3

    code = generate_referral_code(is_taken)
    assert code == seen[-1]
    assert len(seen) == 3


def test_generation_gives_up_when_every_code_is_taken():
    with pytest.raises(RuntimeError):
        generate_referral_code(lambda c: True, attempts=3)
