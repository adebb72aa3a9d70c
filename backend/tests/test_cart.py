"""Cart aggregation and storefront add-to-cart guards."""

import pytest

from storefront.services import cart_service
from storefront.services.cart_service import CartError, CartNotFoundError
from storefront.services.pricing import subtotal_of


def test_same_variant_merges_into_one_line(cart, products):
    cart_service.add(cart, products["flower"], 0, 1)
    cart_service.add(cart, products["flower"], 0, 2)

    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 3
    assert cart.item_count == 3


def test_different_variants_are_separate_lines(cart, products):
    cart_service.add(cart, products["flower"], 0, 1)
    cart_service.add(cart, products["flower"], 1, 1)

    assert [(l.variant_label, l.quantity) for l in cart.lines] == [("3.5g", 1), ("7g", 1)]
    assert subtotal_of(cart.lines) == pytest.approx(170)


def test_line_keeps_price_captured_at_add_time(cart, products, db_session):
    cart_service.add(cart, products["flower"], 0, 1)
    products["flower"].variants[0].price = 999
    db_session.commit()

    assert cart.lines[0].unit_price == 60


def test_add_rejects_bad_quantity_and_variant(cart, products):
    with pytest.raises(CartError):
        cart_service.add(cart, products["flower"], 0, 0)
    with pytest.raises(CartError):
        cart_service.add(cart, products["flower"], 5, 1)
    assert cart.lines == []


def test_remove_drops_only_the_matching_line(cart, products):
    cart_service.add(cart, products["flower"], 0, 1)
    cart_service.add(cart, products["gummies"], 0, 1)

    assert cart_service.remove(cart, "flower", "3.5g") == 1
    assert [l.product_id for l in cart.lines] == ["gummies"]
    assert cart_service.remove(cart, "flower", "3.5g") == 0


def test_adding_or_removing_lines_unresolves_the_zone(cart, products):
    cart_service.add(cart, products["flower"], 0, 2)
    cart.zone_status = "resolved"
    cart.resolved_zone_id = "z1"

    cart_service.remove(cart, "flower", "3.5g")
    assert cart.zone_status == "unresolved"
    assert cart.resolved_zone_id is None

    cart.zone_status = "resolved"
    cart.resolved_zone_id = "z1"
    cart_service.add(cart, products["gummies"], 0, 1)
    assert cart.zone_status == "unresolved"


def test_clear_empties_lines_and_checkout_state(cart, products):
    cart_service.add(cart, products["flower"], 0, 1)
    cart.applied_referral_code = "REF-ABC234"
    cart.zone_status = "resolved"
    cart.resolved_zone_id = "z1"

    cart_service.clear(cart)

    assert cart.lines == []
    assert cart.applied_referral_code is None
    assert cart.zone_status == "unresolved"
    assert cart.resolved_zone_id is None


def test_cart_survives_a_reload(cart, products, db_session):
    cart_service.add(cart, products["flower"], 1, 2)
    token = cart.token
    db_session.expunge_all()

    reloaded = cart_service.get_cart(token)
    assert [(l.product_id, l.variant_label, l.quantity) for l in reloaded.lines] == [("flower", "7g", 2)]


def test_unknown_token_is_not_found(db_session):
    with pytest.raises(CartNotFoundError):
        cart_service.get_cart("nope")
    with pytest.raises(CartNotFoundError):
        cart_service.get_cart(None)


def test_add_to_cart_refuses_unpublished_products(cart, products):
    with pytest.raises(CartError):
        cart_service.add_to_cart(cart, "hidden", 0, 1)


def test_add_to_cart_caps_at_variant_stock(cart, products):
    cart_service.add_to_cart(cart, "gummies", 0, 2)
    with pytest.raises(CartError) as exc:
        cart_service.add_to_cart(cart, "gummies", 0, 2)

    assert exc.value.details["available"] == 3
    assert exc.value.details["in_cart"] == 2
    assert cart.lines[0].quantity == 2


def test_add_to_cart_refuses_sold_out_variant(cart, products, db_session):
    products["flower"].variants[1].stock = 0
    db_session.commit()

    with pytest.raises(CartError) as exc:
        cart_service.add_to_cart(cart, "flower", 1, 1)
    assert "sold out" in str(exc.value)


def test_add_to_cart_validates_quantity(cart, products):
    for bad in (0, -1, "two", 1.5, True):
        with pytest.raises(CartError):
            cart_service.add_to_cart(cart, "flower", 0, bad)
