"""Order finalization, status transitions and the checkout gates in front of them."""

import pytest
from sqlalchemy.exc import OperationalError

from storefront.extensions import db
from storefront.models import Order, OrderStatusChange
from storefront.services import cart_service, checkout_service, order_service, settings_service
from storefront.services.catalog_store import CatalogStore, PersistenceError
from storefront.services.checkout_service import CheckoutError
from storefront.services.delivery_zones import Coordinate
from storefront.services.order_service import CheckoutBlockedError, CustomerInfo, OrderValidationError
from storefront.services.order_status import InvalidTransitionError
from storefront.services.referrals import REASON_ALREADY_REDEEMED, PromotionError

from conftest import STORE_LAT, STORE_LNG


def _fill(cart, products, quantity=1):
    cart_service.add(cart, products["flower"], 0, quantity)
    checkout_service.update_contact(cart, {"name": "Dana", "phone": "(555) 010-2000"})


def _place(cart, payment_method="Cash"):
    return checkout_service.place_order(cart, payment_method, CatalogStore().get_settings())


def test_pickup_order_snapshots_lines_and_empties_cart(cart, products):
    settings_service.update_settings({"financials": {"tax_rate": 5}})
    _fill(cart, products, quantity=2)

    order = _place(cart)

    assert order.status == "Placed"
    assert len(order.id) == 9
    assert order.subtotal == pytest.approx(120)
    assert order.tax == pytest.approx(6)
    assert order.total == pytest.approx(126)
    assert order.loyalty_points == 120
    assert order.generated_referral_code.startswith("REF-")
    assert [(l.product_id, l.variant_label, l.quantity, l.unit_price) for l in order.lines] == [
        ("flower", "3.5g", 2, 60),
    ]
    assert cart.lines == []
    assert cart.customer_name == "Dana"


def test_placing_does_not_decrement_stock(cart, products):
    _fill(cart, products, quantity=2)
    _place(cart)

    assert CatalogStore().get_product("flower").variants[0].stock == 40


def test_empty_phone_is_rejected_before_anything_is_saved(cart, products):
    cart_service.add(cart, products["flower"], 0, 1)
    breakdown = checkout_service.price(cart, CatalogStore().get_settings())

    with pytest.raises(OrderValidationError):
        order_service.place_order(
            cart, CustomerInfo(name="Dana", phone="   "), "Pickup", "Cash", breakdown, None, None,
            settings=CatalogStore().get_settings(),
        )
    assert db.session.query(Order).count() == 0
    assert len(cart.lines) == 1


def test_phone_without_digits_is_rejected(cart, products):
    cart_service.add(cart, products["flower"], 0, 1)
    settings = CatalogStore().get_settings()

    with pytest.raises(OrderValidationError):
        order_service.place_order(
            cart, CustomerInfo(name="Dana", phone="call me"), "Pickup", "Cash",
            checkout_service.price(cart, settings), None, None, settings=settings,
        )


def test_empty_cart_is_rejected(cart, db_session):
    checkout_service.update_contact(cart, {"name": "Dana", "phone": "5550102000"})
    with pytest.raises(OrderValidationError):
        _place(cart)


def test_disabled_payment_method_is_rejected(cart, products):
    _fill(cart, products)
    with pytest.raises(OrderValidationError) as exc:
        _place(cart, payment_method="Crypto")
    assert exc.value.details["allowed"] == ["Cash", "Card"]


def test_store_minimum_blocks_placement(cart, products):
    settings_service.update_settings({"financials": {"min_order_amount": 100}})
    _fill(cart, products)

    with pytest.raises(CheckoutError):
        _place(cart)


def test_persistence_failure_surfaces_and_keeps_the_cart(cart, products, monkeypatch):
    _fill(cart, products)

    def broken_flush(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session, "flush", broken_flush)
    with pytest.raises(PersistenceError):
        _place(cart)
    monkeypatch.undo()

    assert db.session.query(Order).count() == 0
    assert len(cart_service.get_cart(cart.token).lines) == 1


def test_delivery_with_zones_requires_a_resolved_zone(cart, products, zones):
    _fill(cart, products)
    checkout_service.set_fulfillment(cart, "Delivery", CatalogStore().get_settings())

    with pytest.raises(CheckoutBlockedError) as exc:
        _place(cart)
    assert exc.value.details["zone_status"] == "unresolved"


def test_delivery_order_uses_resolved_zone_fee(cart, products, zones):
    _fill(cart, products)
    settings = CatalogStore().get_settings()
    checkout_service.set_fulfillment(cart, "Delivery", settings)
    checkout_service.check_delivery_zone(cart, Coordinate(STORE_LAT, STORE_LNG), settings)

    order = _place(cart)

    assert order.fulfillment_type == "Delivery"
    assert order.delivery_zone_name == "Midtown"
    assert order.delivery_fee == pytest.approx(5)
    assert order.total == pytest.approx(65)


def test_deleted_zone_no_longer_counts_at_placement(cart, products, zones):
    _fill(cart, products)
    settings = CatalogStore().get_settings()
    checkout_service.set_fulfillment(cart, "Delivery", settings)
    checkout_service.check_delivery_zone(cart, Coordinate(STORE_LAT, STORE_LNG), settings)
    settings_service.delete_zone(zones["near"].id)

    with pytest.raises(CheckoutBlockedError):
        _place(cart)


def test_referral_discount_and_single_use(cart, products, db_session):
    _fill(cart, products)
    first = _place(cart)

    second_cart = cart_service.create_cart()
    cart_service.add(second_cart, products["flower"], 0, 1)
    checkout_service.update_contact(second_cart, {"name": "Eve", "phone": "555-777-8888"})
    checkout_service.apply_promotion(second_cart, first.generated_referral_code.lower(), CatalogStore().get_settings())
    second = _place(second_cart)

    assert second.applied_referral_code == first.generated_referral_code
    assert second.discount_amount == pytest.approx(6)
    assert second.total == pytest.approx(54)

    third_cart = cart_service.create_cart()
    checkout_service.update_contact(third_cart, {"name": "Finn", "phone": "555-444-3333"})
    with pytest.raises(PromotionError) as exc:
        checkout_service.apply_promotion(third_cart, first.generated_referral_code, CatalogStore().get_settings())
    assert exc.value.reason == REASON_ALREADY_REDEEMED
    assert third_cart.applied_referral_code is None


def test_code_redeemed_elsewhere_is_dropped_at_placement(cart, products):
    _fill(cart, products)
    source = _place(cart)

    racer = cart_service.create_cart()
    cart_service.add(racer, products["flower"], 0, 1)
    checkout_service.update_contact(racer, {"name": "Eve", "phone": "5557778888"})
    checkout_service.apply_promotion(racer, source.generated_referral_code, CatalogStore().get_settings())

    slow = cart_service.create_cart()
    cart_service.add(slow, products["flower"], 0, 1)
    checkout_service.update_contact(slow, {"name": "Finn", "phone": "5554443333"})
    checkout_service.apply_promotion(slow, source.generated_referral_code, CatalogStore().get_settings())

    _place(racer)
    with pytest.raises(PromotionError):
        _place(slow)
    assert slow.applied_referral_code is None
    assert len(slow.lines) == 1


def test_status_transitions_are_audited(cart, products):
    _fill(cart, products)
    order = _place(cart)

    order_service.transition_status(order.id, "Accepted", changed_by="staff:1")
    order_service.transition_status(order.id, "Cancelled", changed_by="staff:1", note="customer called")

    changes = db.session.query(OrderStatusChange).order_by(OrderStatusChange.id).all()
    assert [(c.from_status, c.to_status) for c in changes] == [("Placed", "Accepted"), ("Accepted", "Cancelled")]
    assert changes[1].note == "customer called"


def test_invalid_transition_writes_nothing(cart, products):
    _fill(cart, products)
    order = _place(cart)
    order_service.transition_status(order.id, "Cancelled")

    with pytest.raises(InvalidTransitionError):
        order_service.transition_status(order.id, "Accepted")
    assert order_service.get_order(order.id).status == "Cancelled"
    assert db.session.query(OrderStatusChange).count() == 1


def test_pickup_message_follows_settings(cart, products):
    _fill(cart, products)
    order = _place(cart)

    message = order_service.pickup_message(order, CatalogStore().get_settings())
    assert message == "Hi Dana, thanks for picking up from Billionaire Level! Thanks for shopping with us! Enjoy your lift-off."

    settings_service.update_settings({"messages": {"enabled": False}})
    assert order_service.pickup_message(order, CatalogStore().get_settings()) is None


def test_summary_blocks_when_resolved_zone_minimum_rises(cart, products, zones):
    _fill(cart, products)
    settings = CatalogStore().get_settings()
    checkout_service.set_fulfillment(cart, "Delivery", settings)
    checkout_service.check_delivery_zone(cart, Coordinate(STORE_LAT, STORE_LNG), settings)
    settings_service.update_zone(zones["near"].id, {"min_order": 100})

    summary = checkout_service.summary(cart, CatalogStore().get_settings())
    assert any("Midtown" in reason for reason in summary["blockers"])
    with pytest.raises(CheckoutBlockedError):
        _place(cart)
