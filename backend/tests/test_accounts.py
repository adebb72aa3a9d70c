"""Customer accounts: registration, PIN login, order history and buy again."""

import pytest

from storefront.models import Customer
from storefront.services import cart_service, checkout_service, customer_service
from storefront.services.catalog_store import CatalogStore
from storefront.services.customer_service import CustomerValidationError
from storefront.services.order_service import OrderNotFoundError


def _place_order_for(products, name="Dana", phone="(555) 010-2000", lines=(("flower", 0, 2),)):
    cart = cart_service.create_cart()
    for product_id, index, qty in lines:
        cart_service.add(cart, products[product_id], index, qty)
    checkout_service.update_contact(cart, {"name": name, "phone": phone})
    return checkout_service.place_order(cart, "Cash", CatalogStore().get_settings())


def test_pin_is_stored_hashed(customer):
    assert customer.id == "5550102000"
    assert customer.pin_hash != "1234"
    assert customer_service.verify_pin("1234", customer.pin_hash)


@pytest.mark.parametrize("phone,pin", [
    ("123", "1234"),
    ("5550102000", "12"),
    ("5550102000", "12ab"),
])
def test_registration_rejects_short_phone_or_bad_pin(db_session, phone, pin):
    with pytest.raises(CustomerValidationError):
        customer_service.register_customer("Dana", phone, pin)


def test_reregistering_replaces_the_pin(customer, db_session):
    customer_service.register_customer("Dana S.", "555-010-2000", "9876")

    assert db_session.query(Customer).count() == 1
    assert customer_service.authenticate("5550102000", "1234") is None
    assert customer_service.authenticate("(555) 010-2000", "9876").name == "Dana S."


def test_order_history_matches_any_phone_formatting(customer, products):
    first = _place_order_for(products, phone="555.010.2000")
    second = _place_order_for(products, phone="(555) 010-2000")
    _place_order_for(products, name="Eve", phone="5557778888")

    history = customer_service.order_history(customer.phone)
    assert {o.id for o in history} == {first.id, second.id}
    assert history[0].created_at >= history[1].created_at


def test_buy_again_adds_available_items(customer, products, cart):
    order = _place_order_for(products, lines=(("flower", 0, 2), ("gummies", 0, 1)))

    result = customer_service.buy_again(cart, order.id, customer.phone)

    assert len(result.added) == 2
    assert result.missing == []
    assert sorted((l.product_id, l.quantity) for l in cart.lines) == [("flower", 2), ("gummies", 1)]


def test_buy_again_clamps_to_stock_and_reports_missing(customer, products, cart, db_session):
    order = _place_order_for(products, lines=(("flower", 1, 4), ("gummies", 0, 2)))
    products["flower"].variants[1].stock = 3
    products["gummies"].is_published = False
    db_session.commit()

    result = customer_service.buy_again(cart, order.id, customer.phone)

    assert result.to_dict()["added_count"] == 1
    assert result.partial == [{"product_id": "flower", "variant_label": "7g", "requested": 4, "added": 3}]
    assert [m["product_id"] for m in result.missing] == ["gummies"]


def test_buy_again_refuses_someone_elses_order(customer, products, cart):
    order = _place_order_for(products, name="Eve", phone="5557778888")

    with pytest.raises(OrderNotFoundError):
        customer_service.buy_again(cart, order.id, customer.phone)


def test_register_login_and_history_api(client, products):
    resp = client.post("/api/account/register", json={"name": "Dana", "phone": "555-010-2000", "pin": "2468"})
    assert resp.status_code == 201
    assert resp.get_json()["customer"]["id"] == "5550102000"

    assert client.post("/api/account/login", json={"phone": "5550102000", "pin": "0000"}).status_code == 401
    login = client.post("/api/account/login", json={"phone": "5550102000", "pin": "2468"})
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.get_json()['token']}"}

    order = _place_order_for(products, phone="555-010-2000")
    history = client.get("/api/account/orders", headers=headers).get_json()
    assert [o["id"] for o in history["orders"]] == [order.id]

    assert client.post("/api/account/logout", headers=headers).status_code == 200
    assert client.get("/api/account/orders", headers=headers).status_code == 401


def test_register_api_validation(client, db_session):
    resp = client.post("/api/account/register", json={"name": "Dana", "phone": "55", "pin": "2468"})
    assert resp.status_code == 400


def test_reorder_api(client, products, customer, customer_headers, cart_headers):
    order = _place_order_for(products)
    headers = dict(customer_headers, **cart_headers)

    resp = client.post(f"/api/account/orders/{order.id}/reorder", headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["result"]["added_count"] == 1
    assert resp.get_json()["cart"]["item_count"] == 2

    assert client.post("/api/account/orders/NOPE/reorder", headers=headers).status_code == 404


def test_staff_token_is_not_a_customer_token(client, staff_headers):
    assert client.get("/api/account/orders", headers=staff_headers).status_code == 401
