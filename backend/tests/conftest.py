"""
Pytest fixtures for storefront backend tests.

Provides the app on an in-memory database, a fresh schema per test, the
sample catalog, delivery zones, carts and staff/customer auth headers.
"""

import pytest
from storefront import create_app
from storefront.config import TestConfig
from storefront.extensions import db
from storefront.decorators import CART_TOKEN_HEADER
from storefront.services import cart_service, customer_service, products_service, session_service, settings_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Clear all data but keep schema."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        db.session.expunge_all()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def products(db_session):
    """
    Two published products and one unpublished.

    "flower" has variants 3.5g @ 60 (stock 40) and 7g @ 110 (stock 10);
    "gummies" has a single 10pk @ 25 (stock 3).
    """
    flower = products_service.create_product({
        "id": "flower",
        "product_type": "Cannabis",
        "category": "Flower",
        "brand": "MoonRocks",
        "name": "Galactic Gas",
        "strain": "Indica",
        "variants": [
            {"label": "3.5g", "price": 60, "weight_grams": 3.5, "stock": 40},
            {"label": "7g", "price": 110, "weight_grams": 7, "stock": 10},
        ],
    })
    gummies = products_service.create_product({
        "id": "gummies",
        "category": "Edible",
        "brand": "YumYum",
        "name": "Blueberry Blast",
        "variants": [{"label": "10pk", "price": 25, "stock": 3}],
    })
    hidden = products_service.create_product({
        "id": "hidden",
        "category": "Vape",
        "product_type": "Vape",
        "brand": "ElfBar",
        "name": "Blue Razz Ice",
        "is_published": False,
        "variants": [{"label": "1pc", "price": 20, "stock": 50}],
    })
    return {"flower": flower, "gummies": gummies, "hidden": hidden}


# Store location the zone fixtures are centred on (Manhattan)
STORE_LAT, STORE_LNG = 40.7580, -73.9855


@pytest.fixture(scope='function')
def zones(db_session):
    """Delivery enabled with a 2-mile $5 zone (min $30) and a 6-mile $12 zone (min $50)."""
    settings_service.update_settings({"delivery": {"enabled": True}}, changed_by="test")
    near = settings_service.create_zone({
        "name": "Midtown", "lat": STORE_LAT, "lng": STORE_LNG,
        "radius_miles": 2, "fee": 5, "min_order": 30,
    })
    wide = settings_service.create_zone({
        "name": "Greater NYC", "lat": STORE_LAT, "lng": STORE_LNG,
        "radius_miles": 6, "fee": 12, "min_order": 50,
    })
    return {"near": near, "wide": wide}


@pytest.fixture(scope='function')
def cart(db_session):
    return cart_service.create_cart()


@pytest.fixture(scope='function')
def cart_headers(cart):
    return {CART_TOKEN_HEADER: cart.token}


@pytest.fixture(scope='function')
def staff_headers(db_session):
    _, token = session_service.create_session(session_service.KIND_STAFF)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def customer(db_session):
    return customer_service.register_customer("Dana Shopper", "(555) 010-2000", "1234", "dana@example.com")


@pytest.fixture(scope='function')
def customer_headers(customer):
    _, token = session_service.create_session(session_service.KIND_CUSTOMER, customer.id)
    return {"Authorization": f"Bearer {token}"}
