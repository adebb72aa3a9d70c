from storefront.cli import SAMPLE_PRODUCTS
from storefront.models import Product
from storefront.services import cart_service, checkout_service
from storefront.services.catalog_store import CatalogStore


def test_store_init_seeds_sample_catalog_once(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["store", "init"])
    assert result.exit_code == 0, result.output
    assert db_session.query(Product).count() == len(SAMPLE_PRODUCTS)
    assert db_session.get(Product, "1").stock == 50

    again = runner.invoke(args=["store", "init"])
    assert "skipping sample catalog" in again.output
    assert db_session.query(Product).count() == len(SAMPLE_PRODUCTS)


def test_seed_products_skips_existing(app, db_session):
    runner = app.test_cli_runner()
    runner.invoke(args=["store", "seed-products"])

    result = runner.invoke(args=["store", "seed-products"])
    assert f"skipped {len(SAMPLE_PRODUCTS)} existing" in result.output


def test_orders_list(app, db_session):
    runner = app.test_cli_runner()
    runner.invoke(args=["store", "seed-products"])
    assert "No orders found." in runner.invoke(args=["orders", "list"]).output

    cart = cart_service.create_cart()
    cart_service.add(cart, db_session.get(Product, "4"), 0, 2)
    checkout_service.update_contact(cart, {"name": "Dana", "phone": "5550102000"})
    order = checkout_service.place_order(cart, "Cash", CatalogStore().get_settings())

    result = runner.invoke(args=["orders", "list", "--status", "placed"])
    assert order.id in result.output
    assert "$40.00" in result.output

    bad = runner.invoke(args=["orders", "list", "--status", "Shipped"])
    assert bad.exit_code != 0
