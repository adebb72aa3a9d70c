# Overview: Flask CLI command groups for bootstrap and order inspection.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Store bootstrap:
# - python -m flask store init
#   Create tables (if missing) and seed the sample catalog when it is empty.
# - python -m flask store seed-products [--replace]
#   Load the sample catalog; --replace overwrites products with the same id.
# - python -m flask store reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Order inspection:
# - python -m flask orders list [--status Placed] [--limit 20]
#   List recent orders, newest first.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Product
from .services import order_service, products_service
from .services.order_status import InvalidTransitionError, parse_status
from .services.pricing import format_money
from .services.products_service import ProductError


SAMPLE_PRODUCTS = [
    {
        "id": "1",
        "product_type": "Cannabis",
        "category": "Flower",
        "brand": "MoonRocks",
        "name": "Galactic Gas",
        "strain": "Indica",
        "thc_percentage": 32,
        "variants": [
            {"label": "3.5g", "price": 60, "weight_grams": 3.5, "stock": 40},
            {"label": "7g", "price": 110, "weight_grams": 7, "stock": 10},
        ],
        "image_url": "https://picsum.photos/400/400?random=1",
        "description": "Heavy hitting indica with notes of diesel and pine.",
        "is_published": True,
        "is_featured": True,
    },
    {
        "id": "2",
        "product_type": "Cannabis",
        "category": "Edible",
        "brand": "YumYum",
        "name": "Blueberry Blast",
        "strain": "Hybrid",
        "thc_percentage": 10,
        "variants": [{"label": "10pk", "price": 25, "weight_grams": 0, "stock": 100}],
        "image_url": "https://picsum.photos/400/400?random=2",
        "description": "Delicious blueberry gummies infused with premium distillate.",
        "is_published": True,
        "is_featured": True,
    },
    {
        "id": "3",
        "product_type": "Cannabis",
        "category": "Disposable",
        "brand": "Cloud9",
        "name": "Mango Haze",
        "strain": "Sativa",
        "thc_percentage": 88,
        "variants": [{"label": "1g", "price": 45, "weight_grams": 1, "stock": 20}],
        "image_url": "https://picsum.photos/400/400?random=3",
        "description": "Tropical mango vibes for an uplifting day.",
        "is_published": True,
        "is_featured": False,
    },
    {
        "id": "4",
        "product_type": "Vape",
        "category": "Vape",
        "brand": "ElfBar",
        "name": "Blue Razz Ice",
        "puff_count": 5000,
        "variants": [{"label": "1pc", "price": 20, "weight_grams": 0, "stock": 50}],
        "image_url": "https://picsum.photos/400/400?random=4",
        "description": "Refreshing blue raspberry with a cool menthol finish. 5000 puffs.",
        "is_published": True,
        "is_featured": True,
    },
]


def seed_products(replace: bool = False) -> tuple[int, int]:
    """Load SAMPLE_PRODUCTS. Returns (created, skipped)."""
    created = skipped = 0
    for data in SAMPLE_PRODUCTS:
        existing = db.session.get(Product, data["id"])
        if existing and not replace:
            skipped += 1
            continue
        if existing:
            fields = {k: v for k, v in data.items() if k != "id"}
            products_service.update_product(data["id"], fields)
        else:
            products_service.create_product(dict(data))
        created += 1
    return created, skipped


@click.group('store')
def store_group():
    """Store bootstrap commands."""


@store_group.command('init')
@with_appcontext
def init_store():
    """
    Create tables and seed the sample catalog when no products exist.

    Store settings need no seeding: missing keys fall back to their defaults.
    """
    click.echo("START Initializing store...")
    db.create_all()
    click.echo("PASS Tables ready")

    if db.session.query(Product).count():
        click.echo("PASS Catalog already has products, skipping sample catalog")
        return
    try:
        created, _ = seed_products()
    except ProductError as e:
        raise click.ClickException(f"Sample catalog rejected: {e}")
    click.echo(f"PASS Seeded {created} sample products")


@store_group.command('seed-products')
@click.option('--replace', is_flag=True, help='Overwrite sample products that already exist')
@with_appcontext
def seed_products_cli(replace):
    """Load the sample catalog."""
    try:
        created, skipped = seed_products(replace=replace)
    except ProductError as e:
        raise click.ClickException(f"Sample catalog rejected: {e}")
    click.echo(f"PASS Saved {created} products, skipped {skipped} existing")


@store_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask store init' to seed the catalog.")


@click.group('orders')
def orders_group():
    """Order inspection commands."""


@orders_group.command('list')
@click.option('--status', default=None, help='Filter by status, e.g. Placed or PICKED_UP')
@click.option('--limit', type=int, default=20, show_default=True)
@with_appcontext
def list_orders_cli(status, limit):
    """List recent orders, newest first."""
    try:
        status_value = parse_status(status).value if status else None
    except InvalidTransitionError as e:
        raise click.BadParameter(str(e), param_hint='--status')

    orders = order_service.list_orders(status_value)[:limit]
    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"\n{'ID':<11} {'Status':<10} {'Type':<9} {'Total':>10}  {'Customer':<24} Placed")
    click.echo("-" * 90)
    for order in orders:
        click.echo(
            f"{order.id:<11} {order.status:<10} {order.fulfillment_type:<9} "
            f"{format_money(order.total):>10}  {order.customer_name[:24]:<24} "
            f"{order.created_at:%Y-%m-%d %H:%M}"
        )
    click.echo(f"\nTotal: {len(orders)} orders")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(store_group)
    app.cli.add_command(orders_group)
