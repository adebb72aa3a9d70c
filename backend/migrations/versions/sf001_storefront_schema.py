"""storefront schema

Revision ID: sf001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the storefront schema from scratch:
- products / product_variants: catalog with per-variant price and stock
- carts / cart_lines: server-side checkout session and its line snapshot
- orders / order_lines / order_status_changes: placed orders and status audit
- customers / session_tokens: phone + PIN accounts and bearer sessions
- store_settings / setting_audits / delivery_zones: store configuration
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'sf001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    # ============================================================================
    # Catalog
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('product_type', sa.String(length=16), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('brand', sa.String(length=128), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('strain', sa.String(length=16), nullable=True),
        sa.Column('thc_percentage', sa.Float(), nullable=True),
        sa.Column('cbd_percentage', sa.Float(), nullable=True),
        sa.Column('puff_count', sa.Integer(), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(length=512), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('is_featured', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_category', 'products', ['category'])
    op.create_index('ix_products_brand', 'products', ['brand'])
    op.create_index('ix_products_is_published', 'products', ['is_published'])
    op.create_index('ix_products_published_category', 'products', ['is_published', 'category'])

    op.create_table(
        'product_variants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=32), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('label', sa.String(length=32), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('weight_grams', sa.Float(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'label', name='uq_product_variants_label'),
        sa.CheckConstraint('price >= 0', name='ck_product_variants_price'),
        sa.CheckConstraint('stock >= 0', name='ck_product_variants_stock'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_product_variants_product_id', 'product_variants', ['product_id'])

    # ============================================================================
    # Carts
    # ============================================================================
    op.create_table(
        'carts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('customer_name', sa.String(length=128), nullable=True),
        sa.Column('customer_phone', sa.String(length=32), nullable=True),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('fulfillment_type', sa.String(length=16), nullable=False),
        sa.Column('applied_referral_code', sa.String(length=32), nullable=True),
        sa.Column('zone_status', sa.String(length=32), nullable=False),
        sa.Column('resolved_zone_id', sa.String(length=32), nullable=True),
        sa.Column('resolved_zone_name', sa.String(length=128), nullable=True),
        sa.Column('resolved_zone_fee', sa.Float(), nullable=True),
        sa.Column('resolved_zone_min_order', sa.Float(), nullable=True),
        *_timestamps(),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_carts_token', 'carts', ['token'], unique=True)

    op.create_table(
        'cart_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cart_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=32), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('brand', sa.String(length=128), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('image_url', sa.String(length=512), nullable=True),
        sa.Column('variant_label', sa.String(length=32), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('weight_grams', sa.Float(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('added_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['cart_id'], ['carts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cart_id', 'product_id', 'variant_label', name='uq_cart_lines_identity'),
        sa.CheckConstraint('quantity > 0', name='ck_cart_lines_quantity'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_cart_lines_cart_id', 'cart_lines', ['cart_id'])

    # ============================================================================
    # Orders
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=16), nullable=False),
        sa.Column('customer_name', sa.String(length=128), nullable=False),
        sa.Column('customer_phone', sa.String(length=32), nullable=False),
        sa.Column('customer_phone_digits', sa.String(length=32), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('subtotal', sa.Float(), nullable=False),
        sa.Column('discount_amount', sa.Float(), nullable=False),
        sa.Column('tax', sa.Float(), nullable=False),
        sa.Column('delivery_fee', sa.Float(), nullable=False),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('tax_rate', sa.Float(), nullable=False),
        sa.Column('discount_percentage', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('fulfillment_type', sa.String(length=16), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('generated_referral_code', sa.String(length=16), nullable=False),
        sa.Column('applied_referral_code', sa.String(length=32), nullable=True),
        sa.Column('delivery_zone_name', sa.String(length=128), nullable=True),
        sa.Column('loyalty_points', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_customer_phone_digits', 'orders', ['customer_phone_digits'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_generated_referral_code', 'orders', ['generated_referral_code'], unique=True)
    op.create_index('ix_orders_status_created', 'orders', ['status', 'created_at'])
    op.create_index('ix_orders_applied_referral_status', 'orders', ['applied_referral_code', 'status'])

    op.create_table(
        'order_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=16), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=32), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('brand', sa.String(length=128), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('variant_label', sa.String(length=32), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('weight_grams', sa.Float(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('line_total', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_lines_order_id', 'order_lines', ['order_id'])
    op.create_index('ix_order_lines_product_id', 'order_lines', ['product_id'])

    op.create_table(
        'order_status_changes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=16), nullable=False),
        sa.Column('from_status', sa.String(length=16), nullable=False),
        sa.Column('to_status', sa.String(length=16), nullable=False),
        sa.Column('changed_by', sa.String(length=64), nullable=True),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_status_changes_order_occurred', 'order_status_changes', ['order_id', 'occurred_at'])

    # ============================================================================
    # Customers and sessions
    # ============================================================================
    op.create_table(
        'customers',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('pin_hash', sa.String(length=128), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('customer_id', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_kind', 'session_tokens', ['kind'])
    op.create_index('ix_session_tokens_customer_id', 'session_tokens', ['customer_id'])

    # ============================================================================
    # Store settings and delivery zones
    # ============================================================================
    op.create_table(
        'store_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('value', sa.JSON(), nullable=True),
        sa.Column('updated_by', sa.String(length=64), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_store_settings_key', 'store_settings', ['key'], unique=True)

    op.create_table(
        'setting_audits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('old_value', sa.JSON(), nullable=True),
        sa.Column('new_value', sa.JSON(), nullable=True),
        sa.Column('changed_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_setting_audits_key_created', 'setting_audits', ['key', 'created_at'])

    op.create_table(
        'delivery_zones',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('center_address', sa.String(length=255), nullable=True),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lng', sa.Float(), nullable=False),
        sa.Column('radius_miles', sa.Float(), nullable=False),
        sa.Column('fee', sa.Float(), nullable=False),
        sa.Column('min_order', sa.Float(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('radius_miles >= 0', name='ck_delivery_zones_radius'),
        sa.CheckConstraint('fee >= 0', name='ck_delivery_zones_fee'),
        sa.CheckConstraint('min_order >= 0', name='ck_delivery_zones_min_order'),
    )
    op.create_index('ix_delivery_zones_position', 'delivery_zones', ['position'])


def downgrade():
    op.drop_table('delivery_zones')
    op.drop_table('setting_audits')
    op.drop_table('store_settings')
    op.drop_table('session_tokens')
    op.drop_table('customers')
    op.drop_table('order_status_changes')
    op.drop_table('order_lines')
    op.drop_table('orders')
    op.drop_table('cart_lines')
    op.drop_table('carts')
    op.drop_table('product_variants')
    op.drop_table('products')
