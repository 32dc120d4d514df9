"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False)


def _fk(name, target, ondelete, nullable=True):
    return sa.Column(name, postgresql.UUID(as_uuid=True), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable)


def _money(name, nullable=True):
    return sa.Column(name, sa.Numeric(10, 2), nullable=nullable)


def _zone_prices(prefix=''):
    return [
        _money(f'{prefix}precio_pickup_capital'),
        _money(f'{prefix}precio_domicilio_capital'),
        _money(f'{prefix}precio_pickup_interior'),
        _money(f'{prefix}precio_domicilio_interior'),
    ]


def _jsonb(name, nullable=True):
    return sa.Column(name, postgresql.JSONB(astext_type=sa.Text()), nullable=nullable)


def _ts(name, nullable=True):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def _stamps():
    return [_ts('created_at'), _ts('updated_at')]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'restaurants',
        _id(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('email', sa.String(length=320), nullable=True),
        sa.Column('latitude', sa.Numeric(10, 7), nullable=True),
        sa.Column('longitude', sa.Numeric(10, 7), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('delivery_active', sa.Boolean(), nullable=False),
        sa.Column('pickup_active', sa.Boolean(), nullable=False),
        sa.Column('price_location', sa.String(length=20), nullable=False),
        _jsonb('schedule'),
        _money('minimum_order_amount', nullable=False),
        sa.Column('estimated_pickup_time', sa.Integer(), nullable=True),
        sa.Column('estimated_delivery_time', sa.Integer(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_restaurants_is_active', 'restaurants', ['is_active'])

    # Staff, roles and permissions
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('is_superadmin', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _fk('restaurant_id', 'restaurants.id', 'SET NULL'),
        sa.Column('is_driver', sa.Boolean(), nullable=False),
        _ts('last_activity_at'),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_table(
        'roles',
        _id(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_system', sa.Boolean(), nullable=False),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_table(
        'permissions',
        _id(),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('display_name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('group', sa.String(length=100), nullable=False),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_table(
        'role_permissions',
        _fk('role_id', 'roles.id', 'CASCADE', nullable=False),
        _fk('permission_id', 'permissions.id', 'CASCADE', nullable=False),
        sa.PrimaryKeyConstraint('role_id', 'permission_id'),
    )
    op.create_index('idx_role_permissions_permission_id', 'role_permissions', ['permission_id'])
    op.create_table(
        'user_roles',
        _fk('user_id', 'users.id', 'CASCADE', nullable=False),
        _fk('role_id', 'roles.id', 'CASCADE', nullable=False),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('user_id', 'role_id'),
    )
    op.create_index('idx_user_roles_role_id', 'user_roles', ['role_id'])

    # Menu catalog
    op.create_table(
        'categories',
        _id(),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('uses_variants', sa.Boolean(), nullable=False),
        sa.Column('is_combo_category', sa.Boolean(), nullable=False),
        _jsonb('variant_definitions'),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_categories_active_order', 'categories', ['is_active', 'sort_order'])
    op.create_table(
        'products',
        _id(),
        _fk('category_id', 'categories.id', 'SET NULL'),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('has_variants', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        *_zone_prices(),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_products_category_id', 'products', ['category_id'])
    op.create_index('idx_products_is_active', 'products', ['is_active'])
    op.create_table(
        'category_product',
        _id(),
        _fk('category_id', 'categories.id', 'CASCADE', nullable=False),
        _fk('product_id', 'products.id', 'CASCADE', nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('category_id', 'product_id', name='uq_category_product'),
    )
    op.create_index('idx_category_product_order', 'category_product', ['category_id', 'sort_order'])
    op.create_table(
        'product_variants',
        _id(),
        _fk('product_id', 'products.id', 'CASCADE', nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('size', sa.String(length=50), nullable=True),
        sa.Column('is_daily_special', sa.Boolean(), nullable=False),
        _jsonb('daily_special_days'),
        *_zone_prices('daily_special_'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        *_zone_prices(),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku'),
    )
    op.create_index('idx_product_variants_product_id', 'product_variants', ['product_id'])
    op.create_index('idx_product_variants_is_active', 'product_variants', ['is_active'])
    op.create_table(
        'sections',
        _id(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_required', sa.Boolean(), nullable=False),
        sa.Column('allow_multiple', sa.Boolean(), nullable=False),
        sa.Column('min_selections', sa.Integer(), nullable=False),
        sa.Column('max_selections', sa.Integer(), nullable=True),
        sa.Column('bundle_discount_enabled', sa.Boolean(), nullable=False),
        sa.Column('bundle_size', sa.Integer(), nullable=False),
        _money('bundle_discount_amount'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'section_options',
        _id(),
        _fk('section_id', 'sections.id', 'CASCADE', nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('is_extra', sa.Boolean(), nullable=False),
        _money('price_modifier', nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_section_options_section_id', 'section_options', ['section_id'])
    op.create_table(
        'product_sections',
        _id(),
        _fk('product_id', 'products.id', 'CASCADE', nullable=False),
        _fk('section_id', 'sections.id', 'CASCADE', nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'section_id', name='uq_product_section'),
    )
    op.create_index('idx_product_sections_section_id', 'product_sections', ['section_id'])
    op.create_table(
        'combos',
        _id(),
        _fk('category_id', 'categories.id', 'SET NULL'),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        *_zone_prices(),
        *_stamps(),
        _ts('deleted_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index('idx_combos_category_id', 'combos', ['category_id'])
    op.create_index('idx_combos_is_active', 'combos', ['is_active'])
    op.create_table(
        'combo_items',
        _id(),
        _fk('combo_id', 'combos.id', 'CASCADE', nullable=False),
        _fk('product_id', 'products.id', 'RESTRICT'),
        _fk('variant_id', 'product_variants.id', 'RESTRICT'),
        sa.Column('is_choice_group', sa.Boolean(), nullable=False),
        sa.Column('choice_label', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_combo_items_combo_choice_group', 'combo_items', ['combo_id', 'is_choice_group'])
    op.create_table(
        'combo_item_options',
        _id(),
        _fk('combo_item_id', 'combo_items.id', 'CASCADE', nullable=False),
        _fk('product_id', 'products.id', 'RESTRICT', nullable=False),
        _fk('variant_id', 'product_variants.id', 'RESTRICT'),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('combo_item_id', 'product_id', 'variant_id', name='uq_combo_item_option'),
    )

    # Promotions
    op.create_table(
        'promotions',
        _id(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=30), nullable=False),
        _money('special_bundle_price_capital'),
        _money('special_bundle_price_interior'),
        sa.Column('valid_from', sa.Date(), nullable=True),
        sa.Column('valid_until', sa.Date(), nullable=True),
        sa.Column('time_from', sa.Time(), nullable=True),
        sa.Column('time_until', sa.Time(), nullable=True),
        _jsonb('weekdays'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        _ts('created_at', nullable=False),
        _ts('updated_at'),
        _ts('deleted_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "type in ('two_for_one','percentage_discount','daily_special','bundle_special')",
            name='ck_promotions_type',
        ),
    )
    op.create_index('idx_promotions_type_active', 'promotions', ['type', 'is_active'])
    op.create_index('idx_promotions_dates', 'promotions', ['valid_from', 'valid_until'])
    op.create_table(
        'promotion_items',
        _id(),
        _fk('promotion_id', 'promotions.id', 'CASCADE', nullable=False),
        _fk('product_id', 'products.id', 'CASCADE'),
        _fk('variant_id', 'product_variants.id', 'CASCADE'),
        _fk('category_id', 'categories.id', 'CASCADE'),
        sa.Column('discount_percentage', sa.Integer(), nullable=True),
        sa.Column('service_type', sa.String(length=20), nullable=True),
        sa.Column('validity_type', sa.String(length=30), nullable=False),
        sa.Column('valid_from', sa.Date(), nullable=True),
        sa.Column('valid_until', sa.Date(), nullable=True),
        sa.Column('time_from', sa.Time(), nullable=True),
        sa.Column('time_until', sa.Time(), nullable=True),
        _jsonb('weekdays'),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_promotion_items_promotion_id', 'promotion_items', ['promotion_id'])
    op.create_index('idx_promotion_items_variant_id', 'promotion_items', ['variant_id'])
    op.create_index('idx_promotion_items_product_id', 'promotion_items', ['product_id'])
    op.create_index('idx_promotion_items_category_id', 'promotion_items', ['category_id'])
    op.create_table(
        'bundle_promotion_items',
        _id(),
        _fk('promotion_id', 'promotions.id', 'CASCADE', nullable=False),
        _fk('product_id', 'products.id', 'RESTRICT'),
        _fk('variant_id', 'product_variants.id', 'RESTRICT'),
        sa.Column('is_choice_group', sa.Boolean(), nullable=False),
        sa.Column('choice_label', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'bundle_promotion_item_options',
        _id(),
        _fk('bundle_item_id', 'bundle_promotion_items.id', 'CASCADE', nullable=False),
        _fk('product_id', 'products.id', 'RESTRICT', nullable=False),
        _fk('variant_id', 'product_variants.id', 'RESTRICT'),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    # Customers and loyalty
    op.create_table(
        'customer_types',
        _id(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('points_required', sa.Integer(), nullable=False),
        sa.Column('multiplier', sa.Numeric(4, 2), nullable=False),
        sa.Column('color', sa.String(length=20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'customers',
        _id(),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        _fk('customer_type_id', 'customer_types.id', 'SET NULL'),
        sa.Column('points', sa.Integer(), nullable=False),
        _ts('points_updated_at'),
        _ts('email_verified_at'),
        _ts('last_login_at'),
        _ts('last_activity_at'),
        _ts('last_purchase_at'),
        *_stamps(),
        _ts('deleted_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('idx_customers_customer_type_id', 'customers', ['customer_type_id'])
    op.create_index('idx_customers_last_purchase_at', 'customers', ['last_purchase_at'])
    op.create_table(
        'customer_addresses',
        _id(),
        _fk('customer_id', 'customers.id', 'CASCADE', nullable=False),
        sa.Column('label', sa.String(length=100), nullable=False),
        sa.Column('address_line', sa.Text(), nullable=False),
        sa.Column('latitude', sa.Numeric(10, 7), nullable=False),
        sa.Column('longitude', sa.Numeric(10, 7), nullable=False),
        sa.Column('delivery_notes', sa.Text(), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_customer_addresses_customer_id', 'customer_addresses', ['customer_id'])
    op.create_table(
        'customer_nits',
        _id(),
        _fk('customer_id', 'customers.id', 'CASCADE', nullable=False),
        sa.Column('nit', sa.String(length=20), nullable=False),
        sa.Column('nit_type', sa.String(length=20), nullable=False),
        sa.Column('business_name', sa.String(length=255), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('customer_id', 'nit', name='uq_customer_nits_customer_nit'),
    )
    op.create_table(
        'customer_devices',
        _id(),
        _fk('customer_id', 'customers.id', 'CASCADE', nullable=False),
        sa.Column('fcm_token', sa.String(length=500), nullable=True),
        sa.Column('device_identifier', sa.String(length=255), nullable=True),
        sa.Column('device_name', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('login_count', sa.Integer(), nullable=False),
        _ts('last_used_at'),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('fcm_token'),
        sa.UniqueConstraint('device_identifier'),
    )
    op.create_index('idx_customer_devices_customer_last_used', 'customer_devices', ['customer_id', 'last_used_at'])
    op.create_index('idx_customer_devices_is_active', 'customer_devices', ['is_active'])
    op.create_table(
        'customer_access_tokens',
        _id(),
        _fk('customer_id', 'customers.id', 'CASCADE', nullable=False),
        _fk('device_id', 'customer_devices.id', 'SET NULL'),
        sa.Column('token_id', sa.String(length=64), nullable=False),
        sa.Column('token_hash', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        _ts('created_at', nullable=False),
        _ts('last_used_at'),
        _ts('expires_at'),
        _ts('revoked_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token_id'),
    )
    op.create_index('idx_customer_tokens_customer_id', 'customer_access_tokens', ['customer_id'])
    op.create_table(
        'points_settings',
        _id(),
        sa.Column('quetzales_per_point', sa.Numeric(10, 2), nullable=False),
        sa.Column('rounding_threshold', sa.Numeric(4, 2), nullable=False),
        sa.Column('expiration_months', sa.Integer(), nullable=False),
        _ts('updated_at'),
        sa.PrimaryKeyConstraint('id'),
    )

    # Carts
    op.create_table(
        'carts',
        _id(),
        _fk('customer_id', 'customers.id', 'CASCADE', nullable=False),
        _fk('restaurant_id', 'restaurants.id', 'SET NULL'),
        sa.Column('service_type', sa.String(length=20), nullable=False),
        sa.Column('zone', sa.String(length=20), nullable=False),
        _fk('delivery_address_id', 'customer_addresses.id', 'SET NULL'),
        sa.Column('status', sa.String(length=20), nullable=False),
        _ts('expires_at'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_carts_customer_status', 'carts', ['customer_id', 'status'])
    op.create_table(
        'cart_items',
        _id(),
        _fk('cart_id', 'carts.id', 'CASCADE', nullable=False),
        _fk('product_id', 'products.id', 'CASCADE'),
        _fk('variant_id', 'product_variants.id', 'CASCADE'),
        _fk('combo_id', 'combos.id', 'CASCADE'),
        _fk('combinado_id', 'promotions.id', 'CASCADE'),
        sa.Column('quantity', sa.Integer(), nullable=False),
        _money('unit_price', nullable=False),
        _money('subtotal', nullable=False),
        _jsonb('selected_options'),
        _jsonb('combo_selections'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_stamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_cart_items_cart_id', 'cart_items', ['cart_id'])

    # Orders
    op.create_table(
        'orders',
        _id(),
        sa.Column('order_number', sa.String(length=40), nullable=False),
        _fk('customer_id', 'customers.id', 'RESTRICT', nullable=False),
        _fk('restaurant_id', 'restaurants.id', 'RESTRICT', nullable=False),
        _fk('driver_id', 'users.id', 'SET NULL'),
        sa.Column('service_type', sa.String(length=20), nullable=False),
        sa.Column('zone', sa.String(length=20), nullable=False),
        _fk('delivery_address_id', 'customer_addresses.id', 'SET NULL'),
        _jsonb('delivery_address_snapshot'),
        _money('subtotal', nullable=False),
        _money('discount_total', nullable=False),
        _money('delivery_fee', nullable=False),
        _money('total', nullable=False),
        sa.Column('status', sa.String(length=30), nullable=False),
        sa.Column('payment_method', sa.String(length=20), nullable=False),
        sa.Column('payment_status', sa.String(length=20), nullable=False),
        sa.Column('points_earned', sa.Integer(), nullable=False),
        _fk('nit_id', 'customer_nits.id', 'SET NULL'),
        _ts('scheduled_for'),
        _ts('estimated_ready_at'),
        _ts('ready_at'),
        _ts('delivered_at'),
        _ts('cancelled_at'),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _ts('created_at', nullable=False),
        _ts('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number'),
    )
    op.create_index('idx_orders_customer_created', 'orders', ['customer_id', 'created_at'])
    op.create_index('idx_orders_restaurant_status', 'orders', ['restaurant_id', 'status'])
    op.create_index('idx_orders_created_at', 'orders', ['created_at'])
    op.create_table(
        'order_items',
        _id(),
        _fk('order_id', 'orders.id', 'CASCADE', nullable=False),
        _fk('product_id', 'products.id', 'SET NULL'),
        _fk('variant_id', 'product_variants.id', 'SET NULL'),
        _fk('combo_id', 'combos.id', 'SET NULL'),
        _fk('combinado_id', 'promotions.id', 'SET NULL'),
        sa.Column('quantity', sa.Integer(), nullable=False),
        _money('unit_price', nullable=False),
        _money('subtotal', nullable=False),
        _money('options_price', nullable=False),
        _money('discount_amount', nullable=False),
        _money('final_price', nullable=False),
        _jsonb('selected_options'),
        _jsonb('combo_selections'),
        _jsonb('product_snapshot'),
        _jsonb('promotion_snapshot'),
        sa.Column('notes', sa.Text(), nullable=True),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_order_items_order_id', 'order_items', ['order_id'])
    op.create_table(
        'order_promotions',
        _id(),
        _fk('order_id', 'orders.id', 'CASCADE', nullable=False),
        _fk('promotion_id', 'promotions.id', 'SET NULL'),
        sa.Column('promotion_type', sa.String(length=30), nullable=False),
        sa.Column('promotion_name', sa.String(length=200), nullable=False),
        _money('discount_amount', nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _ts('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'order_status_history',
        _id(),
        _fk('order_id', 'orders.id', 'CASCADE', nullable=False),
        sa.Column('previous_status', sa.String(length=30), nullable=True),
        sa.Column('new_status', sa.String(length=30), nullable=False),
        sa.Column('changed_by_type', sa.String(length=20), nullable=False),
        sa.Column('changed_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _ts('created_at', nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_order_status_history_order_id', 'order_status_history', ['order_id', 'created_at'])
    op.create_table(
        'order_number_sequences',
        _id(),
        _fk('restaurant_id', 'restaurants.id', 'CASCADE', nullable=False),
        sa.Column('sequence_date', sa.Date(), nullable=False),
        sa.Column('last_value', sa.Integer(), nullable=False),
        _ts('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('restaurant_id', 'sequence_date', name='uq_order_number_sequences_restaurant_date'),
    )
    op.create_table(
        'customer_points_transactions',
        _id(),
        _fk('customer_id', 'customers.id', 'CASCADE', nullable=False),
        _fk('order_id', 'orders.id', 'SET NULL'),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _ts('expires_at'),
        sa.Column('is_expired', sa.Boolean(), nullable=False),
        _ts('created_at', nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_points_tx_customer_created', 'customer_points_transactions', ['customer_id', 'created_at'])
    op.create_index('idx_points_tx_expires_at', 'customer_points_transactions', ['expires_at'])

    # Audit, activity and push delivery logs
    op.create_table(
        'audit_logs',
        _id(),
        _fk('actor_user_id', 'users.id', 'SET NULL'),
        sa.Column('action_type', sa.Text(), nullable=False),
        sa.Column('target_type', sa.Text(), nullable=True),
        sa.Column('target_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _jsonb('metadata'),
        _ts('created_at', nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_actor_user_id_created_at', 'audit_logs', ['actor_user_id', 'created_at'])
    op.create_index('ix_audit_logs_action_type', 'audit_logs', ['action_type'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])
    op.create_table(
        'user_activities',
        _id(),
        _fk('user_id', 'users.id', 'SET NULL'),
        sa.Column('activity_type', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('url', sa.String(length=500), nullable=True),
        sa.Column('method', sa.String(length=10), nullable=True),
        _jsonb('metadata'),
        _ts('created_at', nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_activities_user_id_created_at', 'user_activities', ['user_id', 'created_at'])
    op.create_index('ix_user_activities_activity_type', 'user_activities', ['activity_type'])
    op.create_table(
        'push_notification_logs',
        _id(),
        _fk('customer_id', 'customers.id', 'CASCADE', nullable=False),
        _fk('device_id', 'customer_devices.id', 'SET NULL'),
        sa.Column('event_type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('body', sa.Text(), nullable=True),
        _jsonb('data'),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('provider_message_id', sa.String(length=255), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        _ts('sent_at'),
        _ts('created_at', nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_push_notification_logs_customer_created', 'push_notification_logs', ['customer_id', 'created_at'])
    op.create_index('idx_push_notification_logs_status', 'push_notification_logs', ['status'])
    op.create_index('idx_push_notification_logs_event_type', 'push_notification_logs', ['event_type'])


# Reverse dependency order; indexes go with their tables.
_TABLES = (
    'push_notification_logs',
    'user_activities',
    'audit_logs',
    'customer_points_transactions',
    'order_number_sequences',
    'order_status_history',
    'order_promotions',
    'order_items',
    'orders',
    'cart_items',
    'carts',
    'points_settings',
    'customer_access_tokens',
    'customer_devices',
    'customer_nits',
    'customer_addresses',
    'customers',
    'customer_types',
    'bundle_promotion_item_options',
    'bundle_promotion_items',
    'promotion_items',
    'promotions',
    'combo_item_options',
    'combo_items',
    'combos',
    'product_sections',
    'section_options',
    'sections',
    'product_variants',
    'category_product',
    'products',
    'categories',
    'user_roles',
    'role_permissions',
    'permissions',
    'roles',
    'users',
    'restaurants',
)


def downgrade() -> None:
    """Downgrade schema."""
    for table in _TABLES:
        op.drop_table(table)
