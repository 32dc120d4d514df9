"""loyalty rewards, expiration method and favorites

Revision ID: 0002_rewards_favorites
Revises: 0001_initial
Create Date: 2026-10-19 15:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0002_rewards_favorites'
down_revision: Union[str, None] = '0001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_REDEEMABLE_TABLES = ('products', 'product_variants', 'combos')


def upgrade() -> None:
    """Upgrade schema."""
    for table in _REDEEMABLE_TABLES:
        op.add_column(table, sa.Column('points_cost', sa.Integer(), nullable=True))
        op.add_column(table, sa.Column('is_redeemable', sa.Boolean(), nullable=False, server_default=sa.false()))

    op.add_column(
        'points_settings',
        sa.Column('expiration_method', sa.String(length=10), nullable=False, server_default='fifo'),
    )

    op.create_table(
        'customer_favorites',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=True),
        sa.Column('combo_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('combos.id', ondelete='CASCADE'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_customer_favorites_customer_created', 'customer_favorites', ['customer_id', 'created_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_customer_favorites_customer_created', table_name='customer_favorites')
    op.drop_table('customer_favorites')
    op.drop_column('points_settings', 'expiration_method')
    for table in _REDEEMABLE_TABLES:
        op.drop_column(table, 'is_redeemable')
        op.drop_column(table, 'points_cost')
