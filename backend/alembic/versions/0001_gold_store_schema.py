"""gold_store_schema

Revision ID: 0001_gold_store_schema
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_gold_store_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'gold_prices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('price_per_gram', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('carat', sa.String(length=10), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_gold_prices_id'), 'gold_prices', ['id'], unique=False)
    op.create_index(op.f('ix_gold_prices_updated_at'), 'gold_prices', ['updated_at'], unique=False)

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('weight', sa.Numeric(precision=10, scale=3), nullable=False),
        sa.Column('carat', sa.String(length=10), nullable=False, server_default='24K'),
        sa.Column('making_charges', sa.Numeric(precision=7, scale=2), nullable=False, server_default='5'),
        sa.Column('profit_margin', sa.Numeric(precision=7, scale=2), nullable=False, server_default='10'),
        sa.Column('selling_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_products_id'), 'products', ['id'], unique=False)
    op.create_index(op.f('ix_products_category'), 'products', ['category'], unique=False)
    op.create_index(op.f('ix_products_carat'), 'products', ['carat'], unique=False)
    op.create_index(op.f('ix_products_is_active'), 'products', ['is_active'], unique=False)

    op.create_table(
        'price_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('old_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('new_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('gold_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_price_history_id'), 'price_history', ['id'], unique=False)
    op.create_index('ix_price_history_product_changed', 'price_history', ['product_id', 'changed_at'], unique=False)


def downgrade():
    op.drop_index('ix_price_history_product_changed', table_name='price_history')
    op.drop_index(op.f('ix_price_history_id'), table_name='price_history')
    op.drop_table('price_history')
    op.drop_index(op.f('ix_products_is_active'), table_name='products')
    op.drop_index(op.f('ix_products_carat'), table_name='products')
    op.drop_index(op.f('ix_products_category'), table_name='products')
    op.drop_index(op.f('ix_products_id'), table_name='products')
    op.drop_table('products')
    op.drop_index(op.f('ix_gold_prices_updated_at'), table_name='gold_prices')
    op.drop_index(op.f('ix_gold_prices_id'), table_name='gold_prices')
    op.drop_table('gold_prices')
