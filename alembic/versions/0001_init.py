"""create commerce tables

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'products',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('supplier_id', sa.String(64), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=True, unique=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('base_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('images', sa.JSON, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )
    op.create_table(
        'product_variants',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=True),
        sa.Column('inventory_quantity', sa.Integer, nullable=False, server_default='0'),
        sa.Column('position', sa.Integer, nullable=False, server_default='0'),
        sa.Column('options', sa.JSON, nullable=True),
        sa.Column('option1_name', sa.String(100), nullable=True),
        sa.Column('option1_value', sa.String(100), nullable=True),
        sa.Column('option2_name', sa.String(100), nullable=True),
        sa.Column('option2_value', sa.String(100), nullable=True),
        sa.Column('option3_name', sa.String(100), nullable=True),
        sa.Column('option3_value', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_number', sa.String(50), nullable=False, unique=True, index=True),
        sa.Column('customer_id', sa.String(64), nullable=False, index=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('shipping_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('shipping_address', sa.JSON, nullable=False),
        sa.Column('billing_address', sa.JSON, nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('internal_notes', sa.Text, nullable=True),
        sa.Column('shipped_at', sa.DateTime, nullable=True),
        sa.Column('delivered_at', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )
    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id'), nullable=False),
        sa.Column('variant_id', sa.Integer, sa.ForeignKey('product_variants.id', ondelete='SET NULL'), nullable=True),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )
    op.create_table(
        'product_reviews',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('variant_id', sa.Integer, sa.ForeignKey('product_variants.id', ondelete='SET NULL'), nullable=True),
        sa.Column('customer_id', sa.String(64), nullable=False, index=True),
        sa.Column('customer_name', sa.String(200), nullable=True),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id'), nullable=True),
        sa.Column('rating', sa.Integer, nullable=False),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('content', sa.Text, nullable=True),
        sa.Column('pros', sa.JSON, nullable=True),
        sa.Column('cons', sa.JSON, nullable=True),
        sa.Column('is_verified_purchase', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_approved', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('is_featured', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('helpful_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('response_content', sa.Text, nullable=True),
        sa.Column('responded_by', sa.String(50), nullable=True),
        sa.Column('responded_at', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
        sa.UniqueConstraint('customer_id', 'product_id', 'variant_id', name='uq_review_customer_product_variant'),
    )
    op.create_table(
        'product_review_helpful_votes',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('review_id', sa.Integer, sa.ForeignKey('product_reviews.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('customer_id', sa.String(64), nullable=False),
        sa.Column('is_helpful', sa.Boolean, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.UniqueConstraint('review_id', 'customer_id', name='uq_helpful_vote_review_customer'),
    )
    op.create_table(
        'wishlists',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False, index=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_wishlist_user_product'),
    )


def downgrade() -> None:
    op.drop_table('wishlists')
    op.drop_table('product_review_helpful_votes')
    op.drop_table('product_reviews')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('product_variants')
    op.drop_table('products')
