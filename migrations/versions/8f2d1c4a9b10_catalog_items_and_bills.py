"""catalog items and bills

Revision ID: 8f2d1c4a9b10
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '8f2d1c4a9b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'items',
        sa.Column('item_id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('arabic_name', sa.String(length=255), nullable=False),
        sa.Column('buying_price', sa.Numeric(12, 3), nullable=True),
        sa.Column('selling_price', sa.Numeric(12, 3), nullable=False),
        sa.Column('purchase_percentage', sa.Numeric(5, 2), nullable=True),
        sa.Column('sell_percentage', sa.Numeric(5, 2), nullable=True),
        sa.Column('is_wire_box', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('unit', sa.String(length=50), nullable=False, server_default='pcs'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('item_id'),
    )
    op.create_index('ix_items_deleted_at', 'items', ['deleted_at'])
    op.create_index('ix_items_name', 'items', ['name'])

    op.create_table(
        'bills',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('total_amount', sa.Numeric(14, 3), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_bills_created_at', 'bills', ['created_at'])

    op.create_table(
        'bill_items',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), nullable=False),
        sa.Column('bill_id', sa.String(length=36), nullable=False),
        sa.Column('item_id', sa.String(length=100), nullable=False),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        sa.Column('arabic_name', sa.String(length=255), nullable=True),
        sa.Column('unit', sa.String(length=50), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 3), nullable=False),
        sa.Column('base_selling_price', sa.Numeric(12, 3), nullable=False),
        sa.ForeignKeyConstraint(['bill_id'], ['bills.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_bill_items_bill_id', 'bill_items', ['bill_id'])


def downgrade():
    op.drop_index('ix_bill_items_bill_id', table_name='bill_items')
    op.drop_table('bill_items')
    op.drop_index('ix_bills_created_at', table_name='bills')
    op.drop_table('bills')
    op.drop_index('ix_items_name', table_name='items')
    op.drop_index('ix_items_deleted_at', table_name='items')
    op.drop_table('items')
