"""Initial schema: stock_records, reservations, movement_entries, sales orders, idempotency_records, item_thresholds

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create stock_records table
    op.create_table(
        'stock_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.String(length=64), nullable=False),
        sa.Column('warehouse_id', sa.String(length=64), nullable=False),
        sa.Column('quantity_on_hand', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quantity_reserved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_cost', sa.DECIMAL(precision=12, scale=4), nullable=False, server_default='0'),
        sa.Column('last_received_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('item_id', 'warehouse_id', name='uq_stock_records_item_warehouse'),
        sa.CheckConstraint('quantity_on_hand >= 0', name='ck_stock_records_on_hand'),
        sa.CheckConstraint('quantity_reserved >= 0', name='ck_stock_records_reserved'),
        sa.CheckConstraint('quantity_reserved <= quantity_on_hand', name='ck_stock_records_reserved_le_on_hand')
    )
    op.create_index('ix_stock_records_item_id', 'stock_records', ['item_id'])
    op.create_index('ix_stock_records_warehouse_id', 'stock_records', ['warehouse_id'])

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('item_id', sa.String(length=64), nullable=False),
        sa.Column('warehouse_id', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('quantity_consumed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quantity_released', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('state', sa.Enum('ACTIVE', 'CONSUMED', 'RELEASED', name='reservationstate'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('consumed_at', sa.DateTime(), nullable=True),
        sa.Column('released_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_reservations_quantity_positive'),
        sa.CheckConstraint(
            'quantity_consumed + quantity_released <= quantity',
            name='ck_reservations_settled_le_quantity'
        )
    )
    op.create_index('ix_reservations_order_id', 'reservations', ['order_id'])
    op.create_index('ix_reservations_item_warehouse_state', 'reservations', ['item_id', 'warehouse_id', 'state'])

    # Create movement_entries table
    op.create_table(
        'movement_entries',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('movement_type', sa.Enum('RECEIPT', 'CONSUMPTION', 'ADJUSTMENT', 'RELEASE_NOOP', name='movementtype'), nullable=False),
        sa.Column('item_id', sa.String(length=64), nullable=False),
        sa.Column('warehouse_id', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_cost', sa.DECIMAL(precision=12, scale=4), nullable=True),
        sa.Column('reference_id', sa.String(length=64), nullable=True),
        sa.Column('reservation_id', sa.String(length=36), nullable=True),
        sa.Column('idempotency_key', sa.String(length=255), nullable=True),
        sa.Column('balance_on_hand', sa.Integer(), nullable=False),
        sa.Column('balance_reserved', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_movement_entries_reference_id', 'movement_entries', ['reference_id'])
    op.create_index('ix_movement_entries_idempotency_key', 'movement_entries', ['idempotency_key'], unique=True)
    op.create_index('ix_movement_entries_item_warehouse', 'movement_entries', ['item_id', 'warehouse_id'])
    op.create_index('ix_movement_entries_created_at', 'movement_entries', ['created_at'])

    # Create sales_orders table
    op.create_table(
        'sales_orders',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('customer_id', sa.String(length=64), nullable=False),
        sa.Column('status', sa.Enum('DRAFT', 'CONFIRMED', 'PARTIALLY_SHIPPED', 'SHIPPED', 'CANCELLED', name='salesorderstatus'), nullable=False),
        sa.Column('warehouse_id', sa.String(length=64), nullable=True),
        sa.Column('reservation_ids', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('shipped_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number')
    )
    op.create_index('ix_sales_orders_customer_id', 'sales_orders', ['customer_id'])
    op.create_index('ix_sales_orders_status', 'sales_orders', ['status'])

    # Create sales_order_lines table
    op.create_table(
        'sales_order_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('item_id', sa.String(length=64), nullable=False),
        sa.Column('quantity_ordered', sa.Integer(), nullable=False),
        sa.Column('quantity_delivered', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_price', sa.DECIMAL(precision=12, scale=2), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['order_id'], ['sales_orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id', 'item_id', name='uq_sales_order_lines_order_item'),
        sa.CheckConstraint('quantity_ordered > 0', name='ck_sales_order_lines_ordered_positive'),
        sa.CheckConstraint(
            'quantity_delivered >= 0 AND quantity_delivered <= quantity_ordered',
            name='ck_sales_order_lines_delivered_range'
        )
    )
    op.create_index('ix_sales_order_lines_order_id', 'sales_order_lines', ['order_id'])

    # Create idempotency_records table
    op.create_table(
        'idempotency_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('operation', sa.String(length=20), nullable=False),
        sa.Column('idempotency_key', sa.String(length=255), nullable=False),
        sa.Column('result', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'order_id', 'operation', 'idempotency_key',
            name='uq_idempotency_records_order_operation_key'
        )
    )

    # Create item_thresholds table
    op.create_table(
        'item_thresholds',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.String(length=64), nullable=False),
        sa.Column('minimum_quantity', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('item_id'),
        sa.CheckConstraint('minimum_quantity >= 0', name='ck_item_thresholds_minimum')
    )


def downgrade():
    op.drop_table('item_thresholds')
    op.drop_table('idempotency_records')
    op.drop_index('ix_sales_order_lines_order_id', table_name='sales_order_lines')
    op.drop_table('sales_order_lines')
    op.drop_index('ix_sales_orders_status', table_name='sales_orders')
    op.drop_index('ix_sales_orders_customer_id', table_name='sales_orders')
    op.drop_table('sales_orders')
    op.drop_index('ix_movement_entries_created_at', table_name='movement_entries')
    op.drop_index('ix_movement_entries_item_warehouse', table_name='movement_entries')
    op.drop_index('ix_movement_entries_idempotency_key', table_name='movement_entries')
    op.drop_index('ix_movement_entries_reference_id', table_name='movement_entries')
    op.drop_table('movement_entries')
    op.drop_index('ix_reservations_item_warehouse_state', table_name='reservations')
    op.drop_index('ix_reservations_order_id', table_name='reservations')
    op.drop_table('reservations')
    op.drop_index('ix_stock_records_warehouse_id', table_name='stock_records')
    op.drop_index('ix_stock_records_item_id', table_name='stock_records')
    op.drop_table('stock_records')
