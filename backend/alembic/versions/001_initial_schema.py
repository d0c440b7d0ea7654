"""Initial Schema - FarmFlow Produktionsplanung

Revision ID: 001
Revises:
Create Date: 2026-10-17

Erstellt Stammdaten, Bestellungen, Daueraufträge, Chargen, Aufgaben
und Nummernkreise.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid():
    return postgresql.UUID(as_uuid=True)


def _id_column():
    return sa.Column('id', _uuid(), primary_key=True, server_default=sa.text('gen_random_uuid()'))


crop_category = sa.Enum('MICROGREENS', 'MUSHROOMS', name='cropcategory')
date_type = sa.Enum('HARVEST', 'START', name='datetype')
order_status = sa.Enum('PENDING', 'CONFIRMED', 'IN_PROGRESS', 'DELIVERED', 'CANCELLED', name='orderstatus')
order_source = sa.Enum('MANUAL', 'RECURRING', 'STANDING_ORDER', name='ordersource')
recurrence_frequency = sa.Enum('WEEKLY', 'BIWEEKLY', 'MONTHLY', name='recurrencefrequency')
production_type = sa.Enum(
    'MICROGREENS_TRAY', 'MUSHROOM_IN_HOUSE', 'MUSHROOM_READY_TO_FRUIT', name='productiontype'
)
batch_status = sa.Enum(
    'PLANNED', 'SOAKING', 'PLANTED', 'BLACKOUT', 'GROWING', 'READY_TO_HARVEST', 'HARVESTING',
    'INOCULATED', 'INCUBATING', 'FRUITING', 'HARVESTED', 'DISPOSED', 'CANCELLED',
    name='batchstatus',
)
task_type = sa.Enum(
    'SOW', 'SOAK', 'PLANT', 'UNCOVER', 'WATER', 'MOVE', 'INTRODUCE', 'INSPECT', 'RECEIVE',
    'HARVEST', 'DELIVERY', 'CUSTOM',
    name='tasktype',
)
task_status = sa.Enum('PENDING', 'IN_PROGRESS', 'COMPLETED', 'SKIPPED', name='taskstatus')
task_source = sa.Enum('AUTO_ORDER', 'AUTO_BATCH', 'MANUAL', name='tasksource')
# Zweite Verwendung in tasks, Typ existiert dann bereits
task_source_existing = postgresql.ENUM(name='tasksource', create_type=False)
task_priority = sa.Enum('LOW', 'MEDIUM', 'HIGH', name='taskpriority')
quality_grade = sa.Enum('A', 'B', 'C', 'WASTE', name='qualitygrade')


def upgrade() -> None:
    # Crops (Kulturen)
    op.create_table(
        'crops',
        _id_column(),
        sa.Column('tenant_id', _uuid(), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False, index=True),
        sa.Column('variety', sa.String(100)),
        sa.Column('category', crop_category, nullable=False),
        sa.Column('growth_days', sa.Integer, nullable=False),
        sa.Column('blackout_days', sa.Integer, server_default='0'),
        sa.Column('soak_hours', sa.Numeric(5, 1), server_default='0'),
        sa.Column('soak_rate', sa.Numeric(10, 2)),
        sa.Column('soak_rate_unit', sa.String(10), server_default='oz'),
        sa.Column('yield_per_unit', sa.Numeric(10, 2)),
        sa.Column('unit', sa.String(10), server_default='oz'),
        sa.Column('flush_count', sa.Integer, server_default='1'),
        sa.Column('days_per_flush', sa.Integer),
        sa.Column('fruiting_temp', sa.String(50)),
        sa.Column('humidity', sa.String(50)),
        sa.Column('is_active', sa.Boolean, server_default='true'),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime, server_default=sa.text('NOW()')),
    )

    # Customers, Products, Locations (Stammdaten)
    op.create_table(
        'customers',
        _id_column(),
        sa.Column('tenant_id', _uuid(), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False, index=True),
        sa.Column('email', sa.String(200)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.Text),
        sa.Column('delivery_instructions', sa.Text),
        sa.Column('is_active', sa.Boolean, server_default='true'),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('NOW()')),
    )

    op.create_table(
        'products',
        _id_column(),
        sa.Column('tenant_id', _uuid(), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('sku', sa.String(50), index=True),
        sa.Column('crop_id', _uuid(), sa.ForeignKey('crops.id', ondelete='SET NULL')),
        sa.Column('base_price', sa.Numeric(10, 2), server_default='0'),
        sa.Column('is_active', sa.Boolean, server_default='true'),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('NOW()')),
    )

    op.create_table(
        'locations',
        _id_column(),
        sa.Column('tenant_id', _uuid(), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(50)),
        sa.Column('capacity', sa.Integer, server_default='100'),
        sa.Column('is_active', sa.Boolean, server_default='true'),
    )

    # Standing Orders (Daueraufträge)
    op.create_table(
        'standing_orders',
        _id_column(),
        sa.Column('tenant_id', _uuid(), nullable=False, index=True),
        sa.Column('customer_id', _uuid(), sa.ForeignKey('customers.id'), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('notes', sa.Text),
        sa.Column('delivery_days', sa.JSON),
        sa.Column('delivery_time', sa.Time),
        sa.Column('generate_days_ahead', sa.Integer, server_default='7'),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date),
        sa.Column('auto_generate', sa.Boolean, server_default='true'),
        sa.Column('is_active', sa.Boolean, server_default='true'),
        sa.Column('is_paused', sa.Boolean, server_default='false'),
        sa.Column('paused_until', sa.Date),
        sa.Column('last_generated_at', sa.DateTime),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime, server_default=sa.text('NOW()')),
        sa.Column('created_by', _uuid()),
    )

    op.create_table(
        'standing_order_items',
        _id_column(),
        sa.Column('standing_order_id', _uuid(),
                  sa.ForeignKey('standing_orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', _uuid(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('quantity', sa.Numeric(10, 2), nullable=False),
    )

    # Orders (Bestellungen)
    op.create_table(
        'orders',
        _id_column(),
        sa.Column('tenant_id', _uuid(), nullable=False, index=True),
        sa.Column('order_number', sa.String(30), nullable=False, index=True),
        sa.Column('customer_id', _uuid(), sa.ForeignKey('customers.id'), nullable=False, index=True),
        sa.Column('customer_name', sa.String(200)),
        sa.Column('date_type', date_type, nullable=False),
        sa.Column('target_date', sa.Date, nullable=False),
        sa.Column('delivery_offset', sa.Integer, server_default='1'),
        sa.Column('harvest_date', sa.Date, nullable=False, index=True),
        sa.Column('delivery_date', sa.Date, nullable=False, index=True),
        sa.Column('status', order_status, server_default='PENDING', index=True),
        sa.Column('source', order_source, server_default='MANUAL'),
        sa.Column('total', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('is_recurring', sa.Boolean, server_default='false'),
        sa.Column('frequency', recurrence_frequency),
        sa.Column('recurring_end_date', sa.Date),
        sa.Column('recurrence_group_id', _uuid(), index=True),
        sa.Column('standing_order_id', _uuid(),
                  sa.ForeignKey('standing_orders.id', ondelete='SET NULL'), index=True),
        sa.Column('notes', sa.Text),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime, server_default=sa.text('NOW()')),
        sa.Column('created_by', _uuid()),
        sa.UniqueConstraint('tenant_id', 'order_number', name='uq_orders_tenant_number'),
        sa.UniqueConstraint('standing_order_id', 'delivery_date', name='uq_orders_standing_delivery'),
    )

    op.create_table(
        'order_items',
        _id_column(),
        sa.Column('order_id', _uuid(), sa.ForeignKey('orders.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('position', sa.Integer, server_default='1'),
        sa.Column('crop_id', _uuid(), sa.ForeignKey('crops.id'), nullable=False, index=True),
        sa.Column('product_id', _uuid(), sa.ForeignKey('products.id', ondelete='SET NULL')),
        sa.Column('quantity', sa.Numeric(10, 2), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), server_default='0'),
        sa.Column('line_total', sa.Numeric(12, 2), server_default='0'),
    )

    # Production Batches (Chargen)
    op.create_table(
        'production_batches',
        _id_column(),
        sa.Column('tenant_id', _uuid(), nullable=False, index=True),
        sa.Column('batch_code', sa.String(30), nullable=False, index=True),
        sa.Column('crop_id', _uuid(), sa.ForeignKey('crops.id'), nullable=False, index=True),
        sa.Column('order_id', _uuid(), sa.ForeignKey('orders.id', ondelete='SET NULL'), index=True),
        sa.Column('location_id', _uuid(), sa.ForeignKey('locations.id', ondelete='SET NULL')),
        sa.Column('production_type', production_type, nullable=False),
        sa.Column('status', batch_status, server_default='PLANNED', index=True),
        sa.Column('source', task_source, server_default='MANUAL'),
        sa.Column('planned_sow_date', sa.Date, nullable=False, index=True),
        sa.Column('planned_harvest_date', sa.Date, nullable=False, index=True),
        sa.Column('actual_sow_date', sa.Date),
        sa.Column('actual_harvest_date', sa.Date),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('expected_yield', sa.Numeric(10, 2), server_default='0'),
        sa.Column('actual_yield', sa.Numeric(10, 2), server_default='0'),
        sa.Column('yield_unit', sa.String(10), server_default='oz'),
        sa.Column('current_flush', sa.Integer, server_default='1'),
        sa.Column('max_flushes', sa.Integer, server_default='1'),
        sa.Column('notes', sa.Text),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime, server_default=sa.text('NOW()')),
        sa.Column('created_by', _uuid()),
    )

    op.create_table(
        'batch_harvests',
        _id_column(),
        sa.Column('batch_id', _uuid(), sa.ForeignKey('production_batches.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('harvest_date', sa.Date, nullable=False),
        sa.Column('quantity', sa.Numeric(10, 2), nullable=False),
        sa.Column('unit', sa.String(10), server_default='oz'),
        sa.Column('quality_grade', quality_grade, server_default='A'),
        sa.Column('flush_number', sa.Integer, server_default='1'),
        sa.Column('notes', sa.Text),
        sa.Column('harvested_by', _uuid()),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('NOW()')),
    )

    op.create_table(
        'batch_movements',
        _id_column(),
        sa.Column('batch_id', _uuid(), sa.ForeignKey('production_batches.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('from_location_id', _uuid()),
        sa.Column('to_location_id', _uuid(), nullable=False),
        sa.Column('reason', sa.String(200)),
        sa.Column('moved_at', sa.DateTime, nullable=False),
        sa.Column('moved_by', _uuid()),
    )

    # Tasks (Aufgaben)
    op.create_table(
        'tasks',
        _id_column(),
        sa.Column('tenant_id', _uuid(), nullable=False, index=True),
        sa.Column('type', task_type, nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('category', sa.String(50)),
        sa.Column('due_date', sa.Date, nullable=False, index=True),
        sa.Column('status', task_status, server_default='PENDING', index=True),
        sa.Column('priority', task_priority, server_default='MEDIUM'),
        sa.Column('source', task_source_existing, server_default='MANUAL'),
        sa.Column('estimated_minutes', sa.Integer),
        sa.Column('details', sa.JSON),
        sa.Column('notes', sa.Text),
        sa.Column('batch_id', _uuid(),
                  sa.ForeignKey('production_batches.id', ondelete='SET NULL'), index=True),
        sa.Column('order_id', _uuid(), sa.ForeignKey('orders.id', ondelete='SET NULL'), index=True),
        sa.Column('crop_id', _uuid(), sa.ForeignKey('crops.id', ondelete='SET NULL')),
        sa.Column('location_id', _uuid(), sa.ForeignKey('locations.id', ondelete='SET NULL')),
        sa.Column('completed_at', sa.DateTime),
        sa.Column('completed_by', _uuid()),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime, server_default=sa.text('NOW()')),
        sa.Column('created_by', _uuid()),
    )

    # Sequence Counters (Nummernkreise)
    op.create_table(
        'sequence_counters',
        _id_column(),
        sa.Column('tenant_id', _uuid(), nullable=False),
        sa.Column('kind', sa.String(20), nullable=False),
        sa.Column('period', sa.String(20), nullable=False),
        sa.Column('value', sa.Integer, nullable=False, server_default='0'),
        sa.UniqueConstraint('tenant_id', 'kind', 'period', name='uq_sequence_counter'),
    )


def downgrade() -> None:
    op.drop_table('sequence_counters')
    op.drop_table('tasks')
    op.drop_table('batch_movements')
    op.drop_table('batch_harvests')
    op.drop_table('production_batches')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('standing_order_items')
    op.drop_table('standing_orders')
    op.drop_table('locations')
    op.drop_table('products')
    op.drop_table('customers')
    op.drop_table('crops')

    bind = op.get_bind()
    for enum_type in (
        quality_grade, task_priority, task_source, task_status, task_type, batch_status,
        production_type, recurrence_frequency, order_source, order_status, date_type, crop_category,
    ):
        enum_type.drop(bind, checkfirst=True)
