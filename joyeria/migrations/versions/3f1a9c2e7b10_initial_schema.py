"""initial_schema

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PAYMENT_METHODS = ('CASH', 'CARD', 'TRANSFER', 'MIXED')
MONEY = sa.Numeric(precision=14, scale=2)
ENUM_TYPES = (
    'paymentmethod',
    'saletype',
    'ledgerstatus',
    'receivablestatus',
    'extraincometype',
    'movementtype',
    'roleenum',
)


def _payment_method_type() -> sa.types.TypeEngine:
    """paymentmethod is shared by three tables; on PostgreSQL create it once."""
    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        postgresql.ENUM(*PAYMENT_METHODS, name='paymentmethod').create(bind, checkfirst=True)
        return postgresql.ENUM(*PAYMENT_METHODS, name='paymentmethod', create_type=False)
    return sa.Enum(*PAYMENT_METHODS, name='paymentmethod')


def upgrade() -> None:
    """Create the POS ledgers and seed the cash register."""
    payment_method = _payment_method_type()

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(length=150), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.Enum('ADMIN', 'CASHIER', name='roleenum'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
    )

    op.create_table(
        'customers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('cedula', sa.String(length=50), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('payment_terms_days', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cedula'),
    )
    op.create_index('ix_customers_name', 'customers', ['name'])
    op.create_index('ix_customers_phone', 'customers', ['phone'])

    op.create_table(
        'jewels',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sale_price', MONEY, nullable=False),
        sa.Column('cost_price', MONEY, nullable=False, server_default='0'),
        sa.Column('current_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('sale_price >= 0', name='ck_jewel_sale_price_non_negative'),
        sa.CheckConstraint('current_stock >= 0', name='ck_jewel_stock_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_index('ix_jewels_code', 'jewels', ['code'])
    op.create_index('ix_jewels_category', 'jewels', ['category'])

    op.create_table(
        'cash_registers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('revision', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_period_start', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_closing_id', sa.Uuid(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'cash_closings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('register_id', sa.Uuid(), nullable=False),
        sa.Column('period_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('username', sa.String(length=150), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('total_sales', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_income', MONEY, nullable=False),
        sa.Column('total_discounts', MONEY, nullable=False),
        sa.Column('sales_cash', MONEY, nullable=False),
        sa.Column('sales_card', MONEY, nullable=False),
        sa.Column('sales_transfer', MONEY, nullable=False),
        sa.Column('total_abonos', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('abonos_amount', MONEY, nullable=False),
        sa.Column('abonos_cash', MONEY, nullable=False),
        sa.Column('abonos_card', MONEY, nullable=False),
        sa.Column('abonos_transfer', MONEY, nullable=False),
        sa.Column('total_extra_incomes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('extra_incomes_amount', MONEY, nullable=False),
        sa.Column('extra_incomes_cash', MONEY, nullable=False),
        sa.Column('extra_incomes_card', MONEY, nullable=False),
        sa.Column('extra_incomes_transfer', MONEY, nullable=False),
        sa.Column('combined_cash', MONEY, nullable=False),
        sa.Column('combined_card', MONEY, nullable=False),
        sa.Column('combined_transfer', MONEY, nullable=False),
        sa.Column('combined_total', MONEY, nullable=False),
        sa.ForeignKeyConstraint(['register_id'], ['cash_registers.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cash_closings_closed_at', 'cash_closings', ['closed_at'])
    op.create_index('ix_cash_closings_username', 'cash_closings', ['username'])

    op.create_table(
        'sales',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=True),
        sa.Column('sale_type', sa.Enum('CONTADO', 'CREDITO', name='saletype'), nullable=False),
        sa.Column('payment_method', payment_method, nullable=True),
        sa.Column('subtotal', MONEY, nullable=False),
        sa.Column('discount', MONEY, nullable=False, server_default='0'),
        sa.Column('total', MONEY, nullable=False),
        sa.Column('cash_received', MONEY, nullable=True),
        sa.Column('change', MONEY, nullable=True),
        sa.Column('cash_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('card_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('transfer_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column(
            'ledger_status',
            sa.Enum('PENDING_CLOSE', 'ARCHIVED', name='ledgerstatus'),
            nullable=False,
        ),
        sa.Column('closing_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('total >= 0', name='ck_sale_total_non_negative'),
        sa.CheckConstraint('discount >= 0', name='ck_sale_discount_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['closing_id'], ['cash_closings.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sales_ledger_status', 'sales', ['ledger_status'])
    op.create_index('ix_sales_closing', 'sales', ['closing_id'])
    op.create_index('ix_sales_customer', 'sales', ['customer_id'])
    op.create_index('ix_sales_created_at', 'sales', ['created_at'])

    op.create_table(
        'sale_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('sale_id', sa.Uuid(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('jewel_id', sa.Uuid(), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', MONEY, nullable=False),
        sa.Column('subtotal', MONEY, nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_sale_item_qty_positive'),
        sa.CheckConstraint(
            'jewel_id IS NOT NULL OR description IS NOT NULL',
            name='ck_sale_item_jewel_or_description',
        ),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id']),
        sa.ForeignKeyConstraint(['jewel_id'], ['jewels.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sale_items_sale', 'sale_items', ['sale_id'])

    op.create_table(
        'inventory_movements',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('jewel_id', sa.Uuid(), nullable=False),
        sa.Column(
            'movement_type',
            sa.Enum('ENTRADA', 'SALIDA', 'AJUSTE', name='movementtype'),
            nullable=False,
        ),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('stock_before', sa.Integer(), nullable=False),
        sa.Column('stock_after', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('sale_id', sa.Uuid(), nullable=True),
        sa.Column('username', sa.String(length=150), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('quantity != 0', name='ck_movement_quantity_non_zero'),
        sa.ForeignKeyConstraint(['jewel_id'], ['jewels.id']),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_inv_mov_jewel', 'inventory_movements', ['jewel_id'])
    op.create_index('ix_inv_mov_sale', 'inventory_movements', ['sale_id'])
    op.create_index('ix_inv_mov_created_at', 'inventory_movements', ['created_at'])

    op.create_table(
        'accounts_receivable',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('sale_id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=False),
        sa.Column('total_amount', MONEY, nullable=False),
        sa.Column('amount_paid', MONEY, nullable=False, server_default='0'),
        sa.Column('pending_balance', MONEY, nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDIENTE', 'PAGADA', name='receivablestatus'),
            nullable=False,
        ),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('pending_balance >= 0', name='ck_receivable_pending_non_negative'),
        sa.CheckConstraint('amount_paid >= 0', name='ck_receivable_paid_non_negative'),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sale_id'),
    )
    op.create_index('ix_receivables_customer', 'accounts_receivable', ['customer_id'])
    op.create_index('ix_receivables_status', 'accounts_receivable', ['status'])
    op.create_index('ix_receivables_due_date', 'accounts_receivable', ['due_date'])

    op.create_table(
        'abonos',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('receivable_id', sa.Uuid(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('payment_method', payment_method, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('username', sa.String(length=150), nullable=True),
        sa.Column('closing_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_abono_amount_positive'),
        sa.ForeignKeyConstraint(['receivable_id'], ['accounts_receivable.id']),
        sa.ForeignKeyConstraint(['closing_id'], ['cash_closings.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_abonos_receivable', 'abonos', ['receivable_id'])
    op.create_index('ix_abonos_closing', 'abonos', ['closing_id'])

    op.create_table(
        'extra_incomes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column(
            'income_type',
            sa.Enum('FONDO_CAJA', 'PRESTAMO', 'DEVOLUCION', 'OTROS', name='extraincometype'),
            nullable=False,
        ),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('payment_method', payment_method, nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(length=150), nullable=True),
        sa.Column('closing_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_extra_income_amount_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['closing_id'], ['cash_closings.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_extra_incomes_closing', 'extra_incomes', ['closing_id'])
    op.create_index('ix_extra_incomes_created_at', 'extra_incomes', ['created_at'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('table_name', sa.String(length=100), nullable=False),
        sa.Column('record_id', sa.String(length=255), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('changed_by', sa.Uuid(), nullable=True),
        sa.Column(
            'new_values',
            sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'),
            nullable=True,
        ),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['changed_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_table_record', 'audit_logs', ['table_name', 'record_id'])
    op.create_index('ix_audit_created_at', 'audit_logs', ['created_at'])
    op.create_index('ix_audit_action', 'audit_logs', ['action'])

    # The single cash register whose row serialises ledger writes and closings
    registers = sa.table(
        'cash_registers',
        sa.column('id', sa.Uuid()),
        sa.column('name', sa.String()),
        sa.column('revision', sa.Integer()),
    )
    op.bulk_insert(registers, [{'id': uuid.uuid4(), 'name': 'principal', 'revision': 0}])


def downgrade() -> None:
    """Drop every table created by upgrade()."""
    op.drop_table('audit_logs')
    op.drop_table('extra_incomes')
    op.drop_table('abonos')
    op.drop_table('accounts_receivable')
    op.drop_table('inventory_movements')
    op.drop_table('sale_items')
    op.drop_table('sales')
    op.drop_table('cash_closings')
    op.drop_table('cash_registers')
    op.drop_table('jewels')
    op.drop_table('customers')
    op.drop_table('users')
    if op.get_bind().dialect.name == 'postgresql':
        for enum_name in ENUM_TYPES:
            op.execute(f"DROP TYPE IF EXISTS {enum_name}")
