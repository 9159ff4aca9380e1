"""create_orders_payments_tables

Revision ID: 3b1f6c2d9a4e
Revises:
Create Date: 2026-01-10 09:30:12.418204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3b1f6c2d9a4e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=True, comment='客户ID'),
        sa.Column('payment_status', sa.String(length=20), nullable=False, server_default='unpaid', comment='支付状态: unpaid/paid/failed/refunded'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending', comment='订单状态: pending/confirmed/payment_failed/refunded'),
        sa.Column('total_amount', sa.Numeric(precision=15, scale=2), nullable=True, comment='订单金额'),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='INR'),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True, comment='支付完成时间'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_id', 'orders', ['id'], unique=False)
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'], unique=False)
    op.create_index('ix_orders_status', 'orders', ['status'], unique=False)

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=True, comment='关联订单ID'),
        sa.Column('customer_id', sa.Integer(), nullable=True, comment='客户ID'),
        sa.Column('gateway_order_id', sa.String(length=100), nullable=False, comment='Razorpay order_id'),
        sa.Column('gateway_payment_id', sa.String(length=100), nullable=True, comment='Razorpay payment id'),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False, comment='支付金额'),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='INR', comment='货币代码 ISO-4217'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='created', comment='支付状态: created/attempted/completed/failed/refunded'),
        sa.Column('payment_method', sa.String(length=20), nullable=False, server_default='other', comment='支付方式: card/netbanking/wallet/upi/other'),
        sa.Column('failure_reason', sa.Text(), nullable=True, comment='失败原因'),
        sa.Column('refund_id', sa.String(length=100), nullable=True, comment='Razorpay refund id'),
        sa.Column('refund_amount', sa.Numeric(precision=15, scale=2), nullable=True, comment='退款金额'),
        sa.Column('refund_status', sa.String(length=20), nullable=True, comment='退款状态: pending/processed/failed'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='更新时间'),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True, comment='支付完成时间'),
        sa.Column('refunded_at', sa.DateTime(timezone=True), nullable=True, comment='退款完成时间'),
        sa.Column('webhook_processed_at', sa.DateTime(timezone=True), nullable=True, comment='最近一次 webhook 处理时间'),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True, server_default=sa.text("'{}'::jsonb"), comment='扩展元数据'),
        sa.Column('notes', sa.Text(), nullable=True, comment='备注'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('gateway_order_id', name='uq_payments_gateway_order_id'),
        comment='支付记录表，随 Razorpay webhook 对账更新'
    )
    op.create_index('ix_payments_id', 'payments', ['id'], unique=False)
    op.create_index('ix_payments_order_id', 'payments', ['order_id'], unique=False)
    op.create_index('ix_payments_customer_id', 'payments', ['customer_id'], unique=False)
    op.create_index('ix_payments_gateway_payment_id', 'payments', ['gateway_payment_id'], unique=False)
    op.create_index('ix_payments_status', 'payments', ['status'], unique=False)
    op.create_index('ix_payments_refund_id', 'payments', ['refund_id'], unique=False)
    op.create_index('ix_payments_webhook_processed_at', 'payments', ['webhook_processed_at'], unique=False, postgresql_using='btree')
    op.create_index('ix_payments_customer_created', 'payments', ['customer_id', 'created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_payments_customer_created', table_name='payments')
    op.drop_index('ix_payments_webhook_processed_at', table_name='payments', postgresql_using='btree')
    op.drop_index('ix_payments_refund_id', table_name='payments')
    op.drop_index('ix_payments_status', table_name='payments')
    op.drop_index('ix_payments_gateway_payment_id', table_name='payments')
    op.drop_index('ix_payments_customer_id', table_name='payments')
    op.drop_index('ix_payments_order_id', table_name='payments')
    op.drop_index('ix_payments_id', table_name='payments')
    op.drop_table('payments')

    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_customer_id', table_name='orders')
    op.drop_index('ix_orders_id', table_name='orders')
    op.drop_table('orders')
