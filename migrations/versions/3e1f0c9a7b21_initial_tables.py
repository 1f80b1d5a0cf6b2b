"""initial tables: merchants, apps, orders, transactions

Revision ID: 3e1f0c9a7b21
Revises:
Create Date: 2026-10-17 09:00:00
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = '3e1f0c9a7b21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'merchants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('merchant_id', sa.String(32), nullable=False),
        sa.Column('privy_did', sa.String(128), nullable=False),
        sa.Column('evm_wallet', sa.String(128), nullable=True),
        sa.Column('sol_wallet', sa.String(128), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_merchants_id', 'merchants', ['id'])
    op.create_index('ix_merchants_merchant_id', 'merchants', ['merchant_id'], unique=True)
    op.create_index('ix_merchants_privy_did', 'merchants', ['privy_did'], unique=True)

    op.create_table(
        'apps',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('app_id', sa.String(32), nullable=False),
        sa.Column('merchant_pk', sa.Integer(), sa.ForeignKey('merchants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('api_key_prefix', sa.String(16), nullable=False),
        sa.Column('api_key_hash', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('webhook_url', sa.String(2048), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_apps_id', 'apps', ['id'])
    op.create_index('ix_apps_app_id', 'apps', ['app_id'], unique=True)
    op.create_index('ix_apps_merchant_pk', 'apps', ['merchant_pk'])
    op.create_index('ix_apps_api_key_prefix', 'apps', ['api_key_prefix'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.String(64), nullable=False),
        sa.Column('merchant_id', sa.String(32), nullable=False),
        sa.Column('app_id', sa.String(32), nullable=False),
        sa.Column('customer_did', sa.String(128), nullable=True),
        sa.Column('amount_usd', sa.Numeric(20, 8), nullable=False),
        sa.Column('currency', sa.String(8), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('webhook_url', sa.String(2048), nullable=True),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('checkout_url', sa.String(2048), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_orders_id', 'orders', ['id'])
    op.create_index('ix_orders_order_id', 'orders', ['order_id'], unique=True)
    op.create_index('ix_orders_merchant_id', 'orders', ['merchant_id'])
    op.create_index('ix_orders_app_id', 'orders', ['app_id'])
    op.create_index('ix_orders_customer_did', 'orders', ['customer_did'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tx_hash', sa.String(128), nullable=False),
        sa.Column('order_id', sa.String(64), nullable=False),
        sa.Column('merchant_id', sa.String(32), nullable=False),
        sa.Column('app_id', sa.String(32), nullable=False),
        sa.Column('chain', sa.String(64), nullable=False),
        sa.Column('asset', sa.String(64), nullable=False),
        sa.Column('amount', sa.Numeric(38, 18), nullable=False),
        sa.Column('usd_value', sa.Numeric(20, 8), nullable=False),
        sa.Column('from_address', sa.String(128), nullable=False),
        sa.Column('to_address', sa.String(128), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('tx_hash', name='uq_transactions_tx_hash'),
    )
    op.create_index('ix_transactions_id', 'transactions', ['id'])
    op.create_index('ix_transactions_tx_hash', 'transactions', ['tx_hash'])
    op.create_index('ix_transactions_order_id', 'transactions', ['order_id'])
    op.create_index('ix_transactions_merchant_id', 'transactions', ['merchant_id'])
    op.create_index('ix_transactions_app_id', 'transactions', ['app_id'])
    op.create_index('ix_transactions_status', 'transactions', ['status'])
    op.create_index('ix_transactions_app_status', 'transactions', ['app_id', 'status'])


def downgrade() -> None:
    op.drop_table('transactions')
    op.drop_table('orders')
    op.drop_table('apps')
    op.drop_table('merchants')
