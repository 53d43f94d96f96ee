"""initial schema

Revision ID: a1f0c2d3e4b5
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = 'a1f0c2d3e4b5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100)),
        sa.Column('last_name', sa.String(100)),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('registration_ip', sa.String(45)),
        sa.Column('last_login_at', sa.DateTime(timezone=True)),
        sa.Column('last_login_ip', sa.String(45)),
        *_timestamps(),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'admin_users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100)),
        sa.Column('last_name', sa.String(100)),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_admin_users_email', 'admin_users', ['email'], unique=True)

    op.create_table(
        'portfolios',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, unique=True),
        sa.Column('total_balance', sa.Numeric(15, 2), nullable=False),
        sa.Column('total_profit_loss', sa.Numeric(15, 2), nullable=False),
        sa.Column('today_pl', sa.Numeric(15, 2)),
        sa.Column('win_rate', sa.Numeric(5, 2)),
        sa.Column('active_algorithms', sa.Integer()),
        *_timestamps(),
    )

    op.create_table(
        'user_wallets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('symbol', sa.String(20), nullable=False),
        sa.Column('name', sa.String(100)),
        sa.Column('balance', sa.Numeric(20, 8), nullable=False),
        sa.Column('usd_value', sa.Numeric(15, 2), nullable=False),
        sa.Column('wallet_type', sa.String(50)),
        sa.Column('wallet_address', sa.String(255)),
        sa.Column('is_connected', sa.Boolean()),
        sa.Column('last_sync_at', sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'symbol', name='uq_user_wallets_user_symbol'),
    )

    op.create_table(
        'stock_holdings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('symbol', sa.String(20), nullable=False),
        sa.Column('name', sa.String(100)),
        sa.Column('shares', sa.Numeric(20, 6), nullable=False),
        sa.Column('avg_cost_basis', sa.Numeric(15, 4)),
        sa.Column('current_price', sa.Numeric(15, 4)),
        sa.Column('market_value', sa.Numeric(15, 2)),
        sa.Column('total_return', sa.Numeric(15, 2)),
        sa.Column('return_percentage', sa.Numeric(7, 2)),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'symbol', name='uq_stock_holdings_user_symbol'),
    )

    op.create_table(
        'trades',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('symbol', sa.String(20), nullable=False),
        sa.Column('asset_type', sa.Enum('crypto', 'stock', name='assettype'), nullable=False),
        sa.Column('side', sa.Enum('buy', 'sell', name='tradeside'), nullable=False),
        sa.Column('order_type', sa.Enum('market', 'limit', 'stop', name='ordertype'), nullable=False),
        sa.Column('quantity', sa.Numeric(20, 8), nullable=False),
        sa.Column('price', sa.Numeric(20, 8), nullable=False),
        sa.Column('total_amount', sa.Numeric(20, 8), nullable=False),
        sa.Column('status', sa.Enum('open', 'approved', 'rejected', 'closed', 'executed',
                                    name='tradestatus'), nullable=False),
        sa.Column('admin_approval', sa.Enum('pending', 'approved', 'rejected',
                                            name='approvalstate'), nullable=False),
        sa.Column('profit_loss', sa.Numeric(15, 2)),
        sa.Column('rejection_reason', sa.String(500)),
        sa.Column('notes', sa.Text()),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('admin_users.id')),
        sa.Column('approved_at', sa.DateTime(timezone=True)),
        sa.Column('closed_at', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_trades_user_id', 'trades', ['user_id'])
    op.create_index('ix_trades_admin_approval', 'trades', ['admin_approval'])

    op.create_table(
        'crypto_addresses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('symbol', sa.String(20), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('address', sa.String(255), nullable=False),
        sa.Column('network', sa.String(50)),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('admin_users.id')),
        *_timestamps(),
    )
    op.create_index('ix_crypto_addresses_symbol', 'crypto_addresses', ['symbol'])

    op.create_table(
        'deposit_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('crypto_type', sa.String(20), nullable=False),
        sa.Column('amount', sa.Numeric(20, 8), nullable=False),
        sa.Column('usd_value', sa.Numeric(15, 2), nullable=False),
        sa.Column('crypto_address_id', sa.Integer(), sa.ForeignKey('crypto_addresses.id')),
        sa.Column('transaction_hash', sa.String(128)),
        sa.Column('status', sa.Enum('pending', 'approved', 'rejected', name='depositstatus'),
                  nullable=False),
        sa.Column('rejection_reason', sa.String(500)),
        sa.Column('notes', sa.Text()),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('admin_users.id')),
        sa.Column('approved_at', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_deposit_requests_user_id', 'deposit_requests', ['user_id'])
    op.create_index('ix_deposit_requests_status', 'deposit_requests', ['status'])

    op.create_table(
        'website_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('key', sa.String(100), nullable=False, unique=True),
        sa.Column('value', sa.Text()),
        sa.Column('description', sa.Text()),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('admin_users.id')),
        *_timestamps(),
    )

    op.create_table(
        'admin_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('admin_id', sa.Integer(), sa.ForeignKey('admin_users.id'), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('resource', sa.String(50), nullable=False),
        sa.Column('resource_id', sa.String(50)),
        sa.Column('details', sa.JSON()),
        sa.Column('ip_address', sa.String(45)),
        sa.Column('user_agent', sa.String(500)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_admin_logs_admin_id', 'admin_logs', ['admin_id'])
    op.create_index('ix_admin_logs_created_at', 'admin_logs', ['created_at'])


def downgrade() -> None:
    op.drop_table('admin_logs')
    op.drop_table('website_settings')
    op.drop_table('deposit_requests')
    op.drop_table('crypto_addresses')
    op.drop_table('trades')
    op.drop_table('stock_holdings')
    op.drop_table('user_wallets')
    op.drop_table('portfolios')
    op.drop_table('admin_users')
    op.drop_table('users')
    for name in ('depositstatus', 'approvalstate', 'tradestatus', 'ordertype', 'tradeside', 'assettype'):
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
