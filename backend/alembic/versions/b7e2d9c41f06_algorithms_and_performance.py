"""algorithms and performance metrics

Revision ID: b7e2d9c41f06
Revises: a1f0c2d3e4b5
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = 'b7e2d9c41f06'
down_revision: Union[str, None] = 'a1f0c2d3e4b5'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'algorithms',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('type', sa.Enum('forex', 'gold', 'stocks', 'crypto', name='algorithmtype'),
                  nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'performance_metrics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('algorithm_id', sa.Integer(), sa.ForeignKey('algorithms.id'), nullable=False),
        sa.Column('sharpe_ratio', sa.Numeric(5, 2)),
        sa.Column('max_drawdown', sa.Numeric(5, 2)),
        sa.Column('avg_trade_duration', sa.Numeric(10, 2)),
        sa.Column('profit_factor', sa.Numeric(5, 2)),
        sa.Column('total_trades', sa.Integer(), nullable=False),
        sa.Column('winning_trades', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_performance_metrics_user_id', 'performance_metrics', ['user_id'])


def downgrade() -> None:
    op.drop_table('performance_metrics')
    op.drop_table('algorithms')
    sa.Enum(name='algorithmtype').drop(op.get_bind(), checkfirst=True)
