"""Initial schema - trades, import ledger, broker credentials

Revision ID: 20261019_001
Revises: 
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '20261019_001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ========================================================================
    # TRADES
    # ========================================================================
    op.create_table(
        'trades',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('symbol', sa.String(32), nullable=False),
        sa.Column('direction', sa.String(5), nullable=False),  # LONG, SHORT
        sa.Column('entry_time', sa.DateTime, nullable=False),
        sa.Column('exit_time', sa.DateTime),
        sa.Column('entry_price', sa.Float, nullable=False),
        sa.Column('exit_price', sa.Float),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('fees', sa.Float, nullable=False, server_default='0'),
        sa.Column('stop_loss', sa.Float),
        sa.Column('take_profit', sa.Float),
        sa.Column('strategy', sa.String(100)),
        sa.Column('notes', sa.Text),
        sa.Column('status', sa.String(10), nullable=False, server_default='OPEN'),  # OPEN, CLOSED
        sa.Column('profit_loss', sa.Float),
        sa.Column('profit_loss_percent', sa.Float),
        sa.Column('external_source_id', sa.String(255)),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime),
        sa.PrimaryKeyConstraint('id', name='pk_trades'),
    )
    op.create_index('idx_trades_entry_time', 'trades', ['entry_time'])
    op.create_index('idx_trades_status', 'trades', ['status'])
    op.create_index('idx_trades_symbol', 'trades', ['symbol'])

    # ========================================================================
    # IMPORT LEDGER
    # ========================================================================
    op.create_table(
        'import_records',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('external_id', sa.String(255), nullable=False),
        sa.Column('source', sa.String(20), nullable=False),  # csv, broker
        sa.Column('trade_id', sa.Integer),
        sa.Column('imported_at', sa.DateTime, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_import_records'),
        sa.UniqueConstraint('external_id', name='uq_import_records_external_id'),
        sa.ForeignKeyConstraint(
            ['trade_id'], ['trades.id'],
            name='fk_import_records_trade_id_trades',
            ondelete='SET NULL',
        ),
    )
    op.create_index('idx_import_records_trade', 'import_records', ['trade_id'])

    # ========================================================================
    # BROKER CREDENTIALS
    # ========================================================================
    op.create_table(
        'broker_credentials',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('broker_name', sa.String(50), nullable=False),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('password', sa.String(255), nullable=False),
        sa.Column('environment', sa.String(10), nullable=False, server_default='demo'),  # demo, live
        sa.Column('access_token', sa.String(2048)),
        sa.Column('token_expiry', sa.DateTime),
        sa.Column('last_sync_at', sa.DateTime),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime),
        sa.PrimaryKeyConstraint('id', name='pk_broker_credentials'),
        sa.UniqueConstraint('broker_name', name='uq_broker_credentials_broker_name'),
    )


def downgrade() -> None:
    op.drop_table('broker_credentials')
    op.drop_index('idx_import_records_trade', table_name='import_records')
    op.drop_table('import_records')
    op.drop_index('idx_trades_symbol', table_name='trades')
    op.drop_index('idx_trades_status', table_name='trades')
    op.drop_index('idx_trades_entry_time', table_name='trades')
    op.drop_table('trades')
