"""Add tags table and trade screenshot url

Revision ID: 20261019_002
Revises: 20261019_001
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '20261019_002'
down_revision: Union[str, None] = '20261019_001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table('trades') as batch_op:
        batch_op.add_column(sa.Column('screenshot_url', sa.String(500)))

    op.create_table(
        'tags',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('color', sa.String(7), nullable=False, server_default='#3B82F6'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_tags'),
        sa.UniqueConstraint('name', name='uq_tags_name'),
    )


def downgrade() -> None:
    op.drop_table('tags')
    with op.batch_alter_table('trades') as batch_op:
        batch_op.drop_column('screenshot_url')
