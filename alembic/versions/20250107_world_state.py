"""World state table for ledger keys

Revision ID: 001_world_state
Revises:
Create Date: 2025-01-07 00:00:00.000000

NOTE: Only the SQL ledger backend uses this table. The in-memory backend
keeps no schema.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_world_state'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create world_state table holding the current value of every key."""
    op.create_table(
        'world_state',
        sa.Column('key', sa.String(length=255), nullable=False),
        sa.Column('value', sa.LargeBinary(), nullable=False),
        sa.PrimaryKeyConstraint('key')
    )


def downgrade() -> None:
    """Drop world_state table."""
    op.drop_table('world_state')
