"""Create short_links table

Revision ID: 001_short_links
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001_short_links'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the short_links table:
    - unique index on code (authoritative uniqueness for allocation)
    - index on expires_at (expiration sweep)
    - index on owner_id (per-user listings)
    """
    op.create_table(
        'short_links',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('target_url', sa.Text(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=True),
        sa.Column('owner_id', sa.String(length=64), nullable=True),
        sa.Column('click_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_index('ix_short_links_code', 'short_links', ['code'], unique=True)
    op.create_index('ix_short_links_owner_id', 'short_links', ['owner_id'])
    op.create_index('ix_short_links_expires_at', 'short_links', ['expires_at'])
    op.create_index('ix_short_links_created_at', 'short_links', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_short_links_created_at', table_name='short_links')
    op.drop_index('ix_short_links_expires_at', table_name='short_links')
    op.drop_index('ix_short_links_owner_id', table_name='short_links')
    op.drop_index('ix_short_links_code', table_name='short_links')
    op.drop_table('short_links')
