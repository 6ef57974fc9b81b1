"""Initial schema: short_links

Revision ID: 001_short_links
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_short_links'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the short_links table:
    - code primary key (uniqueness of short codes)
    - owner_id index for listing a user's links
    - expires_at index for purging expired links
    - created_at index for newest-first listing
    """
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    if 'short_links' in existing_tables:
        return

    op.create_table(
        'short_links',
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('original_url', sa.Text(), nullable=False),
        sa.Column('owner_id', sa.String(length=128), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('click_count', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('code')
    )

    op.create_index('ix_short_links_owner_id', 'short_links', ['owner_id'])
    op.create_index('ix_short_links_created_at', 'short_links', ['created_at'])
    op.create_index('ix_short_links_expires_at', 'short_links', ['expires_at'])


def downgrade() -> None:
    """
    Drop the short_links table and its indexes.
    """
    op.drop_index('ix_short_links_expires_at', table_name='short_links')
    op.drop_index('ix_short_links_created_at', table_name='short_links')
    op.drop_index('ix_short_links_owner_id', table_name='short_links')
    op.drop_table('short_links')
