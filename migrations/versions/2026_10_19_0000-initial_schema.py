"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create initial database schema:
    - url_mappings table: Stores URL shortening mappings and hit counts
    """
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    if 'url_mappings' in existing_tables:
        return

    op.create_table(
        'url_mappings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('short_code', sa.String(length=32), nullable=False),
        sa.Column('long_url', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('hit_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('owner_ip', sa.String(length=45), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    # Unique index is what rejects a second insert of the same short code
    op.create_index(
        'ix_url_mappings_short_code',
        'url_mappings',
        ['short_code'],
        unique=True
    )

    op.create_index(
        'ix_url_mappings_created_at',
        'url_mappings',
        ['created_at']
    )


def downgrade() -> None:
    """
    Drop the url_mappings table and its indexes.
    """
    op.drop_index('ix_url_mappings_created_at', table_name='url_mappings')
    op.drop_index('ix_url_mappings_short_code', table_name='url_mappings')
    op.drop_table('url_mappings')
