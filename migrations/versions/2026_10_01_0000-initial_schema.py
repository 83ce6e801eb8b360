"""Initial schema

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create initial database schema:
    - users table: Password and OAuth accounts
    - urls table: Short code / alias to original URL mappings
    - clicks table: One row per redirect, for analytics
    """
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('password', sa.String(length=100), nullable=True),
        sa.Column('picture', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'urls',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('original_url', sa.Text(), nullable=False),
        sa.Column('short_code', sa.String(length=50), nullable=False),
        sa.Column('custom_alias', sa.String(length=50), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=True),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('custom_alias')
    )
    op.create_index('ix_urls_short_code', 'urls', ['short_code'], unique=True)
    op.create_index('ix_urls_user_id', 'urls', ['user_id'])
    op.create_index('ix_urls_created_at', 'urls', ['created_at'])

    op.create_table(
        'clicks',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('url_id', sa.Integer(), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=False),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('referrer', sa.String(length=500), nullable=True),
        sa.Column('device', sa.String(length=100), nullable=True),
        sa.Column('os', sa.String(length=100), nullable=True),
        sa.Column('browser', sa.String(length=100), nullable=True),
        sa.Column('clicked_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['url_id'], ['urls.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_clicks_url_id', 'clicks', ['url_id'])
    op.create_index('ix_clicks_clicked_at', 'clicks', ['clicked_at'])


def downgrade() -> None:
    op.drop_index('ix_clicks_clicked_at', table_name='clicks')
    op.drop_index('ix_clicks_url_id', table_name='clicks')
    op.drop_table('clicks')

    op.drop_index('ix_urls_created_at', table_name='urls')
    op.drop_index('ix_urls_user_id', table_name='urls')
    op.drop_index('ix_urls_short_code', table_name='urls')
    op.drop_table('urls')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
