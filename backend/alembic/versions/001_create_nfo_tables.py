"""Create NFO pipeline tables

Revision ID: 001_create_nfo_tables
Revises:
Create Date: 2026-10-19 10:00:00.000000

This migration creates the groups, releases, release_nfos and settings
tables used by the NFO pipeline.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_create_nfo_tables'
down_revision = None
branch_labels = None
depends_on = None


def table_exists(connection, table_name):
    """Check if a table exists."""
    inspector = sa.inspect(connection)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    """Create NFO pipeline tables."""
    connection = op.get_bind()

    if not table_exists(connection, 'groups'):
        op.create_table(
            'groups',
            sa.Column('id', sa.Integer(), nullable=False, primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(255), nullable=False, unique=True),
        )

    if not table_exists(connection, 'releases'):
        op.create_table(
            'releases',
            sa.Column('id', sa.Integer(), nullable=False, primary_key=True, autoincrement=True),
            sa.Column('guid', sa.String(40), nullable=False, unique=True),
            sa.Column('groups_id', sa.Integer(), sa.ForeignKey('groups.id'), nullable=False),
            sa.Column('name', sa.String(255), nullable=False, server_default=''),
            sa.Column('size', sa.BigInteger(), nullable=False, server_default='0'),
            sa.Column('postdate', sa.DateTime(), nullable=True),
            sa.Column('completion', sa.Float(), nullable=False, server_default='0'),
            sa.Column('nzbstatus', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('nfostatus', sa.Integer(), nullable=False, server_default='-1'),
        )

        op.create_index('ix_releases_groups_id', 'releases', ['groups_id'])
        op.create_index('ix_releases_nzb_nfo_status', 'releases', ['nzbstatus', 'nfostatus'])

    if not table_exists(connection, 'release_nfos'):
        op.create_table(
            'release_nfos',
            sa.Column('id', sa.Integer(), nullable=False, primary_key=True, autoincrement=True),
            sa.Column('releases_id', sa.Integer(), sa.ForeignKey('releases.id'), nullable=False, unique=True),
            sa.Column('nfo', sa.LargeBinary(), nullable=True),
        )

    if not table_exists(connection, 'settings'):
        op.create_table(
            'settings',
            sa.Column('id', sa.Integer(), nullable=False, primary_key=True, autoincrement=True),
            sa.Column('max_nfo_processed', sa.Integer(), nullable=True),
            sa.Column('max_nfo_retries', sa.Integer(), nullable=True),
            sa.Column('max_size_to_process_nfo', sa.Integer(), nullable=True),
            sa.Column('min_size_to_process_nfo', sa.Integer(), nullable=True),
            sa.Column('tmp_unrar_path', sa.String(1000), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
        )


def downgrade() -> None:
    """Drop NFO pipeline tables."""
    connection = op.get_bind()

    if table_exists(connection, 'settings'):
        op.drop_table('settings')

    if table_exists(connection, 'release_nfos'):
        op.drop_table('release_nfos')

    if table_exists(connection, 'releases'):
        op.drop_index('ix_releases_nzb_nfo_status', table_name='releases')
        op.drop_index('ix_releases_groups_id', table_name='releases')
        op.drop_table('releases')

    if table_exists(connection, 'groups'):
        op.drop_table('groups')
