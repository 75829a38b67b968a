"""Tenant schema: workspace users

Revision ID: 001_tenant_users
Revises: 
Create Date: 2026-10-01

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001_tenant_users'
down_revision = None


def upgrade():
    # Unqualified names resolve into the tenant schema through search_path
    op.create_table(
        'beeusers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('firstname', sa.String(100), nullable=False),
        sa.Column('lastname', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phonenumber', sa.String(32), nullable=True),
        sa.Column('password', sa.String(), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default='false'),
        # admins.id in the global schema; no foreign key across schemas
        sa.Column('admin_id', sa.Integer(), nullable=True),
        sa.Column('is_confirmed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_profile_complete', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_beeusers_email', 'beeusers', ['email'], unique=True)
    op.create_index('ix_beeusers_admin_id', 'beeusers', ['admin_id'])


def downgrade():
    op.drop_index('ix_beeusers_admin_id', 'beeusers')
    op.drop_index('ix_beeusers_email', 'beeusers')
    op.drop_table('beeusers')
