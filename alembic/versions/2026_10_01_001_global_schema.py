"""Global schema: admins, confirmation tokens and phone codes

Revision ID: 001_global_schema
Revises: 
Create Date: 2026-10-01

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001_global_schema'
down_revision = None


def upgrade():
    # Create admins table
    op.create_table(
        'admins',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('firstname', sa.String(100), nullable=False),
        sa.Column('lastname', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phonenumber', sa.String(32), nullable=True),
        sa.Column('password', sa.String(), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='admin'),
        sa.Column('schema_name', sa.String(63), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('max_users', sa.Integer(), nullable=False, server_default='1000'),
        sa.Column('max_storage', sa.Float(), nullable=False, server_default='10.0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_admins_email', 'admins', ['email'], unique=True)
    op.create_index('ix_admins_schema_name', 'admins', ['schema_name'], unique=True)
    op.create_index('ix_admins_is_active', 'admins', ['is_active'])

    # Create admin_confirmations table
    op.create_table(
        'admin_confirmations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('admin_id', sa.Integer(), sa.ForeignKey('admins.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp()),
    )
    op.create_index('ix_admin_confirmations_admin_id', 'admin_confirmations', ['admin_id'])
    op.create_index('ix_admin_confirmations_token', 'admin_confirmations', ['token'], unique=True)

    # Create admin_otps table
    op.create_table(
        'admin_otps',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('admin_id', sa.Integer(), sa.ForeignKey('admins.id', ondelete='CASCADE'), nullable=True),
        sa.Column('identifier', sa.String(32), nullable=False),
        sa.Column('type', sa.String(20), nullable=False, server_default='phone'),
        sa.Column('otp', sa.String(32), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp()),
    )
    op.create_index('ix_admin_otps_admin_id', 'admin_otps', ['admin_id'])
    op.create_index('ix_admin_otps_identifier', 'admin_otps', ['identifier'])


def downgrade():
    op.drop_index('ix_admin_otps_identifier', 'admin_otps')
    op.drop_index('ix_admin_otps_admin_id', 'admin_otps')
    op.drop_table('admin_otps')

    op.drop_index('ix_admin_confirmations_token', 'admin_confirmations')
    op.drop_index('ix_admin_confirmations_admin_id', 'admin_confirmations')
    op.drop_table('admin_confirmations')

    op.drop_index('ix_admins_is_active', 'admins')
    op.drop_index('ix_admins_schema_name', 'admins')
    op.drop_index('ix_admins_email', 'admins')
    op.drop_table('admins')
