"""create_identity_tables

Revision ID: 3f2a9c1d7b40
Revises:
Create Date: 2026-10-18 09:12:44.502113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

account_role = sa.Enum('USER', 'ADMIN', name='account_role')
auth_provider = sa.Enum('LOCAL', 'GOOGLE', 'FACEBOOK', 'MICROSOFT', name='auth_provider')


def upgrade() -> None:
    """Create accounts, refresh sessions and email verification tickets."""
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', account_role, nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('provider', auth_provider, nullable=False),
        sa.Column('provider_external_id', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('avatar_url', sa.String(length=1024), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('password_changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('email_changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('password_reset_token_hash', sa.String(length=64), nullable=True),
        sa.Column('password_reset_expires_at', sa.DateTime(timezone=True), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)
    op.create_index(
        'ix_accounts_password_reset_token_hash', 'accounts', ['password_reset_token_hash']
    )
    op.create_index(
        'ux_accounts_provider_external_id',
        'accounts',
        ['provider', 'provider_external_id'],
        unique=True,
    )

    op.create_table(
        'refresh_sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column(
            'account_id',
            sa.Integer(),
            sa.ForeignKey('accounts.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('device_info', sa.String(length=512), nullable=True),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_refresh_sessions_token_hash', 'refresh_sessions', ['token_hash'], unique=True)
    op.create_index('ix_refresh_sessions_account_id', 'refresh_sessions', ['account_id'])

    op.create_table(
        'email_verification_tickets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column(
            'account_id',
            sa.Integer(),
            sa.ForeignKey('accounts.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('token_expiry', sa.DateTime(timezone=True), nullable=False),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        'ix_email_verification_tickets_token', 'email_verification_tickets', ['token'], unique=True
    )
    op.create_index(
        'ix_email_verification_tickets_account_id', 'email_verification_tickets', ['account_id']
    )


def downgrade() -> None:
    """Drop all identity tables and their enum types."""
    op.drop_index('ix_email_verification_tickets_account_id', table_name='email_verification_tickets')
    op.drop_index('ix_email_verification_tickets_token', table_name='email_verification_tickets')
    op.drop_table('email_verification_tickets')
    op.drop_index('ix_refresh_sessions_account_id', table_name='refresh_sessions')
    op.drop_index('ix_refresh_sessions_token_hash', table_name='refresh_sessions')
    op.drop_table('refresh_sessions')
    op.drop_index('ux_accounts_provider_external_id', table_name='accounts')
    op.drop_index('ix_accounts_password_reset_token_hash', table_name='accounts')
    op.drop_index('ix_accounts_email', table_name='accounts')
    op.drop_table('accounts')
    auth_provider.drop(op.get_bind(), checkfirst=True)
    account_role.drop(op.get_bind(), checkfirst=True)
