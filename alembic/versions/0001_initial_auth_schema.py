"""initial_auth_schema

Revision ID: 0001_initial_auth_schema
Revises:
Create Date: 2026-10-19 09:12:41.204117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_auth_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('user_id'),
    )
    op.create_index('idx_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'customers',
        sa.Column('customer_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('nickname', sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint('customer_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], name='fk_customers_user_id', onupdate='CASCADE', ondelete='CASCADE'),
    )
    op.create_index('idx_customers_user_id', 'customers', ['user_id'], unique=True)

    op.create_table(
        'pilots',
        sa.Column('pilot_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('short_name', sa.String(length=30), nullable=False),
        sa.Column('full_name', sa.String(length=100), nullable=False),
        sa.Column('bio', sa.String(length=2000), nullable=False),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint('pilot_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], name='fk_pilots_user_id', onupdate='CASCADE', ondelete='CASCADE'),
    )
    op.create_index('idx_pilots_user_id', 'pilots', ['user_id'], unique=True)

    # token_hash is SHA-256 hex, never the secret itself
    op.create_table(
        'refresh_tokens',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('family_id', sa.String(length=36), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('fingerprint', sa.String(length=1000), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('deactivated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], name='fk_refresh_tokens_user_id', onupdate='CASCADE', ondelete='CASCADE'),
    )
    op.create_index('idx_refresh_tokens_user_id', 'refresh_tokens', ['user_id'])
    op.create_index('idx_refresh_tokens_token_hash', 'refresh_tokens', ['token_hash'], unique=True)
    op.create_index('idx_refresh_tokens_family_id', 'refresh_tokens', ['family_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_refresh_tokens_family_id', table_name='refresh_tokens')
    op.drop_index('idx_refresh_tokens_token_hash', table_name='refresh_tokens')
    op.drop_index('idx_refresh_tokens_user_id', table_name='refresh_tokens')
    op.drop_table('refresh_tokens')

    op.drop_index('idx_pilots_user_id', table_name='pilots')
    op.drop_table('pilots')

    op.drop_index('idx_customers_user_id', table_name='customers')
    op.drop_table('customers')

    op.drop_index('idx_users_email', table_name='users')
    op.drop_table('users')
