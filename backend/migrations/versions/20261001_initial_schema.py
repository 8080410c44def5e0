"""Initial schema: admins, users, verification requests, products

Revision ID: 20261001_initial
Revises:
Create Date: 2026-10-01

Creates:
1. admins (console accounts)
2. users (end customers with the four access flags)
3. verification_requests (payment attestations, one pending per user)
4. products (phone lot catalog, unique key)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    ]


def upgrade():
    # ==========================================================================
    # 1. ADMINS
    # ==========================================================================
    op.create_table('admins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('admins', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_admins_email'), ['email'], unique=True)

    # ==========================================================================
    # 2. USERS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('mobile', sa.String(length=20), nullable=False),
        sa.Column('passkey_hash', sa.String(length=255), nullable=False),
        sa.Column('subscription_paid', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('subscription_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('transaction_id', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('verification_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('is_logged_in', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_logout_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_mobile'), ['mobile'], unique=True)
        batch_op.create_index('ix_users_created_at', ['created_at'], unique=False)

    # ==========================================================================
    # 3. VERIFICATION REQUESTS
    # ==========================================================================
    op.create_table('verification_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('mobile', sa.String(length=20), nullable=False),
        sa.Column('transaction_id', sa.String(length=120), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('reviewed_by', sa.Integer(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=False, server_default=''),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name='ck_verification_requests_status',
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reviewed_by'], ['admins.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('verification_requests', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_verification_requests_user_id'), ['user_id'], unique=False)
        batch_op.create_index('ix_verification_requests_status_created', ['status', 'created_at'], unique=False)
        batch_op.create_index(
            'uq_verification_requests_user_pending',
            ['user_id'],
            unique=True,
            sqlite_where=sa.text("status = 'pending'"),
            postgresql_where=sa.text("status = 'pending'"),
        )

    # ==========================================================================
    # 4. PRODUCTS
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('phone_name', sa.String(length=255), nullable=False),
        sa.Column('brand', sa.String(length=120), nullable=False),
        sa.Column('lot_name', sa.String(length=255), nullable=False),
        sa.Column('specifications', sa.Text(), nullable=True),
        sa.Column('channel_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('ss_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('floated_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('grade', sa.String(length=16), nullable=False),
        sa.Column('key', sa.String(length=120), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.CheckConstraint('channel_price >= 0', name='ck_products_channel_price'),
        sa.CheckConstraint('ss_price >= 0', name='ck_products_ss_price'),
        sa.CheckConstraint('floated_price >= 0', name='ck_products_floated_price'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_products_key'), ['key'], unique=True)
        batch_op.create_index('ix_products_brand', ['brand'], unique=False)
        batch_op.create_index('ix_products_created_at', ['created_at'], unique=False)


def downgrade():
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.drop_index('ix_products_created_at')
        batch_op.drop_index('ix_products_brand')
        batch_op.drop_index(batch_op.f('ix_products_key'))
    op.drop_table('products')

    with op.batch_alter_table('verification_requests', schema=None) as batch_op:
        batch_op.drop_index('uq_verification_requests_user_pending')
        batch_op.drop_index('ix_verification_requests_status_created')
        batch_op.drop_index(batch_op.f('ix_verification_requests_user_id'))
    op.drop_table('verification_requests')

    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_index('ix_users_created_at')
        batch_op.drop_index(batch_op.f('ix_users_mobile'))
    op.drop_table('users')

    with op.batch_alter_table('admins', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_admins_email'))
    op.drop_table('admins')
