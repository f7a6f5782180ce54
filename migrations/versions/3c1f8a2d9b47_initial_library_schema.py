"""Initial library schema

Revision ID: 3c1f8a2d9b47
Revises:
Create Date: 2026-10-19 09:12:44.118402

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1f8a2d9b47'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'system_users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('is_superuser', sa.Boolean(), nullable=False),
        sa.Column('stripe_customer_id', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('system_users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_system_users_email'), ['email'], unique=True)
        batch_op.create_index(batch_op.f('ix_system_users_role'), ['role'], unique=False)

    for table, number_column in (('students', 'student_id'), ('managers', 'manager_id')):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('system_user_id', sa.Integer(), nullable=False),
            sa.Column('first_name', sa.String(length=60), nullable=False),
            sa.Column('last_name', sa.String(length=60), nullable=False),
            sa.Column('email', sa.String(length=120), nullable=False),
            sa.Column(number_column, sa.String(length=50), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(['system_user_id'], ['system_users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('system_user_id'),
        )
        with op.batch_alter_table(table, schema=None) as batch_op:
            batch_op.create_index(batch_op.f(f'ix_{table}_email'), ['email'], unique=False)
            batch_op.create_index(batch_op.f(f'ix_{table}_{number_column}'), [number_column], unique=False)

    op.create_table(
        'books',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('author', sa.String(length=255), nullable=True),
        sa.Column('publisher', sa.String(length=255), nullable=True),
        sa.Column('publish_date', sa.String(length=50), nullable=True),
        sa.Column('isbn', sa.String(length=32), nullable=True),
        sa.Column('cover_image', sa.String(length=512), nullable=True),
        sa.Column('book_pdf', sa.String(length=512), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('books', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_books_title'), ['title'], unique=False)
        batch_op.create_index(batch_op.f('ix_books_author'), ['author'], unique=False)
        batch_op.create_index(batch_op.f('ix_books_isbn'), ['isbn'], unique=False)

    op.create_table(
        'subscription_plans',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=120), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('recurrence', sa.String(length=20), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('product_id', sa.String(length=255), nullable=False),
        sa.Column('price_id', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'subscription_instances',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=True),
        sa.Column('customer_id', sa.String(length=255), nullable=True),
        sa.Column('price_id', sa.String(length=255), nullable=False),
        sa.Column('checkout_session_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(length=255), nullable=True),
        sa.Column('payment_status', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('payment_link', sa.String(length=1024), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['plan_id'], ['subscription_plans.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['user_id'], ['system_users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('subscription_instances', schema=None) as batch_op:
        batch_op.create_index('idx_subscription_instance_user_id', ['user_id'], unique=False)
        batch_op.create_index('idx_subscription_instance_stripe_sub', ['stripe_subscription_id'], unique=False)
        batch_op.create_index('idx_subscription_instance_user_status', ['user_id', 'status'], unique=False)

    op.create_table(
        'token_blacklist',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('jti', sa.String(length=36), nullable=False),
        sa.Column('token_type', sa.String(length=10), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['system_users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('token_blacklist', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_token_blacklist_jti'), ['jti'], unique=True)
        batch_op.create_index(batch_op.f('ix_token_blacklist_expires_at'), ['expires_at'], unique=False)


def downgrade():
    op.drop_table('token_blacklist')
    op.drop_table('subscription_instances')
    op.drop_table('subscription_plans')
    op.drop_table('books')
    op.drop_table('managers')
    op.drop_table('students')
    op.drop_table('system_users')
