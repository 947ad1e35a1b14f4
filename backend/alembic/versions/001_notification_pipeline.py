"""Notification pipeline schema

Revision ID: 001_notification_pipeline
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_notification_pipeline'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # users is owned by the marketplace; create only if this database is standalone
    bind = op.get_bind()
    if not sa.inspect(bind).has_table('users'):
        op.create_table(
            'users',
            sa.Column('id', sa.String(), nullable=False),
            sa.Column('timezone', sa.String(), nullable=True),
            sa.Column('last_active', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_last_active'), 'users', ['last_active'], unique=False)

    op.create_table(
        'user_push_tokens',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('token', sa.String(), nullable=False),
        sa.Column('platform', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'token', name='uq_user_push_tokens_user_token')
    )
    op.create_index(op.f('ix_user_push_tokens_user_id'), 'user_push_tokens', ['user_id'], unique=False)
    op.create_index(op.f('ix_user_push_tokens_token'), 'user_push_tokens', ['token'], unique=False)

    op.create_table(
        'pending_notifications',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('data', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('processed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_pending_notifications_user_id'), 'pending_notifications', ['user_id'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('data', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)
    op.create_index(
        'ix_notifications_user_type_created', 'notifications', ['user_id', 'type', 'created_at'], unique=False
    )

    op.create_table(
        'notification_errors',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('error', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('notification_data', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notification_errors_user_id'), 'notification_errors', ['user_id'], unique=False)

    op.create_table(
        'notification_metrics',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('notification_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('platform', sa.String(), nullable=True),
        sa.Column('devices', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('delivered_at', sa.DateTime(), nullable=False),
        sa.Column('scheduled_hour', sa.Integer(), nullable=True),
        sa.Column('scheduled_for', sa.String(), nullable=True),
        sa.Column('user_timezone', sa.String(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notification_metrics_notification_id'), 'notification_metrics', ['notification_id'], unique=False)
    op.create_index(op.f('ix_notification_metrics_user_id'), 'notification_metrics', ['user_id'], unique=False)

    op.create_table(
        'notification_schedule_logs',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('users_processed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('metrics', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('error_details', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    op.drop_table('notification_schedule_logs')
    op.drop_index(op.f('ix_notification_metrics_user_id'), table_name='notification_metrics')
    op.drop_index(op.f('ix_notification_metrics_notification_id'), table_name='notification_metrics')
    op.drop_table('notification_metrics')
    op.drop_index(op.f('ix_notification_errors_user_id'), table_name='notification_errors')
    op.drop_table('notification_errors')
    op.drop_index('ix_notifications_user_type_created', table_name='notifications')
    op.drop_index(op.f('ix_notifications_user_id'), table_name='notifications')
    op.drop_table('notifications')
    op.drop_index(op.f('ix_pending_notifications_user_id'), table_name='pending_notifications')
    op.drop_table('pending_notifications')
    op.drop_index(op.f('ix_user_push_tokens_token'), table_name='user_push_tokens')
    op.drop_index(op.f('ix_user_push_tokens_user_id'), table_name='user_push_tokens')
    op.drop_table('user_push_tokens')
    # users is left in place; it belongs to the marketplace
