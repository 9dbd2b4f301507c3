"""Create users, profiles, notifications, emergencies and friends tables

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-09-02 10:14:03.512907

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(with_updated: bool = True):
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())]
    if with_updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True))
    return columns


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_profiles_user_id', 'profiles', ['user_id'])
    op.create_index('ix_profiles_email', 'profiles', ['email'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id')),
        sa.Column('type', sa.String()),
        sa.Column('title', sa.String()),
        sa.Column('message', sa.String()),
        sa.Column('priority', sa.String(), server_default='medium'),
        sa.Column('action_type', sa.String(), nullable=True),
        sa.Column('action_data', sa.JSON(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('emergency_type', sa.String(), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])

    op.create_table(
        'emergencies',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id')),
        sa.Column('user_name', sa.String()),
        sa.Column('emergency_type', sa.String()),
        sa.Column('specific_type', sa.String()),
        sa.Column('location', sa.String()),
        sa.Column('description', sa.Text()),
        sa.Column('status', sa.String(), server_default='active'),
        sa.Column('priority', sa.String(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_emergencies_user_id', 'emergencies', ['user_id'])
    op.create_index('ix_emergencies_specific_type', 'emergencies', ['specific_type'])
    op.create_index('ix_emergencies_location', 'emergencies', ['location'])

    op.create_table(
        'friend_requests',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('from_user_id', sa.String(), sa.ForeignKey('users.id')),
        sa.Column('to_user_id', sa.String(), sa.ForeignKey('users.id')),
        sa.Column('from_user_name', sa.String(), nullable=True),
        sa.Column('to_user_name', sa.String(), nullable=True),
        sa.Column('status', sa.String(), server_default='pending'),
        *_timestamps(),
    )
    op.create_index('ix_friend_requests_from_user_id', 'friend_requests', ['from_user_id'])
    op.create_index('ix_friend_requests_to_user_id', 'friend_requests', ['to_user_id'])

    op.create_table(
        'friends',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id')),
        sa.Column('friend_id', sa.String(), sa.ForeignKey('users.id')),
        sa.Column('friend_name', sa.String(), nullable=True),
        sa.Column('friend_email', sa.String(), nullable=True),
        sa.Column('status', sa.String(), server_default='active'),
        *_timestamps(with_updated=False),
    )
    op.create_index('ix_friends_user_id', 'friends', ['user_id'])
    op.create_index('ix_friends_friend_id', 'friends', ['friend_id'])


def downgrade() -> None:
    op.drop_table('friends')
    op.drop_table('friend_requests')
    op.drop_table('emergencies')
    op.drop_table('notifications')
    op.drop_table('profiles')
    op.drop_table('users')
