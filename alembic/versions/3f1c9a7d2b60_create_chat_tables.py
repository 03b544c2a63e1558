"""Create users, profiles, conversations, messages and ai_chat_limits

Revision ID: 3f1c9a7d2b60
Revises:
Create Date: 2026-10-19 10:12:44.208513

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b60'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    ]


def upgrade() -> None:
    op.create_table('users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('hashed_password', sa.String(length=1024), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_superuser', sa.Boolean(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table('profiles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('unique_number', sa.String(length=9), nullable=False),
        sa.Column('display_name', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )
    op.create_index(op.f('ix_profiles_unique_number'), 'profiles', ['unique_number'], unique=True)

    op.create_table('conversations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('participant1_id', sa.Uuid(), nullable=False),
        sa.Column('participant2_id', sa.Uuid(), nullable=False),
        sa.Column('participant1_name', sa.Text(), nullable=True),
        sa.Column('participant2_name', sa.Text(), nullable=True),
        sa.Column('last_message', sa.Text(), nullable=True),
        sa.Column('last_message_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['participant1_id'], ['users.id']),
        sa.ForeignKeyConstraint(['participant2_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_conversations_participant1_id'), 'conversations', ['participant1_id'], unique=False)
    op.create_index(op.f('ix_conversations_participant2_id'), 'conversations', ['participant2_id'], unique=False)

    op.create_table('messages',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('conversation_id', sa.Uuid(), nullable=False),
        sa.Column('sender_id', sa.Uuid(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('message_type', sa.Enum('TEXT', 'IMAGE', name='messagetype'), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_messages_conversation_id'), 'messages', ['conversation_id'], unique=False)

    op.create_table('ai_chat_limits',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('questions_count', sa.Integer(), nullable=False),
        sa.Column('last_reset_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('questions_count >= 0', name='ck_ai_chat_limits_count'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )


def downgrade() -> None:
    op.drop_table('ai_chat_limits')
    op.drop_index(op.f('ix_messages_conversation_id'), table_name='messages')
    op.drop_table('messages')
    op.drop_index(op.f('ix_conversations_participant2_id'), table_name='conversations')
    op.drop_index(op.f('ix_conversations_participant1_id'), table_name='conversations')
    op.drop_table('conversations')
    op.drop_index(op.f('ix_profiles_unique_number'), table_name='profiles')
    op.drop_table('profiles')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
