"""Create conversations, memberships and the role hierarchy

Revision ID: a1c4e2f7b9d0
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'a1c4e2f7b9d0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('username', sa.String(), nullable=True, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    conversation_type = postgresql.ENUM('DIRECT', 'GROUP', name='conversation_type')
    op.create_table(
        'conversations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('conversation_type', conversation_type, nullable=False),
        sa.Column('is_private', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            'owner_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=True
        ),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'user_conversation',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False
        ),
        sa.Column(
            'conversation_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('conversations.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('muted_until', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'conversation_id', name='uq_user_conversation_member'),
    )
    op.create_index('ix_user_conversation_user_id', 'user_conversation', ['user_id'])

    op.create_table(
        'roles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'conversation_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('conversations.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('conversation_id', 'level', name='uq_roles_conversation_level'),
    )
    # One default role (level IS NULL) per conversation
    op.create_index(
        'uq_roles_conversation_default',
        'roles',
        ['conversation_id'],
        unique=True,
        postgresql_where=sa.text('level IS NULL'),
    )

    op.create_table(
        'user_conversation_roles',
        sa.Column(
            'membership_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('user_conversation.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column(
            'role_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('roles.id', ondelete='CASCADE'),
            primary_key=True,
        ),
    )

    op.create_table(
        'role_counters',
        sa.Column(
            'conversation_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('conversations.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column('last_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('role_counters')
    op.drop_table('user_conversation_roles')
    op.drop_index('uq_roles_conversation_default', table_name='roles')
    op.drop_table('roles')
    op.drop_index('ix_user_conversation_user_id', table_name='user_conversation')
    op.drop_table('user_conversation')
    op.drop_table('conversations')
    op.execute('DROP TYPE IF EXISTS conversation_type')
    op.drop_table('users')
