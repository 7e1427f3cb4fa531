"""创建用户资料、星球、成员、频道和会话表

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

member_role = sa.Enum('ADMIN', 'MODERATOR', 'GUEST', name='member_role')
channel_type = sa.Enum('TEXT', 'AUDIO', 'VIDEO', name='channel_type')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    """升级：创建授权核心相关表"""

    op.create_table('profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )

    op.create_table('servers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=False),
        sa.Column('invite_code', sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('invite_code')
    )
    op.create_index('ix_servers_profile_id', 'servers', ['profile_id'])

    # 每个用户在一个星球中只有一条成员记录
    op.create_table('members',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('role', member_role, nullable=False, server_default='GUEST'),
        sa.Column('profile_id', sa.Integer(), nullable=False),
        sa.Column('server_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['server_id'], ['servers.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('server_id', 'profile_id', name='uq_server_profile')
    )
    op.create_index('ix_members_profile_id', 'members', ['profile_id'])
    op.create_index('ix_members_server_id', 'members', ['server_id'])

    op.create_table('channels',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('type', channel_type, nullable=False, server_default='TEXT'),
        sa.Column('server_id', sa.Integer(), nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['server_id'], ['servers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE')
    )
    op.create_index('ix_channels_server_id', 'channels', ['server_id'])
    op.create_index('ix_channels_profile_id', 'channels', ['profile_id'])

    # 会话按 (较小成员ID, 较大成员ID) 写入
    op.create_table('conversations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('member_one_id', sa.Integer(), nullable=False),
        sa.Column('member_two_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['member_one_id'], ['members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['member_two_id'], ['members.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('member_one_id', 'member_two_id', name='uq_member_pair')
    )
    op.create_index('ix_conversations_member_one_id', 'conversations', ['member_one_id'])
    op.create_index('ix_conversations_member_two_id', 'conversations', ['member_two_id'])


def downgrade():
    """降级：删除授权核心相关表"""
    op.drop_table('conversations')
    op.drop_table('channels')
    op.drop_table('members')
    op.drop_table('servers')
    op.drop_table('profiles')
    channel_type.drop(op.get_bind(), checkfirst=True)
    member_role.drop(op.get_bind(), checkfirst=True)
