"""Create users, projects, project files, chats and messages

Revision ID: 001
Revises:
Create Date: 2026-10-18 12:00:00
"""
from alembic import op
import sqlalchemy as sa

revision = '001'
down_revision = None
branch_labels = None
depends_on = None

record_status = sa.Enum('ACTIVE', 'DELETED', name='recordstatus')
message_role = sa.Enum('USER', 'ASSISTANT', 'SYSTEM', name='messagerole')


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'project',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('system_prompt', sa.Text(), nullable=False),
        sa.Column('status', record_status, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_project_owner_id', 'project', ['owner_id'])
    op.create_index('ix_project_name', 'project', ['name'])
    op.create_index('ix_project_status', 'project', ['status'])

    op.create_table(
        'projectfile',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('project.id'), nullable=False),
        sa.Column('file_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_projectfile_project_id', 'projectfile', ['project_id'])
    op.create_index('ix_projectfile_file_id', 'projectfile', ['file_id'])

    op.create_table(
        'chat',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('project.id'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('status', record_status, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_chat_owner_id', 'chat', ['owner_id'])
    op.create_index('ix_chat_project_id', 'chat', ['project_id'])
    op.create_index('ix_chat_status', 'chat', ['status'])
    op.create_index('ix_chat_updated_at', 'chat', ['updated_at'])

    op.create_table(
        'message',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('chat_id', sa.Integer(), sa.ForeignKey('chat.id'), nullable=False),
        sa.Column('role', message_role, nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_message_chat_id', 'message', ['chat_id'])


def downgrade():
    op.drop_table('message')
    op.drop_table('chat')
    op.drop_table('projectfile')
    op.drop_table('project')
    op.drop_table('user')
    message_role.drop(op.get_bind(), checkfirst=True)
    record_status.drop(op.get_bind(), checkfirst=True)
