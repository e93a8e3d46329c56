"""add whatsapp channels, conversations and group members

Revision ID: add_whatsapp_groups_001
Revises:
Create Date: 2025-12-31

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'add_whatsapp_groups_001'
down_revision = None
branch_labels = None
depends_on = None


def _base_columns():
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'whatsapp_channels',
        *_base_columns(),
        sa.Column('phone_number', sa.String(length=50), nullable=False),
        sa.Column('provider', sa.String(length=50), nullable=False),
        sa.Column('provider_config', sa.JSON(), nullable=True),
        sa.Column('provider_connection', sa.JSON(), nullable=True),
        sa.Column('callback_webhook_url', sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_whatsapp_channels_tenant_id', 'whatsapp_channels', ['tenant_id'])
    op.create_index('ix_whatsapp_channels_phone_number', 'whatsapp_channels', ['phone_number'])

    op.create_table(
        'conversations',
        *_base_columns(),
        sa.Column('channel_id', sa.Integer(), nullable=False),
        sa.Column('contact_identifier', sa.String(length=255), nullable=False),
        sa.Column('contact_name', sa.String(length=255), nullable=True),
        sa.Column('additional_attributes', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['channel_id'], ['whatsapp_channels.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_conversations_tenant_id', 'conversations', ['tenant_id'])
    op.create_index('ix_conversations_channel_id', 'conversations', ['channel_id'])
    op.create_index('ix_conversations_contact_identifier', 'conversations', ['contact_identifier'])

    op.create_table(
        'messages',
        *_base_columns(),
        sa.Column('conversation_id', sa.Integer(), nullable=False),
        sa.Column('source_id', sa.String(length=255), nullable=True),
        sa.Column('message_type', sa.String(length=20), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('content_attributes', sa.JSON(), nullable=True),
        sa.Column('in_reply_to_id', sa.Integer(), nullable=True),
        sa.Column('is_unsupported', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('external_created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.ForeignKeyConstraint(['in_reply_to_id'], ['messages.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_messages_tenant_id', 'messages', ['tenant_id'])
    op.create_index('ix_messages_conversation_id', 'messages', ['conversation_id'])
    op.create_index('ix_messages_source_id', 'messages', ['source_id'])

    op.create_table(
        'attachments',
        *_base_columns(),
        sa.Column('message_id', sa.Integer(), nullable=False),
        sa.Column('file_type', sa.String(length=20), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=True),
        sa.Column('content_type', sa.String(length=100), nullable=True),
        sa.Column('data', sa.LargeBinary(), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['message_id'], ['messages.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_attachments_tenant_id', 'attachments', ['tenant_id'])
    op.create_index('ix_attachments_message_id', 'attachments', ['message_id'])

    op.create_table(
        'whatsapp_group_members',
        *_base_columns(),
        sa.Column('conversation_id', sa.Integer(), nullable=False),
        sa.Column('phone_number', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('joined_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('conversation_id', 'phone_number', name='index_group_members_on_conversation_and_phone')
    )
    op.create_index('ix_whatsapp_group_members_tenant_id', 'whatsapp_group_members', ['tenant_id'])
    op.create_index('ix_whatsapp_group_members_conversation_id', 'whatsapp_group_members', ['conversation_id'])


def downgrade():
    op.drop_table('whatsapp_group_members')
    op.drop_table('attachments')
    op.drop_table('messages')
    op.drop_table('conversations')
    op.drop_table('whatsapp_channels')
