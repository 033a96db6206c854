"""Create inbox dispatch tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


CHANNEL_TYPES = (
    'whatsapp_unofficial', 'whatsapp_official', 'whatsapp_meta', 'twilio_sms',
    'twilio_voice', 'telegram', 'instagram', 'messenger', 'tiktok', 'email', 'webchat',
)
CHANNEL_STATUSES = ('active', 'inactive', 'disconnected', 'error')
MESSAGE_KINDS = ('text', 'media', 'template', 'interactive')


def _in(column, values):
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


def upgrade():
    # Create updated_at trigger function (reused by channel_connection)
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
          NEW.updated_at = NOW();
          RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    op.create_table(
        'tenant',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('slug', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug', name='uq_tenant_slug'),
    )

    op.create_table(
        'channel_connection',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('channel_type', sa.Text(), nullable=False),
        sa.Column('account_name', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default=sa.text("'active'"), nullable=False),
        sa.Column('config_encrypted', sa.LargeBinary(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenant.id'], ondelete='RESTRICT'),
        sa.CheckConstraint(_in('channel_type', CHANNEL_TYPES), name='ck_channel_connection_type'),
        sa.CheckConstraint(_in('status', CHANNEL_STATUSES), name='ck_channel_connection_status'),
    )
    op.create_index('idx_channel_connection_tenant_status', 'channel_connection', ['tenant_id', 'status'])
    op.execute("""
        CREATE TRIGGER update_channel_connection_updated_at
        BEFORE UPDATE ON channel_connection
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)

    op.create_table(
        'contact',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('identifier', sa.Text(), nullable=False),
        sa.Column('phone', sa.Text(), nullable=True),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('source', sa.Text(), server_default=sa.text("'api'"), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenant.id'], ondelete='RESTRICT'),
        # Backs the atomic get-or-create of contacts (ON CONFLICT target)
        sa.UniqueConstraint('tenant_id', 'identifier', name='uq_contact_tenant_identifier'),
    )

    op.create_table(
        'conversation',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=False),
        sa.Column('channel_connection_id', sa.Integer(), nullable=False),
        sa.Column('channel_type', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default=sa.text("'active'"), nullable=False),
        sa.Column('last_message_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenant.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['contact_id'], ['contact.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['channel_connection_id'], ['channel_connection.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('contact_id', 'channel_connection_id', name='uq_conversation_contact_channel'),
    )
    op.create_index('idx_conversation_tenant_created', 'conversation', ['tenant_id', 'created_at'])

    op.create_table(
        'message',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('conversation_id', sa.Integer(), nullable=False),
        sa.Column('sender_id', sa.Integer(), nullable=True),
        sa.Column('content', sa.Text(), server_default=sa.text("''"), nullable=False),
        sa.Column('kind', sa.Text(), nullable=False),
        sa.Column('direction', sa.Text(), server_default=sa.text("'outbound'"), nullable=False),
        sa.Column('status', sa.Text(), server_default=sa.text("'sent'"), nullable=False),
        sa.Column('external_id', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversation.id'], ondelete='CASCADE'),
        sa.CheckConstraint(_in('kind', MESSAGE_KINDS), name='ck_message_kind'),
    )
    op.create_index('idx_message_conversation_created', 'message', ['conversation_id', 'created_at'])
    op.create_index('idx_message_external_id', 'message', ['external_id'])


def downgrade():
    op.drop_index('idx_message_external_id', table_name='message')
    op.drop_index('idx_message_conversation_created', table_name='message')
    op.drop_table('message')
    op.drop_index('idx_conversation_tenant_created', table_name='conversation')
    op.drop_table('conversation')
    op.drop_table('contact')
    op.execute('DROP TRIGGER IF EXISTS update_channel_connection_updated_at ON channel_connection')
    op.drop_index('idx_channel_connection_tenant_status', table_name='channel_connection')
    op.drop_table('channel_connection')
    op.drop_table('tenant')
    op.execute('DROP FUNCTION IF EXISTS update_updated_at_column()')
