"""
Messaging repository - persistence for the dispatch core

Wraps a SQLAlchemy Session. Contact and Conversation creation use
INSERT ... ON CONFLICT DO NOTHING followed by a fetch, so two concurrent
first-sends to the same address converge on a single row instead of racing
a check-then-insert.

The repository flushes but never commits; the caller owns the transaction.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, or_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from channels.credentials import parse_credentials
from channels.encryption import EncryptionService
from channels.types import ChannelStatus, ChannelType, MessageKind
from models import ChannelConnection, Contact, Conversation, Message


logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class MessagingRepository:
    """Repository over channel connections, contacts, conversations and messages."""

    def __init__(self, db: Session):
        self.db = db

    def _insert(self, model):
        dialect = self.db.get_bind().dialect.name
        try:
            return _INSERT_BY_DIALECT[dialect](model)
        except KeyError:
            raise RuntimeError(f"Atomic upsert is not supported on dialect '{dialect}'") from None

    # ------------------------------------------------------------------
    # Channel connections
    # ------------------------------------------------------------------

    def get_channel_connection(self, channel_id: int) -> Optional[ChannelConnection]:
        """Fetch a connection by id without tenant filtering (the access validator checks ownership)."""
        return self.db.get(ChannelConnection, channel_id)

    def list_channel_connections(
        self, tenant_id: int, status: Optional[ChannelStatus] = None
    ) -> list[ChannelConnection]:
        query = self.db.query(ChannelConnection).filter(ChannelConnection.tenant_id == tenant_id)
        if status is not None:
            query = query.filter(ChannelConnection.status == status.value)
        return query.order_by(ChannelConnection.id).all()

    def create_channel_connection(
        self,
        tenant_id: int,
        channel_type: ChannelType,
        account_name: str,
        credentials: dict[str, Any],
        status: ChannelStatus = ChannelStatus.ACTIVE,
    ) -> ChannelConnection:
        """
        Create a channel connection with validated, encrypted credentials.

        Raises:
            CredentialsError: If credentials do not match the channel's model
            EncryptionError: If the encryption key is missing or invalid
        """
        model = parse_credentials(channel_type, credentials)
        connection = ChannelConnection(
            tenant_id=tenant_id,
            channel_type=channel_type.value,
            account_name=account_name,
            status=status.value,
            config_encrypted=EncryptionService.encrypt_credentials(model),
        )
        self.db.add(connection)
        self.db.flush()
        logger.info(
            f"Created {channel_type.value} channel connection {connection.id}",
            extra={"tenant_id": tenant_id, "channel_id": connection.id},
        )
        return connection

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    def get_contact_by_phone(self, normalized: str, tenant_id: int) -> Optional[Contact]:
        return (
            self.db.query(Contact)
            .filter(Contact.tenant_id == tenant_id, Contact.identifier == normalized)
            .first()
        )

    def get_or_create_contact(
        self,
        tenant_id: int,
        identifier: str,
        phone: Optional[str] = None,
        name: Optional[str] = None,
        source: str = "api",
    ) -> Contact:
        """
        Return the tenant's contact for `identifier`, creating it if absent.

        Existing rows are returned untouched; name/phone of a losing concurrent
        insert are discarded.
        """
        stmt = (
            self._insert(Contact)
            .values(
                tenant_id=tenant_id,
                identifier=identifier,
                phone=phone,
                name=name,
                source=source,
                created_at=datetime.now(timezone.utc),
            )
            .on_conflict_do_nothing(index_elements=["tenant_id", "identifier"])
        )
        self.db.execute(stmt)
        return self.get_contact_by_phone(identifier, tenant_id)

    def list_contacts(
        self, tenant_id: int, page: int, limit: int, search: Optional[str] = None
    ) -> tuple[list[Contact], int]:
        query = self.db.query(Contact).filter(Contact.tenant_id == tenant_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Contact.name.ilike(pattern),
                    Contact.phone.ilike(pattern),
                    Contact.email.ilike(pattern),
                    Contact.identifier.ilike(pattern),
                )
            )
        total = query.with_entities(func.count(Contact.id)).scalar()
        items = (
            query.order_by(Contact.created_at.desc(), Contact.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def get_conversation_by_contact_and_channel(
        self, contact_id: int, channel_id: int
    ) -> Optional[Conversation]:
        return (
            self.db.query(Conversation)
            .filter(
                Conversation.contact_id == contact_id,
                Conversation.channel_connection_id == channel_id,
            )
            .first()
        )

    def create_conversation(self, tenant_id: int, contact_id: int, connection: ChannelConnection) -> Conversation:
        """
        Insert the conversation for (contact, connection) unless one exists.

        Returns the surviving row in either case.
        """
        now = datetime.now(timezone.utc)
        stmt = (
            self._insert(Conversation)
            .values(
                tenant_id=tenant_id,
                contact_id=contact_id,
                channel_connection_id=connection.id,
                channel_type=connection.channel_type,
                status="active",
                last_message_at=now,
                created_at=now,
            )
            .on_conflict_do_nothing(index_elements=["contact_id", "channel_connection_id"])
        )
        self.db.execute(stmt)
        return self.get_conversation_by_contact_and_channel(contact_id, connection.id)

    def list_conversations(
        self,
        tenant_id: int,
        page: int,
        limit: int,
        channel_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> tuple[list[Conversation], int]:
        query = self.db.query(Conversation).filter(Conversation.tenant_id == tenant_id)
        if channel_id is not None:
            query = query.filter(Conversation.channel_connection_id == channel_id)
        if status:
            query = query.filter(Conversation.status == status)
        total = query.with_entities(func.count(Conversation.id)).scalar()
        items = (
            query.order_by(Conversation.last_message_at.desc(), Conversation.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def create_message(
        self,
        conversation_id: int,
        sender_id: int,
        content: str,
        kind: MessageKind,
        status: str,
        external_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
        created_at: Optional[datetime] = None,
    ) -> Message:
        created_at = created_at or datetime.now(timezone.utc)
        message = Message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            kind=kind.value,
            direction="outbound",
            status=status,
            external_id=external_id,
            metadata_json=metadata or None,
            created_at=created_at,
        )
        self.db.add(message)
        self.db.query(Conversation).filter(Conversation.id == conversation_id).update(
            {Conversation.last_message_at: created_at}, synchronize_session=False
        )
        self.db.flush()
        return message

    def get_message_by_id(self, message_id: int) -> Optional[Message]:
        return self.db.get(Message, message_id)

    def get_message_for_tenant(self, message_id: int, tenant_id: int) -> Optional[Message]:
        """Fetch a message only if its conversation belongs to `tenant_id`."""
        return (
            self.db.query(Message)
            .join(Conversation, Message.conversation_id == Conversation.id)
            .filter(Message.id == message_id, Conversation.tenant_id == tenant_id)
            .first()
        )
