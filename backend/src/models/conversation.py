"""Conversation SQLAlchemy model"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base


class Conversation(Base):
    """Conversation model - session scope pairing one Contact with one ChannelConnection.

    (contact_id, channel_connection_id) is unique. channel_type and tenant_id
    are copied from the connection at creation time.
    """
    __tablename__ = "conversation"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contact.id", ondelete="CASCADE"), nullable=False)
    channel_connection_id = Column(
        Integer,
        ForeignKey("channel_connection.id", ondelete="CASCADE"),
        nullable=False
    )
    channel_type = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="active")
    last_message_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    contact = relationship("Contact", back_populates="conversations")
    channel_connection = relationship("ChannelConnection", back_populates="conversations")
    messages = relationship("Message", back_populates="conversation")

    __table_args__ = (
        UniqueConstraint(
            "contact_id", "channel_connection_id",
            name="uq_conversation_contact_channel"
        ),
        Index("idx_conversation_tenant_created", tenant_id, created_at),
    )

    def to_dict(self):
        """Convert conversation to dictionary representation"""
        return {
            "id": self.id,
            "contactId": self.contact_id,
            "channelId": self.channel_connection_id,
            "channelType": self.channel_type,
            "status": self.status,
            "lastMessageAt": self.last_message_at.isoformat() if self.last_message_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
