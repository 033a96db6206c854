"""Message model - append-only audit record of one outbound dispatch attempt.

A row is created once per successful or failed attempt. Only status and
external_id may change after creation (delivery receipts backfill them).
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship, validates

from channels.types import MessageKind
from .base import Base, PortableJSONB


_KINDS = ", ".join(f"'{member.value}'" for member in MessageKind)


class Message(Base):
    """Outbound message row.

    external_id is set only when the adapter reported success.
    """
    __tablename__ = "message"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(
        Integer,
        ForeignKey("conversation.id", ondelete="CASCADE"),
        nullable=False
    )
    sender_id = Column(Integer, nullable=True)
    content = Column(Text, nullable=False, default="")
    kind = Column(
        Text,
        CheckConstraint(f"kind IN ({_KINDS})", name="ck_message_kind"),
        nullable=False
    )
    direction = Column(Text, nullable=False, default="outbound")
    status = Column(Text, nullable=False, default="sent")
    external_id = Column(Text, nullable=True)
    metadata_json = Column("metadata", PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    conversation = relationship("Conversation", back_populates="messages")

    __table_args__ = (
        Index("idx_message_conversation_created", conversation_id, created_at),
        Index("idx_message_external_id", external_id),
    )

    _IMMUTABLE = ("conversation_id", "sender_id", "content", "kind", "direction")

    @validates(*_IMMUTABLE)
    def validate_immutable(self, key, value):
        """Reject changes to audit fields once the row has been persisted."""
        if self.id is not None and getattr(self, key) != value:
            raise ValueError(f"Message.{key} is immutable after creation")
        return value

    def __repr__(self):
        return (
            f"<Message(id={self.id}, conversation_id={self.conversation_id}, "
            f"kind={self.kind}, status={self.status})>"
        )
