"""ChannelConnection model - tenant-owned binding to one external messaging account.

Credentials are stored AES-256-GCM encrypted; see channels.credentials for the
typed per-channel models they decrypt into.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, Text, DateTime, ForeignKey, Index, LargeBinary, CheckConstraint
)
from sqlalchemy.orm import relationship, validates

from channels.types import ChannelType, ChannelStatus
from .base import Base


_CHANNEL_TYPES = ", ".join(f"'{member.value}'" for member in ChannelType)
_STATUSES = ", ".join(f"'{member.value}'" for member in ChannelStatus)


class ChannelConnection(Base):
    """Channel connection configuration for a tenant.

    Read-only to the dispatch core; created and updated by channel-connection
    management.

    Attributes:
        id: Primary key
        tenant_id: Tenant this connection belongs to
        channel_type: One of ChannelType
        account_name: Human-readable account label
        status: active | inactive | disconnected | error
        config_encrypted: Encrypted JSON credentials (IV + ciphertext + tag)
    """

    __tablename__ = "channel_connection"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    channel_type = Column(
        Text,
        CheckConstraint(f"channel_type IN ({_CHANNEL_TYPES})", name="ck_channel_connection_type"),
        nullable=False
    )
    account_name = Column(Text, nullable=False)
    status = Column(
        Text,
        CheckConstraint(f"status IN ({_STATUSES})", name="ck_channel_connection_status"),
        nullable=False,
        default=ChannelStatus.ACTIVE.value
    )
    config_encrypted = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    tenant = relationship("Tenant", back_populates="channel_connections")
    conversations = relationship("Conversation", back_populates="channel_connection")

    __table_args__ = (
        Index("idx_channel_connection_tenant_status", tenant_id, status),
    )

    @validates('channel_type')
    def validate_channel_type(self, key, value):
        """Normalize legacy aliases and reject unknown channel types."""
        try:
            return ChannelType.parse(value).value
        except ValueError:
            raise ValueError(f"Invalid channel type: {value}")

    @property
    def type(self) -> ChannelType:
        return ChannelType.parse(self.channel_type)

    @property
    def is_active(self) -> bool:
        return self.status == ChannelStatus.ACTIVE.value

    def __repr__(self):
        return (
            f"<ChannelConnection(id={self.id}, tenant_id={self.tenant_id}, "
            f"type={self.channel_type}, status={self.status})>"
        )
