"""Contact SQLAlchemy model"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base


class Contact(Base):
    """Contact model - a tenant-scoped external address (phone or handle).

    `identifier` holds the canonical (normalized) address. The pair
    (tenant_id, identifier) is unique so concurrent first-sends to the same
    address converge on one row.
    """
    __tablename__ = "contact"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    identifier = Column(Text, nullable=False)
    phone = Column(Text, nullable=True)
    name = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    source = Column(Text, nullable=False, default="api")
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    tenant = relationship("Tenant", back_populates="contacts")
    conversations = relationship("Conversation", back_populates="contact")

    __table_args__ = (
        UniqueConstraint("tenant_id", "identifier", name="uq_contact_tenant_identifier"),
    )

    def to_dict(self):
        """Convert contact to dictionary representation"""
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "identifier": self.identifier,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
