"""Tenant model - Root entity for multi-tenant isolation"""

from datetime import datetime, timezone
import re

from sqlalchemy import Column, Integer, Text, DateTime
from sqlalchemy.orm import validates, relationship

from .base import Base


class Tenant(Base):
    """
    Tenant model - Root entity for the multi-tenant inbox.

    Each tenant (company) owns its channel connections, contacts and
    conversations. Every other table references tenant.id via foreign key.
    """
    __tablename__ = "tenant"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    channel_connections = relationship("ChannelConnection", back_populates="tenant")
    contacts = relationship("Contact", back_populates="tenant")

    @validates('slug')
    def validate_slug(self, key, value):
        """
        Ensure slug is URL-friendly.

        Pattern: ^[a-z0-9-]+$

        Raises:
            ValueError: If slug doesn't match pattern or length requirements
        """
        if not re.match(r'^[a-z0-9-]+$', value):
            raise ValueError(
                "Slug must contain only lowercase letters, numbers, and hyphens"
            )
        if len(value) < 2 or len(value) > 100:
            raise ValueError("Slug must be between 2 and 100 characters")
        return value

    @validates('name')
    def validate_name(self, key, value):
        """Ensure tenant name is not empty."""
        if not value or len(value.strip()) == 0:
            raise ValueError("Tenant name cannot be empty")
        return value.strip()

    def __repr__(self):
        return f"<Tenant(id={self.id}, slug={self.slug})>"
