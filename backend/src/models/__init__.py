"""SQLAlchemy Models for the inbox backend"""

from .base import Base
from .tenant import Tenant
from .channel_connection import ChannelConnection
from .contact import Contact
from .conversation import Conversation
from .message import Message

__all__ = [
    "Base",
    "Tenant",
    "ChannelConnection",
    "Contact",
    "Conversation",
    "Message",
]
