"""Closed enumerations shared by the channel layer and the dispatch core."""

from enum import Enum


class ChannelType(str, Enum):
    """Messaging networks a channel connection can be bound to.

    The set is closed: the adapter registry refuses to build unless every
    member has exactly one adapter.
    """
    WHATSAPP_UNOFFICIAL = "whatsapp_unofficial"
    WHATSAPP_OFFICIAL = "whatsapp_official"
    WHATSAPP_META = "whatsapp_meta"
    TWILIO_SMS = "twilio_sms"
    TWILIO_VOICE = "twilio_voice"
    TELEGRAM = "telegram"
    INSTAGRAM = "instagram"
    MESSENGER = "messenger"
    TIKTOK = "tiktok"
    EMAIL = "email"
    WEBCHAT = "webchat"

    @classmethod
    def parse(cls, value: str) -> "ChannelType":
        """Parse a stored channel type, accepting the legacy `whatsapp` alias."""
        if value == "whatsapp":
            return cls.WHATSAPP_UNOFFICIAL
        return cls(value)


class ChannelStatus(str, Enum):
    """Lifecycle status of a channel connection."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class MediaKind(str, Enum):
    """Media kinds accepted by the send-media operation."""
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"


class MessageKind(str, Enum):
    """Kind of an outbound message row."""
    TEXT = "text"
    MEDIA = "media"
    TEMPLATE = "template"
    INTERACTIVE = "interactive"


class Operation(str, Enum):
    """Dispatch operations checked against the capability table."""
    TEXT = "text"
    MEDIA = "media"
    TEMPLATE = "template"
    INTERACTIVE = "interactive"
