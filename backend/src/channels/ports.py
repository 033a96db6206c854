"""
ChannelAdapter - Port interface for messaging networks

Defines the uniform contract every channel adapter implements. The dispatch
core depends only on this Port, never on a concrete network client, so tests
can substitute recording adapters and new networks plug in without touching
dispatch logic.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .credentials import ChannelCredentials
from .types import ChannelType, MediaKind


@dataclass(frozen=True)
class SendContext:
    """
    Everything an adapter needs to know about the sending side of a call.

    Attributes:
        channel_id: ChannelConnection id
        tenant_id: Owning tenant
        system_user_id: Sender id stamped on API-originated messages
        credentials: Decrypted, typed credentials for the connection
        conversation_id: Internal conversation the message belongs to
    """
    channel_id: int
    tenant_id: int
    system_user_id: int
    credentials: ChannelCredentials
    conversation_id: Optional[int] = None


@dataclass
class AdapterReceipt:
    """
    What an adapter reports after the network accepted a message.

    Every field is optional: networks disagree on what they return, and the
    response envelope applies defaults for anything missing.

    Attributes:
        external_id: Message identifier assigned by the network
        status: Network-reported status (e.g. 'sent', 'queued', 'accepted')
        created_at: Network timestamp, if any
        metadata: Adapter-specific fields persisted with the message row
    """
    external_id: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class InteractiveResult:
    """Result of an interactive send: networks only report success and an id."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None


class AdapterError(Exception):
    """
    Raised by adapters when a network call fails.

    The dispatch core converts this into DISPATCH_FAILED; the message is
    surfaced to single-send callers and recorded per item in batches.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None, retryable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class MediaConversionError(AdapterError):
    """Raised when the network (or the adapter) cannot transcode the supplied media."""


class ChannelAdapter(ABC):
    """
    Abstract interface for channel adapters.

    One concrete implementation exists per ChannelType. Implementations:
    - WhatsAppOfficialAdapter, WhatsAppMetaPartnerAdapter, WhatsAppUnofficialAdapter
    - TwilioSmsAdapter, TwilioVoiceAdapter
    - TelegramAdapter, InstagramAdapter, MessengerAdapter, TikTokAdapter
    - EmailAdapter, WebchatAdapter

    Adapters perform no persistence; they return receipts and the dispatch
    core writes the Message row. Retry policy, if any, belongs here.
    """

    channel_type: ChannelType

    @abstractmethod
    def send_message(self, ctx: SendContext, to: str, text: str) -> AdapterReceipt:
        """
        Send a plain text message.

        Args:
            ctx: Sending context (connection id, credentials, system user)
            to: Recipient address as given by the caller
            text: Message body

        Returns:
            AdapterReceipt describing what the network accepted

        Raises:
            AdapterError: If the network rejected the message or was unreachable
        """

    @abstractmethod
    def send_media(
        self,
        ctx: SendContext,
        to: str,
        media_kind: MediaKind,
        media_url: str,
        caption: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> AdapterReceipt:
        """
        Send a media message referenced by URL.

        Raises:
            MediaConversionError: If the media could not be transcoded for the network
            AdapterError: On any other network failure
        """

    def send_template_message(
        self,
        ctx: SendContext,
        to: str,
        template_name: str,
        language: str,
        components: list[dict[str, Any]],
    ) -> AdapterReceipt:
        """Send a pre-approved template. Only WhatsApp Business-API adapters override this."""
        raise AdapterError(f"{self.channel_type.value} does not support template messages")

    def send_interactive_message(self, ctx: SendContext, payload: dict[str, Any]) -> InteractiveResult:
        """Send a channel-native interactive payload. Only WhatsApp Business-API adapters override this."""
        raise AdapterError(f"{self.channel_type.value} does not support interactive messages")

    def close(self) -> None:
        """Release network resources held by the adapter."""
