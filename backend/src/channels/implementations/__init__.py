"""
Channel adapter implementations

One concrete ChannelAdapter per ChannelType. build_default_registry() wires
them into a complete AdapterRegistry at startup.
"""

from typing import Optional

import httpx

from config import settings
from ..registry import AdapterRegistry
from .mail import EmailAdapter
from .meta_graph import InstagramAdapter, MessengerAdapter
from .telegram import TelegramAdapter
from .tiktok import TikTokAdapter
from .twilio import TwilioSmsAdapter, TwilioVoiceAdapter
from .webchat import WebchatAdapter
from .whatsapp_meta import WhatsAppMetaPartnerAdapter
from .whatsapp_official import WhatsAppOfficialAdapter
from .whatsapp_unofficial import WhatsAppUnofficialAdapter


def build_default_registry(client: Optional[httpx.Client] = None) -> AdapterRegistry:
    """
    Build the registry of production adapters.

    The httpx-backed adapters share one client so connection pools are reused
    across networks. Twilio and SMTP keep their own connections.

    Raises:
        RuntimeError: If any ChannelType is left without an adapter
    """
    owned = []
    if client is None:
        client = httpx.Client(timeout=settings.ADAPTER_HTTP_TIMEOUT_SECONDS)
        owned.append(client)

    return AdapterRegistry.build([
        WhatsAppOfficialAdapter(client),
        WhatsAppMetaPartnerAdapter(client),
        WhatsAppUnofficialAdapter(client),
        TwilioSmsAdapter(),
        TwilioVoiceAdapter(),
        TelegramAdapter(client),
        InstagramAdapter(client),
        MessengerAdapter(client),
        TikTokAdapter(client),
        EmailAdapter(),
        WebchatAdapter(client),
    ], resources=owned)


__all__ = [
    "build_default_registry",
    "EmailAdapter",
    "InstagramAdapter",
    "MessengerAdapter",
    "TelegramAdapter",
    "TikTokAdapter",
    "TwilioSmsAdapter",
    "TwilioVoiceAdapter",
    "WebchatAdapter",
    "WhatsAppMetaPartnerAdapter",
    "WhatsAppOfficialAdapter",
    "WhatsAppUnofficialAdapter",
]
