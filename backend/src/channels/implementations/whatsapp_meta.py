"""WhatsApp Business API through a Meta solution partner (360dialog-style)."""

from typing import Optional

import httpx

from config import settings
from ..ports import SendContext
from ..types import ChannelType
from .whatsapp_official import WhatsAppBusinessAdapter


class WhatsAppMetaPartnerAdapter(WhatsAppBusinessAdapter):
    """
    Partner-hosted Cloud API.

    The partner proxies the Cloud API message schema at `{base_url}/messages`
    and authenticates with a per-number API key header.
    """

    channel_type = ChannelType.WHATSAPP_META

    def __init__(self, client: Optional[httpx.Client] = None, base_url: Optional[str] = None):
        super().__init__(client)
        self.base_url = (base_url or settings.WHATSAPP_PARTNER_API_URL).rstrip("/")

    def _messages_url(self, ctx: SendContext) -> str:
        base_url = (ctx.credentials.base_url or self.base_url).rstrip("/")
        return f"{base_url}/messages"

    def _headers(self, ctx: SendContext) -> dict[str, str]:
        return {"D360-API-KEY": ctx.credentials.api_key}
