"""TikTok Business Messaging API adapter."""

from typing import Any, Optional

import httpx

from config import settings
from ..base_adapter import HttpChannelAdapter
from ..ports import AdapterError, AdapterReceipt, SendContext
from ..types import ChannelType, MediaKind


class TikTokAdapter(HttpChannelAdapter):
    """
    Sends direct messages from a TikTok business account.

    TikTok only carries text, images and video; the capability table keeps
    other media kinds from reaching this adapter.
    """

    channel_type = ChannelType.TIKTOK

    def __init__(self, client: Optional[httpx.Client] = None, api_url: Optional[str] = None):
        super().__init__(client)
        self.api_url = (api_url or settings.TIKTOK_API_URL).rstrip("/")

    def _send(self, ctx: SendContext, to: str, message_type: str, content: dict[str, Any], operation: str) -> AdapterReceipt:
        body = self._post(
            f"{self.api_url}/business/message/send/",
            operation=operation,
            to=to,
            json={
                "business_id": ctx.credentials.business_id,
                "recipient_id": to,
                "message_type": message_type,
                "content": content,
            },
            headers={"Authorization": f"Bearer {ctx.credentials.access_token}"},
        )
        # Business API wraps payloads as {code, message, data}; code 0 is success
        code = body.get("code", 0)
        if code != 0:
            raise AdapterError(f"TikTok API error {code}: {body.get('message', 'unknown error')}")

        data = body.get("data")
        if not isinstance(data, dict):
            data = {}
        return AdapterReceipt(external_id=data.get("message_id"), status=data.get("status"))

    def send_message(self, ctx: SendContext, to: str, text: str) -> AdapterReceipt:
        return self._send(ctx, to, "text", {"text": text}, "send_message")

    def send_media(
        self,
        ctx: SendContext,
        to: str,
        media_kind: MediaKind,
        media_url: str,
        caption: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> AdapterReceipt:
        if media_kind not in (MediaKind.IMAGE, MediaKind.VIDEO):
            raise AdapterError(f"TikTok cannot send {media_kind.value} media")
        field = "image_url" if media_kind == MediaKind.IMAGE else "video_url"
        receipt = self._send(ctx, to, media_kind.value, {field: media_url}, "send_media")
        if caption:
            try:
                self._send(ctx, to, "text", {"text": caption}, "send_caption")
            except AdapterError as e:
                # The media is already delivered; keep its receipt
                receipt.metadata["caption_error"] = str(e)
        return receipt
