"""
Instagram and Messenger adapters.

Both use the Meta Send API on behalf of a page: `POST /{version}/me/messages`
with the page access token. `to` is the page-scoped user id.
"""

from typing import Any, Optional

import httpx

from config import settings
from ..base_adapter import HttpChannelAdapter
from ..ports import AdapterError, AdapterReceipt, SendContext
from ..types import ChannelType, MediaKind


# Send API attachment types; documents are sent as generic files
_ATTACHMENT_TYPES = {
    MediaKind.IMAGE: "image",
    MediaKind.VIDEO: "video",
    MediaKind.AUDIO: "audio",
    MediaKind.DOCUMENT: "file",
}


class MetaPageAdapter(HttpChannelAdapter):

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        graph_url: Optional[str] = None,
        api_version: Optional[str] = None,
    ):
        super().__init__(client)
        self.graph_url = (graph_url or settings.WHATSAPP_GRAPH_URL).rstrip("/")
        self.api_version = api_version or settings.WHATSAPP_GRAPH_API_VERSION

    def _send(self, ctx: SendContext, to: str, message: dict[str, Any], operation: str) -> AdapterReceipt:
        body = self._post(
            f"{self.graph_url}/{self.api_version}/me/messages",
            operation=operation,
            to=to,
            json={"recipient": {"id": to}, "messaging_type": "RESPONSE", "message": message},
            params={"access_token": ctx.credentials.page_access_token},
        )
        return AdapterReceipt(external_id=body.get("message_id"), status="sent")

    def send_message(self, ctx: SendContext, to: str, text: str) -> AdapterReceipt:
        return self._send(ctx, to, {"text": text}, "send_message")

    def send_media(
        self,
        ctx: SendContext,
        to: str,
        media_kind: MediaKind,
        media_url: str,
        caption: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> AdapterReceipt:
        attachment = {
            "type": _ATTACHMENT_TYPES[media_kind],
            "payload": {"url": media_url, "is_reusable": False},
        }
        receipt = self._send(ctx, to, {"attachment": attachment}, "send_media")
        # Attachments cannot carry text; the caption follows as its own message
        if caption:
            try:
                self._send(ctx, to, {"text": caption}, "send_caption")
            except AdapterError as e:
                # The attachment is already delivered; keep its receipt
                receipt.metadata["caption_error"] = str(e)
        receipt.metadata["media_url"] = media_url
        return receipt

    def _error_from_response(self, response: httpx.Response) -> AdapterError:
        try:
            error = response.json().get("error") or {}
        except (ValueError, AttributeError):
            error = {}
        if not isinstance(error, dict) or not error:
            return super()._error_from_response(response)
        return AdapterError(
            f"{self.channel_type.value} API error {error.get('code')}: {error.get('message', 'unknown error')}",
            status_code=response.status_code,
            retryable=response.status_code == 429 or response.status_code >= 500,
        )


class InstagramAdapter(MetaPageAdapter):
    channel_type = ChannelType.INSTAGRAM


class MessengerAdapter(MetaPageAdapter):
    channel_type = ChannelType.MESSENGER
