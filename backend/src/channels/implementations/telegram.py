"""Telegram Bot API adapter."""

from typing import Any, Optional

import httpx

from config import settings
from ..base_adapter import HttpChannelAdapter
from ..ports import AdapterError, AdapterReceipt, SendContext
from ..types import ChannelType, MediaKind


_MEDIA_METHODS = {
    MediaKind.IMAGE: ("sendPhoto", "photo"),
    MediaKind.VIDEO: ("sendVideo", "video"),
    MediaKind.AUDIO: ("sendAudio", "audio"),
    MediaKind.DOCUMENT: ("sendDocument", "document"),
}


class TelegramAdapter(HttpChannelAdapter):
    """Sends through `{api}/bot{token}/{method}`; `to` is the chat id."""

    channel_type = ChannelType.TELEGRAM

    def __init__(self, client: Optional[httpx.Client] = None, api_url: Optional[str] = None):
        super().__init__(client)
        self.api_url = (api_url or settings.TELEGRAM_API_URL).rstrip("/")

    def _call(self, ctx: SendContext, method: str, to: str, payload: dict[str, Any], operation: str) -> AdapterReceipt:
        body = self._post(
            f"{self.api_url}/bot{ctx.credentials.bot_token}/{method}",
            operation=operation,
            to=to,
            json={"chat_id": to, **payload},
        )
        if not body.get("ok", False):
            raise AdapterError(f"Telegram {method} failed: {body.get('description', 'unknown error')}")

        result = body.get("result") or {}
        message_id = result.get("message_id")
        return AdapterReceipt(
            external_id=str(message_id) if message_id is not None else None,
            status="sent",
        )

    def send_message(self, ctx: SendContext, to: str, text: str) -> AdapterReceipt:
        return self._call(ctx, "sendMessage", to, {"text": text}, "send_message")

    def send_media(
        self,
        ctx: SendContext,
        to: str,
        media_kind: MediaKind,
        media_url: str,
        caption: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> AdapterReceipt:
        method, field = _MEDIA_METHODS[media_kind]
        payload: dict[str, Any] = {field: media_url}
        if caption:
            payload["caption"] = caption
        receipt = self._call(ctx, method, to, payload, "send_media")
        receipt.metadata["media_url"] = media_url
        return receipt

    def _error_from_response(self, response: httpx.Response) -> AdapterError:
        try:
            description = response.json().get("description")
        except (ValueError, AttributeError):
            description = None
        if not description:
            return super()._error_from_response(response)
        return AdapterError(
            f"Telegram API returned {response.status_code}: {description}",
            status_code=response.status_code,
            retryable=response.status_code == 429 or response.status_code >= 500,
        )
