"""WhatsApp Web sessions bridged through an Evolution API instance."""

from typing import Any, Optional

from ..base_adapter import HttpChannelAdapter
from ..ports import AdapterReceipt, SendContext
from ..types import ChannelType, MediaKind


class WhatsAppUnofficialAdapter(HttpChannelAdapter):
    """
    Evolution API bridge.

    Endpoints are scoped by instance name and authenticated with the
    instance `apikey` header. Voice notes go through the dedicated audio
    endpoint so the bridge transcodes them to push-to-talk format.
    """

    channel_type = ChannelType.WHATSAPP_UNOFFICIAL

    def _url(self, ctx: SendContext, action: str) -> str:
        creds = ctx.credentials
        return f"{creds.base_url.rstrip('/')}/message/{action}/{creds.instance}"

    def _headers(self, ctx: SendContext) -> dict[str, str]:
        return {"apikey": ctx.credentials.api_key}

    @staticmethod
    def _receipt(body: dict[str, Any], **metadata: Any) -> AdapterReceipt:
        key = body.get("key") or {}
        status = body.get("status")
        return AdapterReceipt(
            external_id=key.get("id"),
            status=status.lower() if isinstance(status, str) else None,
            metadata={k: v for k, v in metadata.items() if v is not None},
        )

    def send_message(self, ctx: SendContext, to: str, text: str) -> AdapterReceipt:
        body = self._post(
            self._url(ctx, "sendText"),
            operation="send_message",
            to=to,
            json={"number": to, "text": text},
            headers=self._headers(ctx),
        )
        return self._receipt(body)

    def send_media(
        self,
        ctx: SendContext,
        to: str,
        media_kind: MediaKind,
        media_url: str,
        caption: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> AdapterReceipt:
        if media_kind == MediaKind.AUDIO:
            url = self._url(ctx, "sendWhatsAppAudio")
            payload: dict[str, Any] = {"number": to, "audio": media_url}
        else:
            url = self._url(ctx, "sendMedia")
            payload = {"number": to, "mediatype": media_kind.value, "media": media_url}
            if caption:
                payload["caption"] = caption
            if filename:
                payload["fileName"] = filename

        body = self._post(url, operation="send_media", to=to, json=payload, headers=self._headers(ctx))
        return self._receipt(body, media_url=media_url, filename=filename)
