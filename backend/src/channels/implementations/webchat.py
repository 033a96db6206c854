"""Web-chat adapter: pushes outbound messages to the widget relay."""

from typing import Any, Optional

from ..base_adapter import HttpChannelAdapter
from ..ports import AdapterReceipt, SendContext
from ..types import ChannelType, MediaKind


class WebchatAdapter(HttpChannelAdapter):
    """`to` is the visitor session id; the relay fans out to the open widget."""

    channel_type = ChannelType.WEBCHAT

    def _push(self, ctx: SendContext, to: str, message: dict[str, Any], operation: str) -> AdapterReceipt:
        body = self._post(
            ctx.credentials.relay_url,
            operation=operation,
            to=to,
            json={"session_id": to, "message": message},
            headers={"Authorization": f"Bearer {ctx.credentials.widget_token}"},
        )
        return AdapterReceipt(external_id=body.get("id"), status=body.get("status"))

    def send_message(self, ctx: SendContext, to: str, text: str) -> AdapterReceipt:
        return self._push(ctx, to, {"type": "text", "text": text}, "send_message")

    def send_media(
        self,
        ctx: SendContext,
        to: str,
        media_kind: MediaKind,
        media_url: str,
        caption: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> AdapterReceipt:
        message = {
            "type": media_kind.value,
            "url": media_url,
            "caption": caption,
            "filename": filename,
        }
        return self._push(
            ctx, to, {k: v for k, v in message.items() if v is not None}, "send_media"
        )
