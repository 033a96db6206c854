"""
WhatsApp Business-API adapters.

Both Business-API variants speak the Cloud API message schema; they differ
only in endpoint and authentication. WhatsAppOfficialAdapter calls the Graph
API directly with the connection's access token.
"""

import logging
from abc import abstractmethod
from typing import Any, Optional

import httpx

from config import settings
from ..base_adapter import HttpChannelAdapter, hash_recipient
from ..ports import (
    AdapterError,
    AdapterReceipt,
    InteractiveResult,
    MediaConversionError,
    SendContext,
)
from ..types import ChannelType, MediaKind


logger = logging.getLogger(__name__)

# Cloud API error codes reported when the network cannot fetch or transcode media
MEDIA_PROCESSING_ERROR_CODES = frozenset({131053})


class WhatsAppBusinessAdapter(HttpChannelAdapter):
    """Shared Cloud API payloads for the Business-API variants."""

    @abstractmethod
    def _messages_url(self, ctx: SendContext) -> str:
        """Endpoint accepting Cloud API message objects for this connection."""

    @abstractmethod
    def _headers(self, ctx: SendContext) -> dict[str, str]:
        """Authentication headers for this connection."""

    def _send(self, ctx: SendContext, to: str, message: dict[str, Any], operation: str) -> dict[str, Any]:
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to,
            **message,
        }
        return self._post(
            self._messages_url(ctx),
            operation=operation,
            to=to,
            json=payload,
            headers=self._headers(ctx),
        )

    @staticmethod
    def _receipt(body: dict[str, Any], **metadata: Any) -> AdapterReceipt:
        messages = body.get("messages") or [{}]
        first = messages[0] if isinstance(messages[0], dict) else {}
        return AdapterReceipt(
            external_id=first.get("id"),
            status="sent",
            metadata={k: v for k, v in metadata.items() if v is not None},
        )

    def send_message(self, ctx: SendContext, to: str, text: str) -> AdapterReceipt:
        body = self._send(
            ctx, to, {"type": "text", "text": {"preview_url": False, "body": text}}, "send_message"
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
        media: dict[str, Any] = {"link": media_url}
        # Cloud API rejects captions on audio
        if caption and media_kind != MediaKind.AUDIO:
            media["caption"] = caption
        if filename and media_kind == MediaKind.DOCUMENT:
            media["filename"] = filename

        body = self._send(
            ctx, to, {"type": media_kind.value, media_kind.value: media}, "send_media"
        )
        return self._receipt(body, media_url=media_url, filename=filename)

    def send_template_message(
        self,
        ctx: SendContext,
        to: str,
        template_name: str,
        language: str,
        components: list[dict[str, Any]],
    ) -> AdapterReceipt:
        template: dict[str, Any] = {"name": template_name, "language": {"code": language}}
        if components:
            template["components"] = components

        body = self._send(ctx, to, {"type": "template", "template": template}, "send_template")
        return self._receipt(body, template_name=template_name, language=language)

    def send_interactive_message(self, ctx: SendContext, payload: dict[str, Any]) -> InteractiveResult:
        to = payload.get("to", "")
        body = self._post(
            self._messages_url(ctx),
            operation="send_interactive",
            to=to,
            json=payload,
            headers=self._headers(ctx),
        )
        message_id = self._receipt(body).external_id
        if not message_id:
            logger.warning(
                "WhatsApp interactive message accepted without a message id",
                extra={"channel_id": ctx.channel_id, "to_hash": hash_recipient(to)},
            )
        return InteractiveResult(success=True, message_id=message_id)

    def _error_from_response(self, response: httpx.Response) -> AdapterError:
        try:
            error = response.json().get("error") or {}
        except (ValueError, AttributeError):
            error = {}
        if not isinstance(error, dict) or not error:
            return super()._error_from_response(response)

        code = error.get("code")
        message = error.get("message") or "unknown error"
        text = f"WhatsApp API error {code}: {message}"
        retryable = response.status_code == 429 or response.status_code >= 500
        if code in MEDIA_PROCESSING_ERROR_CODES:
            return MediaConversionError(text, status_code=response.status_code)
        return AdapterError(text, status_code=response.status_code, retryable=retryable)


class WhatsAppOfficialAdapter(WhatsAppBusinessAdapter):
    """WhatsApp Cloud API via graph.facebook.com."""

    channel_type = ChannelType.WHATSAPP_OFFICIAL

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        graph_url: Optional[str] = None,
        api_version: Optional[str] = None,
    ):
        super().__init__(client)
        self.graph_url = (graph_url or settings.WHATSAPP_GRAPH_URL).rstrip("/")
        self.api_version = api_version or settings.WHATSAPP_GRAPH_API_VERSION

    def _messages_url(self, ctx: SendContext) -> str:
        return f"{self.graph_url}/{self.api_version}/{ctx.credentials.phone_number_id}/messages"

    def _headers(self, ctx: SendContext) -> dict[str, str]:
        return {"Authorization": f"Bearer {ctx.credentials.access_token}"}
