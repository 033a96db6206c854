"""
Twilio adapters.

SMS/MMS are created through the Messages resource; voice places an outbound
call whose TwiML reads the text aloud or plays an audio URL. Both go through
the Twilio REST client, one client per account.
"""

import logging
from functools import lru_cache
from typing import Any, Callable, Optional

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client
from twilio.twiml.voice_response import VoiceResponse

from config import settings
from ..base_adapter import hash_recipient
from ..ports import AdapterError, AdapterReceipt, ChannelAdapter, SendContext
from ..types import ChannelType, MediaKind


logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, str], Client]


@lru_cache(maxsize=128)
def get_twilio_client(account_sid: str, auth_token: str) -> Client:
    """Reusable Twilio client for one account."""
    http_client = TwilioHttpClient(timeout=settings.ADAPTER_HTTP_TIMEOUT_SECONDS)
    return Client(account_sid, auth_token, http_client=http_client)


class TwilioAdapter(ChannelAdapter):

    def __init__(self, client_factory: ClientFactory = get_twilio_client):
        self._client_factory = client_factory

    def _resource(self, client: Client):
        raise NotImplementedError

    def _create(self, ctx: SendContext, to: str, operation: str, **params: Any) -> AdapterReceipt:
        creds = ctx.credentials
        client = self._client_factory(creds.account_sid, creds.auth_token)
        try:
            instance = self._resource(client).create(to=to, from_=creds.from_number, **params)
        except TwilioRestException as e:
            raise AdapterError(
                f"Twilio error {e.code}: {e.msg}",
                status_code=e.status,
                retryable=e.status == 429 or e.status >= 500,
            ) from e
        except TwilioException as e:
            raise AdapterError(f"Twilio request failed: {e}", retryable=True) from e

        logger.info(
            f"{self.channel_type.value}.{operation} accepted as {instance.sid}",
            extra={"channel_id": ctx.channel_id, "to_hash": hash_recipient(to)},
        )
        status = instance.status
        return AdapterReceipt(
            external_id=instance.sid,
            status=status,
            metadata={"provider_status": status} if status else {},
        )


class TwilioSmsAdapter(TwilioAdapter):
    """SMS, with MMS for media. Twilio fetches the media URL itself."""

    channel_type = ChannelType.TWILIO_SMS

    def _resource(self, client: Client):
        return client.messages

    def send_message(self, ctx: SendContext, to: str, text: str) -> AdapterReceipt:
        return self._create(ctx, to, "send_message", body=text)

    def send_media(
        self,
        ctx: SendContext,
        to: str,
        media_kind: MediaKind,
        media_url: str,
        caption: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> AdapterReceipt:
        params: dict[str, Any] = {"media_url": [media_url]}
        if caption:
            params["body"] = caption
        return self._create(ctx, to, "send_media", **params)


class TwilioVoiceAdapter(TwilioAdapter):
    """Outbound calls: text is spoken with <Say>, audio media is played with <Play>."""

    channel_type = ChannelType.TWILIO_VOICE

    def _resource(self, client: Client):
        return client.calls

    def _response(self, ctx: SendContext, text: Optional[str] = None) -> VoiceResponse:
        response = VoiceResponse()
        if text:
            response.say(text, voice=ctx.credentials.voice, language=ctx.credentials.language)
        return response

    def send_message(self, ctx: SendContext, to: str, text: str) -> AdapterReceipt:
        twiml = self._response(ctx, text)
        return self._create(ctx, to, "send_message", twiml=str(twiml))

    def send_media(
        self,
        ctx: SendContext,
        to: str,
        media_kind: MediaKind,
        media_url: str,
        caption: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> AdapterReceipt:
        if media_kind != MediaKind.AUDIO:
            raise AdapterError(f"Twilio voice cannot play {media_kind.value} media")
        twiml = self._response(ctx, caption)
        twiml.play(media_url)
        receipt = self._create(ctx, to, "send_media", twiml=str(twiml))
        receipt.metadata["media_url"] = media_url
        return receipt
