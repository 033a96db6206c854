"""SMTP email adapter."""

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Callable, Optional

from config import settings
from ..base_adapter import hash_recipient
from ..ports import AdapterError, AdapterReceipt, ChannelAdapter, SendContext
from ..types import ChannelType, MediaKind


logger = logging.getLogger(__name__)


class EmailAdapter(ChannelAdapter):
    """
    Sends one email per message over SMTP (STARTTLS when use_tls is set).

    Media is referenced by link in the body rather than downloaded and
    attached. The generated Message-ID is returned as the external id.
    """

    channel_type = ChannelType.EMAIL

    def __init__(self, smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP, timeout: Optional[float] = None):
        self._smtp_factory = smtp_factory
        self.timeout = timeout or settings.ADAPTER_HTTP_TIMEOUT_SECONDS

    def _deliver(self, ctx: SendContext, to: str, subject: str, body: str) -> AdapterReceipt:
        creds = ctx.credentials
        sender_domain = creds.from_address.rpartition("@")[2] or None

        message = EmailMessage()
        message["From"] = formataddr((creds.from_name or "", creds.from_address))
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid(domain=sender_domain)
        message.set_content(body)

        try:
            with self._smtp_factory(creds.smtp_host, creds.smtp_port, timeout=self.timeout) as smtp:
                if creds.use_tls:
                    smtp.starttls()
                smtp.login(creds.username, creds.password)
                smtp.send_message(message)
        except smtplib.SMTPRecipientsRefused as e:
            raise AdapterError("SMTP server refused recipient") from e
        except (smtplib.SMTPException, OSError) as e:
            raise AdapterError(f"SMTP delivery failed: {type(e).__name__}", retryable=True) from e

        logger.info(
            "Email delivered",
            extra={"channel_id": ctx.channel_id, "to_hash": hash_recipient(to)},
        )
        return AdapterReceipt(external_id=message["Message-ID"], status="sent")

    def _subject(self, ctx: SendContext) -> str:
        sender = ctx.credentials.from_name or ctx.credentials.from_address
        return f"New message from {sender}"

    def send_message(self, ctx: SendContext, to: str, text: str) -> AdapterReceipt:
        return self._deliver(ctx, to, self._subject(ctx), text)

    def send_media(
        self,
        ctx: SendContext,
        to: str,
        media_kind: MediaKind,
        media_url: str,
        caption: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> AdapterReceipt:
        label = filename or media_kind.value
        body = f"{caption}\n\n" if caption else ""
        body += f"{label}: {media_url}\n"
        receipt = self._deliver(ctx, to, self._subject(ctx), body)
        receipt.metadata["media_url"] = media_url
        return receipt
