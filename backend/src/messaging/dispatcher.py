"""
Dispatch Router - capability checks, adapter invocation, message persistence

The router is the only component that talks to channel adapters. For every
operation it:
1. Looks up the adapter bound to the connection's ChannelType
2. Checks the capability table (no adapter call for unsupported requests)
3. Decrypts the connection's typed credentials
4. Invokes the adapter, timing the call
5. Persists a Message row: with external_id/status on success, as a failed
   row without external_id when the adapter raises
6. Maps adapter failures onto the dispatch error taxonomy
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from channels.base_adapter import hash_recipient
from channels.capabilities import get_capabilities
from channels.credentials import CredentialsError
from channels.encryption import EncryptionError, EncryptionService
from channels.ports import (
    AdapterError,
    AdapterReceipt,
    MediaConversionError,
    SendContext,
)
from channels.registry import AdapterRegistry
from channels.types import ChannelType, MediaKind, MessageKind, Operation
from models import ChannelConnection, Conversation, Message
from observability.metrics import (
    dispatch_latency_ms,
    messages_dispatched_total,
)
from .errors import (
    AudioConversionError,
    DispatchFailedError,
    UnsupportedMediaTypeError,
    UnsupportedOperationError,
)
from .repository import MessagingRepository


logger = logging.getLogger(__name__)

FAILED_STATUS = "failed"


class DispatchRouter:
    """
    Routes one outbound message to its channel adapter.

    Args:
        repo: Repository used to persist Message rows
        registry: Complete adapter registry (one adapter per ChannelType)
        system_user_id: Sender id stamped on API-originated messages
    """

    def __init__(self, repo: MessagingRepository, registry: AdapterRegistry, system_user_id: int):
        self.repo = repo
        self.registry = registry
        self.system_user_id = system_user_id

    # ------------------------------------------------------------------
    # Capability gating
    # ------------------------------------------------------------------

    def ensure_supported(
        self,
        connection: ChannelConnection,
        operation: Operation,
        media_kind: Optional[MediaKind] = None,
    ) -> None:
        """
        Raises:
            UnsupportedOperationError: If the channel cannot carry `operation`
            UnsupportedMediaTypeError: If the channel rejects `media_kind`
        """
        channel_type = connection.type
        capabilities = get_capabilities(channel_type)

        if not capabilities.supports(operation):
            raise UnsupportedOperationError(
                f"{operation.value.capitalize()} messages are not supported on "
                f"{channel_type.value} channels",
                details={"channelType": channel_type.value, "operation": operation.value},
            )

        if media_kind is not None and not capabilities.supports_media_kind(media_kind):
            raise UnsupportedMediaTypeError(
                f"Media type '{media_kind.value}' is not supported on {channel_type.value} channels",
                details={
                    "channelType": channel_type.value,
                    "mediaType": media_kind.value,
                    "supportedMediaTypes": sorted(k.value for k in capabilities.supported_media_kinds),
                },
            )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def send_text(self, connection: ChannelConnection, conversation: Conversation, to: str, text: str) -> Message:
        self.ensure_supported(connection, Operation.TEXT)
        return self._dispatch(
            connection,
            conversation,
            to,
            operation=Operation.TEXT,
            kind=MessageKind.TEXT,
            content=text,
            call=lambda adapter, ctx: adapter.send_message(ctx, to, text),
        )

    def send_media(
        self,
        connection: ChannelConnection,
        conversation: Conversation,
        to: str,
        media_kind: MediaKind,
        media_url: str,
        caption: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> Message:
        self.ensure_supported(connection, Operation.MEDIA, media_kind)
        return self._dispatch(
            connection,
            conversation,
            to,
            operation=Operation.MEDIA,
            kind=MessageKind.MEDIA,
            content=caption or "",
            metadata={"mediaType": media_kind.value, "mediaUrl": media_url, "filename": filename},
            call=lambda adapter, ctx: adapter.send_media(
                ctx, to, media_kind, media_url, caption=caption, filename=filename
            ),
        )

    def send_template(
        self,
        connection: ChannelConnection,
        conversation: Conversation,
        to: str,
        template_name: str,
        language: str,
        components: list[dict[str, Any]],
    ) -> Message:
        self.ensure_supported(connection, Operation.TEMPLATE)
        return self._dispatch(
            connection,
            conversation,
            to,
            operation=Operation.TEMPLATE,
            kind=MessageKind.TEMPLATE,
            content=f"Template: {template_name}",
            metadata={"templateName": template_name, "language": language, "components": components},
            call=lambda adapter, ctx: adapter.send_template_message(
                ctx, to, template_name, language, components
            ),
        )

    def send_interactive(
        self,
        connection: ChannelConnection,
        conversation: Conversation,
        to: str,
        payload: dict[str, Any],
        body_text: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Message:
        """
        Send a pre-shaped channel-native interactive payload.

        The adapter reports only success and an id; a result with
        success=False is recorded as a failed message and raised as
        DISPATCH_FAILED, the same as an adapter exception.
        """
        self.ensure_supported(connection, Operation.INTERACTIVE)

        def call(adapter, ctx):
            result = adapter.send_interactive_message(ctx, payload)
            if not result.success:
                raise AdapterError(result.error_message or "Interactive message was not accepted")
            return AdapterReceipt(external_id=result.message_id, status="sent")

        return self._dispatch(
            connection,
            conversation,
            to,
            operation=Operation.INTERACTIVE,
            kind=MessageKind.INTERACTIVE,
            content=body_text,
            metadata=metadata,
            call=call,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _context(self, connection: ChannelConnection, conversation: Conversation) -> SendContext:
        try:
            credentials = EncryptionService.decrypt_credentials(
                connection.type, connection.config_encrypted
            )
        except (EncryptionError, CredentialsError) as e:
            logger.error(
                f"Unusable credentials for channel {connection.id}: {e}",
                extra={"channel_id": connection.id, "tenant_id": connection.tenant_id},
            )
            raise DispatchFailedError("Channel credentials are invalid or unreadable") from e

        return SendContext(
            channel_id=connection.id,
            tenant_id=connection.tenant_id,
            system_user_id=self.system_user_id,
            credentials=credentials,
            conversation_id=conversation.id,
        )

    def _dispatch(
        self,
        connection: ChannelConnection,
        conversation: Conversation,
        to: str,
        *,
        operation: Operation,
        kind: MessageKind,
        content: str,
        call: Callable,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Message:
        channel_type: ChannelType = connection.type
        adapter = self.registry.get(channel_type)
        metadata = {k: v for k, v in (metadata or {}).items() if v is not None}
        log_extra = {
            "tenant_id": connection.tenant_id,
            "channel_id": connection.id,
            "channel_type": channel_type.value,
            "conversation_id": conversation.id,
            "operation": operation.value,
            "to_hash": hash_recipient(to),
        }

        ctx = self._context(connection, conversation)

        start = time.time()
        try:
            receipt: AdapterReceipt = call(adapter, ctx)
        except AdapterError as e:
            failed = self._record_failure(conversation, kind, content, metadata, e, start, log_extra)
            logger.warning(
                f"Dispatch failed on {channel_type.value}: {e}",
                extra={**log_extra, "message_id": failed.id},
            )
            if isinstance(e, MediaConversionError):
                raise AudioConversionError(str(e)) from e
            raise DispatchFailedError(str(e)) from e
        except Exception as e:
            failed = self._record_failure(conversation, kind, content, metadata, e, start, log_extra)
            logger.error(
                f"Adapter for {channel_type.value} raised {type(e).__name__}: {e}",
                extra={**log_extra, "message_id": failed.id},
                exc_info=True,
            )
            raise DispatchFailedError(str(e) or type(e).__name__) from e

        latency_ms = (time.time() - start) * 1000
        dispatch_latency_ms.labels(channel_type=channel_type.value, operation=operation.value).observe(latency_ms)
        messages_dispatched_total.labels(
            channel_type=channel_type.value, operation=operation.value, status="success"
        ).inc()

        message = self.repo.create_message(
            conversation_id=conversation.id,
            sender_id=self.system_user_id,
            content=content,
            kind=kind,
            status=receipt.status or "sent",
            external_id=receipt.external_id,
            metadata={**metadata, **receipt.metadata},
            created_at=receipt.created_at or datetime.now(timezone.utc),
        )
        logger.info(
            f"Dispatched {operation.value} message {message.id} via {channel_type.value}",
            extra={**log_extra, "message_id": message.id, "latency_ms": round(latency_ms, 2)},
        )
        return message

    def _record_failure(
        self,
        conversation: Conversation,
        kind: MessageKind,
        content: str,
        metadata: dict[str, Any],
        error: Exception,
        start: float,
        log_extra: dict[str, Any],
    ) -> Message:
        """Persist the failed attempt without an external id."""
        channel_type = log_extra["channel_type"]
        operation = log_extra["operation"]
        latency_ms = (time.time() - start) * 1000
        dispatch_latency_ms.labels(channel_type=channel_type, operation=operation).observe(latency_ms)
        messages_dispatched_total.labels(
            channel_type=channel_type, operation=operation, status="error"
        ).inc()

        return self.repo.create_message(
            conversation_id=conversation.id,
            sender_id=self.system_user_id,
            content=content,
            kind=kind,
            status=FAILED_STATUS,
            metadata={**metadata, "error": str(error) or type(error).__name__},
        )
