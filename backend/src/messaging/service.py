"""
Message dispatch service

Orchestrates one send end to end:
    access validation -> capability check -> contact -> conversation
    -> dispatch router -> response envelope

and drives batches through the same pipeline sequentially, converting each
item's failure into a failed envelope at the item's position.

Each send is its own transaction. A failed adapter call still commits the
failed Message row (and any identity created for it) before the error
propagates.
"""

import logging
from typing import Any, Callable, Optional, Sequence, TypeVar

from sqlalchemy.orm import Session

from channels.credentials import CredentialsError
from channels.encryption import EncryptionError, EncryptionService
from channels.registry import AdapterRegistry
from channels.types import ChannelStatus, MediaKind, Operation
from observability.metrics import batch_size as batch_size_histogram
from observability.metrics import dispatch_rejections_total
from .access import validate_channel_access
from .dispatcher import DispatchRouter
from .envelope import SendResult, build_envelope, failed_envelope
from .errors import (
    BatchSizeExceededError,
    DispatchError,
    MessageNotFoundError,
    ValidationError,
)
from .identity import resolve_contact, resolve_conversation
from .interactive import build_interactive_payload, build_template_components
from .repository import MessagingRepository


logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_PAGE_SIZE = 100


class MessageDispatchService:
    """
    Tenant-scoped send operations and read-side queries.

    Args:
        db: Request-scoped database session
        registry: Adapter registry built at startup
        system_user_id: Sender id stamped on API-originated messages
        batch_max_size: Upper bound for send_batch
    """

    def __init__(
        self,
        db: Session,
        registry: AdapterRegistry,
        system_user_id: int,
        batch_max_size: int = 100,
    ):
        self.db = db
        self.repo = MessagingRepository(db)
        self.router = DispatchRouter(self.repo, registry, system_user_id)
        self.batch_max_size = batch_max_size

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _in_transaction(self, work: Callable[[], T]) -> T:
        try:
            result = work()
        except DispatchError as e:
            # Keep failed-attempt audit rows; nothing else is pending for pre-dispatch rejections
            self.db.commit()
            if e.http_status < 500:
                dispatch_rejections_total.labels(error_kind=e.kind.value).inc()
            raise
        except Exception:
            self.db.rollback()
            raise
        self.db.commit()
        return result

    def _prepare(self, tenant_id: int, channel_id: int, to: str, operation: Operation,
                 media_kind: Optional[MediaKind] = None):
        connection = validate_channel_access(self.repo, tenant_id, channel_id)
        self.router.ensure_supported(connection, operation, media_kind)
        contact = resolve_contact(self.repo, tenant_id, to)
        conversation = resolve_conversation(self.repo, contact, connection)
        return connection, conversation

    @staticmethod
    def _envelope(message, connection, conversation) -> SendResult:
        return build_envelope(
            message_id=message.id,
            channel_type=connection.channel_type,
            conversation_id=conversation.id,
            status=message.status,
            timestamp=message.created_at,
            external_id=message.external_id,
        )

    # ------------------------------------------------------------------
    # Send operations
    # ------------------------------------------------------------------

    def send_text(self, tenant_id: int, channel_id: int, to: str, message: str) -> SendResult:
        """
        Send a text message.

        Raises:
            ChannelNotFoundError, AccessDeniedError, ChannelInactiveError:
                Access validation failed (no identity side effects)
            DispatchFailedError: The adapter failed; a failed Message row is recorded
        """
        def work():
            connection, conversation = self._prepare(tenant_id, channel_id, to, Operation.TEXT)
            sent = self.router.send_text(connection, conversation, to, message)
            return self._envelope(sent, connection, conversation)

        return self._in_transaction(work)

    def send_media(
        self,
        tenant_id: int,
        channel_id: int,
        to: str,
        media_type: MediaKind,
        media_url: str,
        caption: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> SendResult:
        """
        Send a media message referenced by URL.

        Raises:
            UnsupportedMediaTypeError: Channel rejects this media kind (adapter not called)
            AudioConversionError: Network could not transcode the media
            DispatchFailedError: Any other adapter failure
        """
        media_kind = MediaKind(media_type)

        def work():
            connection, conversation = self._prepare(
                tenant_id, channel_id, to, Operation.MEDIA, media_kind
            )
            sent = self.router.send_media(
                connection, conversation, to, media_kind, media_url, caption, filename
            )
            return self._envelope(sent, connection, conversation)

        return self._in_transaction(work)

    def send_template(
        self,
        tenant_id: int,
        channel_id: int,
        to: str,
        template_name: str,
        language: str = "en",
        components: Optional[list[dict[str, Any]]] = None,
    ) -> SendResult:
        """
        Send a pre-approved WhatsApp template.

        Raises:
            UnsupportedOperationError: Channel is not a WhatsApp Business-API channel
        """
        native_components = build_template_components(components)

        def work():
            connection, conversation = self._prepare(tenant_id, channel_id, to, Operation.TEMPLATE)
            sent = self.router.send_template(
                connection, conversation, to, template_name, language, native_components
            )
            return self._envelope(sent, connection, conversation)

        return self._in_transaction(work)

    def send_interactive(
        self,
        tenant_id: int,
        channel_id: int,
        to: str,
        interactive_type: str,
        content: dict[str, Any],
        options: dict[str, Any],
    ) -> SendResult:
        """
        Send a button or list message.

        Raises:
            ValidationError: interactive_type disagrees with options.type
            UnsupportedOperationError: Channel is not a WhatsApp Business-API channel
        """
        if options.get("type") != interactive_type:
            raise ValidationError(
                "interactiveType must match options.type",
                details=[{"field": "options.type", "expected": interactive_type}],
            )
        payload = build_interactive_payload(to, content, options)

        def work():
            connection, conversation = self._prepare(
                tenant_id, channel_id, to, Operation.INTERACTIVE
            )
            sent = self.router.send_interactive(
                connection,
                conversation,
                to,
                payload,
                body_text=content["body"]["text"],
                metadata={"interactiveType": interactive_type, "options": options},
            )
            return self._envelope(sent, connection, conversation)

        return self._in_transaction(work)

    def send_batch(self, tenant_id: int, items: Sequence[Any]) -> list[SendResult]:
        """
        Send text messages one after another.

        Items are processed sequentially through send_text. A failure on item
        i becomes a failed envelope at position i and processing continues.
        Callers must inspect every element: a batch with failed items still
        succeeds as a whole.

        Args:
            tenant_id: Calling tenant
            items: Objects with channel_id, to and message attributes

        Returns:
            One SendResult per item, in input order

        Raises:
            BatchSizeExceededError: More than batch_max_size items (nothing is sent)
            ValidationError: Empty batch
        """
        if len(items) > self.batch_max_size:
            dispatch_rejections_total.labels(error_kind=BatchSizeExceededError.kind.value).inc()
            raise BatchSizeExceededError(
                f"Batch size cannot exceed {self.batch_max_size} messages",
                details={"maxSize": self.batch_max_size, "received": len(items)},
            )
        if not items:
            raise ValidationError("Batch must contain at least one message")

        batch_size_histogram.observe(len(items))
        logger.info(
            f"Processing batch of {len(items)} messages",
            extra={"tenant_id": tenant_id, "batch_size": len(items)},
        )

        results: list[SendResult] = []
        for index, item in enumerate(items):
            try:
                results.append(self.send_text(tenant_id, item.channel_id, item.to, item.message))
            except DispatchError as e:
                results.append(failed_envelope(e.message, self._known_channel_type(tenant_id, item.channel_id)))
            except Exception as e:
                logger.error(
                    f"Batch item {index} failed unexpectedly: {type(e).__name__}",
                    extra={"tenant_id": tenant_id, "channel_id": item.channel_id},
                    exc_info=True,
                )
                results.append(failed_envelope("Failed to send message"))

        failed = sum(1 for r in results if r.status == "failed")
        if failed:
            logger.warning(
                f"Batch completed with {failed} of {len(results)} items failed",
                extra={"tenant_id": tenant_id, "batch_size": len(results)},
            )
        return results

    def _known_channel_type(self, tenant_id: int, channel_id: int) -> Optional[str]:
        """Channel type for a failed batch item, only if the tenant owns the channel."""
        connection = self.repo.get_channel_connection(channel_id)
        if connection is None or connection.tenant_id != tenant_id:
            return None
        return connection.channel_type

    # ------------------------------------------------------------------
    # Read-side operations
    # ------------------------------------------------------------------

    def get_message_status(self, tenant_id: int, message_id: int) -> dict[str, Any]:
        """
        Raises:
            MessageNotFoundError: Message absent or owned by another tenant
        """
        message = self.repo.get_message_for_tenant(message_id, tenant_id)
        if message is None:
            raise MessageNotFoundError(f"Message {message_id} not found")
        return {
            "status": message.status or "unknown",
            "timestamp": message.created_at.isoformat() if message.created_at else None,
        }

    def list_channels(self, tenant_id: int) -> list[dict[str, Any]]:
        """Active channel connections of the tenant."""
        channels = []
        for connection in self.repo.list_channel_connections(tenant_id, ChannelStatus.ACTIVE):
            phone_number = display_name = None
            try:
                credentials = EncryptionService.decrypt_credentials(
                    connection.type, connection.config_encrypted
                )
                phone_number = credentials.phone_number
                display_name = credentials.display_name
            except (EncryptionError, CredentialsError) as e:
                logger.warning(
                    f"Cannot read credentials of channel {connection.id}: {e}",
                    extra={"tenant_id": tenant_id, "channel_id": connection.id},
                )

            entry = {
                "id": connection.id,
                "name": connection.account_name,
                "type": connection.channel_type,
                "status": connection.status,
            }
            if phone_number:
                entry["phoneNumber"] = phone_number
            if display_name:
                entry["displayName"] = display_name
            channels.append(entry)
        return channels

    def list_conversations(
        self,
        tenant_id: int,
        page: int = 1,
        limit: int = 20,
        channel_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> tuple[list[dict[str, Any]], int]:
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        conversations, total = self.repo.list_conversations(
            tenant_id, max(page, 1), limit, channel_id=channel_id, status=status
        )
        return [c.to_dict() for c in conversations], total

    def list_contacts(
        self,
        tenant_id: int,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
    ) -> tuple[list[dict[str, Any]], int]:
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        contacts, total = self.repo.list_contacts(tenant_id, max(page, 1), limit, search=search)
        return [c.to_dict() for c in contacts], total
