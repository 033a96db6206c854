"""Channel access validation.

Runs before identity resolution so a rejected request leaves no Contact or
Conversation behind.
"""

import logging

from models import ChannelConnection
from .errors import AccessDeniedError, ChannelInactiveError, ChannelNotFoundError
from .repository import MessagingRepository


logger = logging.getLogger(__name__)


def validate_channel_access(repo: MessagingRepository, tenant_id: int, channel_id: int) -> ChannelConnection:
    """
    Prove that `tenant_id` may send through `channel_id`.

    Checks run in order: existence, ownership, active status.

    Returns:
        The ChannelConnection

    Raises:
        ChannelNotFoundError: No connection with this id
        AccessDeniedError: Connection belongs to another tenant
        ChannelInactiveError: Connection status is not 'active'
    """
    connection = repo.get_channel_connection(channel_id)
    if connection is None:
        raise ChannelNotFoundError(f"Channel {channel_id} not found")

    if connection.tenant_id != tenant_id:
        logger.warning(
            f"Tenant {tenant_id} attempted to use channel {channel_id} owned by another tenant",
            extra={"tenant_id": tenant_id, "channel_id": channel_id},
        )
        raise AccessDeniedError("Access denied to this channel")

    if not connection.is_active:
        raise ChannelInactiveError(
            f"Channel {channel_id} is not active (status: {connection.status})"
        )

    return connection
