"""Response envelope: one shape for every adapter's result."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional


DEFAULT_STATUS = "sent"


@dataclass
class SendResult:
    """
    Uniform outcome of one send.

    Failed batch items use id=0 and conversation_id=0 with `error` set.
    """
    id: int
    status: str
    timestamp: datetime
    channel_type: str
    conversation_id: int
    external_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "id": self.id,
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
            "channelType": self.channel_type,
            "conversationId": self.conversation_id,
        }
        if self.external_id is not None:
            body["externalId"] = self.external_id
        if self.error is not None:
            body["error"] = self.error
        return body


def build_envelope(
    message_id: int,
    channel_type: str,
    conversation_id: int,
    status: Optional[str] = None,
    timestamp: Optional[datetime] = None,
    external_id: Optional[str] = None,
) -> SendResult:
    """Build a success envelope, defaulting status to 'sent' and timestamp to now."""
    return SendResult(
        id=message_id,
        external_id=external_id or None,
        status=status or DEFAULT_STATUS,
        timestamp=timestamp or datetime.now(timezone.utc),
        channel_type=channel_type,
        conversation_id=conversation_id,
    )


def failed_envelope(error: str, channel_type: Optional[str] = None) -> SendResult:
    """Envelope recorded for a batch item that failed."""
    return SendResult(
        id=0,
        status="failed",
        timestamp=datetime.now(timezone.utc),
        channel_type=channel_type or "unknown",
        conversation_id=0,
        error=error or "Failed to send message",
    )
