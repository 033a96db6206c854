"""
Dispatch error taxonomy

Every failure the dispatch core reports is a DispatchError subclass tagged
with an ErrorKind. Callers (the HTTP layer, the batch coordinator) branch on
the kind, never on message text.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CHANNEL_NOT_FOUND = "CHANNEL_NOT_FOUND"
    ACCESS_DENIED = "ACCESS_DENIED"
    CHANNEL_INACTIVE = "CHANNEL_INACTIVE"
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    AUDIO_CONVERSION_FAILED = "AUDIO_CONVERSION_FAILED"
    BATCH_SIZE_EXCEEDED = "BATCH_SIZE_EXCEEDED"
    DISPATCH_FAILED = "DISPATCH_FAILED"
    MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"


class DispatchError(Exception):
    """
    Base class for dispatch failures.

    Attributes:
        kind: ErrorKind tag rendered as the `error` field of API responses
        http_status: Status code the HTTP layer responds with
        message: Human-readable message
        details: Optional structured detail (field errors, limits)
    """

    kind: ErrorKind = ErrorKind.DISPATCH_FAILED
    http_status: int = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "success": False,
            "error": self.kind.value,
            "message": self.message,
        }
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(DispatchError):
    kind = ErrorKind.VALIDATION_ERROR
    http_status = 400


class ChannelNotFoundError(DispatchError):
    kind = ErrorKind.CHANNEL_NOT_FOUND
    http_status = 404


class AccessDeniedError(DispatchError):
    kind = ErrorKind.ACCESS_DENIED
    http_status = 403


class ChannelInactiveError(DispatchError):
    kind = ErrorKind.CHANNEL_INACTIVE
    http_status = 403


class UnsupportedOperationError(DispatchError):
    kind = ErrorKind.UNSUPPORTED_OPERATION
    http_status = 400


class UnsupportedMediaTypeError(DispatchError):
    kind = ErrorKind.UNSUPPORTED_MEDIA_TYPE
    http_status = 400


class AudioConversionError(DispatchError):
    """The network could not transcode the supplied media (usually audio)."""
    kind = ErrorKind.AUDIO_CONVERSION_FAILED
    http_status = 400


class BatchSizeExceededError(DispatchError):
    kind = ErrorKind.BATCH_SIZE_EXCEEDED
    http_status = 400


class DispatchFailedError(DispatchError):
    """Generic adapter failure. Carries the adapter's message."""
    kind = ErrorKind.DISPATCH_FAILED
    http_status = 500


class MessageNotFoundError(DispatchError):
    kind = ErrorKind.MESSAGE_NOT_FOUND
    http_status = 404
