"""
Channel layer

Typed channel enumerations, per-channel credentials, the ChannelAdapter port,
the static capability table and the adapter registry. Concrete adapters live
in channels.implementations.
"""

from .capabilities import CAPABILITIES, ChannelCapabilities, get_capabilities
from .ports import (
    AdapterError,
    AdapterReceipt,
    ChannelAdapter,
    InteractiveResult,
    MediaConversionError,
    SendContext,
)
from .registry import AdapterRegistry
from .types import ChannelStatus, ChannelType, MediaKind, MessageKind, Operation

__all__ = [
    "AdapterError",
    "AdapterReceipt",
    "AdapterRegistry",
    "CAPABILITIES",
    "ChannelAdapter",
    "ChannelCapabilities",
    "ChannelStatus",
    "ChannelType",
    "InteractiveResult",
    "MediaConversionError",
    "MediaKind",
    "MessageKind",
    "Operation",
    "SendContext",
    "get_capabilities",
]
