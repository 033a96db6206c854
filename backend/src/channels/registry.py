"""
Adapter Registry - Resolution of channel adapters by ChannelType

The registry maps each ChannelType to exactly one adapter instance. It is
built once at startup; build() refuses to return a registry that leaves any
channel type without an adapter, so an unknown type can never reach dispatch.
"""

import logging
from typing import Dict, Iterable

from .ports import ChannelAdapter
from .types import ChannelType


logger = logging.getLogger(__name__)


class AdapterRegistry:
    """
    Registry of channel adapter instances.

    Usage:
        registry = AdapterRegistry()
        registry.register(WhatsAppOfficialAdapter(client))
        ...
        registry.validate()

        adapter = registry.get(ChannelType.WHATSAPP_OFFICIAL)
        receipt = adapter.send_message(ctx, to, text)

    Thread-safety: Read operations are thread-safe after startup registration.
    """

    def __init__(self) -> None:
        self._adapters: Dict[ChannelType, ChannelAdapter] = {}
        self._resources: list = []

    @classmethod
    def build(cls, adapters: Iterable[ChannelAdapter], resources: Iterable = ()) -> "AdapterRegistry":
        """
        Register every adapter and verify the registry is complete.

        `resources` are closed together with the adapters (e.g. a shared
        httpx client).

        Raises:
            ValueError: If an adapter is malformed
            RuntimeError: If a channel type is registered twice or left uncovered
        """
        registry = cls()
        for adapter in adapters:
            registry.register(adapter)
        registry.validate()
        registry._resources.extend(resources)
        return registry

    def register(self, adapter: ChannelAdapter) -> None:
        """
        Register an adapter under its declared channel_type.

        Raises:
            ValueError: If adapter is not a ChannelAdapter or declares no channel_type
            RuntimeError: If the channel type is already registered
        """
        if not isinstance(adapter, ChannelAdapter):
            raise ValueError(
                f"Adapter must inherit from ChannelAdapter, got {type(adapter).__name__}"
            )

        channel_type = getattr(adapter, "channel_type", None)
        if not isinstance(channel_type, ChannelType):
            raise ValueError(f"{type(adapter).__name__} does not declare a ChannelType")

        if channel_type in self._adapters:
            raise RuntimeError(
                f"Channel type '{channel_type.value}' is already registered "
                f"({type(self._adapters[channel_type]).__name__})"
            )

        self._adapters[channel_type] = adapter

    def validate(self) -> None:
        """
        Raises:
            RuntimeError: If any ChannelType has no adapter
        """
        missing = [t.value for t in ChannelType if t not in self._adapters]
        if missing:
            raise RuntimeError(f"No adapter registered for channel types: {', '.join(missing)}")
        logger.info(f"Adapter registry ready with {len(self._adapters)} channel types")

    def get(self, channel_type: ChannelType) -> ChannelAdapter:
        """
        Get the adapter for a channel type.

        Raises:
            KeyError: If channel_type is not registered
        """
        try:
            return self._adapters[channel_type]
        except KeyError:
            available = ", ".join(sorted(t.value for t in self._adapters)) or "none"
            raise KeyError(
                f"Unknown channel type: '{channel_type}'. Available adapters: {available}"
            ) from None

    def list_available(self) -> list[str]:
        return sorted(t.value for t in self._adapters)

    def close(self) -> None:
        """Close every adapter. Called on application shutdown."""
        for adapter in self._adapters.values():
            adapter.close()
        for resource in self._resources:
            resource.close()
