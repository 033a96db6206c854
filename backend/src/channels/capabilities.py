"""Static capability table: what each channel type can carry.

The dispatch router consults this table before any adapter is invoked, so a
request that is guaranteed to fail never spends a network call or rate-limit
budget.
"""

from dataclasses import dataclass

from .types import ChannelType, MediaKind, Operation


ALL_MEDIA = frozenset(MediaKind)
VISUAL_MEDIA = frozenset({MediaKind.IMAGE, MediaKind.VIDEO})


@dataclass(frozen=True)
class ChannelCapabilities:
    supports_text: bool = True
    supports_media: bool = True
    supported_media_kinds: frozenset = ALL_MEDIA
    supports_template: bool = False
    supports_interactive: bool = False

    def supports(self, operation: Operation) -> bool:
        if operation == Operation.TEXT:
            return self.supports_text
        if operation == Operation.MEDIA:
            return self.supports_media
        if operation == Operation.TEMPLATE:
            return self.supports_template
        if operation == Operation.INTERACTIVE:
            return self.supports_interactive
        return False

    def supports_media_kind(self, kind: MediaKind) -> bool:
        return self.supports_media and kind in self.supported_media_kinds


_BUSINESS_API = ChannelCapabilities(supports_template=True, supports_interactive=True)

CAPABILITIES: dict[ChannelType, ChannelCapabilities] = {
    ChannelType.WHATSAPP_OFFICIAL: _BUSINESS_API,
    ChannelType.WHATSAPP_META: _BUSINESS_API,
    ChannelType.WHATSAPP_UNOFFICIAL: ChannelCapabilities(),
    ChannelType.TWILIO_SMS: ChannelCapabilities(
        supported_media_kinds=frozenset({MediaKind.IMAGE, MediaKind.VIDEO, MediaKind.AUDIO}),
    ),
    ChannelType.TWILIO_VOICE: ChannelCapabilities(
        supported_media_kinds=frozenset({MediaKind.AUDIO}),
    ),
    ChannelType.TELEGRAM: ChannelCapabilities(),
    ChannelType.INSTAGRAM: ChannelCapabilities(supported_media_kinds=VISUAL_MEDIA),
    ChannelType.MESSENGER: ChannelCapabilities(),
    ChannelType.TIKTOK: ChannelCapabilities(supported_media_kinds=VISUAL_MEDIA),
    ChannelType.EMAIL: ChannelCapabilities(),
    ChannelType.WEBCHAT: ChannelCapabilities(),
}

_missing = set(ChannelType) - set(CAPABILITIES)
if _missing:
    raise RuntimeError(
        f"Capability table is missing channel types: {sorted(m.value for m in _missing)}"
    )


def get_capabilities(channel_type: ChannelType) -> ChannelCapabilities:
    return CAPABILITIES[channel_type]
