"""Unit tests for the adapter registry"""

import httpx
import pytest

from channels.implementations import build_default_registry
from channels.registry import AdapterRegistry
from channels.types import ChannelType
from conftest import RecordingAdapter


def test_build_with_every_type_succeeds():
    registry = AdapterRegistry.build(RecordingAdapter(t) for t in ChannelType)
    assert registry.list_available() == sorted(t.value for t in ChannelType)
    assert registry.get(ChannelType.TIKTOK).channel_type == ChannelType.TIKTOK


def test_missing_channel_type_fails_build():
    adapters = [RecordingAdapter(t) for t in ChannelType if t != ChannelType.WEBCHAT]

    with pytest.raises(RuntimeError) as exc_info:
        AdapterRegistry.build(adapters)
    assert "webchat" in str(exc_info.value)


def test_duplicate_channel_type_fails():
    registry = AdapterRegistry()
    registry.register(RecordingAdapter(ChannelType.EMAIL))

    with pytest.raises(RuntimeError):
        registry.register(RecordingAdapter(ChannelType.EMAIL))


def test_non_adapter_is_rejected():
    with pytest.raises(ValueError):
        AdapterRegistry().register(object())


def test_unknown_lookup_raises_key_error():
    with pytest.raises(KeyError):
        AdapterRegistry().get(ChannelType.EMAIL)


def test_default_registry_covers_every_type():
    client = httpx.Client()
    registry = build_default_registry(client)
    try:
        assert registry.list_available() == sorted(t.value for t in ChannelType)
    finally:
        registry.close()
    # Injected clients belong to the caller
    assert not client.is_closed
    client.close()


def test_default_registry_closes_its_own_client():
    registry = build_default_registry()
    client = registry.get(ChannelType.TELEGRAM)._client
    registry.close()
    assert client.is_closed
