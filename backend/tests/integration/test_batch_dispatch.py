"""Integration tests for batch dispatch

Tests cover:
- Size limit enforced before any send
- Per-item failure isolation and result ordering
- Failed-envelope channel type disclosure
"""

from types import SimpleNamespace

import pytest

from channels.ports import AdapterError
from channels.types import ChannelStatus, ChannelType
from messaging.errors import BatchSizeExceededError, ValidationError
from models import Message
from conftest import TENANT_A_ID, TENANT_B_ID


pytestmark = pytest.mark.integration


def item(channel_id, to="15551234567", message="Hi"):
    return SimpleNamespace(channel_id=channel_id, to=to, message=message)


def test_oversized_batch_is_rejected_before_any_send(service, db_session, whatsapp_channel, adapters):
    with pytest.raises(BatchSizeExceededError) as exc_info:
        service.send_batch(TENANT_A_ID, [item(7) for _ in range(101)])

    assert exc_info.value.details == {"maxSize": 100, "received": 101}
    assert adapters[ChannelType.WHATSAPP_OFFICIAL].calls == []
    assert db_session.query(Message).count() == 0


def test_batch_at_limit_is_accepted(service, db_session, whatsapp_channel, adapters):
    results = service.send_batch(TENANT_A_ID, [item(7, to=f"1555000{i:04d}") for i in range(100)])

    assert len(results) == 100
    assert all(r.status == "sent" for r in results)
    assert len(adapters[ChannelType.WHATSAPP_OFFICIAL].calls) == 100


def test_empty_batch_is_rejected(service, tenant_a):
    with pytest.raises(ValidationError):
        service.send_batch(TENANT_A_ID, [])


def test_failing_item_does_not_stop_the_batch(service, db_session, tenant_a, whatsapp_channel, make_channel):
    inactive = make_channel(TENANT_A_ID, ChannelType.TELEGRAM, status=ChannelStatus.INACTIVE)
    items = [item(7, message=f"m{i}") for i in range(5)]
    items[2] = item(inactive.id, message="m2")

    results = service.send_batch(TENANT_A_ID, items)

    assert [r.status for r in results] == ["sent", "sent", "failed", "sent", "sent"]
    failed = results[2]
    assert failed.id == 0
    assert failed.conversation_id == 0
    assert failed.channel_type == "telegram"
    assert "not active" in failed.error
    sent_contents = [m.content for m in db_session.query(Message).order_by(Message.id)]
    assert sent_contents == ["m0", "m1", "m3", "m4"]


def test_foreign_channel_type_is_not_disclosed(service, tenant_a, tenant_b, whatsapp_channel, make_channel):
    foreign = make_channel(TENANT_B_ID, ChannelType.TWILIO_SMS)

    results = service.send_batch(TENANT_A_ID, [item(foreign.id), item(424242)])

    assert [r.channel_type for r in results] == ["unknown", "unknown"]
    assert results[0].error == "Access denied to this channel"
    assert results[1].error == "Channel 424242 not found"


def test_adapter_failure_in_batch_keeps_failed_row(service, db_session, whatsapp_channel, adapters):
    adapters[ChannelType.WHATSAPP_OFFICIAL].fail_with = AdapterError("rate limited", status_code=429, retryable=True)

    results = service.send_batch(TENANT_A_ID, [item(7)])

    assert results[0].status == "failed"
    assert results[0].channel_type == "whatsapp_official"
    assert results[0].error == "rate limited"
    assert db_session.query(Message).one().status == "failed"


def test_unexpected_adapter_exception_is_recorded_as_failed_item(service, db_session, whatsapp_channel, adapters):
    adapters[ChannelType.WHATSAPP_OFFICIAL].fail_with = RuntimeError("socket closed")

    results = service.send_batch(TENANT_A_ID, [item(7), item(7)])

    assert [r.error for r in results] == ["socket closed", "socket closed"]
    assert all(r.channel_type == "whatsapp_official" for r in results)
    rows = db_session.query(Message).all()
    assert [(m.status, m.external_id) for m in rows] == [("failed", None), ("failed", None)]


def test_unexpected_error_outside_adapter_becomes_generic_failure(service, db_session, whatsapp_channel, adapters, monkeypatch):
    def broken_upsert(*args, **kwargs):
        raise RuntimeError("pool exhausted")

    monkeypatch.setattr(service.repo, "get_or_create_contact", broken_upsert)

    results = service.send_batch(TENANT_A_ID, [item(7), item(7)])

    assert [r.error for r in results] == ["Failed to send message", "Failed to send message"]
    assert all(r.channel_type == "unknown" for r in results)
    assert adapters[ChannelType.WHATSAPP_OFFICIAL].calls == []
    assert db_session.query(Message).count() == 0
