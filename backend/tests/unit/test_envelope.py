"""Unit tests for the response envelope"""

from datetime import datetime, timezone

from messaging.envelope import build_envelope, failed_envelope


def test_defaults_status_and_timestamp():
    before = datetime.now(timezone.utc)
    result = build_envelope(message_id=5, channel_type="telegram", conversation_id=9)

    assert result.status == "sent"
    assert result.timestamp >= before
    assert result.external_id is None


def test_to_dict_uses_camel_case_keys():
    ts = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    result = build_envelope(
        message_id=5, channel_type="telegram", conversation_id=9,
        status="queued", timestamp=ts, external_id="tg-1",
    )

    assert result.to_dict() == {
        "id": 5,
        "status": "queued",
        "timestamp": "2026-01-02T03:04:05+00:00",
        "channelType": "telegram",
        "conversationId": 9,
        "externalId": "tg-1",
    }


def test_empty_external_id_is_dropped():
    result = build_envelope(message_id=1, channel_type="email", conversation_id=1, external_id="")
    assert "externalId" not in result.to_dict()


def test_failed_envelope_shape():
    body = failed_envelope("Channel not found").to_dict()

    assert body["id"] == 0
    assert body["conversationId"] == 0
    assert body["status"] == "failed"
    assert body["channelType"] == "unknown"
    assert body["error"] == "Channel not found"


def test_failed_envelope_keeps_known_channel_type():
    assert failed_envelope("boom", "twilio_sms").channel_type == "twilio_sms"
