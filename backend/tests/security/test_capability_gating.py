"""Security tests for capability gating

Requests a channel cannot carry must be rejected before any adapter call
and before any identity row is written.
"""

import pytest

from channels.types import ChannelType
from models import Contact, Message
from conftest import TENANT_A_ID


pytestmark = pytest.mark.security


def test_template_on_telegram_is_unsupported(client, auth_headers, make_channel, adapters, db_session):
    channel = make_channel(TENANT_A_ID, ChannelType.TELEGRAM)

    response = client.post(
        "/api/v1/messages/send-template",
        json={"channelId": channel.id, "to": "5550001", "templateName": "welcome"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "UNSUPPORTED_OPERATION"
    assert body["details"] == {"channelType": "telegram", "operation": "template"}
    assert adapters[ChannelType.TELEGRAM].calls == []
    assert db_session.query(Contact).count() == 0
    assert db_session.query(Message).count() == 0


@pytest.mark.parametrize("channel_type", [
    ChannelType.WHATSAPP_UNOFFICIAL,
    ChannelType.TWILIO_SMS,
    ChannelType.EMAIL,
    ChannelType.WEBCHAT,
])
def test_interactive_only_on_business_api(client, auth_headers, make_channel, adapters, channel_type):
    channel = make_channel(TENANT_A_ID, channel_type)

    response = client.post(
        "/api/v1/messages/send-interactive",
        json={
            "channelId": channel.id,
            "to": "15551234567",
            "interactiveType": "button",
            "content": {"body": {"text": "Choose"}},
            "options": {"type": "button", "buttons": [{"id": "a", "title": "A"}]},
        },
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "UNSUPPORTED_OPERATION"
    assert adapters[channel_type].calls == []


def test_document_on_instagram_never_calls_adapter(client, auth_headers, make_channel, adapters, db_session):
    channel = make_channel(TENANT_A_ID, ChannelType.INSTAGRAM)

    response = client.post(
        "/api/v1/messages/send-media",
        json={
            "channelId": channel.id,
            "to": "igsid",
            "mediaType": "document",
            "mediaUrl": "https://cdn.test/f.pdf",
        },
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "UNSUPPORTED_MEDIA_TYPE"
    assert adapters[ChannelType.INSTAGRAM].calls == []
    assert db_session.query(Contact).count() == 0


def test_template_on_partner_whatsapp_is_allowed(client, auth_headers, make_channel, adapters):
    channel = make_channel(TENANT_A_ID, ChannelType.WHATSAPP_META)

    response = client.post(
        "/api/v1/messages/send-template",
        json={"channelId": channel.id, "to": "15551234567", "templateName": "welcome"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    name, kwargs = adapters[ChannelType.WHATSAPP_META].calls[0]
    assert name == "send_template_message"
    assert kwargs["language"] == "en"
