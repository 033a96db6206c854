"""Security tests for tenant isolation

Tests cover:
- Sending through another tenant's channel
- Reading another tenant's messages, contacts and conversations
- Tenant derived only from the bearer token
"""

import pytest

from channels.types import ChannelType
from messaging.errors import AccessDeniedError
from models import Contact, Conversation, Message
from conftest import TENANT_A_ID, TENANT_B_ID


pytestmark = pytest.mark.security


class TestCrossTenantSend:

    def test_service_denies_foreign_channel_without_side_effects(
        self, service, db_session, tenant_b, whatsapp_channel, adapters
    ):
        with pytest.raises(AccessDeniedError):
            service.send_text(TENANT_B_ID, 7, "15551234567", "Hi")

        assert db_session.query(Contact).count() == 0
        assert db_session.query(Conversation).count() == 0
        assert db_session.query(Message).count() == 0
        assert adapters[ChannelType.WHATSAPP_OFFICIAL].calls == []

    def test_api_returns_403_access_denied(self, client, tenant_b_headers, whatsapp_channel, adapters, db_session):
        response = client.post(
            "/api/v1/messages/send",
            json={"channelId": 7, "to": "15551234567", "message": "Hi"},
            headers=tenant_b_headers,
        )

        assert response.status_code == 403
        assert response.json()["error"] == "ACCESS_DENIED"
        assert db_session.query(Contact).count() == 0
        assert adapters[ChannelType.WHATSAPP_OFFICIAL].calls == []

    def test_tenant_id_in_body_is_ignored(self, client, tenant_b_headers, whatsapp_channel):
        response = client.post(
            "/api/v1/messages/send",
            json={"channelId": 7, "to": "15551234567", "message": "Hi", "tenantId": TENANT_A_ID},
            headers=tenant_b_headers,
        )
        assert response.status_code in (400, 403)


class TestCrossTenantReads:

    def test_message_status_hidden_from_other_tenant(self, client, auth_headers, tenant_b_headers, whatsapp_channel):
        sent = client.post(
            "/api/v1/messages/send",
            json={"channelId": 7, "to": "15551234567", "message": "Hi"},
            headers=auth_headers,
        ).json()["data"]

        response = client.get(f"/api/v1/messages/{sent['id']}/status", headers=tenant_b_headers)

        assert response.status_code == 404

    def test_listings_are_tenant_scoped(self, client, auth_headers, tenant_b_headers, whatsapp_channel):
        client.post(
            "/api/v1/messages/send",
            json={"channelId": 7, "to": "15551234567", "message": "Hi"},
            headers=auth_headers,
        )

        for path in ("/api/v1/channels", "/api/v1/conversations", "/api/v1/contacts"):
            response = client.get(path, headers=tenant_b_headers)
            assert response.status_code == 200
            assert response.json()["data"] == []

    def test_same_number_is_separate_contact_per_tenant(self, service, db_session, tenant_b, whatsapp_channel, make_channel):
        channel_b = make_channel(TENANT_B_ID, ChannelType.TELEGRAM)

        a = service.send_text(TENANT_A_ID, 7, "15551234567", "Hi")
        b = service.send_text(TENANT_B_ID, channel_b.id, "15551234567", "Hi")

        assert a.conversation_id != b.conversation_id
        tenants = sorted(c.tenant_id for c in db_session.query(Contact))
        assert tenants == [TENANT_A_ID, TENANT_B_ID]
