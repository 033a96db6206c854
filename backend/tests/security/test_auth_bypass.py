"""Security tests for bearer token handling"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from auth.jwt import create_access_token
from conftest import TENANT_A_ID


pytestmark = pytest.mark.security

SEND = "/api/v1/messages/send"
BODY = {"channelId": 7, "to": "15551234567", "message": "Hi"}


def test_expired_token(client, whatsapp_channel):
    token = create_access_token(tenant_id=TENANT_A_ID, subject="crm", expiry_minutes=-5)

    response = client.post(SEND, json=BODY, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_token_signed_with_other_secret(client, whatsapp_channel):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "crm", "tenant_id": TENANT_A_ID, "iat": now, "exp": now + timedelta(minutes=5)},
        "attacker-controlled-secret-of-sufficient-length",
        algorithm="HS256",
    )

    response = client.post(SEND, json=BODY, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_unsigned_token_rejected(client, whatsapp_channel):
    token = jwt.encode({"sub": "crm", "tenant_id": TENANT_A_ID}, key=None, algorithm="none")

    response = client.post(SEND, json=BODY, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_token_without_tenant_claim(client, whatsapp_channel):
    from config import settings

    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "crm", "iat": now, "exp": now + timedelta(minutes=5)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )

    response = client.post(SEND, json=BODY, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_token_for_unknown_tenant(client, whatsapp_channel):
    token = create_access_token(tenant_id=999, subject="crm")

    response = client.post(SEND, json=BODY, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_non_bearer_scheme(client, whatsapp_channel):
    token = create_access_token(tenant_id=TENANT_A_ID, subject="crm")

    response = client.post(SEND, json=BODY, headers={"Authorization": f"Basic {token}"})

    assert response.status_code == 401
