"""Pytest fixtures for the dispatch backend.

Provides reusable test fixtures for:
- In-memory SQLite session (tables created and dropped per test)
- Tenants 42 and 43 with channel connections
- Recording channel adapters standing in for the network
- TestClient with database and adapter registry overrides
- Bearer token headers

Usage:
    def test_send(client, auth_headers, whatsapp_channel, adapters):
        response = client.post("/api/v1/messages/send", json={...}, headers=auth_headers)
        assert response.status_code == 201
"""

import os
import sys
from pathlib import Path
from typing import Any, Generator, Optional

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("ENCRYPTION_MASTER_KEY", "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff")
os.environ.setdefault("LOG_JSON", "false")

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from models import Base, Tenant, ChannelConnection
from channels.credentials import parse_credentials
from channels.encryption import EncryptionService
from channels.ports import AdapterReceipt, ChannelAdapter, InteractiveResult
from channels.registry import AdapterRegistry
from channels.types import ChannelStatus, ChannelType
from auth.jwt import create_access_token
from messaging.service import MessageDispatchService


TENANT_A_ID = 42
TENANT_B_ID = 43
SYSTEM_USER_ID = 1

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


# Minimal valid credentials for each channel type
DEFAULT_CREDENTIALS: dict[ChannelType, dict[str, Any]] = {
    ChannelType.WHATSAPP_OFFICIAL: {
        "phone_number_id": "1055501",
        "access_token": "EAAG-test",
        "business_phone": "+15550001111",
        "verified_name": "Acme Support",
    },
    ChannelType.WHATSAPP_META: {"api_key": "d360-test"},
    ChannelType.WHATSAPP_UNOFFICIAL: {
        "base_url": "https://evolution.test",
        "instance": "acme",
        "api_key": "evo-key",
    },
    ChannelType.TWILIO_SMS: {"account_sid": "AC123", "auth_token": "tok", "from_number": "+15550002222"},
    ChannelType.TWILIO_VOICE: {"account_sid": "AC123", "auth_token": "tok", "from_number": "+15550003333"},
    ChannelType.TELEGRAM: {"bot_token": "123:abc", "bot_username": "acme_bot"},
    ChannelType.INSTAGRAM: {"page_id": "p1", "page_access_token": "ig-token"},
    ChannelType.MESSENGER: {"page_id": "p2", "page_access_token": "fb-token"},
    ChannelType.TIKTOK: {"access_token": "tt-token", "business_id": "b1"},
    ChannelType.EMAIL: {
        "smtp_host": "smtp.test",
        "username": "robot",
        "password": "secret",
        "from_address": "support@acme.test",
    },
    ChannelType.WEBCHAT: {"relay_url": "https://relay.test/push", "widget_token": "w-token"},
}


class RecordingAdapter(ChannelAdapter):
    """Adapter double that records every call instead of reaching a network.

    Set `fail_with` to an exception instance to make the next calls raise it.
    """

    def __init__(self, channel_type: ChannelType):
        self.channel_type = channel_type
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail_with: Optional[Exception] = None
        self.interactive_success = True
        self._counter = 0

    def _record(self, name: str, **kwargs) -> AdapterReceipt:
        self.calls.append((name, kwargs))
        if self.fail_with is not None:
            raise self.fail_with
        self._counter += 1
        return AdapterReceipt(external_id=f"{self.channel_type.value}-{self._counter}", status="sent")

    def send_message(self, ctx, to, text):
        return self._record("send_message", ctx=ctx, to=to, text=text)

    def send_media(self, ctx, to, media_kind, media_url, caption=None, filename=None):
        return self._record(
            "send_media", ctx=ctx, to=to, media_kind=media_kind,
            media_url=media_url, caption=caption, filename=filename,
        )

    def send_template_message(self, ctx, to, template_name, language, components):
        return self._record(
            "send_template_message", ctx=ctx, to=to, template_name=template_name,
            language=language, components=components,
        )

    def send_interactive_message(self, ctx, payload):
        receipt = self._record("send_interactive_message", ctx=ctx, payload=payload)
        if not self.interactive_success:
            return InteractiveResult(success=False, error_message="Interactive payload rejected")
        return InteractiveResult(success=True, message_id=receipt.external_id)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def tenant_a(db_session: Session) -> Tenant:
    tenant = Tenant(id=TENANT_A_ID, name="Acme Inc", slug="acme")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope="function")
def tenant_b(db_session: Session) -> Tenant:
    tenant = Tenant(id=TENANT_B_ID, name="Globex", slug="globex")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope="function")
def make_channel(db_session: Session):
    """Factory creating a channel connection with encrypted default credentials."""

    def _make(
        tenant_id: int,
        channel_type: ChannelType,
        status: ChannelStatus = ChannelStatus.ACTIVE,
        channel_id: Optional[int] = None,
        credentials: Optional[dict[str, Any]] = None,
    ) -> ChannelConnection:
        model = parse_credentials(channel_type, credentials or DEFAULT_CREDENTIALS[channel_type])
        connection = ChannelConnection(
            id=channel_id,
            tenant_id=tenant_id,
            channel_type=channel_type.value,
            account_name=f"{channel_type.value} account",
            status=status.value,
            config_encrypted=EncryptionService.encrypt_credentials(model),
        )
        db_session.add(connection)
        db_session.commit()
        return connection

    return _make


@pytest.fixture(scope="function")
def whatsapp_channel(tenant_a: Tenant, make_channel) -> ChannelConnection:
    """Active WhatsApp Cloud API channel 7 owned by tenant 42."""
    return make_channel(TENANT_A_ID, ChannelType.WHATSAPP_OFFICIAL, channel_id=7)


@pytest.fixture(scope="function")
def adapters() -> dict[ChannelType, RecordingAdapter]:
    return {channel_type: RecordingAdapter(channel_type) for channel_type in ChannelType}


@pytest.fixture(scope="function")
def registry(adapters) -> AdapterRegistry:
    return AdapterRegistry.build(adapters.values())


@pytest.fixture(scope="function")
def service(db_session: Session, registry: AdapterRegistry) -> MessageDispatchService:
    return MessageDispatchService(db_session, registry, system_user_id=SYSTEM_USER_ID)


@pytest.fixture(scope="function")
def client(db_session: Session, registry: AdapterRegistry) -> Generator[TestClient, None, None]:
    """TestClient bound to the test session and recording adapters.

    Not entered as a context manager, so the startup hook never builds the
    real adapter registry.
    """
    from main import app
    from database import get_db
    from dependencies import get_adapter_registry

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_adapter_registry] = lambda: registry
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def auth_headers(tenant_a: Tenant) -> dict[str, str]:
    token = create_access_token(tenant_id=TENANT_A_ID, subject="crm-sync")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def tenant_b_headers(tenant_b: Tenant) -> dict[str, str]:
    token = create_access_token(tenant_id=TENANT_B_ID, subject="globex-bot")
    return {"Authorization": f"Bearer {token}"}
