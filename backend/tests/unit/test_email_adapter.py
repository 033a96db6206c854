"""Unit tests for the SMTP email adapter"""

import smtplib

import pytest

from channels.credentials import parse_credentials
from channels.implementations import EmailAdapter
from channels.ports import AdapterError, SendContext
from channels.types import ChannelType, MediaKind
from conftest import DEFAULT_CREDENTIALS


class FakeSMTP:
    """Stands in for smtplib.SMTP and records the session."""

    instances: list["FakeSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.started_tls = False
        self.logged_in_as = None
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, username, password):
        self.logged_in_as = username

    def send_message(self, message):
        self.sent.append(message)


class RefusingSMTP(FakeSMTP):
    def send_message(self, message):
        raise smtplib.SMTPRecipientsRefused({message["To"]: (550, b"No such user")})


@pytest.fixture(autouse=True)
def reset_instances():
    FakeSMTP.instances = []


def email_ctx():
    return SendContext(
        channel_id=3,
        tenant_id=42,
        system_user_id=1,
        credentials=parse_credentials(ChannelType.EMAIL, DEFAULT_CREDENTIALS[ChannelType.EMAIL]),
    )


def test_send_message_over_starttls():
    adapter = EmailAdapter(smtp_factory=FakeSMTP, timeout=5)

    receipt = adapter.send_message(email_ctx(), "ana@example.test", "Your order shipped")

    smtp = FakeSMTP.instances[0]
    assert (smtp.host, smtp.port, smtp.timeout) == ("smtp.test", 587, 5)
    assert smtp.started_tls
    assert smtp.logged_in_as == "robot"
    message = smtp.sent[0]
    assert message["To"] == "ana@example.test"
    assert "support@acme.test" in message["From"]
    assert message.get_content().strip() == "Your order shipped"
    assert receipt.external_id == message["Message-ID"]
    assert receipt.status == "sent"


def test_media_is_linked_in_body():
    adapter = EmailAdapter(smtp_factory=FakeSMTP)

    receipt = adapter.send_media(
        email_ctx(), "ana@example.test", MediaKind.DOCUMENT,
        "https://cdn.test/invoice.pdf", caption="Invoice attached", filename="invoice.pdf",
    )

    body = FakeSMTP.instances[0].sent[0].get_content()
    assert "Invoice attached" in body
    assert "invoice.pdf: https://cdn.test/invoice.pdf" in body
    assert receipt.metadata["media_url"] == "https://cdn.test/invoice.pdf"


def test_refused_recipient_raises_adapter_error():
    adapter = EmailAdapter(smtp_factory=RefusingSMTP)

    with pytest.raises(AdapterError) as exc_info:
        adapter.send_message(email_ctx(), "ghost@example.test", "Hi")
    assert not exc_info.value.retryable


def test_connection_failure_is_retryable():
    def unreachable(host, port, timeout=None):
        raise ConnectionRefusedError("connection refused")

    adapter = EmailAdapter(smtp_factory=unreachable)

    with pytest.raises(AdapterError) as exc_info:
        adapter.send_message(email_ctx(), "ana@example.test", "Hi")
    assert exc_info.value.retryable
