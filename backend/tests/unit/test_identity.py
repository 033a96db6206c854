"""Unit tests for recipient address normalization and contact resolution"""

import pytest

from messaging.identity import normalize_address, resolve_contact, resolve_conversation
from messaging.repository import MessagingRepository
from models import Contact, Conversation
from channels.types import ChannelType


class TestNormalizeAddress:

    @pytest.mark.parametrize("raw", [
        "+1 (555) 123-4567",
        "15551234567",
        "+1-555-123-4567",
        "1.555.123.4567",
    ])
    def test_formatting_variants_collapse(self, raw):
        assert normalize_address(raw) == "+15551234567"

    def test_double_plus_collapses_to_one(self):
        assert normalize_address("++4930 1234") == "+49301234"

    def test_no_digits_yields_bare_plus(self):
        # No length or digit-count validation
        assert normalize_address("abc") == "+"


class TestResolveContact:

    def test_creates_contact_with_raw_name_and_api_source(self, db_session, tenant_a):
        repo = MessagingRepository(db_session)

        contact = resolve_contact(repo, tenant_a.id, "+1 (555) 123-4567")

        assert contact.identifier == "+15551234567"
        assert contact.phone == "+15551234567"
        assert contact.name == "+1 (555) 123-4567"
        assert contact.source == "api"

    def test_same_number_different_formatting_reuses_contact(self, db_session, tenant_a):
        repo = MessagingRepository(db_session)

        first = resolve_contact(repo, tenant_a.id, "+1 (555) 123-4567")
        second = resolve_contact(repo, tenant_a.id, "15551234567")

        assert first.id == second.id
        assert db_session.query(Contact).count() == 1

    def test_contacts_are_per_tenant(self, db_session, tenant_a, tenant_b):
        repo = MessagingRepository(db_session)

        a = resolve_contact(repo, tenant_a.id, "15551234567")
        b = resolve_contact(repo, tenant_b.id, "15551234567")

        assert a.id != b.id
        assert db_session.query(Contact).count() == 2

    def test_upsert_keeps_existing_row_untouched(self, db_session, tenant_a):
        repo = MessagingRepository(db_session)
        original = repo.get_or_create_contact(tenant_a.id, "+15551234567", name="Ana")

        again = repo.get_or_create_contact(tenant_a.id, "+15551234567", name="Someone else")

        assert again.id == original.id
        assert again.name == "Ana"


class TestResolveConversation:

    def test_one_conversation_per_contact_and_channel(self, db_session, tenant_a, make_channel):
        repo = MessagingRepository(db_session)
        whatsapp = make_channel(tenant_a.id, ChannelType.WHATSAPP_OFFICIAL)
        telegram = make_channel(tenant_a.id, ChannelType.TELEGRAM)
        contact = resolve_contact(repo, tenant_a.id, "15551234567")

        first = resolve_conversation(repo, contact, whatsapp)
        second = resolve_conversation(repo, contact, whatsapp)
        other = resolve_conversation(repo, contact, telegram)

        assert first.id == second.id
        assert other.id != first.id
        assert first.channel_type == "whatsapp_official"
        assert other.channel_type == "telegram"
        assert db_session.query(Conversation).count() == 2
