"""Identity resolution: recipient address -> Contact -> Conversation."""

import re

from models import ChannelConnection, Contact, Conversation
from .repository import MessagingRepository


_NON_DIGITS = re.compile(r"\D")


def normalize_address(raw: str) -> str:
    """
    Canonicalize a phone-style address.

    Every non-digit is stripped and a single leading '+' is prefixed, so
    "+1 (555) 123-4567" and "15551234567" both become "+15551234567".
    No length or country-code validation is performed.
    """
    return "+" + _NON_DIGITS.sub("", raw)


def resolve_contact(repo: MessagingRepository, tenant_id: int, raw_address: str) -> Contact:
    """
    Return the tenant's contact for `raw_address`, creating it on first use.

    New contacts keep the raw address as their display name and are tagged
    with source 'api'.
    """
    normalized = normalize_address(raw_address)
    existing = repo.get_contact_by_phone(normalized, tenant_id)
    if existing is not None:
        return existing
    return repo.get_or_create_contact(
        tenant_id=tenant_id,
        identifier=normalized,
        phone=normalized,
        name=raw_address,
        source="api",
    )


def resolve_conversation(
    repo: MessagingRepository, contact: Contact, connection: ChannelConnection
) -> Conversation:
    """Return the single conversation pairing `contact` with `connection`."""
    existing = repo.get_conversation_by_contact_and_channel(contact.id, connection.id)
    if existing is not None:
        return existing
    return repo.create_conversation(connection.tenant_id, contact.id, connection)
