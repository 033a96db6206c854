"""Unit tests for AES-GCM credential encryption"""

import pytest

from channels.credentials import TelegramCredentials, parse_credentials
from channels.encryption import EncryptionError, EncryptionService
from channels.types import ChannelType


OTHER_KEY = "ff" * 32


def test_roundtrip_returns_typed_credentials():
    creds = parse_credentials(ChannelType.TELEGRAM, {"bot_token": "123:abc", "bot_username": "acme_bot"})

    blob = EncryptionService.encrypt_credentials(creds)
    decrypted = EncryptionService.decrypt_credentials(ChannelType.TELEGRAM, blob)

    assert isinstance(decrypted, TelegramCredentials)
    assert decrypted == creds


def test_ciphertext_does_not_contain_secret():
    blob = EncryptionService.encrypt({"bot_token": "super-secret-token"})
    assert b"super-secret-token" not in blob


def test_each_encryption_uses_fresh_iv():
    data = {"bot_token": "123:abc"}
    assert EncryptionService.encrypt(data) != EncryptionService.encrypt(data)


def test_tampered_blob_is_rejected():
    blob = bytearray(EncryptionService.encrypt({"bot_token": "123:abc"}))
    blob[-1] ^= 0x01

    with pytest.raises(EncryptionError):
        EncryptionService.decrypt(bytes(blob))


def test_truncated_blob_is_rejected():
    with pytest.raises(EncryptionError):
        EncryptionService.decrypt(b"short")


def test_wrong_key_cannot_decrypt(monkeypatch):
    blob = EncryptionService.encrypt({"bot_token": "123:abc"})
    monkeypatch.setattr(EncryptionService, "_encryption_key", None)
    EncryptionService.initialize(OTHER_KEY)

    with pytest.raises(EncryptionError):
        EncryptionService.decrypt(blob)


@pytest.mark.parametrize("bad_key", ["", "not-hex", "abcd"])
def test_invalid_master_key(monkeypatch, bad_key):
    monkeypatch.setattr(EncryptionService, "_encryption_key", None)
    with pytest.raises(EncryptionError):
        EncryptionService.initialize(bad_key)
