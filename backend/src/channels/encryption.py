"""
AES-GCM Encryption for Channel Connection Credentials

Credentials (access tokens, bot tokens, SMTP passwords) are stored encrypted
with AES-256-GCM. Each blob carries its own random IV and authentication tag.
Decryption yields the typed credential model for the connection's channel.
"""

import os
import json
import logging
from typing import Any, Optional

from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.exceptions import InvalidTag
from pydantic import BaseModel

from config import settings
from .credentials import ChannelCredentials, parse_credentials
from .types import ChannelType


logger = logging.getLogger(__name__)

_IV_BYTES = 12


class EncryptionError(Exception):
    """Raised when encryption or decryption fails."""
    pass


class EncryptionService:
    """
    Service for encrypting and decrypting channel credentials.

    Uses AES-256-GCM with:
    - 256-bit key from ENCRYPTION_MASTER_KEY
    - Random 96-bit IV per encryption operation
    - Authentication tag for integrity verification

    Storage format: IV (12 bytes) + ciphertext + auth tag (16 bytes)
    """

    _encryption_key: Optional[bytes] = None

    @classmethod
    def initialize(cls, master_key_hex: Optional[str] = None) -> None:
        """
        Initialize the encryption service with the master key.

        Args:
            master_key_hex: 64-character hex string (32 bytes). Defaults to
                ENCRYPTION_MASTER_KEY from settings.

        Raises:
            EncryptionError: If key is missing or invalid
        """
        if master_key_hex is None:
            master_key_hex = settings.ENCRYPTION_MASTER_KEY

        if not master_key_hex:
            raise EncryptionError(
                "ENCRYPTION_MASTER_KEY is not set. "
                "Generate one with: python -c 'import os; print(os.urandom(32).hex())'"
            )

        try:
            key = bytes.fromhex(master_key_hex)
        except ValueError as e:
            raise EncryptionError(f"ENCRYPTION_MASTER_KEY must be a valid hex string: {e}")

        if len(key) != 32:
            raise EncryptionError(
                f"ENCRYPTION_MASTER_KEY must be 32 bytes (64 hex chars), got {len(key)} bytes"
            )

        cls._encryption_key = key
        logger.info("Credential encryption initialized with AES-256-GCM")

    @classmethod
    def _key(cls) -> bytes:
        if cls._encryption_key is None:
            cls.initialize()
        return cls._encryption_key

    @classmethod
    def encrypt(cls, data: dict[str, Any]) -> bytes:
        """
        Encrypt a JSON-serializable dictionary.

        Returns:
            IV (12 bytes) + ciphertext + auth tag (16 bytes)

        Raises:
            EncryptionError: If serialization or encryption fails
        """
        key = cls._key()
        try:
            plaintext = json.dumps(data, sort_keys=True).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EncryptionError(f"Credentials are not JSON-serializable: {e}")

        iv = os.urandom(_IV_BYTES)
        return iv + AESGCM(key).encrypt(iv, plaintext, None)

    @classmethod
    def decrypt(cls, encrypted: bytes) -> dict[str, Any]:
        """
        Decrypt a blob produced by encrypt().

        Raises:
            EncryptionError: If the blob is truncated, tampered with, or not JSON
        """
        key = cls._key()
        if len(encrypted) < _IV_BYTES:
            raise EncryptionError("Encrypted data is too short (missing IV)")

        iv, ciphertext = encrypted[:_IV_BYTES], encrypted[_IV_BYTES:]
        try:
            plaintext = AESGCM(key).decrypt(iv, ciphertext, None)
        except InvalidTag:
            logger.error("Decryption failed: authentication tag verification failed")
            raise EncryptionError(
                "Decryption failed: data has been tampered with or wrong encryption key"
            )

        try:
            data = json.loads(plaintext.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise EncryptionError("Decryption failed: decrypted data is not valid JSON")
        if not isinstance(data, dict):
            raise EncryptionError("Decryption failed: credentials must be a JSON object")
        return data

    @classmethod
    def encrypt_credentials(cls, credentials: BaseModel) -> bytes:
        """Encrypt an already-validated credential model."""
        return cls.encrypt(credentials.model_dump(mode="json"))

    @classmethod
    def decrypt_credentials(cls, channel_type: ChannelType, encrypted: bytes) -> ChannelCredentials:
        """
        Decrypt stored credentials into the typed model for `channel_type`.

        Raises:
            EncryptionError: If decryption fails
            CredentialsError: If the decrypted data does not match the channel's model
        """
        return parse_credentials(channel_type, cls.decrypt(encrypted))
