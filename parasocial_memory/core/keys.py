"""
Key provisioning for memory encryption.
One 256-bit key per store: loaded from the key slot, or generated and persisted
on first use, then cached on the KeyManager for the rest of the process.
"""

import base64
import binascii
import secrets
from dataclasses import dataclass
from typing import Optional

from .config import KEY_SLOT_NAME
from .dao import get_key_slot, set_key_slot
from .errors import KeyUnavailable, PersistenceError

from ..util.logging import logger

KEY_SIZE = 32  # bytes, AES-256


@dataclass(frozen=True)
class EncryptionKey:
    """Raw symmetric key. Never logged, never repr'd."""
    raw: bytes

    def __repr__(self) -> str:
        return "EncryptionKey(<redacted>)"

    @classmethod
    def generate(cls) -> 'EncryptionKey':
        return cls(secrets.token_bytes(KEY_SIZE))

    def export(self) -> str:
        """Storable text form of the key (base64)."""
        return base64.b64encode(self.raw).decode('ascii')

    @classmethod
    def from_exported(cls, exported: str) -> 'EncryptionKey':
        try:
            raw = base64.b64decode(exported, validate=True)
        except (binascii.Error, ValueError) as e:
            raise KeyUnavailable("Persisted key material is not valid base64") from e
        if len(raw) != KEY_SIZE:
            raise KeyUnavailable(f"Persisted key material is {len(raw)} bytes, expected {KEY_SIZE}")
        return cls(raw)


class KeyManager:
    """Owns the store's encryption key."""

    def __init__(self, db_path: str = None, slot_name: str = None):
        self.db_path = db_path
        self.slot_name = slot_name or KEY_SLOT_NAME
        self._key: Optional[EncryptionKey] = None

    @property
    def is_ready(self) -> bool:
        return self._key is not None

    def get_or_create_key(self) -> EncryptionKey:
        """Return the cached key, loading or generating it on first call.

        Raises KeyUnavailable if the slot cannot be read or written, or holds
        material that is not a valid key. A malformed slot is left untouched.
        """
        if self._key is not None:
            return self._key

        try:
            stored = get_key_slot(self.slot_name, self.db_path)
            if stored:
                key = EncryptionKey.from_exported(stored)
                logger.log_key_event("loaded", self.slot_name)
            else:
                key = EncryptionKey.generate()
                set_key_slot(self.slot_name, key.export(), self.db_path)
                logger.log_key_event("created", self.slot_name)
        except PersistenceError as e:
            logger.log_key_event("provision", self.slot_name, status="failed", details={"error": str(e)})
            raise KeyUnavailable(f"Key slot '{self.slot_name}' unavailable") from e
        except KeyUnavailable as e:
            logger.log_key_event("provision", self.slot_name, status="failed", details={"error": str(e)})
            raise

        self._key = key
        return key
