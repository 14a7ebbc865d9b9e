"""
AES-256-GCM encryption for memory content.
Each call draws a fresh 96-bit nonce; the 16-byte tag is appended to the ciphertext.
"""

import os
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import DecryptionFailed
from .keys import EncryptionKey

NONCE_SIZE = 12
TAG_SIZE = 16


def encrypt(plaintext: str, key: EncryptionKey) -> Tuple[bytes, bytes]:
    """Encrypt text and return (ciphertext || tag, nonce)."""
    nonce = os.urandom(NONCE_SIZE)
    cipher = Cipher(algorithms.AES(key.raw), modes.GCM(nonce), backend=None)
    encryptor = cipher.encryptor()

    ciphertext = encryptor.update(plaintext.encode('utf-8')) + encryptor.finalize()

    return ciphertext + encryptor.tag, nonce


def decrypt(ciphertext: bytes, nonce: bytes, key: EncryptionKey) -> str:
    """Authenticate and decrypt. Raises DecryptionFailed on any mismatch."""
    if len(ciphertext) < TAG_SIZE:
        raise DecryptionFailed("Ciphertext too short")
    if len(nonce) != NONCE_SIZE:
        raise DecryptionFailed(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")

    body, tag = ciphertext[:-TAG_SIZE], ciphertext[-TAG_SIZE:]

    try:
        cipher = Cipher(algorithms.AES(key.raw), modes.GCM(nonce, tag), backend=None)
        decryptor = cipher.decryptor()
        data = decryptor.update(body) + decryptor.finalize()
        return data.decode('utf-8')
    except InvalidTag as e:
        raise DecryptionFailed("Ciphertext did not authenticate") from e
    except (ValueError, UnicodeDecodeError) as e:
        raise DecryptionFailed(f"Malformed ciphertext: {e}") from e
