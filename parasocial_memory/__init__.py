"""
Encrypted, semantically searchable long-term memory for a conversational agent.
"""

from .core.errors import (
    MemoryStoreError,
    KeyUnavailable,
    EmbeddingUnavailable,
    DecryptionFailed,
    PersistenceError,
)
from .core.schema import MemoryEntry, DecryptedMemory, UNDECRYPTABLE
from .core.store import MemoryStore

__all__ = [
    'MemoryStore',
    'MemoryEntry',
    'DecryptedMemory',
    'UNDECRYPTABLE',
    'MemoryStoreError',
    'KeyUnavailable',
    'EmbeddingUnavailable',
    'DecryptionFailed',
    'PersistenceError',
]

__version__ = "1.0.0"
