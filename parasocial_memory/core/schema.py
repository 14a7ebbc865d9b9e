"""
Record types for the encrypted memory store.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .config import DEFAULT_IMPORTANCE, MIN_IMPORTANCE, MAX_IMPORTANCE

# Content shown for an entry whose ciphertext no longer authenticates
UNDECRYPTABLE = "[Decryption Failed]"


def clamp_importance(importance: Optional[float]) -> int:
    """Default a missing or non-finite importance and clamp any other value into [1, 10]."""
    if importance is None or not math.isfinite(importance):
        return DEFAULT_IMPORTANCE
    return max(MIN_IMPORTANCE, min(MAX_IMPORTANCE, int(round(importance))))


@dataclass(frozen=True)
class MemoryEntry:
    """A persisted, encrypted memory. Immutable; only ever inserted or deleted."""
    id: str
    ciphertext: bytes
    nonce: bytes
    embedding: Optional[Tuple[float, ...]]
    tags: FrozenSet[str]
    importance: int
    timestamp: datetime

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


@dataclass
class DecryptedMemory:
    """Plaintext view of a MemoryEntry for listing and export."""
    id: str
    content: str
    tags: FrozenSet[str]
    importance: int
    timestamp: datetime
    has_embedding: bool
    decrypted: bool = True

    @classmethod
    def from_entry(cls, entry: MemoryEntry, content: str, decrypted: bool = True) -> 'DecryptedMemory':
        return cls(
            id=entry.id,
            content=content,
            tags=entry.tags,
            importance=entry.importance,
            timestamp=entry.timestamp,
            has_embedding=entry.has_embedding,
            decrypted=decrypted,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            'id': self.id,
            'content': self.content,
            'tags': sorted(self.tags),
            'importance': self.importance,
            'timestamp': self.timestamp.isoformat(),
            'has_embedding': self.has_embedding,
            'decrypted': self.decrypted,
        }
