"""
Data access for memory entries and the key slot.
Every function runs one short transaction; sqlite3 errors surface as PersistenceError.
"""

import json
import sqlite3
from datetime import datetime
from typing import List, Optional, Sequence

import numpy as np

from .config import get_table_name
from .db import get_db
from .errors import PersistenceError
from .schema import MemoryEntry

from ..util.logging import logger


def _encode_embedding(embedding: Optional[Sequence[float]]) -> Optional[bytes]:
    if not embedding:
        return None
    return np.asarray(embedding, dtype=np.float32).tobytes()


def _decode_embedding(blob: Optional[bytes]):
    # A damaged blob reads as "no embedding" rather than failing the whole load
    if not blob or len(blob) % 4:
        return None
    return tuple(float(x) for x in np.frombuffer(blob, dtype=np.float32))


def _row_to_entry(row) -> MemoryEntry:
    id_, ciphertext, nonce, embedding, tags, importance, timestamp = row
    return MemoryEntry(
        id=id_,
        ciphertext=bytes(ciphertext),
        nonce=bytes(nonce),
        embedding=_decode_embedding(embedding),
        tags=frozenset(json.loads(tags or '[]')),
        importance=importance,
        timestamp=datetime.fromisoformat(timestamp),
    )


def add_entry(entry: MemoryEntry, db_path: str = None, version: int = None) -> None:
    """Insert a new entry. Either the whole row lands or nothing does."""
    table = get_table_name(version)
    try:
        with get_db(db_path) as conn:
            with conn:
                conn.execute(
                    f"INSERT INTO {table} (id, ciphertext, nonce, embedding, tags, importance, timestamp) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        entry.id,
                        entry.ciphertext,
                        entry.nonce,
                        _encode_embedding(entry.embedding),
                        json.dumps(sorted(entry.tags)),
                        entry.importance,
                        entry.timestamp.isoformat(timespec="microseconds"),
                    )
                )
    except sqlite3.Error as e:
        logger.error(f"Failed to add memory entry '{entry.id}': {e}")
        raise PersistenceError(f"Failed to add memory entry '{entry.id}'") from e


def delete_entry(memory_id: str, db_path: str = None, version: int = None) -> bool:
    """Delete an entry by id. Returns False when no such entry existed."""
    table = get_table_name(version)
    try:
        with get_db(db_path) as conn:
            with conn:
                cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (memory_id,))
                return cursor.rowcount > 0
    except sqlite3.Error as e:
        logger.error(f"Failed to delete memory entry '{memory_id}': {e}")
        raise PersistenceError(f"Failed to delete memory entry '{memory_id}'") from e


def list_entries(db_path: str = None, version: int = None, newest_first: bool = False) -> List[MemoryEntry]:
    """Read every entry. Default order is storage (insertion) order."""
    table = get_table_name(version)
    order = "timestamp DESC, rowid DESC" if newest_first else "rowid ASC"
    try:
        with get_db(db_path) as conn:
            cursor = conn.execute(
                f"SELECT id, ciphertext, nonce, embedding, tags, importance, timestamp FROM {table} ORDER BY {order}"
            )
            return [_row_to_entry(row) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        logger.error(f"Failed to read memory entries: {e}")
        raise PersistenceError("Failed to read memory entries") from e


def count_entries(db_path: str = None, version: int = None) -> int:
    table = get_table_name(version)
    try:
        with get_db(db_path) as conn:
            return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    except sqlite3.Error as e:
        raise PersistenceError("Failed to count memory entries") from e


def get_key_slot(name: str, db_path: str = None) -> Optional[str]:
    """Read the exported key material stored under `name`, if any."""
    try:
        with get_db(db_path) as conn:
            row = conn.execute("SELECT value FROM key_slots WHERE name = ?", (name,)).fetchone()
            return row[0] if row else None
    except sqlite3.Error as e:
        raise PersistenceError(f"Failed to read key slot '{name}'") from e


def set_key_slot(name: str, value: str, db_path: str = None) -> None:
    """Write exported key material once. An existing slot is never overwritten."""
    try:
        with get_db(db_path) as conn:
            with conn:
                conn.execute("INSERT INTO key_slots (name, value) VALUES (?, ?)", (name, value))
    except sqlite3.Error as e:
        raise PersistenceError(f"Failed to write key slot '{name}'") from e
