"""
SQLite persistence backend.
One database file per store, one entries table per schema version, one key slot table.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator

from .config import DB_PATH, get_table_name, ensure_db_directory


@contextmanager
def get_db(db_path: str = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection."""
    conn = sqlite3.connect(db_path or DB_PATH)
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str = None, version: int = None):
    """Open-with-create: make sure the key slot table and the entries table for `version` exist.

    A new version gets a new, empty table. Rows in older tables are left alone
    and are not migrated.
    """
    ensure_db_directory(db_path)
    table = get_table_name(version)

    with get_db(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS key_slots (
                name TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        ''')

        # ciphertext and nonce are both NOT NULL: no half-encrypted rows
        cursor.execute(f'''
            CREATE TABLE IF NOT EXISTS {table} (
                id TEXT PRIMARY KEY,
                ciphertext BLOB NOT NULL,
                nonce BLOB NOT NULL,
                embedding BLOB,
                tags TEXT NOT NULL DEFAULT '[]',
                importance INTEGER NOT NULL CHECK (importance BETWEEN 1 AND 10),
                timestamp TEXT NOT NULL
            )
        ''')

        cursor.execute(f'CREATE INDEX IF NOT EXISTS idx_{table}_timestamp ON {table}(timestamp DESC)')

        conn.commit()


def health_check(db_path: str = None, version: int = None) -> bool:
    """Check that the database opens and the required tables exist."""
    try:
        with get_db(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            table_names = [row[0] for row in cursor.fetchall()]
            return all(t in table_names for t in ['key_slots', get_table_name(version)])
    except sqlite3.Error:
        return False
