"""
Encrypted memory store.

Write: keywords (sync) and embedding (async, best-effort) alongside encryption
(mandatory), then one insert. Read: query embedding (best-effort) and
keywords, load all entries, score, decrypt the top few.

Embedding failures are absorbed into "no embedding". Key and storage failures
are not: a write without a key raises KeyUnavailable, a failed transaction
raises PersistenceError.
"""

import asyncio
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from . import dao
from .config import DB_PATH, STORE_VERSION, EMBED_DIM, get_embed_timeout, get_embedding_provider
from .crypto import decrypt, encrypt
from .db import init_db, health_check
from .errors import DecryptionFailed, EmbeddingUnavailable, KeyUnavailable, PersistenceError
from .keys import EncryptionKey, KeyManager
from .schema import DecryptedMemory, MemoryEntry, UNDECRYPTABLE, clamp_importance

from ..vector.embeddings import IEmbeddingProvider
from ..vector.keywords import extract_keywords
from ..vector.messages import EmbedProgress
from ..vector.scoring import ScoringWeights, rank_entries
from ..vector.worker import EmbeddingService, EmbeddingWorker
from ..util.logging import logger


class MemoryStore:
    """Long-term memory for one user.

    Owns its key manager and embedding worker; nothing is shared between
    instances. Use as an async context manager, or call start() and close().

    Args:
        db_path: SQLite file backing the store
        version: schema version; a new version starts an empty collection
        provider: embedding provider run on the worker thread
        embedding_dim: required length of every stored embedding
        weights: retrieval scoring constants
        embed_timeout: seconds to wait for an embedding before going without
        on_progress: called with each EmbedProgress from the worker
    """

    def __init__(self, db_path: str = None, version: int = None,
                 provider: IEmbeddingProvider = None, embedding_dim: int = None,
                 weights: ScoringWeights = None, embed_timeout: Optional[float] = None,
                 key_slot: str = None, on_progress: Callable[[EmbedProgress], None] = None):
        self.db_path = db_path or DB_PATH
        self.version = version or STORE_VERSION
        self.embedding_dim = embedding_dim or EMBED_DIM
        self.weights = weights or ScoringWeights()

        self.key_manager = KeyManager(self.db_path, key_slot)
        self.provider = provider or get_embedding_provider(dimension=self.embedding_dim)
        self.embeddings = EmbeddingService(
            EmbeddingWorker(self.provider),
            timeout=embed_timeout if embed_timeout is not None else get_embed_timeout(),
            on_progress=self._on_progress,
        )
        self.on_progress = on_progress
        self.provider_dimension: Optional[int] = None
        self._started = False

    async def __aenter__(self) -> 'MemoryStore':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Open the database, start the embedding worker and provision the key.

        A key failure is logged and leaves the store write-disabled; it is not raised.
        """
        if self._started:
            return
        try:
            await asyncio.to_thread(init_db, self.db_path, self.version)
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Failed to open memory store at {self.db_path}") from e

        await self.embeddings.start()
        self._started = True

        try:
            await self._require_key()
        except KeyUnavailable as e:
            logger.error(f"Memory encryption key unavailable, store is write-disabled: {e}")

    def _on_progress(self, progress: EmbedProgress) -> None:
        if progress.status == "ready":
            self._check_provider_dimension()
        if self.on_progress is not None:
            self.on_progress(progress)

    def _check_provider_dimension(self) -> None:
        # Runs once the worker reports the model loaded, so the lookup does not block on a download
        try:
            self.provider_dimension = self.provider.get_dimension()
        except Exception as e:
            logger.warning(f"Could not read embedding dimension from {self.provider.name}: {e}")
            return
        if self.provider_dimension != self.embedding_dim:
            logger.error(f"Embedding model {self.provider.name} produces {self.provider_dimension}-dimensional "
                         f"vectors but the store expects {self.embedding_dim}; semantic search is disabled")

    async def close(self) -> None:
        await self.embeddings.close()
        self._started = False

    async def _require_key(self) -> EncryptionKey:
        if self.key_manager.is_ready:
            return self.key_manager.get_or_create_key()
        return await asyncio.to_thread(self.key_manager.get_or_create_key)

    async def _embed_or_none(self, text: str, purpose: str) -> Optional[List[float]]:
        """Best-effort embedding. Any failure degrades to None."""
        try:
            embedding = await self.embeddings.embed(text)
        except EmbeddingUnavailable as e:
            logger.warning(f"Embedding unavailable for {purpose}, continuing without semantic search: {e}")
            return None

        if len(embedding) != self.embedding_dim:
            logger.warning(f"Embedding for {purpose} has {len(embedding)} dimensions, "
                           f"expected {self.embedding_dim}; ignoring it")
            return None
        return embedding

    async def save_memory(self, text: str, importance: Optional[float] = None) -> MemoryEntry:
        """Encrypt and persist one note. Returns the stored entry."""
        if not text or not text.strip():
            raise ValueError("text cannot be empty")
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValueError(f"text is not valid Unicode: {e.reason} at position {e.start}") from None

        key = await self._require_key()

        embedding_task = asyncio.create_task(self._embed_or_none(text, "memory"))
        try:
            tags = extract_keywords(text)
            ciphertext, nonce = encrypt(text, key)
        except BaseException:
            embedding_task.cancel()
            raise
        embedding = await embedding_task

        entry = MemoryEntry(
            id=uuid.uuid4().hex,
            ciphertext=ciphertext,
            nonce=nonce,
            embedding=tuple(embedding) if embedding else None,
            tags=frozenset(tags),
            importance=clamp_importance(importance),
            timestamp=datetime.now(timezone.utc),
        )

        await asyncio.to_thread(dao.add_entry, entry, self.db_path, self.version)
        logger.log_memory_operation("saved", entry.id, {
            "importance": entry.importance,
            "tags": len(entry.tags),
            "embedding": entry.has_embedding,
        })
        return entry

    async def delete_memory(self, memory_id: str) -> bool:
        """Delete by id. An unknown id is a no-op and returns False."""
        removed = await asyncio.to_thread(dao.delete_entry, memory_id, self.db_path, self.version)
        logger.log_memory_operation("deleted" if removed else "delete_noop", memory_id)
        return removed

    async def retrieve_relevant_memory(self, query: str) -> List[str]:
        """Plaintext of the best-matching memories, best first, at most top_k.

        Without a key the result is empty. Entries that fail to decrypt are skipped.
        """
        try:
            key = await self._require_key()
        except KeyUnavailable:
            return []

        keywords = extract_keywords(query)
        query_embedding = await self._embed_or_none(query, "query")

        entries = await asyncio.to_thread(dao.list_entries, self.db_path, self.version)
        ranked = rank_entries(query_embedding, keywords, entries, self.weights)

        results = []
        for item in ranked:
            try:
                results.append(decrypt(item.entry.ciphertext, item.entry.nonce, key))
            except DecryptionFailed as e:
                logger.log_memory_operation("decrypt", item.entry.id, {"error": str(e)}, status="failed")

        logger.log_memory_operation("retrieved", details={
            "candidates": len(entries),
            "qualifying": len(ranked),
            "returned": len(results),
            "semantic": query_embedding is not None,
        })
        return results

    async def list_all_decrypted(self) -> List[DecryptedMemory]:
        """Every memory, newest first. Undecryptable entries carry the UNDECRYPTABLE sentinel."""
        try:
            key = await self._require_key()
        except KeyUnavailable:
            return []

        entries = await asyncio.to_thread(dao.list_entries, self.db_path, self.version, True)

        memories = []
        for entry in entries:
            try:
                memories.append(DecryptedMemory.from_entry(entry, decrypt(entry.ciphertext, entry.nonce, key)))
            except DecryptionFailed as e:
                logger.log_memory_operation("decrypt", entry.id, {"error": str(e)}, status="failed")
                memories.append(DecryptedMemory.from_entry(entry, UNDECRYPTABLE, decrypted=False))
        return memories

    async def count(self) -> int:
        return await asyncio.to_thread(dao.count_entries, self.db_path, self.version)

    async def health(self) -> Dict[str, Any]:
        """Store health: key, worker, backing table and size."""
        db_ok = await asyncio.to_thread(health_check, self.db_path, self.version)
        try:
            size = await self.count() if db_ok else 0
        except PersistenceError:
            db_ok, size = False, 0

        return {
            'status': 'healthy' if db_ok and self.key_manager.is_ready else 'degraded',
            'database': db_ok,
            'key_ready': self.key_manager.is_ready,
            'embedding_worker': self.embeddings.is_running,
            'embedding_model': self.provider.name,
            'embedding_dimension': self.provider_dimension,
            'dimension_matches': self.provider_dimension in (None, self.embedding_dim),
            'model_loaded': self.embeddings.worker.model_loaded,
            'pending_embeddings': self.embeddings.pending_count,
            'schema_version': self.version,
            'size': size,
            'last_checked': datetime.now(timezone.utc).isoformat(),
        }
