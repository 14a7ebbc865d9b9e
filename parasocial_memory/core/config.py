"""
Configuration for the encrypted memory store.
Read once from the environment (and a local .env file) at import time.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Persistence backend
DB_PATH = os.getenv("DB_PATH", "./data/memory.db")
STORE_VERSION = int(os.getenv("STORE_VERSION", "2"))  # bump to start a fresh collection
KEY_SLOT_NAME = os.getenv("KEY_SLOT_NAME", "parasocial-mem-key")

# Embedding service
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "sentence-transformers")  # sentence-transformers|hash
EMBED_MODEL_NAME = os.getenv("EMBED_MODEL_NAME", "all-MiniLM-L6-v2")
EMBED_DIM = int(os.getenv("EMBED_DIM", "384"))
EMBED_TIMEOUT_SEC = float(os.getenv("EMBED_TIMEOUT_SEC", "0"))  # 0 waits forever

# Retrieval scoring
SEMANTIC_WEIGHT = float(os.getenv("SEMANTIC_WEIGHT", "10"))
KEYWORD_WEIGHT = float(os.getenv("KEYWORD_WEIGHT", "2"))
IMPORTANCE_DIVISOR = float(os.getenv("IMPORTANCE_DIVISOR", "10"))
MIN_SCORE = float(os.getenv("MIN_SCORE", "3"))
TOP_K = int(os.getenv("TOP_K", "5"))

# Memory entries
DEFAULT_IMPORTANCE = int(os.getenv("DEFAULT_IMPORTANCE", "5"))
MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 10


def get_table_name(version: int = None) -> str:
    """Name of the entries collection for a schema version."""
    return f"entries_v{STORE_VERSION if version is None else version}"


def get_embed_timeout():
    """Embedding timeout in seconds, or None when the caller waits forever."""
    return EMBED_TIMEOUT_SEC if EMBED_TIMEOUT_SEC > 0 else None


def get_embedding_provider(provider_name: str = None, model_name: str = None, dimension: int = None):
    """Build the configured embedding provider. The model itself loads lazily."""
    provider_name = provider_name or EMBED_PROVIDER

    if provider_name == "hash":
        from ..vector.embeddings import DeterministicHashEmbedding
        return DeterministicHashEmbedding(dimension or EMBED_DIM)
    elif provider_name == "sentence-transformers":
        from ..vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(model_name or EMBED_MODEL_NAME)
    else:
        raise ValueError(f"Unknown EMBED_PROVIDER: {provider_name}")


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    Path(db_path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if EMBED_PROVIDER not in ["sentence-transformers", "hash"]:
        issues.append(f"Invalid EMBED_PROVIDER: {EMBED_PROVIDER}")

    if EMBED_DIM < 1:
        issues.append("EMBED_DIM must be >= 1")

    if STORE_VERSION < 1:
        issues.append("STORE_VERSION must be >= 1")

    if TOP_K < 1:
        issues.append("TOP_K must be >= 1")

    if IMPORTANCE_DIVISOR == 0:
        issues.append("IMPORTANCE_DIVISOR must be non-zero")

    if not MIN_IMPORTANCE <= DEFAULT_IMPORTANCE <= MAX_IMPORTANCE:
        issues.append(f"DEFAULT_IMPORTANCE must be within [{MIN_IMPORTANCE}, {MAX_IMPORTANCE}]")

    return issues
