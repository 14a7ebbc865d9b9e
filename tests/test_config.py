"""
Tests for configuration helpers.
"""

from unittest.mock import patch

import pytest

from parasocial_memory.core import config
from parasocial_memory.vector.embeddings import DeterministicHashEmbedding, SentenceTransformerEmbedding


def test_table_name_follows_version():
    assert config.get_table_name(2) == "entries_v2"
    assert config.get_table_name(7) == "entries_v7"


def test_default_scoring_constants():
    assert config.SEMANTIC_WEIGHT == 10
    assert config.KEYWORD_WEIGHT == 2
    assert config.IMPORTANCE_DIVISOR == 10
    assert config.MIN_SCORE == 3
    assert config.TOP_K == 5


def test_embedding_provider_selection():
    assert isinstance(config.get_embedding_provider("hash", dimension=32), DeterministicHashEmbedding)
    assert config.get_embedding_provider("hash", dimension=32).get_dimension() == 32

    provider = config.get_embedding_provider("sentence-transformers", model_name="all-MiniLM-L6-v2")
    assert isinstance(provider, SentenceTransformerEmbedding)
    assert provider.model_name == "all-MiniLM-L6-v2"

    with pytest.raises(ValueError):
        config.get_embedding_provider("word2vec")


def test_embed_timeout():
    with patch.object(config, 'EMBED_TIMEOUT_SEC', 0):
        assert config.get_embed_timeout() is None
    with patch.object(config, 'EMBED_TIMEOUT_SEC', 2.5):
        assert config.get_embed_timeout() == 2.5


def test_validate_config():
    assert config.validate_config() == []

    with patch.object(config, 'EMBED_PROVIDER', 'bogus'), patch.object(config, 'TOP_K', 0):
        issues = config.validate_config()

    assert "Invalid EMBED_PROVIDER: bogus" in issues
    assert "TOP_K must be >= 1" in issues
