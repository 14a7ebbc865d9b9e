"""
Tests for embedding providers.
"""

import sys
import types
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from parasocial_memory.vector.embeddings import (
    IEmbeddingProvider,
    DeterministicHashEmbedding,
    SentenceTransformerEmbedding,
    l2_normalize,
)
from parasocial_memory.vector.scoring import cosine_similarity


def test_embedding_interface():
    """Test that the embedding provider implements the interface correctly."""
    embedder = DeterministicHashEmbedding(dimension=384)

    assert isinstance(embedder, IEmbeddingProvider)
    assert embedder.get_dimension() == 384


def test_deterministic_embedding():
    """Test that the same input always produces the same output."""
    embedder1 = DeterministicHashEmbedding(dimension=384)
    embedder2 = DeterministicHashEmbedding(dimension=384)

    vector1 = embedder1.embed_text("Hello, world!")
    vector2 = embedder2.embed_text("Hello, world!")

    assert vector1 == vector2
    assert len(vector1) == 384


def test_hash_embedding_is_unit_length():
    vector = DeterministicHashEmbedding().embed_text("I love hiking in Colorado")
    assert np.linalg.norm(vector) == pytest.approx(1.0)


def test_shared_words_are_more_similar():
    embedder = DeterministicHashEmbedding()
    base = embedder.embed_text("espresso in the mountains")
    related = embedder.embed_text("mountains and espresso")
    unrelated = embedder.embed_text("quarterly tax filing")

    assert cosine_similarity(base, related) > cosine_similarity(base, unrelated)


def test_embedding_with_different_dimensions():
    assert len(DeterministicHashEmbedding(dimension=64).embed_text("test")) == 64
    assert len(DeterministicHashEmbedding(dimension=512).embed_text("test")) == 512


def test_embedding_edge_cases():
    embedder = DeterministicHashEmbedding(dimension=384)

    # No tokens at all gives a zero vector
    assert embedder.embed_text("") == [0.0] * 384
    assert embedder.embed_text("!!! ???") == [0.0] * 384

    assert len(embedder.embed_text("A" * 1000)) == 384
    assert len(embedder.embed_text("Hello\n\t\rWorld!@#$%^&*()")) == 384


def test_l2_normalize():
    assert np.allclose(l2_normalize([3.0, 4.0]), [0.6, 0.8])
    assert np.allclose(l2_normalize([0.0, 0.0]), [0.0, 0.0])


def test_sentence_transformer_loads_lazily_once():
    model = MagicMock()
    model.encode.return_value = np.array([0.6, 0.8], dtype=np.float32)
    model.get_sentence_embedding_dimension.return_value = 2
    fake_module = types.SimpleNamespace(SentenceTransformer=MagicMock(return_value=model))

    with patch.dict(sys.modules, {"sentence_transformers": fake_module}):
        provider = SentenceTransformerEmbedding("all-MiniLM-L6-v2")
        fake_module.SentenceTransformer.assert_not_called()

        provider.load()
        provider.load()
        vector = provider.embed_text("hello")

    fake_module.SentenceTransformer.assert_called_once_with("all-MiniLM-L6-v2")
    model.encode.assert_called_once_with("hello", convert_to_numpy=True, normalize_embeddings=True)
    assert vector == pytest.approx([0.6, 0.8])
    assert provider.get_dimension() == 2
    assert provider.name == "all-MiniLM-L6-v2"
