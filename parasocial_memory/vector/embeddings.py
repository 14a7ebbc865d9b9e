"""
Embedding providers. Text in, fixed-length L2-normalized float vector out.
Providers are called only from the embedding worker thread.
"""

from abc import ABC, abstractmethod
import hashlib
import re

import numpy as np


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    def load(self) -> None:
        """Load model weights. Called once per worker before the first embed."""
        pass

    @abstractmethod
    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass

    @property
    def name(self) -> str:
        return self.__class__.__name__


def l2_normalize(vector) -> np.ndarray:
    """Scale a vector to unit length. A zero vector is returned unchanged."""
    arr = np.asarray(vector, dtype=np.float64)
    norm = np.linalg.norm(arr)
    if norm == 0:
        return arr
    return arr / norm


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for offline use and tests.

    Each token is hashed to a signed bucket, token vectors are mean pooled and
    the result is L2-normalized. Texts sharing words get similar vectors;
    there is no semantics beyond that.
    """

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def _token_vector(self, token: str) -> np.ndarray:
        digest = hashlib.sha256(token.encode()).digest()
        vector = np.zeros(self.dimension)
        # Four signed buckets per token
        for i in range(0, 16, 4):
            value = int.from_bytes(digest[i:i + 4], 'big')
            sign = 1.0 if digest[16 + i // 4] & 1 else -1.0
            vector[value % self.dimension] += sign
        return vector

    def embed_text(self, text: str) -> list[float]:
        """Generate deterministic embedding vector using hash function."""
        tokens = re.findall(r"\w+", text.lower())
        if not tokens:
            return [0.0] * self.dimension

        pooled = np.mean([self._token_vector(t) for t in tokens], axis=0)
        return l2_normalize(pooled).tolist()

    def get_dimension(self) -> int:
        return self.dimension

    @property
    def name(self) -> str:
        return f"hash-{self.dimension}"


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models.

    Defaults to all-MiniLM-L6-v2 (384 dimensions, mean pooling).
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2"):
        self.model_name = model_name
        self._model = None

    def load(self) -> None:
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)

    @property
    def model(self):
        self.load()
        return self._model

    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector using sentence transformers."""
        embedding = self.model.encode(text, convert_to_numpy=True, normalize_embeddings=True)
        return embedding.tolist()

    def get_dimension(self) -> int:
        return self.model.get_sentence_embedding_dimension()

    @property
    def name(self) -> str:
        return self.model_name
