"""
Embedding providers for tests. None of them download a model.
"""

import re
import threading
import time

from parasocial_memory.vector.embeddings import IEmbeddingProvider

DIM = 384

# Word stem -> axis. Texts about the same topic share an axis.
CONCEPTS = {
    "hik": 0, "trail": 0, "mountain": 1, "colorado": 1, "outdoor": 1,
    "sushi": 2, "food": 2, "dinner": 2, "coffee": 3, "espresso": 3,
}
BIAS_AXIS = DIM - 1


class ConceptEmbedding(IEmbeddingProvider):
    """Maps known topic words onto fixed axes, plus a small shared bias."""

    def __init__(self, dimension: int = DIM):
        self.dimension = dimension
        self.embedded = []

    def embed_text(self, text: str) -> list[float]:
        self.embedded.append(text)
        vector = [0.0] * self.dimension
        vector[BIAS_AXIS] = 0.2
        for token in re.findall(r"\w+", text.lower()):
            for stem, axis in CONCEPTS.items():
                if token.startswith(stem):
                    vector[axis] += 1.0
        return vector

    def get_dimension(self) -> int:
        return self.dimension


class FailingEmbedding(IEmbeddingProvider):
    """Every embed call fails."""

    def embed_text(self, text: str) -> list[float]:
        raise RuntimeError("inference backend unavailable")

    def get_dimension(self) -> int:
        return DIM


class FailingLoadEmbedding(FailingEmbedding):
    """Model weights never load."""

    def __init__(self):
        self.load_calls = 0

    def load(self) -> None:
        self.load_calls += 1
        raise OSError("model files missing")


class SlowLoadEmbedding(ConceptEmbedding):
    """Takes a while to load and counts how often it is asked to."""

    def __init__(self, delay: float = 0.2):
        super().__init__()
        self.delay = delay
        self.load_calls = 0

    def load(self) -> None:
        self.load_calls += 1
        time.sleep(self.delay)


class BlockingEmbedding(ConceptEmbedding):
    """Blocks inside embed_text until released."""

    def __init__(self):
        super().__init__()
        self.release = threading.Event()

    def embed_text(self, text: str) -> list[float]:
        self.release.wait(5)
        return super().embed_text(text)


class WrongDimensionEmbedding(ConceptEmbedding):
    def embed_text(self, text: str) -> list[float]:
        return [1.0, 0.0, 0.0]
