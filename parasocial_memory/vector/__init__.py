"""
Embedding, keyword and scoring components of the memory store.
"""

from .embeddings import IEmbeddingProvider, DeterministicHashEmbedding, SentenceTransformerEmbedding
from .keywords import extract_keywords
from .scoring import ScoringWeights, ScoredMemory, cosine_similarity, score_entry, rank_entries
from .worker import EmbeddingWorker, EmbeddingService

__all__ = [
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding',
    'extract_keywords',
    'ScoringWeights',
    'ScoredMemory',
    'cosine_similarity',
    'score_entry',
    'rank_entries',
    'EmbeddingWorker',
    'EmbeddingService',
]
