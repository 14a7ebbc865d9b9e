"""
Retrieval scoring: semantic similarity, keyword overlap and importance
combined into one score, then thresholded and ranked.

    score = semantic_weight * cosine(query, entry)
          + keyword_weight  * |entry.tags & query_keywords|
          + entry.importance / importance_divisor
"""

from dataclasses import dataclass
from typing import AbstractSet, List, Optional, Sequence

import numpy as np

from ..core.config import SEMANTIC_WEIGHT, KEYWORD_WEIGHT, IMPORTANCE_DIVISOR, MIN_SCORE, TOP_K
from ..core.schema import MemoryEntry


@dataclass(frozen=True)
class ScoringWeights:
    semantic_weight: float = SEMANTIC_WEIGHT
    keyword_weight: float = KEYWORD_WEIGHT
    importance_divisor: float = IMPORTANCE_DIVISOR
    min_score: float = MIN_SCORE
    top_k: int = TOP_K


@dataclass
class ScoredMemory:
    entry: MemoryEntry
    score: float


def cosine_similarity(a: Optional[Sequence[float]], b: Optional[Sequence[float]]) -> float:
    """Cosine of the angle between two vectors.

    Returns 0.0 instead of failing when either vector is missing, empty,
    zero-norm, or the lengths differ.
    """
    if a is None or b is None or len(a) == 0 or len(b) == 0 or len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.clip(np.dot(va, vb) / (norm_a * norm_b), -1.0, 1.0))


def score_entry(query_embedding: Optional[Sequence[float]], query_keywords: AbstractSet[str],
                entry: MemoryEntry, weights: ScoringWeights = None) -> float:
    weights = weights or ScoringWeights()

    semantic = cosine_similarity(query_embedding, entry.embedding)
    overlap = len(entry.tags & query_keywords)

    return (weights.semantic_weight * semantic
            + weights.keyword_weight * overlap
            + entry.importance / weights.importance_divisor)


def rank_entries(query_embedding: Optional[Sequence[float]], query_keywords: AbstractSet[str],
                 entries: Sequence[MemoryEntry], weights: ScoringWeights = None) -> List[ScoredMemory]:
    """Score every entry, keep those strictly above the threshold, return the top_k best.

    The sort is stable, so equal scores keep the order of `entries`.
    """
    weights = weights or ScoringWeights()

    scored = [ScoredMemory(entry, score_entry(query_embedding, query_keywords, entry, weights))
              for entry in entries]
    qualifying = [s for s in scored if s.score > weights.min_score]
    qualifying = sorted(qualifying, key=lambda s: s.score, reverse=True)

    return qualifying[:weights.top_k]
