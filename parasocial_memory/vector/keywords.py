"""
Keyword extraction for the lexical side of retrieval.
Deliberately crude: no stemming, so "hike" and "hiking" are different tags.
"""

import re

STOPWORDS = frozenset(['the', 'is', 'at', 'which', 'on', 'and', 'a', 'an', 'i', 'you'])
MIN_TOKEN_LENGTH = 4

_PUNCTUATION = re.compile(r"[^\w\s]")


def extract_keywords(text: str) -> set[str]:
    """Lowercase, strip punctuation, split on whitespace, drop short tokens and stop words."""
    if not text:
        return set()

    cleaned = _PUNCTUATION.sub('', text.lower())
    return {
        word for word in cleaned.split()
        if len(word) >= MIN_TOKEN_LENGTH and word not in STOPWORDS
    }
