from __future__ import annotations

import hashlib
import math
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from .cache import SimilarityCache
from .text import hash_text, normalize_text, tokenize


def build_idf(documents: Sequence[List[str]]) -> Dict[str, float]:
    """``idf = ln(N / (1 + df))`` over tokenized documents."""
    n_docs = len(documents)
    df: Counter = Counter()
    for tokens in documents:
        df.update(set(tokens))
    return {term: math.log(n_docs / (1 + count)) for term, count in df.items()}


def tfidf_vector(tokens: List[str], idf: Dict[str, float], n_docs: int) -> Dict[str, float]:
    if not tokens:
        return {}
    counts = Counter(tokens)
    # terms unseen in the corpus have df = 0
    unseen_idf = math.log(n_docs) if n_docs > 0 else 0.0
    return {term: (count / len(tokens)) * idf.get(term, unseen_idf) for term, count in counts.items()}


def cosine_sparse(first: Dict[str, float], second: Dict[str, float]) -> float:
    dot = sum(value * second.get(term, 0.0) for term, value in first.items())
    norm_first = math.sqrt(sum(value * value for value in first.values()))
    norm_second = math.sqrt(sum(value * value for value in second.values()))
    if not norm_first or not norm_second:
        return 0.0
    return dot / (norm_first * norm_second)


def corpus_key(documents: Iterable[str]) -> str:
    digest = hashlib.sha1()
    for document in documents:
        digest.update(hash_text(document).encode("utf-8"))
        digest.update(b"|")
    return digest.hexdigest()


class TfidfScorer:
    """TF-IDF cosine against a registered corpus, memoized in a ``SimilarityCache``."""

    def __init__(self, cache: Optional[SimilarityCache] = None) -> None:
        self._cache = cache if cache is not None else SimilarityCache()
        self._corpus_sizes: Dict[str, int] = {}

    def register_corpus(self, documents: Sequence[str]) -> str:
        key = corpus_key(documents)
        if key not in self._cache.idf_tables:
            self._cache.idf_tables[key] = build_idf([tokenize(document) for document in documents])
        self._corpus_sizes[key] = len(documents)
        return key

    def vector(self, text: str, key: str) -> Dict[str, float]:
        cache_key = f"{key}::{hash_text(text)}"
        cached = self._cache.tfidf_vectors.get(cache_key)
        if cached is None:
            cached = tfidf_vector(tokenize(text), self._cache.idf_tables[key], self._corpus_sizes.get(key, 0))
            self._cache.tfidf_vectors[cache_key] = cached
        return cached

    def similarity(self, first: str, second: str, key: str) -> float:
        norm_first = normalize_text(first)
        if norm_first and norm_first == normalize_text(second):
            return 1.0
        return max(0.0, min(1.0, cosine_sparse(self.vector(first, key), self.vector(second, key))))


def tfidf_similarity(first: str, second: str, corpus: Optional[Sequence[str]] = None) -> float:
    """One-shot TF-IDF cosine; the corpus defaults to the two texts themselves."""
    scorer = TfidfScorer()
    key = scorer.register_corpus(list(corpus) if corpus else [first, second])
    return scorer.similarity(first, second, key)
