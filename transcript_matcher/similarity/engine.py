from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from ..interfaces import EmbeddingProvider, SemanticJudge, VectorSearch
from ..models.course import CurriculumCourse, ExtractedCourse
from ..models.match import (
    CandidateHint,
    Matched,
    MatchProvenance,
    MatchReport,
    MatchResult,
    ScoreBreakdown,
    Unmatched,
)
from ..settings import SimilarityConfig
from .cache import SimilarityCache
from .text import hash_text, lexical_similarity, matching_highlights, normalize_code, pair_key
from .tfidf import TfidfScorer

LOGGER = logging.getLogger("transcript_matcher.similarity")

T = TypeVar("T")


@dataclass(frozen=True)
class FusionWeights:
    vector: float
    tfidf: float
    semantic: float

    def fuse(self, vector: float, tfidf: float, semantic: float) -> float:
        return self.vector * vector + self.tfidf * tfidf + self.semantic * semantic


SINGLE_DOCUMENT_WEIGHTS = FusionWeights(vector=0.4, tfidf=0.3, semantic=0.3)
DUAL_DOCUMENT_WEIGHTS = FusionWeights(vector=0.3, tfidf=0.3, semantic=0.4)


@dataclass(frozen=True)
class FusionProfile:
    name: str
    weights: FusionWeights
    top_k: int
    final_threshold: float

    @staticmethod
    def single_document(config: Optional[SimilarityConfig] = None) -> "FusionProfile":
        config = config or SimilarityConfig()
        return FusionProfile("single_document", SINGLE_DOCUMENT_WEIGHTS, config.single_top_k, config.single_final_threshold)

    @staticmethod
    def dual_document(config: Optional[SimilarityConfig] = None) -> "FusionProfile":
        config = config or SimilarityConfig()
        return FusionProfile("dual_document", DUAL_DOCUMENT_WEIGHTS, config.dual_top_k, config.dual_final_threshold)


@dataclass(slots=True)
class _Candidate:
    reference: CurriculumCourse
    vector: float
    tfidf: float


class SimilarityEngine:
    """Hybrid scorer: cheap pre-filter, then a semantic judge on the top-K survivors.

    Collaborators are optional. Without a vector search or embedding provider
    the TF-IDF score stands in for the vector component; without a judge the
    semantic component falls back to embedding cosine, then to lexical overlap.
    """

    def __init__(
        self,
        config: Optional[SimilarityConfig] = None,
        cache: Optional[SimilarityCache] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        semantic_judge: Optional[SemanticJudge] = None,
        vector_search: Optional[VectorSearch] = None,
        vector_corpus: str = "curriculum",
    ) -> None:
        self._config = config or SimilarityConfig()
        self._cache = cache if cache is not None else SimilarityCache()
        self._embeddings = embedding_provider
        self._judge = semantic_judge
        self._vector_search = vector_search
        self._vector_corpus = vector_corpus
        self._tfidf = TfidfScorer(self._cache)

    @property
    def cache(self) -> SimilarityCache:
        return self._cache

    async def embed(self, text: str) -> List[float]:
        """Memoized embedding; blank text and provider failures give ``[]``."""
        if self._embeddings is None or not (text or "").strip():
            return []
        key = hash_text(text)
        cached = self._cache.embeddings.get(key)
        if cached is not None:
            return cached
        try:
            vector = list(await self._embeddings.embed(text))
        except Exception as exc:
            LOGGER.warning("Embedding failed for %r: %s", text[:60], exc)
            return []
        self._cache.embeddings[key] = vector
        return vector

    async def embedding_similarity(self, first: str, second: str) -> float:
        vector_first, vector_second = await self.embed(first), await self.embed(second)
        return _cosine(vector_first, vector_second)

    async def semantic_score(self, first: str, second: str) -> float:
        """Judge score in [0, 1], memoized per pair; failures score 0 and are not cached."""
        if self._judge is None:
            if self._embeddings is not None:
                return max(0.0, await self.embedding_similarity(first, second))
            return lexical_similarity(first, second)

        key = pair_key(first, second)
        cached = self._cache.judge_scores.get(key)
        if cached is not None:
            return cached
        try:
            raw = float(await self._judge.judge_similarity(first, second))
        except Exception as exc:
            LOGGER.warning("Semantic judge failed: %s", exc)
            return 0.0
        score = 0.0 if math.isnan(raw) else min(1.0, max(0.0, raw))
        self._cache.judge_scores[key] = score
        return score

    def tfidf_similarity(self, first: str, second: str, corpus: Sequence[str]) -> float:
        return self._tfidf.similarity(first, second, self._tfidf.register_corpus(corpus))

    async def hybrid_match(
        self,
        sources: Sequence[ExtractedCourse],
        references: Sequence[CurriculumCourse],
        profile: Optional[FusionProfile] = None,
    ) -> MatchReport:
        profile = profile or FusionProfile.single_document(self._config)
        if not sources:
            return MatchReport.from_results([])
        if not references:
            return MatchReport.from_results([Unmatched(source, "No reference courses available") for source in sources])

        corpus_key = self._tfidf.register_corpus([ref.to_embedding_payload() for ref in references])
        candidates_by_source: List[List[_Candidate]] = []
        for source in sources:
            candidates_by_source.append(await self._prefilter(source, references, profile, corpus_key))

        pairs = _unique_pairs(
            (source.to_embedding_payload(), candidate.reference.to_embedding_payload())
            for source, candidates in zip(sources, candidates_by_source)
            for candidate in candidates
        )
        LOGGER.info(
            "Scoring %d candidate pairs for %d courses (%s profile)", len(pairs), len(sources), profile.name
        )
        semantic_scores = await self._in_batches([lambda a=a, b=b: self.semantic_score(a, b) for a, b in pairs])
        semantic_by_pair = {pair_key(a, b): score for (a, b), score in zip(pairs, semantic_scores)}

        results: List[MatchResult] = []
        for source, candidates in zip(sources, candidates_by_source):
            results.append(self._decide(source, candidates, semantic_by_pair, profile))
        report = MatchReport.from_results(results)
        LOGGER.info(
            "Hybrid matching finished: %d matched, %d unmatched", report.stats.matched, report.stats.unmatched
        )
        return report

    async def _prefilter(
        self,
        source: ExtractedCourse,
        references: Sequence[CurriculumCourse],
        profile: FusionProfile,
        corpus_key: str,
    ) -> List[_Candidate]:
        text = source.to_embedding_payload()
        vector_scores = await self._vector_scores(text, references, profile.top_k)

        candidates: List[_Candidate] = []
        for reference in references:
            tfidf = self._tfidf.similarity(text, reference.to_embedding_payload(), corpus_key)
            if vector_scores is None:
                if tfidf > self._config.tfidf_prefilter:
                    candidates.append(_Candidate(reference, tfidf, tfidf))
                continue
            vector = vector_scores.get(normalize_code(reference.code))
            if vector is not None and vector > self._config.vector_prefilter:
                candidates.append(_Candidate(reference, vector, tfidf))

        candidates.sort(key=lambda candidate: candidate.vector, reverse=True)
        return candidates[: profile.top_k]

    async def _vector_scores(
        self,
        text: str,
        references: Sequence[CurriculumCourse],
        limit: int,
    ) -> Optional[Dict[str, float]]:
        """Vector relevance per normalized reference code, or ``None`` without a vector signal."""
        if self._embeddings is None:
            return None
        query = await self.embed(text)
        if not query:
            return {}

        if self._vector_search is not None:
            try:
                hits = await self._vector_search.search(query, self._vector_corpus, limit)
            except Exception as exc:
                LOGGER.warning("Vector search failed: %s", exc)
                return {}
            return {normalize_code(code): min(1.0, max(0.0, float(score))) for code, score in hits}

        reference_vectors = await self._in_batches(
            [lambda ref=ref: self.embed(ref.to_embedding_payload()) for ref in references]
        )
        usable = [(ref, vector) for ref, vector in zip(references, reference_vectors) if vector]
        if not usable:
            return {}
        matrix = _normalize_vectors(np.array([vector for _, vector in usable], dtype=float))
        query_vector = _normalize_vectors(np.array([query], dtype=float))[0]
        similarities = matrix @ query_vector
        return {
            normalize_code(ref.code): max(0.0, float(score)) for (ref, _), score in zip(usable, similarities)
        }

    def _decide(
        self,
        source: ExtractedCourse,
        candidates: List[_Candidate],
        semantic_by_pair: Dict[str, float],
        profile: FusionProfile,
    ) -> MatchResult:
        if not candidates:
            return Unmatched(source, "No matching course found above the pre-filter threshold")

        text = source.to_embedding_payload()
        best: Optional[Tuple[_Candidate, ScoreBreakdown]] = None
        for candidate in candidates:
            semantic = semantic_by_pair.get(pair_key(text, candidate.reference.to_embedding_payload()), 0.0)
            final = profile.weights.fuse(candidate.vector, candidate.tfidf, semantic)
            breakdown = ScoreBreakdown(candidate.vector, candidate.tfidf, semantic, final)
            if best is None or final > best[1].final:
                best = (candidate, breakdown)

        candidate, breakdown = best
        target = candidate.reference
        if breakdown.final <= profile.final_threshold:
            return Unmatched(
                source,
                f"Low similarity score ({breakdown.final:.3f} < {profile.final_threshold})",
                CandidateHint(target.title, target.code, round(breakdown.final, 4)),
            )

        course = replace(
            source,
            code=source.code or target.code,
            credits=source.credits if source.credits is not None else target.credits,
        )
        return Matched(
            source=source,
            target=target,
            course=course,
            score=breakdown.final,
            match_type="hybrid",
            provenance=MatchProvenance(
                original_description=source.description,
                matched_title=target.title,
                matched_code=target.code,
                matched_description=target.description,
                match_score=breakdown.final,
                match_type="hybrid",
            ),
            breakdown=breakdown,
            highlights=matching_highlights(source.description, target.description, breakdown.final),
        )

    async def _in_batches(self, factories: List[Callable[[], Awaitable[T]]]) -> List[T]:
        """Run coroutine factories concurrently in fixed-size batches with a pause between batches."""
        size = max(1, self._config.batch_size)
        results: List[T] = []
        for start in range(0, len(factories), size):
            if start:
                await asyncio.sleep(self._config.batch_delay_seconds)
            batch = factories[start : start + size]
            results.extend(await asyncio.gather(*(factory() for factory in batch)))
        return results


def _unique_pairs(pairs) -> List[Tuple[str, str]]:
    seen = set()
    unique: List[Tuple[str, str]] = []
    for first, second in pairs:
        key = pair_key(first, second)
        if key not in seen:
            seen.add(key)
            unique.append((first, second))
    return unique


def _cosine(first: Sequence[float], second: Sequence[float]) -> float:
    if not first or not second or len(first) != len(second):
        return 0.0
    a = np.asarray(first, dtype=float)
    b = np.asarray(second, dtype=float)
    norms = np.linalg.norm(a) * np.linalg.norm(b)
    if norms == 0:
        return 0.0
    return float(a @ b / norms)


def _normalize_vectors(vectors: np.ndarray) -> np.ndarray:
    if vectors.size == 0:
        return vectors
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    norms = np.where(norms == 0, 1.0, norms)
    return vectors / norms
