import asyncio

import pytest

from conftest import make_course
from transcript_matcher.models.course import CurriculumCourse
from transcript_matcher.models.match import Matched, Unmatched
from transcript_matcher.settings import SimilarityConfig
from transcript_matcher.similarity.engine import (
    DUAL_DOCUMENT_WEIGHTS,
    SINGLE_DOCUMENT_WEIGHTS,
    FusionProfile,
    SimilarityEngine,
)

FAST = SimilarityConfig(batch_delay_seconds=0.0)


def data_structures_course():
    return make_course(
        "Data Structures",
        description="Data structures course covering lists trees graphs and hashing",
    )


class CountingJudge:
    def __init__(self, score=0.9):
        self.score = score
        self.calls = 0
        self.active = 0
        self.peak = 0

    async def judge_similarity(self, first, second):
        self.calls += 1
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0)
        self.active -= 1
        return self.score


class FailingJudge:
    def __init__(self):
        self.calls = 0

    async def judge_similarity(self, first, second):
        self.calls += 1
        raise RuntimeError("rate limited")


class KeywordEmbedder:
    """Two-dimensional embeddings: texts mentioning data point one way, the rest the other."""

    def __init__(self, vector=None):
        self.vector = vector
        self.calls = 0

    async def embed(self, text):
        self.calls += 1
        if self.vector is not None:
            return list(self.vector)
        return [1.0, 0.0] if "data" in text.lower() else [0.0, 1.0]


class BrokenEmbedder:
    async def embed(self, text):
        raise ConnectionError("model offline")


class StaticVectorSearch:
    def __init__(self, hits):
        self.hits = hits
        self.requests = []

    async def search(self, query_vector, corpus_key, limit):
        self.requests.append((corpus_key, limit))
        return list(self.hits)


class TestFusion:
    def test_weights_sum_to_one(self):
        assert SINGLE_DOCUMENT_WEIGHTS.fuse(1, 1, 1) == pytest.approx(1.0)
        assert DUAL_DOCUMENT_WEIGHTS.fuse(1, 1, 1) == pytest.approx(1.0)

    def test_dual_profile_favours_semantic(self):
        assert DUAL_DOCUMENT_WEIGHTS.fuse(0, 0, 1) > SINGLE_DOCUMENT_WEIGHTS.fuse(0, 0, 1)

    def test_profiles_from_config(self):
        config = SimilarityConfig(single_top_k=3, dual_final_threshold=0.5)
        assert FusionProfile.single_document(config).top_k == 3
        assert FusionProfile.dual_document(config).final_threshold == 0.5
        assert FusionProfile.dual_document().top_k == 5


class TestSemanticScore:
    def test_judge_score_is_memoized(self):
        judge = CountingJudge(0.7)
        engine = SimilarityEngine(FAST, semantic_judge=judge)

        async def run():
            first = await engine.semantic_score("Data Structures", "Data Structures and Algorithms")
            second = await engine.semantic_score("data structures", "Data Structures and Algorithms!")
            return first, second

        assert asyncio.run(run()) == (0.7, 0.7)
        assert judge.calls == 1

    def test_failure_scores_zero_and_is_not_cached(self):
        judge = FailingJudge()
        engine = SimilarityEngine(FAST, semantic_judge=judge)

        assert asyncio.run(engine.semantic_score("a course", "another course")) == 0.0
        assert asyncio.run(engine.semantic_score("a course", "another course")) == 0.0
        assert judge.calls == 2
        assert engine.cache.judge_scores == {}

    def test_nan_and_out_of_range_are_clamped(self):
        assert asyncio.run(SimilarityEngine(FAST, semantic_judge=CountingJudge(float("nan"))).semantic_score("x", "y")) == 0.0
        assert asyncio.run(SimilarityEngine(FAST, semantic_judge=CountingJudge(1.7)).semantic_score("x", "y")) == 1.0

    def test_without_judge_falls_back_to_lexical(self):
        engine = SimilarityEngine(FAST)
        score = asyncio.run(engine.semantic_score("Computer Sci Fundamentals", "Computer Science Fundamentals"))
        assert score == pytest.approx(0.6)

    def test_without_judge_uses_embeddings_when_available(self):
        engine = SimilarityEngine(FAST, embedding_provider=KeywordEmbedder())
        assert asyncio.run(engine.semantic_score("data mining", "big data")) == pytest.approx(1.0)
        assert asyncio.run(engine.semantic_score("data mining", "poetry")) == pytest.approx(0.0)


class TestEmbed:
    def test_embeddings_are_memoized(self):
        embedder = KeywordEmbedder()
        engine = SimilarityEngine(FAST, embedding_provider=embedder)

        asyncio.run(engine.embed("Data Structures"))
        asyncio.run(engine.embed("data structures"))

        assert embedder.calls == 1

    def test_blank_text_skips_provider(self):
        embedder = KeywordEmbedder()
        engine = SimilarityEngine(FAST, embedding_provider=embedder)
        assert asyncio.run(engine.embed("   ")) == []
        assert embedder.calls == 0

    def test_provider_failure_returns_empty(self):
        engine = SimilarityEngine(FAST, embedding_provider=BrokenEmbedder())
        assert asyncio.run(engine.embed("Data Structures")) == []
        assert engine.cache.embeddings == {}


class TestHybridMatch:
    def test_tfidf_prefilter_then_judge(self, catalog):
        judge = CountingJudge(0.9)
        engine = SimilarityEngine(FAST, semantic_judge=judge)

        report = asyncio.run(engine.hybrid_match([data_structures_course()], catalog))

        assert report.stats.matched == 1
        match = report.matched[0]
        assert isinstance(match, Matched)
        assert match.target.code == "CS201"
        assert match.match_type == "hybrid"
        assert match.course.code == "CS201"
        assert match.course.credits == 3
        assert match.breakdown.vector == match.breakdown.tfidf
        assert match.breakdown.semantic == 0.9
        assert match.score == pytest.approx(SINGLE_DOCUMENT_WEIGHTS.fuse(match.breakdown.vector, match.breakdown.tfidf, 0.9))
        assert judge.calls == 1

    def test_duplicate_pairs_are_judged_once(self, catalog):
        judge = CountingJudge(0.9)
        engine = SimilarityEngine(FAST, semantic_judge=judge)

        report = asyncio.run(engine.hybrid_match([data_structures_course(), data_structures_course()], catalog))
        asyncio.run(engine.hybrid_match([data_structures_course()], catalog))

        assert report.stats.matched == 2
        assert judge.calls == 1

    def test_judge_failure_still_fuses_other_signals(self, catalog):
        engine = SimilarityEngine(FAST, semantic_judge=FailingJudge())

        report = asyncio.run(engine.hybrid_match([data_structures_course()], catalog))

        assert report.matched[0].breakdown.semantic == 0.0
        assert engine.cache.judge_scores == {}

    def test_low_final_score_is_unmatched_with_hint(self, catalog):
        engine = SimilarityEngine(FAST, semantic_judge=CountingJudge(0.0))
        strict = FusionProfile("strict", SINGLE_DOCUMENT_WEIGHTS, 10, 0.9)

        report = asyncio.run(engine.hybrid_match([data_structures_course()], catalog, strict))

        unmatched = report.unmatched[0]
        assert isinstance(unmatched, Unmatched)
        assert unmatched.reason.startswith("Low similarity score")
        assert unmatched.best_candidate.code == "CS201"

    def test_unrelated_course_fails_prefilter(self, catalog):
        judge = CountingJudge()
        engine = SimilarityEngine(FAST, semantic_judge=judge)
        pottery = make_course("Pottery Workshop", description="Hands-on ceramics wheel throwing")

        report = asyncio.run(engine.hybrid_match([pottery], catalog))

        assert report.unmatched[0].reason == "No matching course found above the pre-filter threshold"
        assert judge.calls == 0

    def test_embedding_prefilter(self, catalog):
        engine = SimilarityEngine(FAST, embedding_provider=KeywordEmbedder())

        report = asyncio.run(engine.hybrid_match([data_structures_course()], catalog))

        match = report.matched[0]
        assert match.target.code == "CS201"
        assert match.breakdown.vector == pytest.approx(1.0)
        assert match.breakdown.semantic == pytest.approx(1.0)

    def test_vector_search_supplies_candidates(self, catalog):
        search = StaticVectorSearch([("CS 201", 0.8)])
        engine = SimilarityEngine(FAST, embedding_provider=KeywordEmbedder(), vector_search=search)

        report = asyncio.run(engine.hybrid_match([data_structures_course()], catalog))

        assert report.matched[0].target.code == "CS201"
        assert report.matched[0].breakdown.vector == pytest.approx(0.8)
        assert search.requests == [("curriculum", 10)]

    def test_judge_calls_are_batched(self):
        references = [
            CurriculumCourse(f"CS{100 + i}", f"Data Structures Section {100 + i}", f"Section {100 + i} of data structures.")
            for i in range(25)
        ]
        judge = CountingJudge(0.5)
        config = SimilarityConfig(batch_size=10, batch_delay_seconds=0.0, single_top_k=30)
        engine = SimilarityEngine(config, embedding_provider=KeywordEmbedder([1.0, 0.0]), semantic_judge=judge)

        asyncio.run(engine.hybrid_match([data_structures_course()], references))

        assert judge.calls == 25
        assert judge.peak == 10

    def test_empty_inputs(self, catalog):
        engine = SimilarityEngine(FAST)
        assert asyncio.run(engine.hybrid_match([], catalog)).stats.total == 0

        report = asyncio.run(engine.hybrid_match([data_structures_course()], []))
        assert report.unmatched[0].reason == "No reference courses available"
