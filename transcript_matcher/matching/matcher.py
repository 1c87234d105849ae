from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from ..grading.grade_model import GradeModel
from ..models.course import CurriculumCourse, ExtractedCourse
from ..models.match import (
    CandidateHint,
    MatchCandidate,
    Matched,
    MatchMode,
    MatchProvenance,
    MatchReport,
    MatchResult,
    MatchType,
    Unmatched,
)
from ..similarity.text import keyword_similarity, keywords, lexical_similarity, normalize_code, normalize_text
from .rejection import screen, unmatched_reason

LOGGER = logging.getLogger("transcript_matcher.matching")

EXACT_CODE_SCORE = 1.0
EXACT_TITLE_SCORE = 0.95
PARTIAL_FACTORS = {"matching": 0.7, "verification": 0.8}


class CourseMatcher:
    """Tiered matcher: exact code, exact title, fuzzy title, keyword overlap, reject.

    In ``matching`` mode a matched course takes the reference description and
    keeps its own in the provenance record. In ``verification`` mode the
    source record is returned unchanged.
    """

    def __init__(
        self,
        threshold: float = 0.3,
        mode: MatchMode = "matching",
        grade_model: Optional[GradeModel] = None,
    ) -> None:
        if mode not in PARTIAL_FACTORS:
            raise ValueError(f"Unknown match mode: {mode}")
        self._threshold = threshold
        self._mode = mode
        self._grades = grade_model or GradeModel()

    def match(self, sources: Sequence[ExtractedCourse], references: Sequence[CurriculumCourse]) -> MatchReport:
        results = [self.match_one(source, references) for source in sources]
        report = MatchReport.from_results(results)
        LOGGER.info(
            "Matched %d/%d courses (%.1f%%) in %s mode",
            report.stats.matched,
            report.stats.total,
            report.stats.rate * 100,
            self._mode,
        )
        return report

    def match_one(self, source: ExtractedCourse, references: Sequence[CurriculumCourse]) -> MatchResult:
        rejection = screen(source, self._grades)
        if rejection:
            LOGGER.debug("Rejected %r before matching: %s", source.title, rejection)
            return Unmatched(source, rejection)

        candidate = self._find_candidate(source, references)
        if candidate is not None:
            return self._accept(candidate)

        best = _best_by(references, lambda ref: lexical_similarity(source.title, ref.title))
        hint = None
        best_score = None
        if best is not None:
            target, best_score = best
            hint = CandidateHint(target.title, target.code, round(best_score, 4))
        reason = unmatched_reason(source.title, best_score, self._threshold)
        LOGGER.debug("No match for %r: %s", source.title, reason)
        return Unmatched(source, reason, hint)

    def _find_candidate(
        self, source: ExtractedCourse, references: Sequence[CurriculumCourse]
    ) -> Optional[MatchCandidate]:
        if source.code:
            code = normalize_code(source.code)
            for reference in references:
                if normalize_code(reference.code) == code:
                    return MatchCandidate(source, reference, EXACT_CODE_SCORE, "exact_code")

        title = normalize_text(source.title)
        for reference in references:
            if title and normalize_text(reference.title) == title:
                return MatchCandidate(source, reference, EXACT_TITLE_SCORE, "exact_title")

        fuzzy = _best_by(references, lambda ref: lexical_similarity(source.title, ref.title))
        if fuzzy is not None and fuzzy[1] >= self._threshold:
            return MatchCandidate(source, fuzzy[0], fuzzy[1], "fuzzy_title")

        # a title made only of filler words would match every other such title
        if keywords(source.title):
            partial = _best_by(references, lambda ref: keyword_similarity(source.title, ref.title))
            if partial is not None and partial[1] >= self._threshold * PARTIAL_FACTORS[self._mode]:
                return MatchCandidate(source, partial[0], partial[1], "partial_match")
        return None

    def _accept(self, candidate: MatchCandidate) -> Matched:
        source, target = candidate.source, candidate.target
        if self._mode == "matching":
            course = replace(
                source,
                description=target.description,
                credits=source.credits if source.credits is not None else target.credits,
                code=source.code or target.code,
            )
        else:
            course = source
        LOGGER.debug(
            "Matched %r -> %s (%s, %.3f)", source.title, target.code, candidate.match_type, candidate.score
        )
        return Matched(
            source=source,
            target=target,
            course=course,
            score=candidate.score,
            match_type=candidate.match_type,
            provenance=_provenance(source, target, candidate.score, candidate.match_type),
        )


def _best_by(references, scorer) -> Optional[Tuple[CurriculumCourse, float]]:
    best: Optional[Tuple[CurriculumCourse, float]] = None
    for reference in references:
        score = scorer(reference)
        if best is None or score > best[1]:
            best = (reference, score)
    return best


def _provenance(
    source: ExtractedCourse, target: CurriculumCourse, score: float, match_type: MatchType
) -> MatchProvenance:
    return MatchProvenance(
        original_description=source.description,
        matched_title=target.title,
        matched_code=target.code,
        matched_description=target.description,
        match_score=score,
        match_type=match_type,
    )


def match_by_code(sources: Sequence[ExtractedCourse], references: Sequence[CurriculumCourse]) -> MatchReport:
    """Exact-code matching only; the fallback when scored matching finds nothing."""
    by_code = {normalize_code(reference.code): reference for reference in references}
    results: List[MatchResult] = []
    for source in sources:
        target = by_code.get(normalize_code(source.code)) if source.code else None
        if target is None:
            results.append(Unmatched(source, unmatched_reason(source.title, None, 1.0)))
            continue
        results.append(
            Matched(
                source=source,
                target=target,
                course=replace(source, credits=source.credits if source.credits is not None else target.credits),
                score=EXACT_CODE_SCORE,
                match_type="exact_code",
                provenance=_provenance(source, target, EXACT_CODE_SCORE, "exact_code"),
            )
        )
    return MatchReport.from_results(results)


def match_to_reference(
    sources: Sequence[ExtractedCourse],
    references: Sequence[CurriculumCourse],
    threshold: float = 0.3,
    mode: MatchMode = "matching",
    institution: str = "default",
) -> MatchReport:
    return CourseMatcher(threshold, mode, GradeModel(institution)).match(sources, references)
