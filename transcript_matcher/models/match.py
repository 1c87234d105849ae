from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

from .course import CurriculumCourse, ExtractedCourse

MatchType = Literal["exact_code", "exact_title", "fuzzy_title", "partial_match", "hybrid", "no_match"]
MatchMode = Literal["matching", "verification"]
Priority = Literal["high", "medium", "low"]
RecommendationType = Literal["core", "elective", "prerequisite"]


@dataclass(slots=True)
class MatchCandidate:
    source: ExtractedCourse
    target: CurriculumCourse
    score: float
    match_type: MatchType


@dataclass(slots=True)
class ScoreBreakdown:
    vector: float
    tfidf: float
    semantic: float
    final: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "vector": round(self.vector, 4),
            "tfidf": round(self.tfidf, 4),
            "semantic": round(self.semantic, 4),
            "final": round(self.final, 4),
        }


@dataclass(slots=True)
class MatchProvenance:
    original_description: str
    matched_title: str
    matched_code: str
    matched_description: str
    match_score: float
    match_type: MatchType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_description": self.original_description,
            "matched_title": self.matched_title,
            "matched_code": self.matched_code,
            "matched_description": self.matched_description,
            "match_score": self.match_score,
            "match_type": self.match_type,
        }


@dataclass(slots=True)
class Matched:
    source: ExtractedCourse
    target: CurriculumCourse
    course: ExtractedCourse
    score: float
    match_type: MatchType
    provenance: MatchProvenance
    breakdown: Optional[ScoreBreakdown] = None
    highlights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "matched",
            "course": self.course.to_dict(),
            "target_code": self.target.code,
            "score": self.score,
            "match_type": self.match_type,
            "provenance": self.provenance.to_dict(),
            "breakdown": self.breakdown.to_dict() if self.breakdown else None,
            "highlights": list(self.highlights),
        }


@dataclass(slots=True)
class CandidateHint:
    title: str
    code: str
    similarity: float


@dataclass(slots=True)
class Unmatched:
    source: ExtractedCourse
    reason: str
    best_candidate: Optional[CandidateHint] = None

    def to_dict(self) -> Dict[str, Any]:
        hint = None
        if self.best_candidate:
            hint = {
                "title": self.best_candidate.title,
                "code": self.best_candidate.code,
                "similarity": self.best_candidate.similarity,
            }
        return {
            "status": "unmatched",
            "course": self.source.to_dict(),
            "reason": self.reason,
            "best_candidate": hint,
        }


MatchResult = Union[Matched, Unmatched]


@dataclass(slots=True)
class MatchStats:
    total: int
    matched: int
    unmatched: int
    rate: float

    @staticmethod
    def from_counts(matched: int, unmatched: int) -> "MatchStats":
        total = matched + unmatched
        return MatchStats(total, matched, unmatched, matched / total if total else 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "matched": self.matched,
            "unmatched": self.unmatched,
            "rate": self.rate,
        }


@dataclass(slots=True)
class MatchReport:
    matched: List[Matched]
    unmatched: List[Unmatched]
    stats: MatchStats

    @staticmethod
    def from_results(results: List[MatchResult]) -> "MatchReport":
        matched = [item for item in results if isinstance(item, Matched)]
        unmatched = [item for item in results if isinstance(item, Unmatched)]
        return MatchReport(matched, unmatched, MatchStats.from_counts(len(matched), len(unmatched)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched": [item.to_dict() for item in self.matched],
            "unmatched": [item.to_dict() for item in self.unmatched],
            "stats": self.stats.to_dict(),
        }


@dataclass(slots=True)
class GapCourse:
    course: CurriculumCourse
    priority: Priority

    def to_dict(self) -> Dict[str, Any]:
        record = self.course.to_dict()
        record["priority"] = self.priority
        return record


@dataclass(slots=True)
class Recommendation:
    type: RecommendationType
    message: str
    courses: List[CurriculumCourse] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "message": self.message,
            "courses": [course.code for course in self.courses],
        }


@dataclass(slots=True)
class CourseChallenge:
    """Expected difficulty of an upcoming course given the courses already taken."""

    course: CurriculumCourse
    difficulty: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.course.code,
            "title": self.course.title,
            "department": self.course.department,
            "semester": self.course.semester,
            "difficulty": self.difficulty,
            "reason": self.reason,
        }


@dataclass(slots=True)
class GapReport:
    gaps: List[GapCourse]
    recommendations: List[Recommendation]
    mean_grade_point: Optional[float] = None
    gpa: Optional[float] = None
    future_challenges: List[CourseChallenge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gaps": [gap.to_dict() for gap in self.gaps],
            "recommendations": [item.to_dict() for item in self.recommendations],
            "mean_grade_point": self.mean_grade_point,
            "gpa": self.gpa,
            "future_challenges": [item.to_dict() for item in self.future_challenges],
        }
