from .course import CurriculumCourse, ExtractedCourse
from .match import (
    CandidateHint,
    GapCourse,
    GapReport,
    MatchCandidate,
    Matched,
    MatchProvenance,
    MatchReport,
    MatchResult,
    MatchStats,
    Recommendation,
    ScoreBreakdown,
    Unmatched,
)

__all__ = [
    "CandidateHint",
    "CurriculumCourse",
    "ExtractedCourse",
    "GapCourse",
    "GapReport",
    "MatchCandidate",
    "Matched",
    "MatchProvenance",
    "MatchReport",
    "MatchResult",
    "MatchStats",
    "Recommendation",
    "ScoreBreakdown",
    "Unmatched",
]
