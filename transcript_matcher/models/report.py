from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from .course import CurriculumCourse, ExtractedCourse
from .match import GapReport, MatchReport


@dataclass(slots=True)
class AnalysisReport:
    target_semester: int
    profile: str
    extracted: List[ExtractedCourse]
    curriculum: List[CurriculumCourse]
    curriculum_match: Optional[MatchReport]
    catalog_match: MatchReport
    gap_report: GapReport

    def summary(self) -> Dict[str, Any]:
        return {
            "target_semester": self.target_semester,
            "profile": self.profile,
            "extracted_courses": len(self.extracted),
            "curriculum_courses": len(self.curriculum),
            "curriculum_match": self.curriculum_match.stats.to_dict() if self.curriculum_match else None,
            "catalog_match": self.catalog_match.stats.to_dict(),
            "gaps": len(self.gap_report.gaps),
            "mean_grade_point": self.gap_report.mean_grade_point,
            "gpa": self.gap_report.gpa,
            "future_challenges": len(self.gap_report.future_challenges),
        }

    def as_records(self) -> Iterator[Dict[str, Any]]:
        """Flat records for JSON-lines output, summary first."""
        yield {"record_type": "summary", **self.summary()}
        for course in self.extracted:
            yield {"record_type": "extracted_course", **course.to_dict()}
        for item in self.catalog_match.matched:
            yield {"record_type": "match", **item.to_dict()}
        for item in self.catalog_match.unmatched:
            yield {"record_type": "match", **item.to_dict()}
        for gap in self.gap_report.gaps:
            yield {"record_type": "gap", **gap.to_dict()}
        for recommendation in self.gap_report.recommendations:
            yield {"record_type": "recommendation", **recommendation.to_dict()}
        for challenge in self.gap_report.future_challenges:
            yield {"record_type": "future_challenge", **challenge.to_dict()}
