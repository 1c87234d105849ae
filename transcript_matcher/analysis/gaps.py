from __future__ import annotations

import logging
from statistics import mean
from typing import List, Optional, Sequence, Set

from ..grading.grade_model import credit_weighted_gpa, normalize
from ..models.course import CurriculumCourse
from ..models.match import GapCourse, GapReport, Matched, Recommendation
from ..similarity.text import normalize_code

LOGGER = logging.getLogger("transcript_matcher.analysis")

STRONG_PERFORMANCE_GPA = 3.5
WEAK_PERFORMANCE_GPA = 2.5
EARLY_PROGRAM_SEMESTER = 4

CORE_GAPS_MESSAGE = "Focus on completing {count} required courses to meet curriculum requirements."
STRONG_PERFORMANCE_MESSAGE = "Your strong academic performance suggests you can handle challenging elective courses."
WEAK_PERFORMANCE_MESSAGE = "Consider strengthening foundational knowledge before taking advanced courses."
EARLY_PROGRAM_MESSAGE = "Early in your program - focus on building strong foundations."
LATE_PROGRAM_MESSAGE = "Advanced semester - consider specialized courses aligned with your interests."


def find_gaps(
    matched: Sequence[Matched],
    required_courses: Sequence[CurriculumCourse],
    target_semester: int,
) -> List[GapCourse]:
    covered: Set[str] = {normalize_code(item.target.code) for item in matched}
    gaps: List[GapCourse] = []
    for course in required_courses:
        if not course.is_required:
            continue
        if course.semester is not None and course.semester > target_semester:
            continue
        if normalize_code(course.code) in covered:
            continue
        gaps.append(GapCourse(course=course, priority="high"))
    return gaps


def mean_grade_point(matched: Sequence[Matched], institution: Optional[str] = None) -> Optional[float]:
    values = [normalize(item.course.grade, institution) for item in matched]
    points = [result.numeric_value for result in values if result.is_valid]
    if not points:
        return None
    return round(mean(points), 2)


def build_recommendations(
    gaps: Sequence[GapCourse],
    target_semester: int,
    grade_point: Optional[float],
) -> List[Recommendation]:
    recommendations: List[Recommendation] = []
    high = [gap.course for gap in gaps if gap.priority == "high"]
    medium = [gap.course for gap in gaps if gap.priority == "medium"]
    all_gaps = [gap.course for gap in gaps]

    if high:
        recommendations.append(Recommendation("core", CORE_GAPS_MESSAGE.format(count=len(high)), high))

    if grade_point is not None and grade_point >= STRONG_PERFORMANCE_GPA:
        recommendations.append(Recommendation("elective", STRONG_PERFORMANCE_MESSAGE, medium))
    elif grade_point is not None and grade_point < WEAK_PERFORMANCE_GPA:
        recommendations.append(Recommendation("prerequisite", WEAK_PERFORMANCE_MESSAGE, medium[:3]))

    if target_semester <= EARLY_PROGRAM_SEMESTER:
        recommendations.append(Recommendation("core", EARLY_PROGRAM_MESSAGE, all_gaps[:5]))
    else:
        recommendations.append(Recommendation("elective", LATE_PROGRAM_MESSAGE, all_gaps[:3]))
    return recommendations


def analyze_gaps(
    matched: Sequence[Matched],
    required_courses: Sequence[CurriculumCourse],
    target_semester: int,
    institution: Optional[str] = None,
) -> GapReport:
    """Required courses not covered by any match, with template recommendations."""
    gaps = find_gaps(matched, required_courses, target_semester)
    grade_point = mean_grade_point(matched, institution)
    recommendations = build_recommendations(gaps, target_semester, grade_point)
    LOGGER.info(
        "Found %d gaps (%d high priority) for semester %d",
        len(gaps),
        sum(1 for gap in gaps if gap.priority == "high"),
        target_semester,
    )
    return GapReport(
        gaps=gaps,
        recommendations=recommendations,
        mean_grade_point=grade_point,
        gpa=credit_weighted_gpa([item.course for item in matched], institution),
    )
