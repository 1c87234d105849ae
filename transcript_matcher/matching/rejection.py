from __future__ import annotations

import re
from typing import Optional

from ..grading.grade_model import GradeModel
from ..models.course import ExtractedCourse

MIN_VALID_TITLE_LENGTH = 5

NON_COURSE_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^(?:page|p\.?)\s*\d+",
        r"^(?:semester|sem)\s*\d+",
        r"^(?:year|yr)\s*\d+",
        r"^(?:total|sum|grand)\b",
        r"^(?:credits?|units?|hours?)\s*:",
        r"^(?:gpa|grade point)\b",
        r"^(?:transcript|record|report)\b",
        r"^(?:student|name|id)\b",
        r"^(?:university|college|school)\b",
        r"^(?:date|issued|printed)\b",
        r"^\d+\.\d+$",
        r"^[a-z]\s*$",
        r"^(?:and|or|the|of|in|on|at|to|for|with|by)$",
    )
]

INVALID_PATTERNS = [
    re.compile(r"^\d+$"),
    re.compile(r"^[A-Z]\s*$"),
    re.compile(r"^\.+$"),
    re.compile(r"^-+$"),
    re.compile(r"^\s*$"),
    re.compile(r"^(?:tech|comp|sci|math|eng)\s+(?:in|and|or|of)\s+", re.IGNORECASE),
]

NON_COURSE_REASON = "Appears to be non-course content (header, metadata, etc.)"
TOO_SHORT_REASON = "Course title too short to be valid"
INVALID_FORMAT_REASON = "Contains invalid patterns or formatting"
NO_MATCH_REASON = "No matching course found in the reference list"


def invalid_grade_reason(grade: str) -> str:
    return f'Invalid grade "{grade}" - this grade type is not accepted'


def low_similarity_reason(score: float, threshold: float) -> str:
    return f"Low similarity score ({score:.3f} < {threshold})"


def is_non_course_content(title: str) -> bool:
    lowered = title.strip().lower()
    return any(pattern.search(lowered) for pattern in NON_COURSE_PATTERNS)


def contains_invalid_patterns(title: str) -> bool:
    return any(pattern.search(title) for pattern in INVALID_PATTERNS)


def screen(course: ExtractedCourse, grade_model: GradeModel) -> Optional[str]:
    """Reason to reject a course before any similarity is computed, if there is one."""
    if not grade_model.normalize(course.grade).is_valid:
        return invalid_grade_reason(course.grade)
    if is_non_course_content(course.title):
        return NON_COURSE_REASON
    return None


def unmatched_reason(title: str, best_score: Optional[float], threshold: float) -> str:
    """Rejection reason once every match tier has failed, most specific first."""
    if len(title.strip()) < MIN_VALID_TITLE_LENGTH:
        return TOO_SHORT_REASON
    if contains_invalid_patterns(title):
        return INVALID_FORMAT_REASON
    if best_score is not None and best_score > 0:
        return low_similarity_reason(best_score, threshold)
    return NO_MATCH_REASON
