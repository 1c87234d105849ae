from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional

LOGGER = logging.getLogger("transcript_matcher.grading")

MAX_GRADE_POINT = 4.3
DEFAULT_CREDITS = 3.0

GRADE_VALUES: Dict[str, float] = {
    "A+": 4.3, "A": 4.0, "A-": 3.7,
    "B+": 3.3, "B": 3.0, "B-": 2.7,
    "C+": 2.3, "C": 2.0, "C-": 1.7,
    "D+": 1.3, "D": 1.0, "D-": 0.7,
    "F": 0.0, "P": 4.0, "U": 0.0, "I": 0.0, "W": 0.0,
}

# Grades that are recognised but never accepted, whatever the institution.
REJECTED_GRADES = frozenset({"S"})

# Ordered (floor, letter) bands used to turn a grade point back into a letter.
LETTER_BANDS = (
    (3.7, "A"), (3.3, "B+"), (3.0, "B"), (2.7, "B-"),
    (2.3, "C+"), (2.0, "C"), (1.7, "C-"), (1.3, "D+"),
    (1.0, "D"), (0.7, "D-"),
)

_NUMERIC_GRADE = re.compile(r"^\d+(?:\.\d+)?$")
_LETTER_GRADE = re.compile(r"^([A-DFPIWUS])\s*([+-])?$")
_PARENTHETICAL = re.compile(r"^([A-DFPIWUS]\s*[+-]?)\s*\(.*\)$")


@dataclass(frozen=True)
class GradeConfig:
    institution: str
    grade_values: Mapping[str, float]


INSTITUTION_GRADE_CONFIGS: Dict[str, GradeConfig] = {
    "default": GradeConfig("default", GRADE_VALUES),
    "plaksha": GradeConfig("plaksha", dict(GRADE_VALUES)),
}


@dataclass(frozen=True, slots=True)
class GradeResult:
    normalized_grade: str
    numeric_value: float
    is_valid: bool


def grade_config(institution: Optional[str] = None) -> GradeConfig:
    """Resolve an institution key, falling back to the default table."""
    return INSTITUTION_GRADE_CONFIGS.get((institution or "default").lower(), INSTITUTION_GRADE_CONFIGS["default"])


def canonical_grade(grade: str) -> str:
    """Collapse spacing and annotation variants (``b +``, ``A (A)``) onto a canonical token."""
    clean = grade.strip().upper()
    parenthetical = _PARENTHETICAL.match(clean)
    if parenthetical:
        clean = parenthetical.group(1)
    letter = _LETTER_GRADE.match(clean)
    if letter:
        return letter.group(1) + (letter.group(2) or "")
    return clean


def normalize(grade: str, institution: Optional[str] = None) -> GradeResult:
    config = grade_config(institution)
    clean = (grade or "").strip().upper()

    if _NUMERIC_GRADE.match(clean):
        value = float(clean)
        if 0.0 <= value <= MAX_GRADE_POINT:
            LOGGER.debug("Numeric grade %s for institution %s", clean, config.institution)
            return GradeResult(clean, value, value > 0)
        return GradeResult(clean, 0.0, False)

    token = canonical_grade(clean)
    if token in REJECTED_GRADES:
        LOGGER.debug("Rejecting reserved grade %r", grade)
        return GradeResult(token, 0.0, False)

    if token not in config.grade_values:
        LOGGER.debug("Unrecognised grade %r", grade)
        return GradeResult(token, 0.0, False)

    value = float(config.grade_values[token])
    LOGGER.debug("Normalized grade %r -> %s (%.1f)", grade, token, value)
    return GradeResult(token, value, value > 0 or token == "P")


def meets_threshold(grade: str, threshold: str, institution: Optional[str] = None) -> bool:
    return normalize(grade, institution).numeric_value >= normalize(threshold, institution).numeric_value


def to_letter(value: float) -> str:
    for floor, letter in LETTER_BANDS:
        if value >= floor:
            return letter
    return "F"


def credit_weighted_gpa(courses: Iterable, institution: Optional[str] = None) -> Optional[float]:
    """Credit-weighted grade point average over courses exposing ``grade`` and ``credits``.

    Courses without credits count as ``DEFAULT_CREDITS``; invalid grades are skipped.
    Returns ``None`` when nothing qualifies.
    """
    total_points = 0.0
    total_credits = 0.0
    for course in courses:
        result = normalize(course.grade, institution)
        if not result.is_valid:
            continue
        credits = course.credits if course.credits else DEFAULT_CREDITS
        total_points += result.numeric_value * credits
        total_credits += credits
    if total_credits == 0:
        return None
    return round(total_points / total_credits, 2)


class GradeModel:
    """Grade normalization bound to one institution and acceptance threshold."""

    def __init__(self, institution: str = "default", threshold: str = "D") -> None:
        self._config = grade_config(institution)
        self._threshold = threshold

    @property
    def institution(self) -> str:
        return self._config.institution

    @property
    def threshold(self) -> str:
        return self._threshold

    def normalize(self, grade: str) -> GradeResult:
        return normalize(grade, self._config.institution)

    def accepts(self, grade: str) -> bool:
        """Valid and at or above the configured threshold."""
        result = self.normalize(grade)
        return result.is_valid and meets_threshold(grade, self._threshold, self._config.institution)

    def meets_threshold(self, grade: str, threshold: Optional[str] = None) -> bool:
        return meets_threshold(grade, threshold or self._threshold, self._config.institution)
