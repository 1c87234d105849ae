from __future__ import annotations

import logging
import re
from typing import List, Optional, Set

from ..models.course import CurriculumCourse
from .descriptions import generate_basic_description
from .patterns import CURRICULUM_PATTERNS, PAREN_CREDITS, find_course_code, find_credits, iter_matches
from .preprocess import preprocess_text

LOGGER = logging.getLogger("transcript_matcher.extraction")

REQUIRED_TAGS = frozenset({"required", "core"})

_SEMESTER_MARKER = re.compile(r"^(?:semester|sem|term)\s*(\d+)\s*:?$", re.IGNORECASE)
_CORE_HEADING = re.compile(r"^(?:core|required|compulsory)\s+courses?\s*:?$", re.IGNORECASE)
_ELECTIVE_HEADING = re.compile(r"^(?:open\s+|program\s+)?electives?(?:\s+courses?)?\s*:?$", re.IGNORECASE)
_CREDITS_SUFFIX = re.compile(PAREN_CREDITS + r"|\[(?:Required|Core|Elective)\]", re.IGNORECASE)


def extract_curriculum_courses(raw_text: str, min_alnum_ratio: float = 0.2) -> List[CurriculumCourse]:
    """Extract reference courses from a curriculum document.

    ``Semester N`` lines and ``Core Courses`` / ``Electives`` headings set the
    semester and required flag for the lines that follow them; inline
    ``Semester N:`` prefixes and ``[Required|Core|Elective]`` tags win over the
    section defaults. Lines without a recoverable code get ``CURR-<n>``.
    """
    courses: List[CurriculumCourse] = []
    seen_codes: Set[str] = set()
    semester: Optional[int] = None
    default_required = True

    for line in preprocess_text(raw_text, min_alnum_ratio):
        text = line.text
        marker = _SEMESTER_MARKER.match(text)
        if marker:
            semester = int(marker.group(1))
            continue
        if _CORE_HEADING.match(text):
            default_required = True
            continue
        if _ELECTIVE_HEADING.match(text):
            default_required = False
            continue

        course = _parse_curriculum_line(text, len(courses) + 1, semester, default_required)
        if course is None:
            LOGGER.debug("No curriculum course in line: %s", text)
            continue
        code_key = course.code.replace(" ", "").upper()
        if code_key in seen_codes:
            continue
        seen_codes.add(code_key)
        courses.append(course)

    LOGGER.info("Extracted %d curriculum courses", len(courses))
    return courses


def _parse_curriculum_line(
    text: str,
    position: int,
    semester: Optional[int],
    default_required: bool,
) -> Optional[CurriculumCourse]:
    for pattern, groups in iter_matches(text, CURRICULUM_PATTERNS):
        title = _clean(groups.get("title") or "")
        if len(title) < 4:
            continue
        LOGGER.debug("Curriculum pattern %s matched line: %s", pattern.name, text)
        tag = groups.get("tag")
        credits = groups.get("credits")
        line_semester = groups.get("semester")
        return CurriculumCourse(
            code=(groups.get("code") or f"CURR-{position}").strip(),
            title=title,
            description=generate_basic_description(title),
            credits=float(credits) if credits else None,
            is_required=tag.lower() in REQUIRED_TAGS if tag else default_required,
            semester=int(line_semester) if line_semester else semester,
        )

    code = find_course_code(text)
    if not code:
        return None
    title = _clean(_CREDITS_SUFFIX.sub(" ", text.replace(code, " ", 1)))
    if len(title) < 4:
        return None
    return CurriculumCourse(
        code=code,
        title=title,
        description=generate_basic_description(title),
        credits=find_credits(text),
        is_required=default_required,
        semester=semester,
    )


def _clean(title: str) -> str:
    return re.sub(r"\s+", " ", title).strip(" -:|\t")
