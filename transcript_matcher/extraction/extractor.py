from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Iterable, List, Optional, Set, Tuple

from ..grading.grade_model import GradeModel
from ..interfaces import CandidateExtractor
from ..models.course import ExtractedCourse
from ..settings import ExtractionConfig
from ..similarity.text import normalize_code
from .descriptions import generate_basic_description
from .patterns import TRANSCRIPT_PATTERNS, find_course_code, iter_matches
from .preprocess import RawLine, mask_pii, preprocess_text

LOGGER = logging.getLogger("transcript_matcher.extraction")

PATTERN_CONFIDENCE = 0.9
FUZZY_CONFIDENCE = 0.7
AI_CONFIDENCE = 0.6
MIN_TITLE_LENGTH = 4

NON_COURSE_KEYWORDS = (
    "academic transcript", "student name", "roll number", "program", "semester",
    "total credits", "gpa", "grade point", "university", "college", "department",
    "date", "signature", "official", "transcript", "record", "completion",
)

_TRAILING_GRADE = re.compile(r"\b([A-Z][+-]?)\s*$")
_SPECIAL_CHARS = re.compile(r"[^a-zA-Z0-9\s\-.]")


class CourseExtractor:
    """Multi-pass course extraction over preprocessed transcript lines."""

    def __init__(
        self,
        grade_model: Optional[GradeModel] = None,
        config: Optional[ExtractionConfig] = None,
    ) -> None:
        self._grades = grade_model or GradeModel()
        self._config = config or ExtractionConfig()

    def extract(self, raw_text: str) -> List[ExtractedCourse]:
        lines = preprocess_text(raw_text, self._config.min_alnum_ratio)
        courses, _ = self._run_rule_passes(lines)
        return self._normalize_and_filter(courses)

    async def extract_async(
        self,
        raw_text: str,
        ai_extractor: Optional[CandidateExtractor] = None,
    ) -> List[ExtractedCourse]:
        lines = preprocess_text(raw_text, self._config.min_alnum_ratio)
        courses, processed = self._run_rule_passes(lines)

        remaining = "\n".join(line.text for line in lines if line.index not in processed)
        if ai_extractor is not None and len(remaining) > self._config.ai_min_unprocessed_chars:
            LOGGER.info("Pass 3: AI extraction over %d unprocessed characters", len(remaining))
            courses.extend(await self._ai_pass(remaining, ai_extractor))

        return self._normalize_and_filter(courses)

    def _run_rule_passes(self, lines: List[RawLine]) -> Tuple[List[ExtractedCourse], Set[int]]:
        courses, processed = self._pattern_pass(lines)
        LOGGER.info("Pass 1: %d courses from %d lines", len(courses), len(lines))

        if len(courses) < self._config.expected_course_count:
            fuzzy = self._fuzzy_pass(lines, processed)
            LOGGER.info("Pass 2: %d additional courses from fuzzy matching", len(fuzzy))
            courses.extend(fuzzy)
        return courses, processed

    def _pattern_pass(self, lines: List[RawLine]) -> Tuple[List[ExtractedCourse], Set[int]]:
        courses: List[ExtractedCourse] = []
        processed: Set[int] = set()
        for line in lines:
            course = self._parse_line(line.text)
            if course is None:
                continue
            if not self._grades.accepts(course.grade):
                LOGGER.debug("Grade %r below threshold for line: %s", course.grade, line.text)
                continue
            courses.append(course)
            processed.add(line.index)
        return courses, processed

    def _parse_line(self, text: str) -> Optional[ExtractedCourse]:
        for pattern, groups in iter_matches(text, TRANSCRIPT_PATTERNS):
            title = _clean_title(groups.get("title") or "")
            if len(title) < MIN_TITLE_LENGTH:
                continue
            LOGGER.debug("Pattern %s matched line: %s", pattern.name, text)
            code = groups.get("code")
            credits = groups.get("credits")
            return ExtractedCourse(
                title=title,
                description=generate_basic_description(title),
                grade=(groups.get("grade") or "").strip(),
                credits=float(credits) if credits else None,
                code=code.strip() if code else None,
                confidence=PATTERN_CONFIDENCE,
                extraction_method="pattern",
            )
        return None

    def _fuzzy_pass(self, lines: List[RawLine], processed: Set[int]) -> List[ExtractedCourse]:
        courses: List[ExtractedCourse] = []
        for line in lines:
            if line.index in processed:
                continue
            lowered = line.text.lower()
            if any(keyword in lowered for keyword in NON_COURSE_KEYWORDS):
                continue

            grade_match = _TRAILING_GRADE.search(line.text)
            if not grade_match:
                continue
            grade = grade_match.group(1)
            text = line.text[: grade_match.start(1)].strip()
            if not _looks_like_course_text(text):
                continue

            code = find_course_code(text)
            if not code:
                continue
            title = _clean_title(text.replace(code, " ", 1))
            if len(title) < MIN_TITLE_LENGTH:
                continue
            if not self._grades.accepts(grade):
                continue

            courses.append(
                ExtractedCourse(
                    title=title,
                    description=generate_basic_description(title),
                    grade=grade,
                    code=code,
                    confidence=FUZZY_CONFIDENCE,
                    extraction_method="fuzzy",
                )
            )
            processed.add(line.index)
        return courses

    async def _ai_pass(self, text: str, ai_extractor: CandidateExtractor) -> List[ExtractedCourse]:
        try:
            candidates = await ai_extractor.extract_candidates(mask_pii(text))
        except Exception as exc:
            LOGGER.warning("AI extraction failed: %s", exc)
            return []

        courses: List[ExtractedCourse] = []
        for candidate in candidates:
            title = _clean_title(candidate.title)
            if len(title) < MIN_TITLE_LENGTH or not self._grades.accepts(candidate.grade):
                continue
            courses.append(
                replace(
                    candidate,
                    title=title,
                    description=candidate.description or generate_basic_description(title),
                    confidence=AI_CONFIDENCE,
                    extraction_method="ai",
                )
            )
        LOGGER.info("Pass 3: %d courses accepted from AI extraction", len(courses))
        return courses

    def _normalize_and_filter(self, courses: Iterable[ExtractedCourse]) -> List[ExtractedCourse]:
        normalized: List[ExtractedCourse] = []
        for course in courses:
            result = self._grades.normalize(course.grade)
            if not result.is_valid:
                continue
            normalized.append(replace(course, grade=result.normalized_grade))
        unique = remove_duplicate_courses(normalized)
        LOGGER.info("Extracted %d courses (%d before de-duplication)", len(unique), len(normalized))
        return unique


def remove_duplicate_courses(courses: Iterable[ExtractedCourse]) -> List[ExtractedCourse]:
    """Keep the first occurrence of each course by title, code and near-identical title."""
    unique: List[ExtractedCourse] = []
    seen_titles: Set[str] = set()
    seen_codes: Set[str] = set()

    for course in courses:
        title_key = _normalize_title(course.title)
        code_key = normalize_code(course.code) if course.code else None

        if title_key in seen_titles:
            LOGGER.debug("Skipping duplicate title: %s", course.title)
            continue
        if code_key and code_key in seen_codes:
            LOGGER.debug("Skipping duplicate code: %s", course.code)
            continue
        if len(title_key) > 10 and any(
            len(existing) > 10 and title_word_overlap(title_key, existing) > 0.9 for existing in seen_titles
        ):
            LOGGER.debug("Skipping near-duplicate title: %s", course.title)
            continue

        seen_titles.add(title_key)
        if code_key:
            seen_codes.add(code_key)
        unique.append(course)
    return unique


def title_word_overlap(first: str, second: str) -> float:
    words_first = first.split(" ")
    words_second = second.split(" ")
    common = [word for word in words_first if word in words_second]
    return len(common) / max(len(words_first), len(words_second))


def _normalize_title(title: str) -> str:
    return re.sub(r"\s+", " ", title.lower()).strip()


def _clean_title(title: str) -> str:
    return re.sub(r"\s+", " ", title).strip(" -:|\t")


def _looks_like_course_text(text: str) -> bool:
    if not 5 <= len(text) <= 100:
        return False
    if len(_SPECIAL_CHARS.findall(text)) / len(text) > 0.2:
        return False
    if text.count(":") > 1:
        return False
    if "[" in text and "]" in text:
        return False
    if "(" in text and ")" in text:
        return False
    if len(text.split()) < 2:
        return False
    return not text.endswith(("-", "|"))


def extract_courses(
    raw_text: str,
    grade_threshold: str = "D",
    institution: str = "default",
    config: Optional[ExtractionConfig] = None,
) -> List[ExtractedCourse]:
    """Rule-based extraction: pattern cascade, fuzzy fallback, normalization."""
    return CourseExtractor(GradeModel(institution, grade_threshold), config).extract(raw_text)


async def extract_courses_async(
    raw_text: str,
    grade_threshold: str = "D",
    institution: str = "default",
    ai_extractor: Optional[CandidateExtractor] = None,
    config: Optional[ExtractionConfig] = None,
) -> List[ExtractedCourse]:
    return await CourseExtractor(GradeModel(institution, grade_threshold), config).extract_async(
        raw_text, ai_extractor
    )
