"""Ordered regex registry for course lines.

Composite patterns are matched against a whole line and expose named groups
(``code``, ``title``, ``credits``, ``grade``, ``semester``, ``tag``). The
extractor tries them in registry order and keeps the first usable match, so
more specific shapes must come before looser ones.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence

CODE = r"(?P<code>[A-Z]{2,4}[ -]?\d{3,4}[A-Z]?)"
TITLE = r"(?P<title>[A-Za-z][A-Za-z0-9&,'/.:\s-]*?)"
LETTER_GRADE = r"[A-DF][+-]?|[PIWUS]"
GRADE = rf"(?P<grade>(?:{LETTER_GRADE})(?:\s*\((?:{LETTER_GRADE})\))?|\d\.\d{{1,2}})"
PAREN_CREDITS = r"\((?P<credits>\d+(?:\.\d+)?)\s*(?:credits?|cr|units?)\.?\)"
COLUMN_CREDITS = r"(?P<credits>\d+(?:\.\d+)?)(?:\s*(?:credits?|cr)\.?)?"
SEP = r"(?:\s*[-:]\s*|\s+)"
TAG = r"(?:\s*\[(?P<tag>Required|Core|Elective)\])?"


@dataclass(frozen=True)
class NamedPattern:
    name: str
    regex: re.Pattern


@dataclass(frozen=True)
class CoursePattern:
    name: str
    regex: re.Pattern
    role: str  # "transcript" or "curriculum"

    def match(self, line: str) -> Optional[Dict[str, Optional[str]]]:
        found = self.regex.fullmatch(line)
        if not found:
            return None
        return found.groupdict()


def _course(name: str, pattern: str, role: str = "transcript", flags: int = 0) -> CoursePattern:
    return CoursePattern(name=name, regex=re.compile(pattern, flags), role=role)


COURSE_CODE_PATTERNS: Sequence[NamedPattern] = (
    NamedPattern("standard_course_code", re.compile(r"\b([A-Z]{2,4}\s*\d{3,4}[A-Z]?)\b")),
    NamedPattern("hyphenated_course_code", re.compile(r"\b([A-Z]{2,4}-\d{3,4}[A-Z]?)\b")),
)

GRADE_PATTERNS: Sequence[NamedPattern] = (
    NamedPattern("parenthetical_grade", re.compile(r"\b([A-DF][+-]?\s*\([A-DF][+-]?\))\s*$")),
    NamedPattern("trailing_letter_grade", re.compile(r"\b([A-Z][+-]?)\s*$")),
    NamedPattern("numeric_grade", re.compile(r"\b(\d\.\d{1,2})\s*$")),
)

CREDIT_PATTERNS: Sequence[NamedPattern] = (
    NamedPattern("parenthetical_credits", re.compile(r"\((\d+(?:\.\d+)?)\s*credits?\)", re.IGNORECASE)),
    NamedPattern("abbreviated_credits", re.compile(r"\b(\d+(?:\.\d+)?)\s*cr\b", re.IGNORECASE)),
    NamedPattern("singular_credit", re.compile(r"\b(\d+(?:\.\d+)?)\s*credit\b", re.IGNORECASE)),
)

TRANSCRIPT_PATTERNS: Sequence[CoursePattern] = (
    _course("code_title_credits_grade", rf"{CODE}{SEP}{TITLE}\s*{PAREN_CREDITS}\s*[-|]?\s*{GRADE}"),
    _course("code_title_credits_grade_columns", rf"{CODE}{SEP}{TITLE}\s+{COLUMN_CREDITS}\s+{GRADE}"),
    _course("code_title_grade", rf"{CODE}{SEP}{TITLE}(?:\s*[-|:]\s*|\s+){GRADE}"),
    _course("title_credits_grade", rf"{TITLE}\s*{PAREN_CREDITS}\s*[-|]?\s*{GRADE}"),
    _course("title_credits_grade_columns", rf"{TITLE}\s+{COLUMN_CREDITS}\s+{GRADE}"),
    _course("title_parenthetical_grade", rf"{TITLE}\s*\((?P<grade>{LETTER_GRADE})\)"),
    _course("title_pipe_grade", rf"{TITLE}\s*\|\s*{GRADE}"),
    _course("title_dash_grade", rf"{TITLE}\s+-\s*{GRADE}"),
    _course("numbered_title_grade", rf"\d+[.)]\s*{TITLE}\s+{GRADE}"),
    _course("title_grade", rf"{TITLE}\s+{GRADE}"),
)

CURRICULUM_PATTERNS: Sequence[CoursePattern] = (
    _course(
        "semester_code_title",
        rf"Semester\s*(?P<semester>\d+)\s*[:.]\s*{CODE}\s*-\s*{TITLE}(?:\s*{PAREN_CREDITS})?{TAG}",
        role="curriculum",
        flags=re.IGNORECASE,
    ),
    _course(
        "code_title_credits_tag",
        rf"{CODE}\s*-\s*{TITLE}\s*{PAREN_CREDITS}{TAG}",
        role="curriculum",
    ),
    _course("code_title_credits", rf"{CODE}\s+{TITLE}\s*{PAREN_CREDITS}{TAG}", role="curriculum"),
    _course("title_credits_tag", rf"{TITLE}\s*{PAREN_CREDITS}{TAG}", role="curriculum"),
    _course("code_title_only", rf"{CODE}{SEP}{TITLE}{TAG}", role="curriculum"),
)

REGISTRY: Dict[str, Sequence] = {
    "course_codes": COURSE_CODE_PATTERNS,
    "grades": GRADE_PATTERNS,
    "credits": CREDIT_PATTERNS,
    "transcript": TRANSCRIPT_PATTERNS,
    "curriculum": CURRICULUM_PATTERNS,
}


def iter_matches(line: str, patterns: Sequence[CoursePattern]) -> Iterator[tuple[CoursePattern, Dict[str, Optional[str]]]]:
    for pattern in patterns:
        groups = pattern.match(line)
        if groups is not None:
            yield pattern, groups


def find_course_code(text: str) -> Optional[str]:
    for pattern in COURSE_CODE_PATTERNS:
        found = pattern.regex.search(text)
        if found:
            return found.group(1)
    return None


def find_credits(text: str) -> Optional[float]:
    for pattern in CREDIT_PATTERNS:
        found = pattern.regex.search(text)
        if found:
            return float(found.group(1))
    return None


def pattern_names(group: str) -> List[str]:
    return [pattern.name for pattern in REGISTRY[group]]
