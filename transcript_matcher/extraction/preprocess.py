from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List

LOGGER = logging.getLogger("transcript_matcher.extraction")

MIN_LINE_LENGTH = 4

HEADER_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^academic transcript$",
        r"^student name:$",
        r"^roll number:$",
        r"^program:$",
        r"^semester:$",
        r"^total credits:$",
        r"^gpa:$",
        r"^grade point average:$",
        r"^university:$",
        r"^college:$",
        r"^department:$",
        r"^date:$",
        r"^signature:$",
        r"^official transcript$",
        r"^course completion record$",
        r"^transcript of records$",
    )
]

_UNICODE_REPLACEMENTS = {
    "–": "-",
    "—": "-",
    "−": "-",
    " ": " ",
    "’": "'",
}
_NON_ASCII = re.compile(r"[^\x00-\x7F]")
_PIPE_IN_WORD = re.compile(r"(?<=[A-Za-z])\|(?=[A-Za-z])|(?<=\s)\|(?=[a-z])|^\|(?=[a-z])", re.MULTILINE)
_ZERO_IN_CAPS = re.compile(r"(?<=[A-Z])0(?=[A-Z])")
_ALNUM = re.compile(r"[A-Za-z0-9]")

_PII_PATTERNS = (
    (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), "[EMAIL]"),
    (re.compile(r"\b\d{3}-\d{2}-\d{4}\b"), "[SSN]"),
    (re.compile(r"\b\d{3}-\d{3}-\d{4}\b"), "[PHONE]"),
    (re.compile(r"\b[A-Z]{2}\d{2}[A-Z]{2}\d{4}\b"), "[ID]"),
)


@dataclass(slots=True)
class RawLine:
    index: int
    text: str


def clean_text(text: str) -> str:
    for source, target in _UNICODE_REPLACEMENTS.items():
        text = text.replace(source, target)
    text = _NON_ASCII.sub("", text)
    # OCR confusables, only where the surrounding characters make the intent clear
    text = _PIPE_IN_WORD.sub("I", text)
    text = _ZERO_IN_CAPS.sub("O", text)
    return text.strip()


def alphanumeric_ratio(line: str) -> float:
    if not line:
        return 0.0
    return len(_ALNUM.findall(line)) / len(line)


def is_header_line(line: str) -> bool:
    return any(pattern.match(line) for pattern in HEADER_PATTERNS)


def preprocess_text(text: str, min_alnum_ratio: float = 0.2) -> List[RawLine]:
    """Split raw OCR text into indexed lines, dropping headers and noise."""
    cleaned = clean_text(text or "")
    lines: List[RawLine] = []
    for raw in cleaned.splitlines():
        line = re.sub(r"[ \t]+", " ", raw).strip()
        if len(line) < MIN_LINE_LENGTH:
            continue
        if is_header_line(line):
            LOGGER.debug("Skipping header line: %s", line)
            continue
        if alphanumeric_ratio(line) < min_alnum_ratio:
            LOGGER.debug("Skipping low alphanumeric line: %s", line)
            continue
        lines.append(RawLine(index=len(lines), text=line))
    LOGGER.debug("Preprocessed %d characters into %d lines", len(text or ""), len(lines))
    return lines


def mask_pii(text: str) -> str:
    """Mask emails, SSN-like, phone-like and ID-like tokens before text leaves the process."""
    for pattern, replacement in _PII_PATTERNS:
        text = pattern.sub(replacement, text)
    return text
