from __future__ import annotations

import asyncio
import json
import logging
import math
import re
from typing import Any, List, Optional, Tuple

from google import genai

from ..extraction.descriptions import generate_basic_description
from ..models.course import CurriculumCourse, ExtractedCourse
from ..settings import GeminiConfig

LOGGER = logging.getLogger("transcript_matcher.gemini")

SIMILARITY_PROMPT = """Compare these two course descriptions and return a similarity score between 0 and 1, where 1 means identical content and 0 means completely unrelated.

Course 1: {first}

Course 2: {second}

Consider:
- Learning objectives and outcomes
- Topics covered
- Skill development
- Prerequisites and level

Return only a decimal number between 0 and 1."""

EXTRACTION_PROMPT = """You are an expert at extracting course information from academic transcripts.
Extract every course with a grade from the transcript text below.

Text: {text}

Return ONLY a JSON array with this structure:
[
  {{"title": "Course Title", "code": "CS101", "grade": "A", "credits": 3}}
]
Use null for a missing code or credits."""

DESCRIPTION_PROMPT = """Write a two sentence catalog description for the university course "{title}"{code_part}.
Describe the topics covered and the skills students develop. Return only the description text."""

DIFFICULTY_PROMPT = """Based on the student's academic background, assess the difficulty level of this upcoming course and provide reasoning.

Student's Background:
{background}

Upcoming Course:
{code}: {title}
Description: {description}

Assess the difficulty level as one of: "Easy", "Moderate", "Challenging", "Very Challenging"

Provide your response in this exact format:
Difficulty: [difficulty level]
Reason: [brief explanation of why this course would be at this difficulty level for this student]"""

DEFAULT_DIFFICULTY = "Moderate"
MISSING_REASON = "Assessment not available"
FAILED_REASON = "Unable to assess difficulty"

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")
_DIFFICULTY = re.compile(r"Difficulty:\s*(.+)")
_REASON = re.compile(r"Reason:\s*(.+)")


class GeminiService:
    """Gemini-backed implementation of the judge, extraction, description and difficulty interfaces."""

    def __init__(self, config: GeminiConfig, client: Optional[Any] = None) -> None:
        self._config = config
        self._client = client if client is not None else genai.Client(api_key=config.api_key)

    async def judge_similarity(self, first: str, second: str) -> float:
        text = await self._generate(SIMILARITY_PROMPT.format(first=first, second=second))
        return parse_score(text)

    async def extract_candidates(self, masked_text: str) -> List[ExtractedCourse]:
        text = await self._generate(EXTRACTION_PROMPT.format(text=masked_text))
        payload = parse_json_payload(text)
        if not isinstance(payload, list):
            LOGGER.warning("AI extraction returned %s instead of a list", type(payload).__name__)
            return []

        courses: List[ExtractedCourse] = []
        for item in payload:
            if not isinstance(item, dict) or not item.get("title") or not item.get("grade"):
                continue
            credits = item.get("credits")
            try:
                credits_value = float(credits) if credits is not None else None
            except (TypeError, ValueError):
                credits_value = None
            courses.append(
                ExtractedCourse(
                    title=str(item["title"]).strip(),
                    description="",
                    grade=str(item["grade"]).strip(),
                    credits=credits_value,
                    code=str(item["code"]).strip() if item.get("code") else None,
                    confidence=0.6,
                    extraction_method="ai",
                )
            )
        return courses

    async def generate_description(self, title: str, code: Optional[str] = None) -> str:
        code_part = f" ({code})" if code else ""
        try:
            text = await self._generate(DESCRIPTION_PROMPT.format(title=title, code_part=code_part))
        except Exception as exc:
            LOGGER.warning("Description generation failed for %r, using template: %s", title, exc)
            return generate_basic_description(title)
        return text or generate_basic_description(title)

    async def assess_difficulty(self, background: str, course: CurriculumCourse) -> Tuple[str, str]:
        prompt = DIFFICULTY_PROMPT.format(
            background=background,
            code=course.code,
            title=course.title,
            description=course.description,
        )
        try:
            text = await self._generate(prompt)
        except Exception as exc:
            LOGGER.warning("Difficulty assessment failed for %s: %s", course.code, exc)
            return DEFAULT_DIFFICULTY, FAILED_REASON
        return parse_difficulty(text)

    async def _generate(self, prompt: str) -> str:
        attempts = max(1, self._config.max_retries)
        for attempt in range(attempts):
            try:
                response = await asyncio.to_thread(
                    self._client.models.generate_content,
                    model=self._config.model_name,
                    contents=prompt,
                )
                return (response.text or "").strip()
            except Exception as exc:
                if attempt < attempts - 1:
                    LOGGER.debug("Gemini call failed (attempt %d/%d): %s", attempt + 1, attempts, exc)
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise
        return ""


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_json_payload(text: str) -> Any:
    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        # tolerate prose around the JSON array
        start, end = cleaned.find("["), cleaned.rfind("]")
        if start == -1 or end <= start:
            LOGGER.warning("Could not parse JSON from model response: %s", cleaned[:200])
            return None
        try:
            return json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError:
            LOGGER.warning("Could not parse JSON from model response: %s", cleaned[:200])
            return None


def parse_score(text: str) -> float:
    """First number in a model reply, clipped to [0, 1]; anything unparseable is 0."""
    found = _NUMBER.search(text or "")
    if not found:
        return 0.0
    value = float(found.group(0))
    if math.isnan(value):
        return 0.0
    return min(1.0, max(0.0, value))


def parse_difficulty(text: str) -> Tuple[str, str]:
    """``Difficulty:`` and ``Reason:`` lines of a reply, with defaults for missing ones."""
    difficulty = _DIFFICULTY.search(text or "")
    reason = _REASON.search(text or "")
    return (
        difficulty.group(1).strip() if difficulty else DEFAULT_DIFFICULTY,
        reason.group(1).strip() if reason else MISSING_REASON,
    )
