from __future__ import annotations

import logging
from typing import List, Sequence

from ..interfaces import DifficultyAssessor
from ..models.course import CurriculumCourse, ExtractedCourse
from ..models.match import CourseChallenge

LOGGER = logging.getLogger("transcript_matcher.analysis")


def describe_background(courses: Sequence[ExtractedCourse]) -> str:
    return "\n\n".join(f"{course.title}: {course.description}" for course in courses)


def courses_in_semester(courses: Sequence[CurriculumCourse], semester: int) -> List[CurriculumCourse]:
    return [course for course in courses if course.semester == semester]


async def forecast_challenges(
    taken: Sequence[ExtractedCourse],
    upcoming: Sequence[CurriculumCourse],
    assessor: DifficultyAssessor,
) -> List[CourseChallenge]:
    """Ask the assessor how hard each upcoming course will be for this student, one course at a time."""
    background = describe_background(taken)
    challenges: List[CourseChallenge] = []
    for course in upcoming:
        difficulty, reason = await assessor.assess_difficulty(background, course)
        challenges.append(CourseChallenge(course=course, difficulty=difficulty, reason=reason))
    LOGGER.info("Assessed difficulty of %d upcoming courses", len(challenges))
    return challenges
