import asyncio

from conftest import make_course
from transcript_matcher import analyze_gaps, match_to_reference
from transcript_matcher.analysis.challenges import courses_in_semester, describe_background, forecast_challenges
from transcript_matcher.analysis.gaps import (
    CORE_GAPS_MESSAGE,
    EARLY_PROGRAM_MESSAGE,
    LATE_PROGRAM_MESSAGE,
    STRONG_PERFORMANCE_MESSAGE,
    WEAK_PERFORMANCE_MESSAGE,
    find_gaps,
    mean_grade_point,
)
from transcript_matcher.models.course import CurriculumCourse


def matched_for(catalog, *titles_and_grades):
    sources = [make_course(title, grade=grade) for title, grade in titles_and_grades]
    return match_to_reference(sources, catalog).matched


class TestFindGaps:
    def test_unmatched_required_course_is_high_priority(self, catalog):
        gaps = find_gaps([], catalog, target_semester=4)
        by_code = {gap.course.code: gap.priority for gap in gaps}

        assert by_code == {"CS101": "high", "MA101": "high", "CS201": "high"}

    def test_electives_are_never_gaps(self, catalog):
        gaps = find_gaps([], catalog, target_semester=8)
        assert all(gap.course.is_required for gap in gaps)
        assert not {"HI110", "MU120"} & {gap.course.code for gap in gaps}

    def test_future_semesters_are_out_of_scope(self, catalog):
        codes = [gap.course.code for gap in find_gaps([], catalog, target_semester=4)]
        assert "CS450" not in codes

    def test_matched_codes_are_covered(self, catalog):
        matched = matched_for(catalog, ("Intro to Programming", "A"))
        codes = [gap.course.code for gap in find_gaps(matched, catalog, target_semester=4)]
        assert "CS101" not in codes
        assert "CS201" in codes


class TestAnalyzeGaps:
    def test_strong_student_early_in_program(self, catalog):
        matched = matched_for(catalog, ("Intro to Programming", "A"), ("Calculus I", "A-"))

        report = analyze_gaps(matched, catalog, target_semester=4)

        messages = [item.message for item in report.recommendations]
        assert messages == [
            CORE_GAPS_MESSAGE.format(count=1),
            STRONG_PERFORMANCE_MESSAGE,
            EARLY_PROGRAM_MESSAGE,
        ]
        assert [course.code for course in report.recommendations[0].courses] == ["CS201"]
        assert report.recommendations[1].courses == []
        assert report.mean_grade_point == 3.85
        assert report.gpa == 3.85

    def test_weak_student_late_in_program(self, catalog):
        matched = matched_for(catalog, ("Intro to Programming", "C"), ("Calculus I", "D"))

        report = analyze_gaps(matched, catalog, target_semester=8)

        types = [(item.type, item.message) for item in report.recommendations]
        assert ("prerequisite", WEAK_PERFORMANCE_MESSAGE) in types
        assert types[-1] == ("elective", LATE_PROGRAM_MESSAGE)
        assert "CS450" in [gap.course.code for gap in report.gaps]

    def test_no_matches_means_no_performance_advice(self, catalog):
        report = analyze_gaps([], catalog, target_semester=2)

        assert report.mean_grade_point is None
        assert report.gpa is None
        assert [item.type for item in report.recommendations] == ["core", "core"]

    def test_nothing_missing(self):
        requirements = [CurriculumCourse("CS101", "Intro to Programming", "Basics.", 3, True, 1)]
        matched = match_to_reference([make_course("Intro to Programming", grade="B")], requirements).matched

        report = analyze_gaps(matched, requirements, target_semester=6)

        assert report.gaps == []
        assert [item.message for item in report.recommendations] == [LATE_PROGRAM_MESSAGE]
        assert report.recommendations[0].courses == []

    def test_to_dict(self, catalog):
        payload = analyze_gaps([], catalog, target_semester=1).to_dict()
        assert {gap["code"] for gap in payload["gaps"]} == {"CS101", "MA101"}
        assert payload["gaps"][0]["priority"] == "high"
        assert payload["future_challenges"] == []


class TestMeanGradePoint:
    def test_mean_of_matched_grades(self, catalog):
        matched = matched_for(catalog, ("Intro to Programming", "B"), ("Calculus I", "A"))
        assert mean_grade_point(matched) == 3.5


class ScriptedAssessor:
    def __init__(self):
        self.calls = []

    async def assess_difficulty(self, background, course):
        self.calls.append((background, course.code))
        return ("Challenging", f"{course.title} builds on limited prior work") if course.code == "CS201" else ("Easy", "Covered before")


class TestForecastChallenges:
    def test_courses_in_semester(self, catalog):
        assert [course.code for course in courses_in_semester(catalog, 1)] == ["CS101", "MA101"]
        assert courses_in_semester(catalog, 5) == []

    def test_background_lists_taken_courses(self):
        background = describe_background(
            [make_course("Calculus I", description="Limits."), make_course("Physics", description="Motion.")]
        )
        assert background == "Calculus I: Limits.\n\nPhysics: Motion."

    def test_each_upcoming_course_is_assessed(self, catalog):
        assessor = ScriptedAssessor()
        taken = [make_course("Intro to Programming", description="Loops.")]

        challenges = asyncio.run(forecast_challenges(taken, courses_in_semester(catalog, 3), assessor))

        assert [(item.course.code, item.difficulty) for item in challenges] == [("CS201", "Challenging")]
        assert assessor.calls == [("Intro to Programming: Loops.", "CS201")]
        assert challenges[0].to_dict()["reason"] == "Data Structures builds on limited prior work"
        assert challenges[0].to_dict()["semester"] == 3
