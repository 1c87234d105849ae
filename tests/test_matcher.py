import pytest

from conftest import make_course
from transcript_matcher import match_to_reference
from transcript_matcher.matching.matcher import CourseMatcher, match_by_code
from transcript_matcher.matching.rejection import (
    INVALID_FORMAT_REASON,
    NO_MATCH_REASON,
    NON_COURSE_REASON,
    TOO_SHORT_REASON,
    is_non_course_content,
    unmatched_reason,
)
from transcript_matcher.models.course import CurriculumCourse
from transcript_matcher.models.match import Matched, Unmatched

CS_FUNDAMENTALS = CurriculumCourse("CS100", "Computer Science Fundamentals", "Core ideas of computing.", 4)


class TestMatchTiers:
    def test_exact_code_outranks_title(self):
        references = [
            CurriculumCourse("CS101", "Intro", "Programming basics."),
            CurriculumCourse("MA200", "Something Else Entirely", "Other."),
        ]
        source = make_course("Something Else Entirely", code="cs-101")

        report = match_to_reference([source], references)

        match = report.matched[0]
        assert match.target.code == "CS101"
        assert match.match_type == "exact_code"
        assert match.score == 1.0

    def test_exact_title(self):
        report = match_to_reference([make_course("computer science fundamentals")], [CS_FUNDAMENTALS])
        assert report.matched[0].match_type == "exact_title"
        assert report.matched[0].score == 0.95

    def test_fuzzy_title(self):
        report = match_to_reference([make_course("Computer Sci Fundamentals")], [CS_FUNDAMENTALS])

        match = report.matched[0]
        assert match.match_type == "fuzzy_title"
        assert match.score == pytest.approx(0.6)
        assert match.target.code == "CS100"

    def test_partial_match_on_keywords(self):
        references = [CurriculumCourse("RB300", "Robotics Vision Systems", "Perception for robots.")]
        report = match_to_reference([make_course("Advanced Robotics Control Lab")], references)

        assert report.matched[0].match_type == "partial_match"

    def test_filler_only_title_never_partially_matches(self):
        references = [CurriculumCourse("GE100", "Advanced Seminar Studies", "Seminar.")]
        report = match_to_reference([make_course("Introduction Course")], references)

        assert report.stats.matched == 0


class TestModes:
    def test_matching_mode_takes_reference_description(self):
        source = make_course("Computer Sci Fundamentals", description="Original text")

        match = match_to_reference([source], [CS_FUNDAMENTALS], mode="matching").matched[0]

        assert match.course.description == "Core ideas of computing."
        assert match.course.credits == 4
        assert match.course.code == "CS100"
        assert match.provenance.original_description == "Original text"
        assert match.provenance.matched_code == "CS100"

    def test_verification_mode_keeps_source(self):
        source = make_course("Computer Sci Fundamentals", description="Original text")

        match = match_to_reference([source], [CS_FUNDAMENTALS], mode="verification").matched[0]

        assert match.course is source
        assert match.course.description == "Original text"

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            CourseMatcher(mode="guessing")


class TestRejections:
    def test_s_grade_rejected_before_matching(self):
        report = match_to_reference([make_course("Computer Science Fundamentals", grade="S")], [CS_FUNDAMENTALS])

        assert report.stats.matched == 0
        assert report.unmatched[0].reason == 'Invalid grade "S" - this grade type is not accepted'

    def test_header_text_is_non_course(self):
        report = match_to_reference([make_course("Page 2")], [CS_FUNDAMENTALS])
        assert report.unmatched[0].reason == NON_COURSE_REASON

    def test_short_title(self):
        report = match_to_reference([make_course("Bio")], [CurriculumCourse("CH100", "Chemistry", "Chem.")])
        assert report.unmatched[0].reason == TOO_SHORT_REASON

    def test_invalid_format(self):
        references = [CurriculumCourse("CH200", "Organic Chemistry", "Carbon compounds.")]
        report = match_to_reference([make_course("Tech in Computer Stuff")], references)
        assert report.unmatched[0].reason == INVALID_FORMAT_REASON

    def test_low_similarity_reports_best_candidate(self):
        references = [CurriculumCourse("LT210", "Modern European Literature Survey", "Novels.")]

        unmatched = match_to_reference([make_course("Medieval European History")], references).unmatched[0]

        assert isinstance(unmatched, Unmatched)
        assert unmatched.reason == "Low similarity score (0.267 < 0.3)"
        assert unmatched.best_candidate.code == "LT210"

    def test_nothing_in_common(self):
        references = [CurriculumCourse("CH200", "Organic Chemistry", "Carbon compounds.")]
        report = match_to_reference([make_course("Medieval European History")], references)
        assert report.unmatched[0].reason == NO_MATCH_REASON

    def test_word_prefix_does_not_trigger_non_course(self):
        assert is_non_course_content("Total Quality Management")
        assert not is_non_course_content("Totalitarian Regimes")
        assert not is_non_course_content("Datelines in Journalism")

    def test_unmatched_reason_order(self):
        assert unmatched_reason("Art", 0.2, 0.3) == TOO_SHORT_REASON
        assert unmatched_reason("Comp of Things", 0.2, 0.3) == INVALID_FORMAT_REASON
        assert unmatched_reason("Ancient Rome", 0.2, 0.3) == "Low similarity score (0.200 < 0.3)"
        assert unmatched_reason("Ancient Rome", None, 0.3) == NO_MATCH_REASON


class TestReports:
    def test_every_source_lands_in_one_bucket(self, catalog):
        sources = [
            make_course("Intro to Programming"),
            make_course("Calculus I", code="MA 101"),
            make_course("Page 4"),
            make_course("Underwater Basket Weaving"),
            make_course("Data Structures", grade="W"),
        ]

        report = match_to_reference(sources, catalog)

        assert report.stats.total == len(sources)
        assert report.stats.matched + report.stats.unmatched == len(sources)
        assert all(isinstance(item, Matched) for item in report.matched)
        assert report.stats.rate == pytest.approx(report.stats.matched / len(sources))

    def test_empty_sources(self, catalog):
        stats = match_to_reference([], catalog).stats
        assert (stats.total, stats.matched, stats.rate) == (0, 0, 0.0)

    def test_report_serializes(self, catalog):
        payload = match_to_reference([make_course("Intro to Programming")], catalog).to_dict()
        assert payload["stats"]["matched"] == 1
        assert payload["matched"][0]["target_code"] == "CS101"


class TestMatchByCode:
    def test_only_codes_are_compared(self, catalog):
        sources = [make_course("Whatever Title", code="cs 201"), make_course("Intro to Programming")]

        report = match_by_code(sources, catalog)

        assert [item.target.code for item in report.matched] == ["CS201"]
        assert report.matched[0].course.credits == 3
        assert report.stats.unmatched == 1
