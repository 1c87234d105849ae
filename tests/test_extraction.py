import asyncio

from transcript_matcher.extraction.curriculum import extract_curriculum_courses
from transcript_matcher.extraction.descriptions import generate_basic_description
from transcript_matcher.extraction.extractor import (
    CourseExtractor,
    extract_courses,
    extract_courses_async,
    remove_duplicate_courses,
)
from transcript_matcher.extraction.patterns import find_course_code, find_credits, pattern_names
from transcript_matcher.extraction.preprocess import clean_text, mask_pii, preprocess_text
from transcript_matcher.grading.grade_model import GradeModel
from transcript_matcher.models.course import ExtractedCourse


class RecordingExtractor:
    def __init__(self, candidates=None, error=None):
        self.candidates = candidates or []
        self.error = error
        self.received = []

    async def extract_candidates(self, masked_text):
        self.received.append(masked_text)
        if self.error is not None:
            raise self.error
        return list(self.candidates)


UNSTRUCTURED_NOTES = (
    "Independent study in robotics supervised by faculty advisor, final evaluation excellent overall\n"
    "Contact jane.doe@uni.edu for verification of independent study outcomes\n"
)


class TestPreprocess:
    def test_headers_and_short_lines_dropped(self):
        lines = preprocess_text("Official Transcript\nStudent Name:\nab\nCS101 Intro to Programming A\n")
        assert [line.text for line in lines] == ["CS101 Intro to Programming A"]

    def test_low_alphanumeric_lines_dropped(self):
        lines = preprocess_text("-----|||-----\nCalculus I B+")
        assert [line.text for line in lines] == ["Calculus I B+"]

    def test_indices_are_sequential(self):
        lines = preprocess_text("Physics Lab A\n\n\nChemistry B")
        assert [line.index for line in lines] == [0, 1]

    def test_pipe_inside_word_becomes_letter(self):
        assert clean_text("Intro|duction") == "IntroIduction"

    def test_pipe_column_separator_kept(self):
        assert clean_text("Data Mining | A") == "Data Mining | A"

    def test_zero_between_capitals(self):
        assert clean_text("C0MP101 Data") == "COMP101 Data"

    def test_unicode_dash(self):
        assert clean_text("Calculus – I") == "Calculus - I"

    def test_mask_pii(self):
        masked = mask_pii("jane@uni.edu 123-45-6789 555-123-4567 AB12CD3456")
        assert masked == "[EMAIL] [SSN] [PHONE] [ID]"


class TestPatterns:
    def test_find_course_code(self):
        assert find_course_code("Completed CS 310 with honours") == "CS 310"
        assert find_course_code("no code here") is None

    def test_find_credits(self):
        assert find_credits("Physics (4 credits)") == 4.0
        assert find_credits("Physics 3 cr") == 3.0

    def test_specific_shapes_come_first(self):
        names = pattern_names("transcript")
        assert names[0] == "code_title_credits_grade"
        assert names[-1] == "title_grade"


class TestExtractCourses:
    def test_code_title_credits_grade_line(self):
        courses = extract_courses("CS101 - Intro to Programming (3 credits) A", grade_threshold="C")
        assert len(courses) == 1
        course = courses[0]
        assert course.code == "CS101"
        assert course.title == "Intro to Programming"
        assert course.credits == 3.0
        assert course.grade == "A"
        assert course.extraction_method == "pattern"
        assert course.confidence == 0.9
        assert course.description

    def test_duplicate_line_yields_one_course(self):
        line = "CS101 - Intro to Programming (3 credits) A"
        assert len(extract_courses(f"{line}\n{line}", grade_threshold="C")) == 1

    def test_s_grade_is_rejected(self):
        assert extract_courses("CS102 - Data Structures (3 credits) S") == []

    def test_below_threshold_is_rejected(self):
        assert extract_courses("MATH201 Linear Algebra D", grade_threshold="C") == []

    def test_grade_is_normalized(self):
        courses = extract_courses("Organic Chemistry (4 credits) B+")
        assert courses[0].grade == "B+"
        assert courses[0].credits == 4.0

    def test_title_only_lines(self):
        courses = extract_courses("Microeconomics A-\nLinear Algebra | B")
        assert [(c.title, c.grade) for c in courses] == [("Microeconomics", "A-"), ("Linear Algebra", "B")]

    def test_fuzzy_pass_recovers_irregular_line(self):
        courses = extract_courses("CS 310 Operating Systems; Lab A")
        assert len(courses) == 1
        assert courses[0].code == "CS 310"
        assert courses[0].title == "Operating Systems; Lab"
        assert courses[0].extraction_method == "fuzzy"
        assert courses[0].confidence == 0.7

    def test_headers_never_become_courses(self):
        text = "Academic Transcript\nUniversity:\nCS101 - Intro to Programming (3 credits) A"
        assert [c.code for c in extract_courses(text)] == ["CS101"]

    def test_empty_text(self):
        assert extract_courses("") == []


class TestAiPass:
    def test_ai_candidates_are_added_with_masked_input(self):
        extractor = RecordingExtractor([ExtractedCourse(title="Robotics Studio", description="", grade="A-", code="ME310")])
        text = "CS101 - Intro to Programming (3 credits) A\n" + UNSTRUCTURED_NOTES

        courses = asyncio.run(extract_courses_async(text, ai_extractor=extractor))

        assert "[EMAIL]" in extractor.received[0]
        assert "jane.doe@uni.edu" not in extractor.received[0]
        ai_course = next(c for c in courses if c.title == "Robotics Studio")
        assert ai_course.extraction_method == "ai"
        assert ai_course.confidence == 0.6
        assert ai_course.description

    def test_ai_failure_keeps_rule_results(self):
        extractor = RecordingExtractor(error=RuntimeError("quota exceeded"))
        text = "CS101 - Intro to Programming (3 credits) A\n" + UNSTRUCTURED_NOTES

        courses = asyncio.run(CourseExtractor().extract_async(text, extractor))

        assert [c.code for c in courses] == ["CS101"]

    def test_ai_candidates_still_filtered_by_grade(self):
        extractor = RecordingExtractor([ExtractedCourse(title="Robotics Studio", description="", grade="S")])
        courses = asyncio.run(CourseExtractor(GradeModel()).extract_async(UNSTRUCTURED_NOTES, extractor))
        assert courses == []

    def test_ai_skipped_for_short_remainder(self):
        extractor = RecordingExtractor()
        asyncio.run(CourseExtractor().extract_async("CS101 - Intro to Programming (3 credits) A", extractor))
        assert extractor.received == []


class TestDeduplication:
    def test_same_code_different_title(self):
        first = ExtractedCourse(title="Intro to Programming", description="", grade="A", code="CS 101")
        second = ExtractedCourse(title="Programming Basics", description="", grade="B", code="CS101")
        assert remove_duplicate_courses([first, second]) == [first]

    def test_hyphenated_and_spaced_codes_are_one_course(self):
        first = ExtractedCourse(title="Intro to Programming", description="", grade="A", code="CS-101")
        second = ExtractedCourse(title="Programming Basics", description="", grade="B", code="cs 101")
        assert remove_duplicate_courses([first, second]) == [first]

    def test_near_identical_long_titles(self):
        first = ExtractedCourse(title="Advanced Topics in Machine Learning Systems", description="", grade="A")
        second = ExtractedCourse(title="Advanced Topics in Machine Learning  Systems", description="", grade="A")
        assert remove_duplicate_courses([first, second]) == [first]


class TestDescriptions:
    def test_subject_template(self):
        assert generate_basic_description("Calculus II").startswith("Mathematics course covering calculus")

    def test_generic_template(self):
        assert generate_basic_description("Medieval History").startswith("Course covering medieval history.")

    def test_stop_word_only_title(self):
        assert generate_basic_description("To Be") == "Course covering to be"


class TestCurriculumExtraction:
    TEXT = (
        "Semester 1\n"
        "CS101 - Introduction to Programming (4 credits) [Core]\n"
        "MA101 - Calculus I (4 credits)\n"
        "Electives\n"
        "HU150 Creative Writing\n"
        "Semester 2: CS102 - Data Structures (3 credits) [Required]\n"
        "Ethics in Technology (2 credits) [Elective]\n"
    )

    def test_courses_in_document_order(self):
        courses = extract_curriculum_courses(self.TEXT)
        assert [c.code for c in courses] == ["CS101", "MA101", "HU150", "CS102", "CURR-5"]

    def test_section_defaults_and_tags(self):
        by_code = {c.code: c for c in extract_curriculum_courses(self.TEXT)}
        assert by_code["CS101"].is_required and by_code["CS101"].semester == 1
        assert by_code["MA101"].credits == 4.0
        assert not by_code["HU150"].is_required
        assert by_code["CS102"].is_required and by_code["CS102"].semester == 2
        assert by_code["CURR-5"].title == "Ethics in Technology"
        assert not by_code["CURR-5"].is_required

    def test_code_found_inside_line(self):
        courses = extract_curriculum_courses("Lab PH210 Thermodynamics")
        assert courses[0].code == "PH210"
        assert "Thermodynamics" in courses[0].title

    def test_duplicate_codes_dropped(self):
        text = "CS101 - Introduction to Programming (4 credits)\nCS101 - Programming Again (4 credits)"
        assert len(extract_curriculum_courses(text)) == 1
