import pytest

from transcript_matcher.models.course import CurriculumCourse, ExtractedCourse


def make_course(title, grade="A", code=None, credits=None, description=None, method="pattern"):
    return ExtractedCourse(
        title=title,
        description=description or f"Course covering {title.lower()}",
        grade=grade,
        credits=credits,
        code=code,
        confidence=0.9,
        extraction_method=method,
    )


@pytest.fixture
def catalog():
    return [
        CurriculumCourse("CS101", "Intro to Programming", "Programming fundamentals with Python: variables, loops and functions.", 4, True, 1),
        CurriculumCourse("MA101", "Calculus I", "Limits, derivatives and integrals of single variable functions.", 4, True, 1),
        CurriculumCourse("CS201", "Data Structures", "Lists, trees, graphs and hashing techniques.", 3, True, 3),
        CurriculumCourse("HI110", "World History", "Survey of ancient civilizations and empires.", 3, False, 2),
        CurriculumCourse("MU120", "Music Appreciation", "Listening to classical and modern composers.", 2, False, None),
        CurriculumCourse("CS450", "Machine Learning", "Supervised models, neural networks and evaluation.", 3, True, 7),
    ]
