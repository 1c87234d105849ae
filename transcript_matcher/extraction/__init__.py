from .curriculum import extract_curriculum_courses
from .extractor import CourseExtractor, extract_courses, extract_courses_async, remove_duplicate_courses
from .preprocess import mask_pii, preprocess_text

__all__ = [
    "CourseExtractor",
    "extract_courses",
    "extract_courses_async",
    "extract_curriculum_courses",
    "mask_pii",
    "preprocess_text",
    "remove_duplicate_courses",
]
