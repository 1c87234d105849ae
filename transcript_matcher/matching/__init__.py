from .matcher import CourseMatcher, match_by_code, match_to_reference
from .rejection import contains_invalid_patterns, is_non_course_content

__all__ = [
    "CourseMatcher",
    "contains_invalid_patterns",
    "is_non_course_content",
    "match_by_code",
    "match_to_reference",
]
