from .grade_model import (
    GradeModel,
    GradeResult,
    credit_weighted_gpa,
    meets_threshold,
    normalize,
    to_letter,
)

__all__ = [
    "GradeModel",
    "GradeResult",
    "credit_weighted_gpa",
    "meets_threshold",
    "normalize",
    "to_letter",
]
