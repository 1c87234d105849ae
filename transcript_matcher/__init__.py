"""Course extraction, grade normalization and curriculum matching for academic transcripts."""

from .analysis.gaps import analyze_gaps
from .extraction.extractor import extract_courses
from .matching.matcher import match_to_reference

__all__ = ["analyze_gaps", "extract_courses", "match_to_reference"]
