from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, Tuple

from .models.course import CurriculumCourse, ExtractedCourse


class EmbeddingProvider(Protocol):
    async def embed(self, text: str) -> List[float]:
        """Embed one text. Raises ``ValueError`` on blank input, returns ``[]`` for placeholder text."""
        ...


class SemanticJudge(Protocol):
    async def judge_similarity(self, first: str, second: str) -> float:
        ...


class VectorSearch(Protocol):
    async def search(self, query_vector: Sequence[float], corpus_key: str, limit: int) -> List[Tuple[str, float]]:
        ...


class CurriculumSource(Protocol):
    def courses(self, required_only: bool = False, max_semester: Optional[int] = None) -> List[CurriculumCourse]:
        ...


class CandidateExtractor(Protocol):
    async def extract_candidates(self, masked_text: str) -> List[ExtractedCourse]:
        ...


class DescriptionGenerator(Protocol):
    async def generate_description(self, title: str, code: Optional[str] = None) -> str:
        ...


class DifficultyAssessor(Protocol):
    async def assess_difficulty(self, background: str, course: CurriculumCourse) -> Tuple[str, str]:
        """Difficulty label and reason for ``course``; never raises."""
        ...
