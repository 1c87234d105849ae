from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(slots=True)
class ExtractedCourse:
    title: str
    description: str
    grade: str
    credits: Optional[float] = None
    semester: Optional[int] = None
    code: Optional[str] = None
    confidence: float = 1.0
    extraction_method: str = "manual"

    def to_embedding_payload(self) -> str:
        fragments = [self.title]
        if self.description and self.description != self.title:
            fragments.append(self.description)
        return ". ".join(fragment for fragment in fragments if fragment)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "grade": self.grade,
            "credits": self.credits,
            "semester": self.semester,
            "code": self.code,
            "confidence": self.confidence,
            "extraction_method": self.extraction_method,
        }


@dataclass(slots=True)
class CurriculumCourse:
    code: str
    title: str
    description: str
    credits: Optional[float] = None
    is_required: bool = True
    semester: Optional[int] = None
    department: Optional[str] = None

    def to_embedding_payload(self) -> str:
        fragments = [self.title]
        if self.description and self.description != self.title:
            fragments.append(self.description)
        if self.department:
            fragments.append(f"Department: {self.department}")
        return ". ".join(fragment for fragment in fragments if fragment)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "title": self.title,
            "description": self.description,
            "credits": self.credits,
            "is_required": self.is_required,
            "semester": self.semester,
            "department": self.department,
        }

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "CurriculumCourse":
        credits = raw.get("credits")
        semester = raw.get("semester")
        return CurriculumCourse(
            code=str(raw["code"]).strip(),
            title=str(raw["title"]).strip(),
            description=(raw.get("description") or raw["title"]).strip(),
            credits=float(credits) if credits is not None else None,
            is_required=bool(raw.get("is_required", True)),
            semester=int(semester) if semester is not None else None,
            department=raw.get("department"),
        )
