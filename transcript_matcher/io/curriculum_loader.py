from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..models.course import CurriculumCourse

LOGGER = logging.getLogger("transcript_matcher.curriculum_loader")

# camelCase spellings accepted from exported catalogs
_KEY_ALIASES = {
    "courseCode": "code",
    "course_code": "code",
    "courseTitle": "title",
    "course_title": "title",
    "isRequired": "is_required",
    "required": "is_required",
}


def load_curriculum(path: Path) -> List[CurriculumCourse]:
    """Load catalog courses from a JSON file or a directory tree of JSON files.

    A file may hold a list of courses, a ``{"courses": [...]}`` object, or a
    single course object. Files that fail to parse are logged and skipped.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Curriculum catalog does not exist: {path}")

    files = [path] if path.is_file() else sorted(_iter_catalog_files(path))
    courses: List[CurriculumCourse] = []
    for json_path in files:
        try:
            with json_path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            LOGGER.error("Failed to parse %s: %s", json_path, exc)
            continue
        courses.extend(_parse_payload(payload, json_path))

    LOGGER.info("Loaded %s curriculum courses", len(courses))
    return courses


def _iter_catalog_files(root_dir: Path) -> Iterable[Path]:
    for path in root_dir.rglob("*.json"):
        if path.is_file():
            yield path


def _parse_payload(payload: Any, source_file: Path) -> List[CurriculumCourse]:
    if isinstance(payload, dict) and "courses" in payload:
        department = payload.get("department")
        items = [{"department": department, **item} if department else item for item in payload["courses"]]
    elif isinstance(payload, dict):
        items = [payload]
    elif isinstance(payload, list):
        items = payload
    else:
        LOGGER.warning("Unexpected catalog layout in %s", source_file)
        return []

    courses: List[CurriculumCourse] = []
    for item in items:
        record = _normalize_keys(item)
        if not record.get("code") or not record.get("title"):
            LOGGER.warning("Skipping catalog entry without code or title in %s", source_file)
            continue
        courses.append(CurriculumCourse.from_dict(record))
    return courses


def _normalize_keys(item: Dict[str, Any]) -> Dict[str, Any]:
    return {_KEY_ALIASES.get(key, key): value for key, value in item.items()}


class CatalogCurriculumSource:
    """Read-only curriculum view over a loaded catalog."""

    def __init__(self, courses: Iterable[CurriculumCourse]) -> None:
        self._courses = list(courses)

    @classmethod
    def from_path(cls, path: Path) -> "CatalogCurriculumSource":
        return cls(load_curriculum(path))

    def courses(self, required_only: bool = False, max_semester: Optional[int] = None) -> List[CurriculumCourse]:
        """Courses filtered by required flag and semester; unscheduled courses pass the semester filter."""
        selected: List[CurriculumCourse] = []
        for course in self._courses:
            if required_only and not course.is_required:
                continue
            if max_semester is not None and course.semester is not None and course.semester > max_semester:
                continue
            selected.append(course)
        return selected
