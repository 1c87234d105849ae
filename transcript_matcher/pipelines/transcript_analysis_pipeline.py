from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional

from tqdm import tqdm

from ..analysis.challenges import courses_in_semester, forecast_challenges
from ..analysis.gaps import analyze_gaps
from ..exceptions import DocumentTextError
from ..extraction.curriculum import extract_curriculum_courses
from ..extraction.extractor import CourseExtractor
from ..grading.grade_model import GradeModel
from ..interfaces import CandidateExtractor, CurriculumSource, DescriptionGenerator, DifficultyAssessor
from ..matching.matcher import CourseMatcher, match_by_code
from ..models.course import ExtractedCourse
from ..models.match import MatchReport
from ..models.report import AnalysisReport
from ..settings import Settings
from ..similarity.engine import FusionProfile, SimilarityEngine

LOGGER = logging.getLogger("transcript_matcher.analysis_pipeline")


class TranscriptAnalysisPipeline:
    def __init__(
        self,
        settings: Settings,
        curriculum_source: CurriculumSource,
        similarity_engine: Optional[SimilarityEngine] = None,
        ai_extractor: Optional[CandidateExtractor] = None,
        description_generator: Optional[DescriptionGenerator] = None,
        difficulty_assessor: Optional[DifficultyAssessor] = None,
    ) -> None:
        self._settings = settings
        self._curriculum = curriculum_source
        self._engine = similarity_engine or SimilarityEngine(settings.similarity)
        self._ai_extractor = ai_extractor
        self._descriptions = description_generator
        self._difficulty = difficulty_assessor
        self._grades = GradeModel(settings.grading.institution, settings.grading.grade_threshold)

    async def run(
        self,
        transcript_text: str,
        target_semester: int,
        curriculum_text: Optional[str] = None,
    ) -> AnalysisReport:
        LOGGER.info("Starting transcript analysis for target semester %d", target_semester)
        if not (transcript_text or "").strip():
            raise DocumentTextError("Transcript contains no extractable text")

        extractor = CourseExtractor(self._grades, self._settings.extraction)
        extracted = await extractor.extract_async(transcript_text, self._ai_extractor)
        if self._descriptions is not None:
            extracted = await self._describe(extracted)

        candidates = extracted
        curriculum = []
        curriculum_match: Optional[MatchReport] = None
        profile = FusionProfile.single_document(self._settings.similarity)

        if curriculum_text is not None:
            if not curriculum_text.strip():
                raise DocumentTextError("Curriculum document contains no extractable text")
            curriculum = extract_curriculum_courses(curriculum_text, self._settings.extraction.min_alnum_ratio)
            profile = FusionProfile.dual_document(self._settings.similarity)
            if curriculum:
                matcher = CourseMatcher(self._settings.matching.curriculum_threshold, "matching", self._grades)
                curriculum_match = matcher.match(extracted, curriculum)
                candidates = [item.course for item in curriculum_match.matched]
            else:
                LOGGER.warning("No courses found in curriculum document; matching transcript directly")

        catalog = self._curriculum.courses()
        catalog_match = await self._engine.hybrid_match(candidates, catalog, profile)
        if catalog_match.stats.matched == 0 and candidates:
            fallback = match_by_code(candidates, catalog)
            if fallback.stats.matched:
                LOGGER.info("Hybrid matching found nothing; using %d exact code matches", fallback.stats.matched)
                catalog_match = fallback

        requirements = self._curriculum.courses(required_only=True, max_semester=target_semester)
        gap_report = analyze_gaps(
            catalog_match.matched, requirements, target_semester, self._settings.grading.institution
        )
        if self._difficulty is not None:
            upcoming = courses_in_semester(catalog, target_semester)
            gap_report.future_challenges = await forecast_challenges(extracted, upcoming, self._difficulty)
        LOGGER.info("Finished transcript analysis")
        return AnalysisReport(
            target_semester=target_semester,
            profile=profile.name,
            extracted=extracted,
            curriculum=curriculum,
            curriculum_match=curriculum_match,
            catalog_match=catalog_match,
            gap_report=gap_report,
        )

    async def _describe(self, courses: List[ExtractedCourse]) -> List[ExtractedCourse]:
        described: List[ExtractedCourse] = []
        for course in tqdm(courses, desc="Describing courses", unit="course"):
            description = await self._descriptions.generate_description(course.title, course.code)
            described.append(replace(course, description=description or course.description))
        return described

    def write_report(self, report: AnalysisReport, filename: str = "analysis_report.jsonl") -> Path:
        return self._write_to_disk(report.as_records(), filename)

    def _write_to_disk(self, records: Iterable[dict], filename: str) -> Path:
        output_dir = Path(self._settings.paths.reports_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        output_file = output_dir / filename
        with output_file.open("w", encoding="utf-8") as handle:
            for record in records:
                handle.write(json.dumps(record, ensure_ascii=False) + "\n")
        LOGGER.info("Persisted analysis report to %s", output_file)
        return output_file
