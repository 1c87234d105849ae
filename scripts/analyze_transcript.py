from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from transcript_matcher.embeddings.embedding_service import EmbeddingService
from transcript_matcher.io.curriculum_loader import CatalogCurriculumSource
from transcript_matcher.pipelines.transcript_analysis_pipeline import TranscriptAnalysisPipeline
from transcript_matcher.services.elasticsearch_service import ElasticsearchService
from transcript_matcher.services.gemini_service import GeminiService
from transcript_matcher.similarity.engine import SimilarityEngine
from transcript_matcher.utils.config_utils import load_config
from transcript_matcher.utils.logging_utils import setup_logging

LOGGER = logging.getLogger("transcript_matcher.cli")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Match a transcript against the curriculum catalog")
    parser.add_argument("transcript", type=str, help="Path to the transcript text file")
    parser.add_argument("--curriculum", type=str, help="Optional curriculum document text file")
    parser.add_argument("--semester", type=int, required=True, help="Target semester for gap analysis")
    parser.add_argument("--config", type=str, help="Path to settings YAML file")
    parser.add_argument("--corpus", type=str, default="curriculum", help="Vector index corpus key")
    parser.add_argument("--no-embeddings", action="store_true", help="Skip the embedding model")
    parser.add_argument("--output", type=str, default="analysis_report.jsonl", help="Report file name")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> None:
    settings = load_config(args.config)
    LOGGER.info("Running transcript analysis with environment=%s", settings.environment)

    embedding_service = None if args.no_embeddings else EmbeddingService(settings.embedding)
    vector_search = None
    if embedding_service is not None and settings.elasticsearch.enabled:
        vector_search = ElasticsearchService(settings.elasticsearch)
    gemini = GeminiService(settings.gemini) if settings.gemini.enabled else None

    engine = SimilarityEngine(
        settings.similarity,
        embedding_provider=embedding_service,
        semantic_judge=gemini,
        vector_search=vector_search,
        vector_corpus=args.corpus,
    )
    pipeline = TranscriptAnalysisPipeline(
        settings,
        CatalogCurriculumSource.from_path(settings.paths.curriculum_catalog),
        similarity_engine=engine,
        ai_extractor=gemini,
        description_generator=gemini,
        difficulty_assessor=gemini,
    )

    transcript_text = Path(args.transcript).read_text(encoding="utf-8")
    curriculum_text = Path(args.curriculum).read_text(encoding="utf-8") if args.curriculum else None
    report = await pipeline.run(transcript_text, args.semester, curriculum_text)
    output = pipeline.write_report(report, args.output)

    summary = report.summary()
    LOGGER.info(
        "Matched %s of %s courses, %s gaps; report at %s",
        summary["catalog_match"]["matched"],
        summary["catalog_match"]["total"],
        summary["gaps"],
        output,
    )


def main() -> None:
    default_logging = Path(__file__).resolve().parent.parent / "config" / "logging.yaml"
    if default_logging.exists():
        setup_logging(default_logging)
    asyncio.run(run(parse_args()))


if __name__ == "__main__":
    main()
