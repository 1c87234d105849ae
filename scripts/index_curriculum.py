from __future__ import annotations

import argparse
import logging
from pathlib import Path

from transcript_matcher.embeddings.embedding_service import EmbeddingService
from transcript_matcher.io.curriculum_loader import load_curriculum
from transcript_matcher.services.elasticsearch_service import ElasticsearchService
from transcript_matcher.utils.config_utils import load_config
from transcript_matcher.utils.logging_utils import setup_logging

LOGGER = logging.getLogger("transcript_matcher.cli")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Embed the curriculum catalog and index it into Elasticsearch")
    parser.add_argument("--config", type=str, help="Path to settings YAML file")
    parser.add_argument("--catalog", type=str, help="Catalog JSON file or directory (defaults to settings)")
    parser.add_argument("--corpus", type=str, default="curriculum", help="Corpus key stored with each document")
    return parser.parse_args()


def main() -> None:
    default_logging = Path(__file__).resolve().parent.parent / "config" / "logging.yaml"
    if default_logging.exists():
        setup_logging(default_logging)

    args = parse_args()
    settings = load_config(args.config)
    LOGGER.info("Running curriculum indexing with environment=%s", settings.environment)

    courses = load_curriculum(Path(args.catalog) if args.catalog else settings.paths.curriculum_catalog)
    if not courses:
        LOGGER.warning("No curriculum courses found; nothing to index")
        return

    embedding_service = EmbeddingService(settings.embedding)
    vectors = embedding_service.encode(course.to_embedding_payload() for course in courses)

    es_service = ElasticsearchService(settings.elasticsearch)
    es_service.ensure_index()
    es_service.bulk_index(courses, vectors.tolist(), args.corpus)


if __name__ == "__main__":
    main()
