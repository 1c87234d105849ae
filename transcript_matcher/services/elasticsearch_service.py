from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from elasticsearch import Elasticsearch, helpers

from ..models.course import CurriculumCourse
from ..settings import ElasticsearchConfig

LOGGER = logging.getLogger("transcript_matcher.elasticsearch")


class ElasticsearchService:
    """Curriculum vector index: one document per (corpus, course code)."""

    def __init__(self, config: ElasticsearchConfig, client: Optional[Elasticsearch] = None) -> None:
        self._config = config
        if client is None:
            basic_auth: Optional[tuple[str, str]] = None
            if config.username:
                basic_auth = (config.username, config.password)
            client = Elasticsearch(hosts=config.hosts, basic_auth=basic_auth)
        self._client = client

    def ensure_index(self) -> None:
        index = self._config.index
        exists = self._client.indices.exists(index=index)
        if exists and self._config.recreate_index:
            LOGGER.info("Recreating index %s", index)
            self._client.indices.delete(index=index)
            exists = False

        if not exists:
            LOGGER.info("Creating index %s", index)
            self._client.indices.create(
                index=index,
                mappings=self._build_mappings(),
                settings={
                    "index": {
                        "number_of_shards": 1,
                        "number_of_replicas": 0,
                    }
                },
            )
        else:
            LOGGER.info("Index %s already exists", index)

    def bulk_index(
        self,
        courses: Sequence[CurriculumCourse],
        vectors: Sequence[Sequence[float]],
        corpus_key: str,
    ) -> int:
        LOGGER.info("Indexing %d curriculum courses into %s (corpus=%s)", len(courses), self._config.index, corpus_key)
        success, errors = helpers.bulk(
            client=self._client,
            actions=self._prepare_actions(courses, vectors, corpus_key),
            chunk_size=self._config.batch_size,
            stats_only=False,
            raise_on_error=False,
        )
        LOGGER.info("Indexed %s documents", success)
        if errors:
            LOGGER.error("Encountered %s errors during bulk indexing", len(errors))
            for error in errors[:5]:
                LOGGER.error("Error detail: %s", error)
            raise RuntimeError("Bulk indexing completed with errors")
        return success

    async def search(self, query_vector: Sequence[float], corpus_key: str, limit: int) -> List[Tuple[str, float]]:
        """Top courses by cosine similarity, as ``(code, score)`` with score clipped to [0, 1]."""
        response = await asyncio.to_thread(
            self._client.search,
            index=self._config.index,
            query=self._build_query(query_vector, corpus_key),
            size=limit,
            source=["code"],
        )
        results: List[Tuple[str, float]] = []
        for hit in response["hits"]["hits"]:
            # the script adds 1.0 to keep scores non-negative
            cosine = float(hit["_score"]) - 1.0
            results.append((hit["_source"]["code"], min(1.0, max(0.0, cosine))))
        return results

    def _prepare_actions(
        self,
        courses: Sequence[CurriculumCourse],
        vectors: Sequence[Sequence[float]],
        corpus_key: str,
    ) -> Iterable[dict]:
        for course, vector in zip(courses, vectors):
            yield {
                "_op_type": "index",
                "_index": self._config.index,
                "_id": f"{corpus_key}:{course.code}",
                "_source": {
                    "corpus": corpus_key,
                    "code": course.code,
                    "title": course.title,
                    "is_required": course.is_required,
                    "semester": course.semester,
                    "vector": [float(value) for value in vector],
                },
            }

    def _build_query(self, query_vector: Sequence[float], corpus_key: str) -> dict:
        return {
            "script_score": {
                "query": {"term": {"corpus": corpus_key}},
                "script": {
                    "source": "cosineSimilarity(params.query_vector, 'vector') + 1.0",
                    "params": {"query_vector": [float(value) for value in query_vector]},
                },
            }
        }

    def _build_mappings(self) -> dict:
        return {
            "dynamic": "strict",
            "properties": {
                "corpus": {"type": "keyword"},
                "code": {"type": "keyword"},
                "title": {"type": "text"},
                "is_required": {"type": "boolean"},
                "semester": {"type": "integer"},
                "vector": {
                    "type": "dense_vector",
                    "dims": self._config.vector_dim,
                    "index": True,
                    "similarity": "cosine",
                },
            },
        }
