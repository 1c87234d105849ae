from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

LOGGER = logging.getLogger("transcript_matcher.similarity")


@dataclass
class SimilarityCache:
    """Append-only memo tables shared by one engine across a run.

    Keys are content hashes, so concurrent coroutines writing the same key
    always write the same value.
    """

    embeddings: Dict[str, List[float]] = field(default_factory=dict)
    judge_scores: Dict[str, float] = field(default_factory=dict)
    tfidf_vectors: Dict[str, Dict[str, float]] = field(default_factory=dict)
    idf_tables: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def reset(self) -> None:
        LOGGER.info("Resetting similarity cache (%s)", self.stats())
        self.embeddings.clear()
        self.judge_scores.clear()
        self.tfidf_vectors.clear()
        self.idf_tables.clear()

    def stats(self) -> Dict[str, int]:
        return {
            "embeddings": len(self.embeddings),
            "judge_scores": len(self.judge_scores),
            "tfidf_vectors": len(self.tfidf_vectors),
            "idf_tables": len(self.idf_tables),
        }
