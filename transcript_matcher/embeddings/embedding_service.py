from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable, List

import numpy as np
from sentence_transformers import SentenceTransformer

from ..settings import EmbeddingConfig

LOGGER = logging.getLogger("transcript_matcher.embeddings")

# Instructional filler that should never be embedded as if it were a course.
PLACEHOLDER_MARKERS = (
    "placeholder course",
    "manually add your actual courses",
    "in production, ai would parse your actual transcript",
)


def is_placeholder_text(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in PLACEHOLDER_MARKERS)


class EmbeddingService:
    def __init__(self, config: EmbeddingConfig) -> None:
        self._config = config

        # A local fine-tuned model takes priority over the hub model name
        if self._config.model_path:
            model_source = self._config.model_path
            cache_folder = None
            LOGGER.info("Loading custom trained model from: %s", model_source)
        else:
            model_source = self._config.model_name
            cache_folder = Path.home() / ".cache" if self._config.provider == "sentence_transformers" else None
            LOGGER.info("Loading model from HuggingFace: %s", model_source)

        self._model = SentenceTransformer(
            model_name_or_path=model_source,
            device=self._config.device,
            cache_folder=str(cache_folder) if cache_folder else None,
        )

    def encode(self, texts: Iterable[str]) -> np.ndarray:
        model_source = self._config.model_path or self._config.model_name
        sentences: List[str] = list(texts)
        LOGGER.debug("Generating %d embeddings using model: %s", len(sentences), model_source)

        embeddings = self._model.encode(
            sentences,
            batch_size=self._config.batch_size,
            show_progress_bar=len(sentences) > self._config.batch_size,
            normalize_embeddings=self._config.normalize,
        )
        return np.array(embeddings)

    async def embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")
        if is_placeholder_text(text):
            LOGGER.debug("Skipping placeholder text: %s", text[:60])
            return []
        vectors = await asyncio.to_thread(self.encode, [text])
        return [float(value) for value in vectors[0]]

    @property
    def embedding_dimension(self) -> int:
        return int(self._model.get_sentence_embedding_dimension())
