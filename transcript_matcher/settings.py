from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


@dataclass(frozen=True)
class PathConfig:
    curriculum_catalog: Path = Path("data/curriculum")
    reports_dir: Path = Path("data/reports")


@dataclass(frozen=True)
class GradingConfig:
    institution: str = "default"
    grade_threshold: str = "D"


@dataclass(frozen=True)
class ExtractionConfig:
    min_alnum_ratio: float = 0.2
    expected_course_count: int = 16
    ai_min_unprocessed_chars: int = 100


@dataclass(frozen=True)
class MatchingConfig:
    threshold: float = 0.3
    curriculum_threshold: float = 0.25


@dataclass(frozen=True)
class SimilarityConfig:
    batch_size: int = 10
    batch_delay_seconds: float = 0.1
    vector_prefilter: float = 0.4
    tfidf_prefilter: float = 0.05
    single_top_k: int = 10
    single_final_threshold: float = 0.4
    dual_top_k: int = 5
    dual_final_threshold: float = 0.25


@dataclass(frozen=True)
class EmbeddingConfig:
    provider: str = "sentence_transformers"
    model_name: str = "sentence-transformers/all-MiniLM-L6-v2"
    model_path: Optional[str] = None  # Local path to a fine-tuned model, overrides model_name
    batch_size: int = 32
    device: str = "cpu"
    normalize: bool = True


@dataclass(frozen=True)
class ElasticsearchConfig:
    enabled: bool = False
    hosts: List[str] = field(default_factory=lambda: ["http://localhost:9200"])
    username: str = ""
    password: str = ""
    index: str = "curriculum_courses"
    vector_dim: int = 384
    batch_size: int = 500
    recreate_index: bool = False


@dataclass(frozen=True)
class GeminiConfig:
    enabled: bool = False
    api_key: str = ""
    model_name: str = "gemini-2.0-flash"
    max_retries: int = 3


@dataclass(frozen=True)
class Settings:
    environment: str = "dev"
    paths: PathConfig = PathConfig()
    grading: GradingConfig = GradingConfig()
    extraction: ExtractionConfig = ExtractionConfig()
    matching: MatchingConfig = MatchingConfig()
    similarity: SimilarityConfig = SimilarityConfig()
    embedding: EmbeddingConfig = EmbeddingConfig()
    elasticsearch: ElasticsearchConfig = ElasticsearchConfig()
    gemini: GeminiConfig = GeminiConfig()

    @staticmethod
    def load(config_path: Path | str) -> "Settings":
        with Path(config_path).open("r", encoding="utf-8") as fh:
            raw_config = yaml.safe_load(fh)
        return Settings.from_dict(raw_config or {})

    @staticmethod
    def from_dict(raw_config: Dict[str, Any]) -> "Settings":
        paths = raw_config.get("paths") or {}
        es_cfg = _section(ElasticsearchConfig, raw_config.get("elasticsearch"))
        es_cfg["hosts"] = list(es_cfg["hosts"])
        es_cfg["username"] = es_cfg["username"] or ""
        es_cfg["password"] = es_cfg["password"] or ""
        gemini_cfg = _section(GeminiConfig, raw_config.get("gemini"))
        gemini_cfg["api_key"] = gemini_cfg["api_key"] or ""
        return Settings(
            environment=raw_config.get("environment", "dev"),
            paths=PathConfig(
                curriculum_catalog=Path(paths.get("curriculum_catalog", PathConfig.curriculum_catalog)),
                reports_dir=Path(paths.get("reports_dir", PathConfig.reports_dir)),
            ),
            grading=GradingConfig(**_section(GradingConfig, raw_config.get("grading"))),
            extraction=ExtractionConfig(**_section(ExtractionConfig, raw_config.get("extraction"))),
            matching=MatchingConfig(**_section(MatchingConfig, raw_config.get("matching"))),
            similarity=SimilarityConfig(**_section(SimilarityConfig, raw_config.get("similarity"))),
            embedding=EmbeddingConfig(**_section(EmbeddingConfig, raw_config.get("embedding"))),
            elasticsearch=ElasticsearchConfig(**es_cfg),
            gemini=GeminiConfig(**gemini_cfg),
        )


def _section(config_cls: type, overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Merge a YAML section over the dataclass defaults, ignoring unknown keys."""
    defaults = {item.name: getattr(config_cls(), item.name) for item in fields(config_cls)}
    known = {key: value for key, value in (overrides or {}).items() if key in defaults}
    return {**defaults, **known}
