from .cache import SimilarityCache
from .engine import DUAL_DOCUMENT_WEIGHTS, SINGLE_DOCUMENT_WEIGHTS, FusionProfile, FusionWeights, SimilarityEngine
from .text import keyword_similarity, lexical_similarity, normalize_text, tokenize
from .tfidf import TfidfScorer, tfidf_similarity

__all__ = [
    "DUAL_DOCUMENT_WEIGHTS",
    "FusionProfile",
    "FusionWeights",
    "SINGLE_DOCUMENT_WEIGHTS",
    "SimilarityCache",
    "SimilarityEngine",
    "TfidfScorer",
    "keyword_similarity",
    "lexical_similarity",
    "normalize_text",
    "tfidf_similarity",
    "tokenize",
]
