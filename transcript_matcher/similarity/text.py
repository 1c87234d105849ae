from __future__ import annotations

import hashlib
import re
from collections import Counter
from typing import List, Set

STOP_WORDS = frozenset({
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by", "from", "up",
    "about", "into", "through", "during", "before", "after", "above", "below", "between", "among",
    "within", "without", "against", "toward", "towards", "upon", "across", "behind", "beneath",
    "beside", "beyond", "inside", "outside", "under", "over", "this", "that", "these", "those",
    "is", "are", "was", "were", "be", "been", "being", "have", "has", "had", "do", "does", "did",
    "will", "would", "could", "should", "may", "might", "must", "can", "shall",
})
DOMAIN_STOP_WORDS = frozenset({"extracted", "transcript", "curriculum", "requirement"})

# Words that appear in course titles without saying anything about the subject.
ACADEMIC_FILLER_WORDS = frozenset({
    "introduction", "advanced", "fundamentals", "principles", "theory", "practice", "course",
    "study", "analysis", "design", "systems", "methods", "applications", "basic", "intermediate",
})

MEANINGFUL_WORDS = frozenset({
    "engineering", "physics", "computer", "science", "mathematics", "calculus", "programming", "data",
    "structure", "algorithm", "database", "network", "software", "system", "design", "analysis",
    "management", "development", "technology", "information", "economics", "finance", "accounting",
    "marketing", "business", "strategy", "market", "investment", "trade", "commerce",
    "entrepreneurship", "mechanical", "electrical", "civil", "chemical", "biomedical", "aerospace",
    "industrial", "environmental", "materials", "artificial", "intelligence", "machine", "learning",
    "deep", "neural", "cybersecurity", "cloud", "computing", "web", "mobile", "application",
    "statistics", "probability", "linear", "algebra", "geometry", "differential", "integral",
    "optimization", "numerical", "discrete", "thermodynamics", "mechanics", "dynamics", "optics",
    "quantum", "organic", "biochemistry", "research", "methodology", "theory", "laboratory",
    "project", "thesis", "seminar",
})

MAX_HIGHLIGHTS = 10

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, turn punctuation into spaces and collapse whitespace."""
    return _WHITESPACE.sub(" ", _PUNCTUATION.sub(" ", (text or "").lower())).strip()


def normalize_code(code: str) -> str:
    return re.sub(r"[\s-]+", "", code or "").upper()


def tokenize(text: str) -> List[str]:
    return [
        token
        for token in normalize_text(text).split(" ")
        if len(token) > 2 and token not in STOP_WORDS and token not in DOMAIN_STOP_WORDS
    ]


def jaccard(first: Set[str], second: Set[str]) -> float:
    union = first | second
    if not union:
        return 0.0
    return len(first & second) / len(union)


def lexical_similarity(first: str, second: str) -> float:
    """Token Jaccard with containment and size bonuses, clipped to [0, 1]."""
    norm_first = normalize_text(first)
    norm_second = normalize_text(second)
    if not norm_first or not norm_second:
        return 0.0
    if norm_first == norm_second:
        return 1.0

    tokens_first = set(tokenize(norm_first))
    tokens_second = set(tokenize(norm_second))
    score = jaccard(tokens_first, tokens_second)
    if norm_first in norm_second or norm_second in norm_first:
        score += 0.2
    if tokens_first and tokens_second:
        larger = max(len(tokens_first), len(tokens_second))
        if abs(len(tokens_first) - len(tokens_second)) <= 0.2 * larger:
            score += 0.1
    return min(1.0, score)


def keywords(title: str) -> Set[str]:
    return {token for token in tokenize(title) if token not in ACADEMIC_FILLER_WORDS}


def keyword_similarity(first: str, second: str) -> float:
    keywords_first = keywords(first)
    keywords_second = keywords(second)
    if not keywords_first and not keywords_second:
        return 1.0
    if not keywords_first or not keywords_second:
        return 0.0
    return jaccard(keywords_first, keywords_second)


def matching_highlights(first: str, second: str, score: float = 0.0) -> List[str]:
    """Overlapping terms worth showing next to a match, most frequent first."""
    tokens_first = tokenize(first)
    tokens_second = tokenize(second)
    shared = set(tokens_first) & set(tokens_second)
    frequency = Counter(token for token in tokens_first + tokens_second if token in shared)
    ranked = sorted(shared, key=lambda term: (-frequency[term], term))
    return [
        term
        for term in ranked
        if score > 0.3 or term in MEANINGFUL_WORDS or frequency[term] > 2
    ][:MAX_HIGHLIGHTS]


def hash_text(text: str) -> str:
    """Cache key for a text: digest of its lowercase word characters."""
    return hashlib.sha1(re.sub(r"\W", "", (text or "").lower()).encode("utf-8")).hexdigest()


def pair_key(first: str, second: str) -> str:
    return f"{hash_text(first)}||{hash_text(second)}"
