from __future__ import annotations
"""Edit-distance scoring primitives for catalog and customer lookups.

This module compares raw field values. It does NOT perform DB access itself;
callers provide already-fetched strings.

Design goals:
- Similarity is a 0-100 percentage derived from Levenshtein distance
- Comparison is literal: case-sensitive, no whitespace or unicode folding
- Multi-value fields (comma lists) need every query token to be covered
- Keep pure / side-effect free for easy unit testing
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

from rapidfuzz.distance import Levenshtein

logger = logging.getLogger(__name__)

MIN_THRESHOLD = 0
MAX_THRESHOLD = 100
TOKEN_SEPARATOR = ","

# --- Similarity ------------------------------------------------------------

def similarity(a: str, b: str) -> float:
    """Similarity percentage of two strings.

    ``(1 - distance / max(len(a), len(b))) * 100``. Two empty strings are
    identical (100); an empty string against a non-empty one scores 0.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 100.0
    distance = Levenshtein.distance(a, b)
    return (1 - distance / longest) * 100


def is_match(query: str, target: str, threshold: float) -> bool:
    return similarity(query, target) >= threshold


def similarity_ceiling(a: str, b: str) -> float:
    """Highest similarity two strings of these lengths can reach.

    The edit distance is at least the length difference, so
    ``similarity(a, b) <= similarity_ceiling(a, b)`` always holds.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 100.0
    return (1 - abs(len(a) - len(b)) / longest) * 100


def clamp_threshold(threshold: float) -> float:
    """Clamp a threshold into [0, 100] instead of rejecting it.

    Raises:
        ValueError: If threshold is NaN, which no clamp can place
    """
    if math.isnan(threshold):
        raise ValueError("threshold must be a number, got NaN")
    clamped = min(max(threshold, MIN_THRESHOLD), MAX_THRESHOLD)
    if clamped != threshold:
        logger.debug(f"[lookup] threshold {threshold} clamped to {clamped}")
    return clamped

# --- Token matching --------------------------------------------------------

def split_tokens(value: str) -> List[str]:
    """Split a comma list exactly as stored.

    Surrounding whitespace is kept, so "go, rust" yields " rust".
    """
    return value.split(TOKEN_SEPARATOR)


def tokens_match(query_csv: str, target_csv: str, threshold: float) -> bool:
    """True when every query token has an acceptable counterpart in the target.

    Stops at the first query token with no target token scoring at or above
    ``threshold``.
    """
    target_tokens = split_tokens(target_csv)
    for q in split_tokens(query_csv):
        if not any(is_match(q, t, threshold) for t in target_tokens):
            return False
    return True


def tokens_score(query_csv: str, target_csv: str) -> float:
    """Mean of each query token's best similarity against the target tokens."""
    query_tokens = split_tokens(query_csv)
    target_tokens = split_tokens(target_csv)
    best = [max(similarity(q, t) for t in target_tokens) for q in query_tokens]
    return sum(best) / len(best)

# --- Field evaluation ------------------------------------------------------

@dataclass
class FieldEvaluation:
    """Outcome of testing one query field against one record field."""
    field: str
    passed: bool
    score: float
    notes: List[str] = field(default_factory=list)


def evaluate_field(
    field_name: str,
    query: str,
    target: Optional[str],
    threshold: float,
    tokenized: bool = False,
) -> FieldEvaluation:
    """Score a record field against the query value for that field.

    A missing (NULL) target is compared as the empty string.
    """
    target = target or ""
    if tokenized:
        passed = tokens_match(query, target, threshold)
        score = tokens_score(query, target)
        notes = [f"{field_name}_tokens:{len(split_tokens(query))}"]
    else:
        score = similarity(query, target)
        passed = score >= threshold
        notes = []
    notes.append(f"{field_name}_{'match' if passed else 'no_match'}:{score:.2f}")
    return FieldEvaluation(field=field_name, passed=passed, score=score, notes=notes)


__all__ = [
    "similarity",
    "is_match",
    "similarity_ceiling",
    "clamp_threshold",
    "split_tokens",
    "tokens_match",
    "tokens_score",
    "FieldEvaluation",
    "evaluate_field",
]
