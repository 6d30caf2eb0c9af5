"""Candidate selection utilities for the lookup engine.

This module fetches a candidate pool per query field before the comparatively
expensive edit-distance scoring runs. The pool must be a superset of the
records that will pass, so it depends on the request threshold:

- At threshold 100 a passing value equals the query (or, for comma lists,
  contains every query token), so a substring ``LIKE`` fetch loses nothing.
- Below 100 a typo can remove any substring, so every record of the kind is
  scanned. Single-value fields are then pruned by length: the edit distance
  is at least the length difference, which caps the reachable similarity.
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, List, Sequence, TypeVar

from ..db import DatabaseInterface, BookRow, CustomerRow, BOOK_SEARCH_FIELDS, CUSTOMER_SEARCH_FIELDS
from .scoring import MAX_THRESHOLD, similarity_ceiling, split_tokens

logger = logging.getLogger(__name__)

R = TypeVar("R", BookRow, CustomerRow)


class CandidateSelector:
    """Helper for fetching candidate records for one query field.

    Storage failures are NOT handled here; they propagate so the engine can
    account for them per field.

    Example usage:
        selector = CandidateSelector(db)

        # Exact lookups use the substring prefilter
        candidates = selector.book_candidates('title', 'Go Programming', threshold=100)

        # Fuzzy lookups scan, keeping titles whose length allows 50%
        candidates = selector.book_candidates('title', 'Progamming', threshold=50)

        # Multi-value field: union of per-token substring hits
        candidates = selector.book_candidates('authors', 'John Doe,Jane Roe', 100, tokenized=True)
    """

    def __init__(self, db: DatabaseInterface, prefilter: str = "substring"):
        """Initialize the selector.

        Args:
            db: Record store
            prefilter: "substring" to prune candidates, "none" to score every record
        """
        self.db = db
        self.prefilter = prefilter

    def book_candidates(
        self, field: str, query: str, threshold: float, tokenized: bool = False
    ) -> List[BookRow]:
        _require_field(field, BOOK_SEARCH_FIELDS, "book")
        return self._select(
            field, query, threshold, tokenized,
            fetch=self.db.find_books_by_field,
            scan=self.db.get_all_books,
        )

    def customer_candidates(self, field: str, query: str, threshold: float) -> List[CustomerRow]:
        _require_field(field, CUSTOMER_SEARCH_FIELDS, "customer")
        return self._select(
            field, query, threshold, False,
            fetch=self.db.find_customers_by_field,
            scan=self.db.get_all_customers,
        )

    def _select(
        self,
        field: str,
        query: str,
        threshold: float,
        tokenized: bool,
        fetch: Callable[[str, str], List[R]],
        scan: Callable[[], List[R]],
    ) -> List[R]:
        if self.prefilter == "none":
            return scan()

        filters = self._exact_filters(query, tokenized) if threshold >= MAX_THRESHOLD else []
        if filters:
            candidates = self._union(fetch(field, f) for f in filters)
        else:
            logger.debug(f"[lookup][{field}] threshold {threshold} needs a full scan")
            candidates = scan()

        if tokenized:
            return candidates
        kept = [r for r in candidates if similarity_ceiling(query, getattr(r, field) or "") >= threshold]
        if len(kept) != len(candidates):
            logger.debug(f"[lookup][{field}] length pruned {len(candidates) - len(kept)} of {len(candidates)} candidates")
        return kept

    @staticmethod
    def _exact_filters(query: str, tokenized: bool) -> List[str]:
        """Substrings every exact match must contain.

        Multi-value fields are filtered per token so that reordered lists
        ("programming,go" vs "go,programming") are not pruned. Empty tokens
        (and an empty query) would match every row, so they yield no filter
        and the caller scans instead.
        """
        if not tokenized:
            return [query] if query else []
        return [t for t in dict.fromkeys(split_tokens(query)) if t]

    @staticmethod
    def _union(batches) -> List[R]:
        """Merge candidate batches, deduplicated by id and ordered by id."""
        merged: Dict[int, R] = {}
        for batch in batches:
            for record in batch:
                merged.setdefault(record.id, record)
        return [merged[k] for k in sorted(merged)]


def _require_field(field: str, allowed: Sequence[str], kind: str) -> None:
    if field not in allowed:
        raise ValueError(f"Unknown {kind} field '{field}'")


__all__ = ['CandidateSelector']
