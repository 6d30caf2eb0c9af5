"""Lookup service: run one fuzzy book or customer lookup from config.

This service turns the configuration dict into a typed MatchingConfig, builds
a request-scoped LookupEngine, and times the call. It is the seam the CLI
uses; tests call it directly with a mock database.
"""

from __future__ import annotations
import time
import logging
import threading
from typing import Dict, Any, Optional

from ..match.lookup_engine import LookupEngine, LookupResponse, BookQuery, CustomerQuery
from ..db import DatabaseInterface
from ..config_types import MatchingConfig

logger = logging.getLogger(__name__)

LOOKUP_KINDS = ("book", "customer")


class LookupResult:
    """Engine response plus timing for one lookup."""

    def __init__(self, kind: str, response: LookupResponse):
        self.kind = kind
        self.response = response
        self.duration_seconds = 0.0

    @property
    def success(self) -> bool:
        return self.response.success

    @property
    def feedback(self) -> str:
        return self.response.feedback


def _matching_config(config: Dict[str, Any]) -> MatchingConfig:
    # Convert dict config to typed MatchingConfig
    matching_dict = config.get('matching', {})
    return MatchingConfig(
        default_threshold=matching_dict.get('default_threshold', 50),
        match_mode=matching_dict.get('match_mode', 'all'),
        prefilter=matching_dict.get('prefilter', 'substring'),
        max_workers=int(matching_dict.get('max_workers', 4)),
    )


def build_engine(db: DatabaseInterface, config: Dict[str, Any]) -> LookupEngine:
    """Create a LookupEngine for one request from the full config dict."""
    return LookupEngine(db, _matching_config(config))


def _timed(kind: str, call) -> LookupResult:
    start = time.time()
    result = LookupResult(kind, call())
    result.duration_seconds = time.time() - start
    logger.debug(f"[lookup] {kind} lookup finished in {result.duration_seconds:.3f}s: {result.feedback}")
    return result


def run_book_lookup(
    db: DatabaseInterface,
    config: Dict[str, Any],
    query: BookQuery,
    threshold: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    match_mode: Optional[str] = None,
) -> LookupResult:
    """Run a structured book lookup.

    Args:
        db: Record store
        config: Full configuration dict
        query: Field values to look for
        threshold: Minimum similarity 0-100 (None uses matching.default_threshold)
        cancel_event: Set it to abandon the lookup
        match_mode: Override matching.match_mode for this call

    Returns:
        LookupResult wrapping the engine response

    Raises:
        StorageUnavailableError: If every supplied field failed in storage
        LookupCancelled: If cancel_event was set before results merged
    """
    engine = build_engine(db, config)
    return _timed("book", lambda: engine.query_books(query, threshold, cancel_event, match_mode))


def run_customer_lookup(
    db: DatabaseInterface,
    config: Dict[str, Any],
    query: CustomerQuery,
    threshold: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    match_mode: Optional[str] = None,
) -> LookupResult:
    """Run a structured customer lookup (same contract as run_book_lookup)."""
    engine = build_engine(db, config)
    return _timed("customer", lambda: engine.query_customers(query, threshold, cancel_event, match_mode))


def run_text_lookup(
    db: DatabaseInterface,
    config: Dict[str, Any],
    kind: str,
    text: str,
    threshold: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
) -> LookupResult:
    """Run a free-text lookup: ``text`` is tried against every field of ``kind``.

    Raises:
        ValueError: If kind is not "book" or "customer"
    """
    if kind not in LOOKUP_KINDS:
        raise ValueError(f"Unknown lookup kind '{kind}'. Expected one of: {', '.join(LOOKUP_KINDS)}")
    engine = build_engine(db, config)
    if kind == "book":
        return _timed(kind, lambda: engine.query_books_text(text, threshold, cancel_event))
    return _timed(kind, lambda: engine.query_customers_text(text, threshold, cancel_event))


__all__ = [
    "LookupResult",
    "LOOKUP_KINDS",
    "build_engine",
    "run_book_lookup",
    "run_customer_lookup",
    "run_text_lookup",
]
