"""Lookup engine for fuzzy book and customer queries.

This module provides the engine that coordinates candidate selection,
per-field scoring and result merging for one request at a time. It holds no
state between calls: every threshold arrives with the request and every
record snapshot is fetched fresh.
"""

from __future__ import annotations
import time
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, Future, wait
from dataclasses import dataclass, field, fields as dc_fields
from typing import Any, Callable, Dict, List, Optional, Union
import sqlite3

from .scoring import FieldEvaluation, clamp_threshold, evaluate_field
from .candidate_selector import CandidateSelector
from .errors import StorageError, StorageUnavailableError, LookupCancelled
from ..db import DatabaseInterface, BookRow, CustomerRow
from ..config_types import MatchingConfig
from ..utils.logging_helpers import format_lookup_summary

logger = logging.getLogger(__name__)

Record = Union[BookRow, CustomerRow]

TOKENIZED_FIELDS = frozenset({"keywords", "authors"})
ORDER_FIELD = "order_id"

# How often a waiting request re-checks its cancellation event (seconds)
_CANCEL_POLL_INTERVAL = 0.05

# --- Requests --------------------------------------------------------------

@dataclass
class BookQuery:
    """Structured book lookup; every field is optional."""
    book_no: Optional[str] = None
    title: Optional[str] = None
    publisher_name: Optional[str] = None
    keywords: Optional[str] = None
    authors: Optional[str] = None

    def supplied(self) -> Dict[str, str]:
        """Non-empty fields in declaration order."""
        return {f.name: getattr(self, f.name) for f in dc_fields(self) if getattr(self, f.name)}

    @classmethod
    def from_text(cls, text: str) -> BookQuery:
        return cls(book_no=text, title=text, publisher_name=text, keywords=text, authors=text)


@dataclass
class CustomerQuery:
    """Structured customer lookup; ``order_id`` is an exact join, not fuzzy."""
    online_id: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    order_id: Optional[int] = None

    def supplied(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for name in ("online_id", "name", "address"):
            if getattr(self, name):
                values[name] = getattr(self, name)
        if self.order_id is not None:
            values[ORDER_FIELD] = self.order_id
        return values

    @classmethod
    def from_text(cls, text: str) -> CustomerQuery:
        try:
            order_id: Optional[int] = int(text)
        except ValueError:
            order_id = None
        return cls(online_id=text, name=text, address=text, order_id=order_id)

# --- Results ---------------------------------------------------------------

@dataclass
class RecordMatch:
    """One accepted record plus the evidence that accepted it."""
    record: Record
    matched_fields: List[str] = field(default_factory=list)
    scores: Dict[str, float] = field(default_factory=dict)

    @property
    def feedback(self) -> str:
        return f"matched by {', '.join(self.matched_fields)}"

    def describe(self) -> str:
        """Feedback with per-field scores, e.g. 'matched by title (78.57%)'."""
        parts = []
        for name in self.matched_fields:
            if name == ORDER_FIELD:
                parts.append(name)
            else:
                parts.append(f"{name} ({self.scores[name]:.2f}%)")
        return f"matched by {', '.join(parts)}"


@dataclass
class LookupResponse:
    success: bool
    feedback: str
    matches: List[RecordMatch] = field(default_factory=list)
    failed_fields: List[str] = field(default_factory=list)

    @property
    def records(self) -> List[Record]:
        return [m.record for m in self.matches]


@dataclass
class FieldOutcome:
    """Per-field bucket produced by one fan-out task."""
    field: str
    accepted: Dict[int, tuple] = field(default_factory=dict)  # id -> (record, FieldEvaluation)
    candidates: int = 0
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

# --- Engine ----------------------------------------------------------------

_LABELS = {
    "book": ("Books retrieved successfully", "No books found"),
    "customer": ("Customers retrieved successfully", "No customers found"),
}


class LookupEngine:
    """Request-scoped orchestrator for fuzzy lookups.

    For each supplied field the engine:
    1. Fetches coarse candidates through CandidateSelector
    2. Scores them (edit distance, or token matching for comma lists)
    3. Keeps the ones at or above the request threshold

    Field tasks fan out onto a thread pool; results merge only after every
    task finished. In "all" mode a record must pass every supplied field, in
    "any" mode one passing field is enough.

    Example usage:
        engine = LookupEngine(db, MatchingConfig())
        response = engine.query_books(BookQuery(title="Programming"), threshold=50)
    """

    def __init__(self, db: DatabaseInterface, matching_config: MatchingConfig):
        """Initialize the lookup engine.

        Args:
            db: Record store
            matching_config: MatchingConfig with defaults and tuning knobs
        """
        self.db = db
        self.selector = CandidateSelector(db, prefilter=matching_config.prefilter)
        self.default_threshold = matching_config.default_threshold
        self.match_mode = matching_config.match_mode
        self.max_workers = max(1, int(matching_config.max_workers))

    # --- Public operations ---

    def query_books(
        self,
        query: BookQuery,
        threshold: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        match_mode: Optional[str] = None,
    ) -> LookupResponse:
        """Find books whose supplied fields are similar enough to the query.

        Args:
            query: Field values to look for; empty fields are skipped
            threshold: Minimum similarity 0-100 (None uses the configured default)
            cancel_event: Set it to abandon the request
            match_mode: Override the configured "all"/"any" merge

        Returns:
            LookupResponse; success is False when nothing matched

        Raises:
            StorageUnavailableError: If every supplied field failed in storage
            LookupCancelled: If cancel_event was set before results merged
            ValueError: If threshold is NaN
        """
        limit = self._resolve_threshold(threshold)
        tasks = {
            name: self._book_field_task(name, value, limit)
            for name, value in query.supplied().items()
        }
        return self._run("book", tasks, match_mode or self.match_mode, cancel_event)

    def query_customers(
        self,
        query: CustomerQuery,
        threshold: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        match_mode: Optional[str] = None,
    ) -> LookupResponse:
        """Find customers by fuzzy online_id/name/address and exact order id.

        Same contract as query_books.
        """
        limit = self._resolve_threshold(threshold)
        tasks: Dict[str, Callable[[], FieldOutcome]] = {}
        for name, value in query.supplied().items():
            if name == ORDER_FIELD:
                tasks[name] = self._order_task(int(value))
            else:
                tasks[name] = self._customer_field_task(name, value, limit)
        return self._run("customer", tasks, match_mode or self.match_mode, cancel_event)

    def query_books_text(
        self,
        text: str,
        threshold: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> LookupResponse:
        """Free-text variant: try ``text`` against every book field (any field wins)."""
        return self.query_books(BookQuery.from_text(text), threshold, cancel_event, match_mode="any")

    def query_customers_text(
        self,
        text: str,
        threshold: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> LookupResponse:
        """Free-text variant for customers; numeric text also tries the order join."""
        return self.query_customers(CustomerQuery.from_text(text), threshold, cancel_event, match_mode="any")

    # --- Field tasks ---

    def _resolve_threshold(self, threshold: Optional[float]) -> float:
        if threshold is None:
            threshold = self.default_threshold
        return clamp_threshold(threshold)

    def _book_field_task(self, name: str, value: str, threshold: float) -> Callable[[], FieldOutcome]:
        tokenized = name in TOKENIZED_FIELDS

        def task() -> FieldOutcome:
            candidates = self.selector.book_candidates(name, value, threshold, tokenized=tokenized)
            return self._score_candidates(name, value, candidates, threshold, tokenized)

        return task

    def _customer_field_task(self, name: str, value: str, threshold: float) -> Callable[[], FieldOutcome]:
        def task() -> FieldOutcome:
            candidates = self.selector.customer_candidates(name, value, threshold)
            return self._score_candidates(name, value, candidates, threshold, False)

        return task

    def _order_task(self, order_id: int) -> Callable[[], FieldOutcome]:
        def task() -> FieldOutcome:
            outcome = FieldOutcome(field=ORDER_FIELD)
            order = self.db.get_customer_order_by_id(order_id)
            if order is None:
                logger.debug(f"[lookup][{ORDER_FIELD}] no order with id {order_id}")
                return outcome
            customer = self.db.get_customer_by_online_id(order.customer_online_id)
            if customer is None:
                logger.debug(f"[lookup][{ORDER_FIELD}] order {order_id} has no owner '{order.customer_online_id}'")
                return outcome
            outcome.candidates = 1
            evaluation = FieldEvaluation(field=ORDER_FIELD, passed=True, score=100.0, notes=["order_id_exact"])
            outcome.accepted[customer.id] = (customer, evaluation)
            return outcome

        return task

    @staticmethod
    def _score_candidates(
        name: str,
        value: str,
        candidates: List[Record],
        threshold: float,
        tokenized: bool,
    ) -> FieldOutcome:
        outcome = FieldOutcome(field=name, candidates=len(candidates))
        debug_logging = logger.isEnabledFor(logging.DEBUG)
        for record in candidates:
            evaluation = evaluate_field(name, value, getattr(record, name), threshold, tokenized=tokenized)
            if debug_logging:
                logger.debug(f"[lookup][{name}] record={record.id} score={evaluation.score:.2f} notes={evaluation.notes}")
            if evaluation.passed:
                outcome.accepted.setdefault(record.id, (record, evaluation))
        return outcome

    # --- Fan-out / fan-in ---

    def _run(
        self,
        kind: str,
        tasks: Dict[str, Callable[[], FieldOutcome]],
        mode: str,
        cancel_event: Optional[threading.Event],
    ) -> LookupResponse:
        found_label, none_label = _LABELS[kind]
        if not tasks:
            return LookupResponse(success=False, feedback=f"{none_label} (no query fields supplied)")

        start = time.time()
        outcomes = self._execute(tasks, cancel_event)

        failed = [o.field for o in outcomes if not o.ok]
        if len(failed) == len(outcomes):
            raise StorageUnavailableError(kind, failed)

        matches = self._merge([o for o in outcomes if o.ok], mode)

        logger.info(format_lookup_summary(
            kind=kind,
            matched=len(matches),
            candidates=sum(o.candidates for o in outcomes),
            fields=[o.field for o in outcomes],
            failed=failed,
            duration_seconds=time.time() - start,
        ))

        suffix = f" (storage unavailable for: {', '.join(failed)})" if failed else ""
        if not matches:
            return LookupResponse(success=False, feedback=none_label + suffix, failed_fields=failed)
        return LookupResponse(success=True, feedback=found_label + suffix, matches=matches, failed_fields=failed)

    def _execute(
        self,
        tasks: Dict[str, Callable[[], FieldOutcome]],
        cancel_event: Optional[threading.Event],
    ) -> List[FieldOutcome]:
        """Run every field task and return outcomes in request field order."""
        if self.max_workers == 1 or len(tasks) == 1:
            outcomes = []
            for name, task in tasks.items():
                self._check_cancelled(cancel_event)
                outcomes.append(self._guarded(name, task))
            self._check_cancelled(cancel_event)
            return outcomes

        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(tasks)), thread_name_prefix="lookup")
        cancelled = False
        try:
            futures: Dict[str, Future] = {
                name: executor.submit(self._guarded, name, task) for name, task in tasks.items()
            }
            pending = set(futures.values())
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    break
                _, pending = wait(pending, timeout=_CANCEL_POLL_INTERVAL)
            if cancelled or (cancel_event is not None and cancel_event.is_set()):
                cancelled = True
                raise LookupCancelled("lookup cancelled by caller")
            return [futures[name].result() for name in tasks]
        finally:
            # Abandon in-flight fetches on cancel; otherwise everything is done already
            executor.shutdown(wait=not cancelled, cancel_futures=True)

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise LookupCancelled("lookup cancelled by caller")

    @staticmethod
    def _guarded(name: str, task: Callable[[], FieldOutcome]) -> FieldOutcome:
        """Run a field task, turning storage failures into an empty, failed bucket."""
        try:
            return task()
        except (sqlite3.Error, StorageError) as e:
            logger.warning(f"[lookup][{name}] storage error, treating field as having no candidates: {e}")
            return FieldOutcome(field=name, error=e)

    @staticmethod
    def _merge(outcomes: List[FieldOutcome], mode: str) -> List[RecordMatch]:
        """Merge per-field buckets into one match per record id.

        Order is deterministic: fields in request order, records in the order
        their first field reported them.
        """
        merged: Dict[int, RecordMatch] = {}
        hits: Dict[int, int] = {}
        for outcome in outcomes:
            for record_id, (record, evaluation) in outcome.accepted.items():
                match = merged.setdefault(record_id, RecordMatch(record=record))
                match.matched_fields.append(outcome.field)
                match.scores[outcome.field] = evaluation.score
                hits[record_id] = hits.get(record_id, 0) + 1

        if mode == "all":
            return [m for rid, m in merged.items() if hits[rid] == len(outcomes)]
        return list(merged.values())


__all__ = [
    "BookQuery",
    "CustomerQuery",
    "RecordMatch",
    "LookupResponse",
    "LookupEngine",
]
