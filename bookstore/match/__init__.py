"""Lookup package exposing the edit-distance scorer and the lookup engine.

`scoring.py` holds the pure comparison primitives, `candidate_selector.py` the
storage prefilter and `lookup_engine.py` the per-request orchestration.
"""

from .scoring import (
    similarity,
    is_match,
    tokens_match,
    tokens_score,
    clamp_threshold,
)
from .lookup_engine import (
    BookQuery,
    CustomerQuery,
    RecordMatch,
    LookupResponse,
    LookupEngine,
)
from .errors import (
    BookstoreLookupError,
    StorageError,
    StorageUnavailableError,
    LookupCancelled,
)

__all__ = [
    "similarity",
    "is_match",
    "tokens_match",
    "tokens_score",
    "clamp_threshold",
    "BookQuery",
    "CustomerQuery",
    "RecordMatch",
    "LookupResponse",
    "LookupEngine",
    "BookstoreLookupError",
    "StorageError",
    "StorageUnavailableError",
    "LookupCancelled",
]
