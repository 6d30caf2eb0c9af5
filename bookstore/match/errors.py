"""Exceptions raised by the lookup engine.

"No match" is never an exception; it is a ``LookupResponse`` with
``success=False``.
"""

from __future__ import annotations
from typing import Sequence


class BookstoreLookupError(Exception):
    """Base class for lookup engine failures."""


class StorageError(BookstoreLookupError):
    """A record store could not answer a fetch.

    Store implementations other than SQLite raise this; the candidate selector
    treats it (and ``sqlite3.Error``) as a failure of a single field.
    """


class StorageUnavailableError(BookstoreLookupError):
    """Every supplied field of a request failed in the record store."""

    def __init__(self, kind: str, fields: Sequence[str]):
        self.kind = kind
        self.fields = list(fields)
        super().__init__(
            f"Storage unavailable for {kind} lookup (failed fields: {', '.join(self.fields)})"
        )


class LookupCancelled(BookstoreLookupError):
    """The caller cancelled the request before results were merged."""


__all__ = ["BookstoreLookupError", "StorageError", "StorageUnavailableError", "LookupCancelled"]
