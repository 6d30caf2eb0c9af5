from __future__ import annotations
"""Database interface abstraction for testability.

This interface defines the contract used by the lookup engine and the service
layer. A concrete SQLite implementation (`Database`) and an in-memory mock used
in unit tests both implement this for dependency injection.

The lookup engine only reads: it needs a coarse per-field fetch, a full scan
per record kind, and the exact lookups behind the order-to-customer join.
Write operations exist so the store can be populated; keep them explicit
(no generic execute) to preserve test clarity.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .models import BookRow, CustomerRow, CustomerOrderRow

# Searchable columns per record kind. Field names are interpolated into SQL,
# so implementations must reject anything outside these sets.
BOOK_SEARCH_FIELDS = ("book_no", "title", "publisher_name", "keywords", "authors")
CUSTOMER_SEARCH_FIELDS = ("online_id", "name", "address")


class DatabaseInterface(ABC):
    # --- Books ---
    @abstractmethod
    def add_book(self, data: Dict[str, Any]) -> int:
        """Insert a book and return its primary key."""
        ...

    @abstractmethod
    def get_book_by_no(self, book_no: str) -> Optional[BookRow]: ...

    @abstractmethod
    def get_all_books(self) -> List[BookRow]:
        """Get every book ordered by primary key."""
        ...

    @abstractmethod
    def find_books_by_field(self, field: str, substring: str) -> List[BookRow]:
        """Coarse prefilter: books whose ``field`` contains ``substring``.

        Args:
            field: One of BOOK_SEARCH_FIELDS
            substring: Literal text to look for (case handling is store-defined)

        Returns:
            Matching BookRow objects ordered by primary key

        Raises:
            ValueError: If field is not searchable
        """
        ...

    @abstractmethod
    def count_books(self) -> int: ...

    # --- Customers ---
    @abstractmethod
    def add_customer(self, data: Dict[str, Any]) -> int:
        """Insert a customer and return its primary key."""
        ...

    @abstractmethod
    def get_customer_by_online_id(self, online_id: str) -> Optional[CustomerRow]: ...

    @abstractmethod
    def get_all_customers(self) -> List[CustomerRow]:
        """Get every customer (orders preloaded) ordered by primary key."""
        ...

    @abstractmethod
    def find_customers_by_field(self, field: str, substring: str) -> List[CustomerRow]:
        """Coarse prefilter: customers whose ``field`` contains ``substring``.

        Raises:
            ValueError: If field is not one of CUSTOMER_SEARCH_FIELDS
        """
        ...

    @abstractmethod
    def count_customers(self) -> int: ...

    # --- Customer orders ---
    @abstractmethod
    def add_customer_order(self, data: Dict[str, Any]) -> int:
        """Insert an order and return its primary key."""
        ...

    @abstractmethod
    def get_customer_order_by_id(self, order_id: int) -> Optional[CustomerOrderRow]: ...

    @abstractmethod
    def get_orders_for_customer(self, online_id: str) -> List[CustomerOrderRow]: ...

    @abstractmethod
    def count_customer_orders(self) -> int: ...

    # --- Meta & lifecycle ---
    @abstractmethod
    def set_meta(self, key: str, value: str): ...

    @abstractmethod
    def get_meta(self, key: str) -> Optional[str]: ...

    @abstractmethod
    def commit(self): ...

    @abstractmethod
    def close(self): ...


__all__ = ["DatabaseInterface", "BOOK_SEARCH_FIELDS", "CUSTOMER_SEARCH_FIELDS"]
