from __future__ import annotations
"""In-memory mock implementation of DatabaseInterface for unit tests.

Stores data in simple Python data structures; provides the minimal behavior
the lookup engine and service layer rely on. Substring fetches are
case-insensitive like SQLite's LIKE.

Failure injection: put a field name in ``fail_fields`` and every fetch for
that field raises StorageError; set ``fail_scans`` to make full scans fail too.
"""
from typing import Any, Dict, List, Optional, Set

from bookstore.db import DatabaseInterface, BOOK_SEARCH_FIELDS, CUSTOMER_SEARCH_FIELDS
from bookstore.db.models import BookRow, CustomerRow, CustomerOrderRow
from bookstore.match.errors import StorageError


class MockDatabase(DatabaseInterface):
    def __init__(self):
        self.books: Dict[int, Dict[str, Any]] = {}
        self.customers: Dict[int, Dict[str, Any]] = {}
        self.orders: Dict[int, Dict[str, Any]] = {}
        self.meta: Dict[str, str] = {}
        self.fail_fields: Set[str] = set()
        self.fail_scans = False
        self._closed = False
        self.call_log: List[str] = []

    def _check(self, field: str) -> None:
        if field in self.fail_fields:
            raise StorageError(f"injected failure for field '{field}'")

    # --- Books ---
    def add_book(self, data: Dict[str, Any]) -> int:
        self.call_log.append('add_book')
        new_id = len(self.books) + 1
        self.books[new_id] = {
            'book_no': data['book_no'],
            'title': data['title'],
            'publisher_name': data.get('publisher_name'),
            'keywords': data.get('keywords'),
            'authors': data.get('authors'),
            'price': data.get('price', 0),
            'stock_quantity': data.get('stock_quantity', 0),
        }
        return new_id

    def _book(self, book_id: int) -> BookRow:
        return BookRow(id=book_id, **self.books[book_id])

    def get_book_by_no(self, book_no: str) -> Optional[BookRow]:
        for book_id, data in self.books.items():
            if data['book_no'] == book_no:
                return self._book(book_id)
        return None

    def get_all_books(self) -> List[BookRow]:
        self.call_log.append('get_all_books')
        if self.fail_scans:
            raise StorageError("injected failure for book scan")
        return [self._book(i) for i in sorted(self.books)]

    def find_books_by_field(self, field: str, substring: str) -> List[BookRow]:
        self.call_log.append(f'find_books_by_field:{field}:{substring}')
        if field not in BOOK_SEARCH_FIELDS:
            raise ValueError(f"Unknown book field '{field}'")
        self._check(field)
        needle = substring.lower()
        return [
            self._book(i) for i in sorted(self.books)
            if needle in (self.books[i].get(field) or '').lower()
        ]

    def count_books(self) -> int:
        return len(self.books)

    # --- Customers ---
    def add_customer(self, data: Dict[str, Any]) -> int:
        self.call_log.append('add_customer')
        new_id = len(self.customers) + 1
        self.customers[new_id] = {
            'online_id': data['online_id'],
            'name': data['name'],
            'address': data['address'],
            'account_balance': data.get('account_balance', 0),
            'credit_level': data.get('credit_level', 0),
        }
        return new_id

    def _customer(self, customer_id: int) -> CustomerRow:
        data = self.customers[customer_id]
        return CustomerRow(
            id=customer_id,
            orders=tuple(self.get_orders_for_customer(data['online_id'])),
            **data,
        )

    def get_customer_by_online_id(self, online_id: str) -> Optional[CustomerRow]:
        self.call_log.append('get_customer_by_online_id')
        for customer_id, data in self.customers.items():
            if data['online_id'] == online_id:
                return self._customer(customer_id)
        return None

    def get_all_customers(self) -> List[CustomerRow]:
        self.call_log.append('get_all_customers')
        if self.fail_scans:
            raise StorageError("injected failure for customer scan")
        return [self._customer(i) for i in sorted(self.customers)]

    def find_customers_by_field(self, field: str, substring: str) -> List[CustomerRow]:
        self.call_log.append(f'find_customers_by_field:{field}:{substring}')
        if field not in CUSTOMER_SEARCH_FIELDS:
            raise ValueError(f"Unknown customer field '{field}'")
        self._check(field)
        needle = substring.lower()
        return [
            self._customer(i) for i in sorted(self.customers)
            if needle in (self.customers[i].get(field) or '').lower()
        ]

    def count_customers(self) -> int:
        return len(self.customers)

    # --- Customer orders ---
    def add_customer_order(self, data: Dict[str, Any]) -> int:
        self.call_log.append('add_customer_order')
        new_id = len(self.orders) + 1
        self.orders[new_id] = {
            'order_date': data.get('order_date', '2024-01-01'),
            'customer_online_id': data['customer_online_id'],
            'book_no': data['book_no'],
            'book_count': data.get('book_count', 1),
            'price': data.get('price', 0),
            'address': data.get('address', ''),
            'status': data.get('status', 'pending'),
        }
        return new_id

    def get_customer_order_by_id(self, order_id: int) -> Optional[CustomerOrderRow]:
        self.call_log.append('get_customer_order_by_id')
        self._check('order_id')
        data = self.orders.get(order_id)
        return CustomerOrderRow(id=order_id, **data) if data else None

    def get_orders_for_customer(self, online_id: str) -> List[CustomerOrderRow]:
        return [
            CustomerOrderRow(id=i, **self.orders[i]) for i in sorted(self.orders)
            if self.orders[i]['customer_online_id'] == online_id
        ]

    def count_customer_orders(self) -> int:
        return len(self.orders)

    # --- Meta & lifecycle ---
    def set_meta(self, key: str, value: str):
        self.meta[key] = value

    def get_meta(self, key: str) -> Optional[str]:
        return self.meta.get(key)

    def commit(self):  # no-op
        pass

    def close(self):  # idempotent
        self._closed = True


__all__ = ["MockDatabase"]
