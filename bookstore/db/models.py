"""Domain model types for database entities.

These dataclasses provide type-safe representations of database rows,
improving IDE support, type checking, and making the data contracts explicit.
They are frozen: the lookup engine treats every row as an immutable snapshot.
"""
from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Optional, Dict, Any, Tuple


@dataclass(frozen=True)
class BookRow:
    """Represents a book from the books table.

    ``keywords`` and ``authors`` hold comma-joined lists.
    """
    id: int
    book_no: str
    title: str
    publisher_name: Optional[str]
    keywords: Optional[str]
    authors: Optional[str]
    price: int = 0
    stock_quantity: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for compatibility with existing code."""
        return asdict(self)

    def __getitem__(self, key: str) -> Any:
        """Provide dict-like subscript access for compatibility."""
        return getattr(self, key)

    @classmethod
    def from_row(cls, row) -> BookRow:
        """Convert sqlite3.Row to BookRow."""
        return cls(
            id=row['id'],
            book_no=row['book_no'],
            title=row['title'],
            publisher_name=row['publisher_name'],
            keywords=row['keywords'],
            authors=row['authors'],
            price=row['price'],
            stock_quantity=row['stock_quantity'],
        )


@dataclass(frozen=True)
class CustomerOrderRow:
    """Represents an order from the customer_orders table."""
    id: int
    order_date: str
    customer_online_id: str
    book_no: str
    book_count: int
    price: int
    address: str
    status: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for compatibility with existing code."""
        return asdict(self)

    @classmethod
    def from_row(cls, row) -> CustomerOrderRow:
        """Convert sqlite3.Row to CustomerOrderRow."""
        return cls(
            id=row['id'],
            order_date=row['order_date'],
            customer_online_id=row['customer_online_id'],
            book_no=row['book_no'],
            book_count=row['book_count'],
            price=row['price'],
            address=row['address'],
            status=row['status'],
        )


@dataclass(frozen=True)
class CustomerRow:
    """Represents a customer from the customers table, with its orders."""
    id: int
    online_id: str
    name: str
    address: str
    account_balance: int = 0
    credit_level: int = 0
    orders: Tuple[CustomerOrderRow, ...] = field(default=())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for compatibility with existing code."""
        data = asdict(self)
        data['orders'] = [o.to_dict() for o in self.orders]
        return data

    def __getitem__(self, key: str) -> Any:
        """Provide dict-like subscript access for compatibility."""
        return getattr(self, key)

    @classmethod
    def from_row(cls, row, orders: Tuple[CustomerOrderRow, ...] = ()) -> CustomerRow:
        """Convert sqlite3.Row to CustomerRow.

        Args:
            row: sqlite3.Row object with customer columns
            orders: Already-fetched orders owned by this customer
        """
        return cls(
            id=row['id'],
            online_id=row['online_id'],
            name=row['name'],
            address=row['address'],
            account_balance=row['account_balance'],
            credit_level=row['credit_level'],
            orders=tuple(orders),
        )


__all__ = ["BookRow", "CustomerRow", "CustomerOrderRow"]
