from __future__ import annotations
import pytest
from .mock_database import MockDatabase

PROGRAMMING_BOOKS = [
    {
        'book_no': 'B-001',
        'title': 'Go Programming',
        'publisher_name': 'Tech Press',
        'keywords': 'programming,go',
        'authors': 'John Doe',
        'price': 3999,
        'stock_quantity': 5,
    },
    {
        'book_no': 'B-002',
        'title': 'Python Programming',
        'publisher_name': 'Tech Press',
        'keywords': 'programming,python',
        'authors': 'Jane Roe',
        'price': 4599,
        'stock_quantity': 3,
    },
    {
        'book_no': 'B-003',
        'title': 'Java Programming',
        'publisher_name': 'Tech Press',
        'keywords': 'programming,java',
        'authors': 'Max Mustermann,Jane Roe',
        'price': 4299,
        'stock_quantity': 2,
    },
]

CUSTOMERS = [
    {'online_id': 'jdoe', 'password': 'secret', 'name': 'John Doe', 'address': '1 Main Street', 'account_balance': 350},
    {'online_id': 'jroe', 'password': 'secret', 'name': 'Jane Roe', 'address': '22 Side Road', 'account_balance': 50},
]


@pytest.fixture
def mock_db():
    return MockDatabase()


@pytest.fixture
def catalog_db(mock_db):
    """MockDatabase holding three programming books, two customers and one order."""
    for book in PROGRAMMING_BOOKS:
        mock_db.add_book(book)
    for customer in CUSTOMERS:
        mock_db.add_customer(customer)
    mock_db.add_customer_order({
        'order_date': '2024-03-01',
        'customer_online_id': 'jroe',
        'book_no': 'B-002',
        'book_count': 1,
        'price': 4599,
        'address': '22 Side Road',
    })
    return mock_db
