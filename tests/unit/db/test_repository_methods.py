"""Unit tests for typed repository methods.

Tests the SQLite repository methods that return typed dataclass rows, the
create-time validation and the field whitelist guarding interpolated SQL.
"""
from __future__ import annotations
import pytest
from bookstore.db import Database, BookRow, CustomerRow, CustomerOrderRow
from bookstore.db.sqlite_impl import credit_level_for_balance
from pathlib import Path


@pytest.fixture
def db(tmp_path: Path):
    """Create a throwaway SQLite database."""
    db_path = tmp_path / "test.db"
    db = Database(db_path)
    yield db
    db.close()


def _book(**overrides):
    data = {
        'book_no': 'B-001',
        'title': 'Go Programming',
        'publisher_name': 'Tech Press',
        'price': 3999,
        'stock_quantity': 5,
        'keywords': 'programming,go',
        'authors': 'John Doe',
    }
    data.update(overrides)
    return data


def _customer(**overrides):
    data = {
        'online_id': 'jdoe',
        'password': 'secret',
        'name': 'John Doe',
        'address': '1 Main Street',
        'account_balance': 350,
    }
    data.update(overrides)
    return data


class TestBookRepository:
    """Test book-related repository methods."""

    def test_get_all_books_empty(self, db: Database):
        assert db.get_all_books() == []
        assert db.count_books() == 0

    def test_add_and_fetch_book(self, db: Database):
        book_id = db.add_book(_book())

        book = db.get_book_by_no('B-001')
        assert isinstance(book, BookRow)
        assert book.id == book_id
        assert book.title == 'Go Programming'
        assert book['authors'] == 'John Doe'
        assert book.to_dict()['price'] == 3999

    def test_find_books_by_field_is_substring(self, db: Database):
        db.add_book(_book())
        db.add_book(_book(book_no='B-002', title='Python Programming'))
        db.add_book(_book(book_no='B-003', title='Cooking'))

        hits = db.find_books_by_field('title', 'Programming')

        assert [b.book_no for b in hits] == ['B-001', 'B-002']

    def test_like_wildcards_are_literal(self, db: Database):
        db.add_book(_book(title='100% Go'))
        db.add_book(_book(book_no='B-002', title='Go_Lang'))
        db.add_book(_book(book_no='B-003', title='Gopher'))

        assert [b.book_no for b in db.find_books_by_field('title', '%')] == ['B-001']
        assert [b.book_no for b in db.find_books_by_field('title', 'o_')] == ['B-002']

    def test_unknown_field_rejected(self, db: Database):
        with pytest.raises(ValueError, match="Unknown book field"):
            db.find_books_by_field('title; DROP TABLE books', 'x')

    @pytest.mark.parametrize("overrides,message", [
        ({'book_no': ''}, 'book_no is required'),
        ({'title': None}, 'title is required'),
        ({'publisher_name': ''}, 'publisher_name is required'),
        ({'price': 0}, 'price must be greater than 0'),
        ({'stock_quantity': -1}, 'stock_quantity must be greater than 0'),
    ])
    def test_add_book_validation(self, db: Database, overrides, message):
        with pytest.raises(ValueError, match=message):
            db.add_book(_book(**overrides))


class TestCustomerRepository:
    """Test customer and order repository methods."""

    def test_credit_level_derived_from_balance(self, db: Database):
        db.add_customer(_customer(account_balance=350))

        customer = db.get_customer_by_online_id('jdoe')
        assert isinstance(customer, CustomerRow)
        assert customer.credit_level == 2

    @pytest.mark.parametrize("balance,level", [(0, 0), (99, 0), (100, 1), (499, 2), (500, 3), (2999, 4), (3000, 5), (10**6, 5)])
    def test_credit_level_thresholds(self, balance, level):
        assert credit_level_for_balance(balance) == level

    def test_add_customer_requires_password(self, db: Database):
        with pytest.raises(ValueError, match='password is required'):
            db.add_customer(_customer(password=''))

    def test_orders_are_preloaded(self, db: Database):
        db.add_customer(_customer())
        db.add_customer(_customer(online_id='jroe', name='Jane Roe'))
        order_id = db.add_customer_order({
            'order_date': '2024-03-01',
            'customer_online_id': 'jdoe',
            'book_no': 'B-001',
            'book_count': 2,
            'price': 7998,
            'address': '1 Main Street',
        })

        customers = db.get_all_customers()
        assert [len(c.orders) for c in customers] == [1, 0]
        order = customers[0].orders[0]
        assert isinstance(order, CustomerOrderRow)
        assert order.id == order_id
        assert order.status == 'pending'
        assert customers[0].to_dict()['orders'][0]['book_count'] == 2

    def test_get_customer_order_by_id(self, db: Database):
        db.add_customer(_customer())
        order_id = db.add_customer_order({
            'order_date': '2024-03-01', 'customer_online_id': 'jdoe', 'book_no': 'B-001',
            'book_count': 1, 'price': 3999, 'address': '1 Main Street',
        })

        assert db.get_customer_order_by_id(order_id).customer_online_id == 'jdoe'
        assert db.get_customer_order_by_id(order_id + 1) is None
        assert db.count_customer_orders() == 1
        assert len(db.get_orders_for_customer('jdoe')) == 1

    def test_order_needs_existing_customer(self, db: Database):
        with pytest.raises(ValueError, match="Customer 'ghost' not found"):
            db.add_customer_order({
                'order_date': '2024-03-01', 'customer_online_id': 'ghost', 'book_no': 'B-001',
                'book_count': 1, 'price': 3999, 'address': 'nowhere',
            })

    def test_find_customers_case_insensitive(self, db: Database):
        db.add_customer(_customer())

        assert [c.online_id for c in db.find_customers_by_field('name', 'john')] == ['jdoe']
        with pytest.raises(ValueError):
            db.find_customers_by_field('password', 'secret')


class TestMetaAndLifecycle:
    def test_meta_roundtrip(self, db: Database):
        assert db.get_meta('schema_version') == '1'
        db.set_meta('last_write_epoch', '123')
        db.set_meta('last_write_epoch', '456')
        assert db.get_meta('last_write_epoch') == '456'
        assert db.get_meta('missing') is None

    def test_data_survives_reopen(self, tmp_path: Path):
        path = tmp_path / "persist.db"
        first = Database(path)
        first.add_book(_book())
        first.close()
        first.close()  # idempotent

        second = Database(path)
        assert second.count_books() == 1
        second.close()

    def test_context_manager_closes(self, tmp_path: Path):
        with Database(tmp_path / "ctx.db") as db:
            db.add_book(_book())
            assert db.count_books() == 1
        assert db._closed

    def test_default_journal_mode_is_wal(self, db: Database):
        assert db.conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"

    @pytest.mark.parametrize("mode", ["DELETE", "truncate", "MEMORY"])
    def test_journal_mode_applied(self, tmp_path: Path, mode):
        db = Database(tmp_path / "journal.db", journal_mode=mode)
        try:
            assert db.conn.execute("PRAGMA journal_mode").fetchone()[0] == mode.lower()
        finally:
            db.close()

    def test_unknown_journal_mode_rejected(self, tmp_path: Path):
        with pytest.raises(ValueError, match="Unknown journal mode"):
            Database(tmp_path / "bad.db", journal_mode="WAL; DROP TABLE books")
