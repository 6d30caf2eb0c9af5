from __future__ import annotations
import sqlite3
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .interface import DatabaseInterface, BOOK_SEARCH_FIELDS, CUSTOMER_SEARCH_FIELDS
from .models import BookRow, CustomerRow, CustomerOrderRow

logger = logging.getLogger(__name__)

SCHEMA = [
    "CREATE TABLE IF NOT EXISTS books (id INTEGER PRIMARY KEY AUTOINCREMENT, book_no TEXT NOT NULL UNIQUE, title TEXT NOT NULL, publisher_name TEXT, price INTEGER NOT NULL DEFAULT 0, keywords TEXT, authors TEXT, stock_quantity INTEGER NOT NULL DEFAULT 0, created_at TEXT DEFAULT CURRENT_TIMESTAMP, updated_at TEXT DEFAULT CURRENT_TIMESTAMP);",
    "CREATE TABLE IF NOT EXISTS customers (id INTEGER PRIMARY KEY AUTOINCREMENT, online_id TEXT NOT NULL UNIQUE, password TEXT NOT NULL, name TEXT NOT NULL, address TEXT NOT NULL, account_balance INTEGER NOT NULL DEFAULT 0, credit_level INTEGER NOT NULL DEFAULT 0, created_at TEXT DEFAULT CURRENT_TIMESTAMP, updated_at TEXT DEFAULT CURRENT_TIMESTAMP);",
    "CREATE TABLE IF NOT EXISTS customer_orders (id INTEGER PRIMARY KEY AUTOINCREMENT, order_date TEXT NOT NULL, customer_online_id TEXT NOT NULL, book_no TEXT NOT NULL, book_count INTEGER NOT NULL, price INTEGER NOT NULL DEFAULT 0, address TEXT NOT NULL, status TEXT NOT NULL DEFAULT 'pending', created_at TEXT DEFAULT CURRENT_TIMESTAMP, updated_at TEXT DEFAULT CURRENT_TIMESTAMP);",
    "CREATE INDEX IF NOT EXISTS idx_customer_orders_customer ON customer_orders(customer_online_id);",
    "CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value TEXT);",
]

# Values accepted by PRAGMA journal_mode
JOURNAL_MODES = ("DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF")

# Account balance needed for each credit level (index + 1)
CREDIT_THRESHOLDS = (100, 300, 500, 1000, 3000)

_BOOK_COLUMNS = "id, book_no, title, publisher_name, keywords, authors, price, stock_quantity"
_CUSTOMER_COLUMNS = "id, online_id, name, address, account_balance, credit_level"
_ORDER_COLUMNS = "id, order_date, customer_online_id, book_no, book_count, price, address, status"


def credit_level_for_balance(balance: int) -> int:
    """Map an account balance to a credit level between 0 and 5."""
    level = 0
    for idx, threshold in enumerate(CREDIT_THRESHOLDS, start=1):
        if balance >= threshold:
            level = idx
    return level


def _like_pattern(substring: str) -> str:
    escaped = substring.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return f"%{escaped}%"


def _require(data: Dict[str, Any], *keys: str) -> None:
    for key in keys:
        if not data.get(key):
            raise ValueError(f"{key} is required")


class Database(DatabaseInterface):
    """SQLite-backed record store.

    The connection is shared across threads (the lookup engine fetches fields
    concurrently); every statement runs under ``self._lock``.
    """

    def __init__(self, path: Path, journal_mode: str = "WAL"):
        mode = journal_mode.upper()
        if mode not in JOURNAL_MODES:
            raise ValueError(
                f"Unknown journal mode '{journal_mode}'. Valid options: {', '.join(JOURNAL_MODES)}"
            )
        self.path = path
        self.journal_mode = mode
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(path, timeout=30, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._closed = False
        self._init_schema()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        cur.execute(f"PRAGMA journal_mode={self.journal_mode};")
        for stmt in SCHEMA:
            cur.execute(stmt)
        cur.execute("INSERT OR REPLACE INTO meta(key,value) VALUES('schema_version','1')")
        self.conn.commit()

    def _execute_with_lock_handling(self, sql: str, params: Any = None):
        """Execute SQL with better diagnostics on database lock (but let SQLite retry)."""
        try:
            with self._lock:
                if params is not None:
                    return self.conn.execute(sql, params)
                return self.conn.execute(sql)
        except sqlite3.OperationalError as e:
            if "database is locked" in str(e).lower():
                # Log diagnostic info but re-raise to let calling code handle it
                logger.warning("Database lock detected - SQLite will retry for up to 30 seconds")
                logger.warning("If this persists, check for:")
                logger.warning("  • DB Browser or other tools with database open")
                logger.warning("  • Long-running transactions in other processes")
            raise

    def _fetchall(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchall()

    def _fetchone(self, sql: str, params: Sequence[Any] = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchone()

    # --- Books ---

    def add_book(self, data: Dict[str, Any]) -> int:
        _require(data, "book_no", "title", "publisher_name")
        if (data.get("price") or 0) <= 0:
            raise ValueError("price must be greater than 0")
        if (data.get("stock_quantity") or 0) <= 0:
            raise ValueError("stock_quantity must be greater than 0")
        cur = self._execute_with_lock_handling(
            "INSERT INTO books(book_no,title,publisher_name,price,keywords,authors,stock_quantity) VALUES(?,?,?,?,?,?,?)",
            (
                data["book_no"], data["title"], data["publisher_name"], data["price"],
                data.get("keywords"), data.get("authors"), data["stock_quantity"],
            ),
        )
        return cur.lastrowid

    def get_book_by_no(self, book_no: str) -> Optional[BookRow]:
        row = self._fetchone(f"SELECT {_BOOK_COLUMNS} FROM books WHERE book_no=?", (book_no,))
        return BookRow.from_row(row) if row else None

    def get_all_books(self) -> List[BookRow]:
        rows = self._fetchall(f"SELECT {_BOOK_COLUMNS} FROM books ORDER BY id")
        return [BookRow.from_row(row) for row in rows]

    def find_books_by_field(self, field: str, substring: str) -> List[BookRow]:
        if field not in BOOK_SEARCH_FIELDS:
            raise ValueError(f"Unknown book field '{field}'")
        rows = self._fetchall(
            f"SELECT {_BOOK_COLUMNS} FROM books WHERE {field} LIKE ? ESCAPE '\\' ORDER BY id",
            (_like_pattern(substring),),
        )
        return [BookRow.from_row(row) for row in rows]

    def count_books(self) -> int:
        return self._fetchone("SELECT COUNT(*) FROM books")[0]

    # --- Customers ---

    def add_customer(self, data: Dict[str, Any]) -> int:
        _require(data, "online_id", "password", "name", "address")
        balance = int(data.get("account_balance") or 0)
        cur = self._execute_with_lock_handling(
            "INSERT INTO customers(online_id,password,name,address,account_balance,credit_level) VALUES(?,?,?,?,?,?)",
            (
                data["online_id"], data["password"], data["name"], data["address"],
                balance, credit_level_for_balance(balance),
            ),
        )
        return cur.lastrowid

    def _customers_with_orders(self, rows: List[sqlite3.Row]) -> List[CustomerRow]:
        if not rows:
            return []
        online_ids = [row['online_id'] for row in rows]
        placeholders = ','.join('?' * len(online_ids))
        order_rows = self._fetchall(
            f"SELECT {_ORDER_COLUMNS} FROM customer_orders WHERE customer_online_id IN ({placeholders}) ORDER BY id",
            online_ids,
        )
        by_owner: Dict[str, List[CustomerOrderRow]] = {}
        for order_row in order_rows:
            order = CustomerOrderRow.from_row(order_row)
            by_owner.setdefault(order.customer_online_id, []).append(order)
        return [CustomerRow.from_row(row, tuple(by_owner.get(row['online_id'], []))) for row in rows]

    def get_customer_by_online_id(self, online_id: str) -> Optional[CustomerRow]:
        row = self._fetchone(f"SELECT {_CUSTOMER_COLUMNS} FROM customers WHERE online_id=?", (online_id,))
        if not row:
            return None
        return self._customers_with_orders([row])[0]

    def get_all_customers(self) -> List[CustomerRow]:
        rows = self._fetchall(f"SELECT {_CUSTOMER_COLUMNS} FROM customers ORDER BY id")
        return self._customers_with_orders(rows)

    def find_customers_by_field(self, field: str, substring: str) -> List[CustomerRow]:
        if field not in CUSTOMER_SEARCH_FIELDS:
            raise ValueError(f"Unknown customer field '{field}'")
        rows = self._fetchall(
            f"SELECT {_CUSTOMER_COLUMNS} FROM customers WHERE {field} LIKE ? ESCAPE '\\' ORDER BY id",
            (_like_pattern(substring),),
        )
        return self._customers_with_orders(rows)

    def count_customers(self) -> int:
        return self._fetchone("SELECT COUNT(*) FROM customers")[0]

    # --- Customer orders ---

    def add_customer_order(self, data: Dict[str, Any]) -> int:
        _require(data, "order_date", "customer_online_id", "book_no", "address")
        if (data.get("book_count") or 0) <= 0:
            raise ValueError("book_count must be greater than 0")
        if (data.get("price") or 0) <= 0:
            raise ValueError("price must be greater than 0")
        if self._fetchone("SELECT 1 FROM customers WHERE online_id=?", (data["customer_online_id"],)) is None:
            raise ValueError(f"Customer '{data['customer_online_id']}' not found")
        cur = self._execute_with_lock_handling(
            "INSERT INTO customer_orders(order_date,customer_online_id,book_no,book_count,price,address,status) VALUES(?,?,?,?,?,?,?)",
            (
                data["order_date"], data["customer_online_id"], data["book_no"], data["book_count"],
                data["price"], data["address"], data.get("status") or "pending",
            ),
        )
        return cur.lastrowid

    def get_customer_order_by_id(self, order_id: int) -> Optional[CustomerOrderRow]:
        row = self._fetchone(f"SELECT {_ORDER_COLUMNS} FROM customer_orders WHERE id=?", (order_id,))
        return CustomerOrderRow.from_row(row) if row else None

    def get_orders_for_customer(self, online_id: str) -> List[CustomerOrderRow]:
        rows = self._fetchall(
            f"SELECT {_ORDER_COLUMNS} FROM customer_orders WHERE customer_online_id=? ORDER BY id",
            (online_id,),
        )
        return [CustomerOrderRow.from_row(row) for row in rows]

    def count_customer_orders(self) -> int:
        return self._fetchone("SELECT COUNT(*) FROM customer_orders")[0]

    # --- Meta & lifecycle ---

    def set_meta(self, key: str, value: str):
        self._execute_with_lock_handling(
            "INSERT INTO meta(key,value) VALUES(?,?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            (key, value),
        )

    def get_meta(self, key: str) -> Optional[str]:
        row = self._fetchone("SELECT value FROM meta WHERE key=?", (key,))
        return row[0] if row else None

    def commit(self):
        with self._lock:
            self.conn.commit()

    def close(self):
        if self._closed:
            return
        with self._lock:
            self.conn.commit()
            self.conn.close()
        self._closed = True
