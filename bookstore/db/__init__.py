from .interface import DatabaseInterface, BOOK_SEARCH_FIELDS, CUSTOMER_SEARCH_FIELDS
from .sqlite_impl import Database
from .models import BookRow, CustomerRow, CustomerOrderRow

__all__ = [
    "DatabaseInterface",
    "Database",
    "BookRow",
    "CustomerRow",
    "CustomerOrderRow",
    "BOOK_SEARCH_FIELDS",
    "CUSTOMER_SEARCH_FIELDS",
]
