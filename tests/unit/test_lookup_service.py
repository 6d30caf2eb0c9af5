import pytest
from bookstore.match import BookQuery, CustomerQuery, StorageUnavailableError
from bookstore.services.lookup_service import (
    build_engine,
    run_book_lookup,
    run_customer_lookup,
    run_text_lookup,
)
from tests.mocks.fixtures import mock_db, catalog_db  # noqa: F401 (fixture import)


def test_run_book_lookup_empty_catalog(mock_db):
    config = {"matching": {"default_threshold": 50}}
    result = run_book_lookup(mock_db, config, BookQuery(title="Programming"))
    assert not result.success
    assert result.feedback == "No books found"
    assert result.duration_seconds >= 0


def test_run_book_lookup_uses_configured_default(catalog_db):
    config = {"matching": {"default_threshold": 70}}
    result = run_book_lookup(catalog_db, config, BookQuery(title="Programming"))
    assert [b.book_no for b in result.response.records] == ["B-001"]


def test_explicit_threshold_wins_over_config(catalog_db):
    config = {"matching": {"default_threshold": 70}}
    result = run_book_lookup(catalog_db, config, BookQuery(title="Programming"), threshold=50)
    assert len(result.response.matches) == 3


def test_config_match_mode_and_override(catalog_db):
    query = BookQuery(title="Programming", authors="John Doe")
    config = {"matching": {"match_mode": "any"}}
    assert len(run_book_lookup(catalog_db, config, query, threshold=60).response.matches) == 3
    assert len(run_book_lookup(catalog_db, config, query, threshold=60, match_mode="all").response.matches) == 1


def test_run_customer_lookup_by_order(catalog_db):
    result = run_customer_lookup(catalog_db, {}, CustomerQuery(order_id=1))
    assert result.success
    assert result.kind == "customer"
    assert result.response.records[0].online_id == "jroe"


def test_run_text_lookup(catalog_db):
    books = run_text_lookup(catalog_db, {}, "book", "Programming", threshold=50)
    customers = run_text_lookup(catalog_db, {}, "customer", "Jane Roe", threshold=90)
    assert len(books.response.matches) == 3
    assert [c.online_id for c in customers.response.records] == ["jroe"]


def test_run_text_lookup_rejects_unknown_kind(catalog_db):
    with pytest.raises(ValueError, match="Unknown lookup kind"):
        run_text_lookup(catalog_db, {}, "order", "1")


def test_storage_unavailable_propagates(catalog_db):
    catalog_db.fail_fields.add("title")
    with pytest.raises(StorageUnavailableError):
        run_book_lookup(catalog_db, {}, BookQuery(title="Go Programming"), threshold=100)


def test_build_engine_reads_matching_section(mock_db):
    engine = build_engine(mock_db, {"matching": {"max_workers": "2", "prefilter": "none"}})
    assert engine.max_workers == 2
    assert engine.selector.prefilter == "none"


def test_scan_failure_propagates_below_100(catalog_db):
    catalog_db.fail_scans = True
    with pytest.raises(StorageUnavailableError):
        run_book_lookup(catalog_db, {}, BookQuery(title="Programming"))


def test_nan_threshold_rejected(catalog_db):
    with pytest.raises(ValueError, match="NaN"):
        run_customer_lookup(catalog_db, {}, CustomerQuery(name="Jane Roe"), threshold=float("nan"))
