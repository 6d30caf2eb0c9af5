"""Fuzzy lookup commands."""

from __future__ import annotations
import click
import json as _json
import math

from .helpers import cli, get_db
from ..db import BookRow
from ..match import BookQuery, CustomerQuery, StorageUnavailableError
from ..services.lookup_service import LookupResult, run_book_lookup, run_customer_lookup, run_text_lookup
from ..utils.logging_helpers import format_match_line


def _check_threshold(ctx, param, value):
    if value is not None and math.isnan(value):
        raise click.BadParameter("must be a number, not NaN")
    return value


def _threshold_option(f):
    return click.option(
        '--threshold', '-t', type=float, default=None, callback=_check_threshold,
        help='Minimum similarity 0-100 (default: matching.default_threshold; out-of-range values are clamped)',
    )(f)


def _summarize(record) -> str:
    if isinstance(record, BookRow):
        line = f"{record.book_no}  {record.title}  ({record.publisher_name or '-'})"
        if record.authors:
            line += f"  by {record.authors}"
        return line
    line = f"{record.online_id}  {record.name}  {record.address}"
    if record.orders:
        line += f"  [{len(record.orders)} order{'s' if len(record.orders) != 1 else ''}]"
    return line


def _report(result: LookupResult, as_json: bool) -> None:
    response = result.response
    if as_json:
        payload = {
            'success': response.success,
            'feedback': response.feedback,
            'failed_fields': response.failed_fields,
            'matches': [
                {'record': m.record.to_dict(), 'matched_fields': m.matched_fields, 'scores': m.scores}
                for m in response.matches
            ],
        }
        click.echo(_json.dumps(payload, indent=2))
        return

    if not response.success:
        click.echo(click.style(f"⚠ {response.feedback}", fg='yellow'))
        return

    click.echo(click.style(f"=== {response.feedback} ({len(response.matches)}) ===", fg='cyan', bold=True))
    for idx, match in enumerate(response.matches, start=1):
        click.echo(format_match_line(idx, _summarize(match.record), match.describe()))


def _run_lookup(ctx: click.Context, call, as_json: bool) -> None:
    with get_db(ctx.obj) as db:
        try:
            result = call(db)
        except StorageUnavailableError as e:
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            ctx.exit(1)
    _report(result, as_json)


@cli.command(name="query-books")
@click.option('--book-no', default=None)
@click.option('--title', default=None)
@click.option('--publisher', 'publisher_name', default=None, help='Publisher name')
@click.option('--keywords', default=None, help='Comma-separated; every keyword must be matched')
@click.option('--authors', default=None, help='Comma-separated; every author must be matched')
@_threshold_option
@click.option('--mode', type=click.Choice(['all', 'any']), default=None,
              help='all: record must match every given field; any: one field is enough')
@click.option('--json', 'as_json', is_flag=True, help='Emit machine-readable JSON')
@click.pass_context
def query_books(ctx: click.Context, book_no, title, publisher_name, keywords, authors,
                threshold: float | None, mode: str | None, as_json: bool):
    """Find books similar to the given field values.

    Examples:
        bookstore query-books --title Programming --threshold 50
        bookstore query-books --authors "John Doe" --threshold 100
    """
    query = BookQuery(book_no=book_no, title=title, publisher_name=publisher_name, keywords=keywords, authors=authors)
    if not query.supplied():
        raise click.UsageError("Give at least one of --book-no, --title, --publisher, --keywords, --authors")
    _run_lookup(
        ctx,
        lambda db: run_book_lookup(db, ctx.obj, query, threshold=threshold, match_mode=mode),
        as_json,
    )


@cli.command(name="query-customers")
@click.option('--online-id', default=None)
@click.option('--name', default=None)
@click.option('--address', default=None)
@click.option('--order-id', type=int, default=None, help='Exact order id; finds the ordering customer')
@_threshold_option
@click.option('--mode', type=click.Choice(['all', 'any']), default=None,
              help='all: record must match every given field; any: one field is enough')
@click.option('--json', 'as_json', is_flag=True, help='Emit machine-readable JSON')
@click.pass_context
def query_customers(ctx: click.Context, online_id, name, address, order_id: int | None,
                    threshold: float | None, mode: str | None, as_json: bool):
    """Find customers by fuzzy online id, name or address, or by exact order id."""
    query = CustomerQuery(online_id=online_id, name=name, address=address, order_id=order_id)
    if not query.supplied():
        raise click.UsageError("Give at least one of --online-id, --name, --address, --order-id")
    _run_lookup(
        ctx,
        lambda db: run_customer_lookup(db, ctx.obj, query, threshold=threshold, match_mode=mode),
        as_json,
    )


@cli.command(name="search")
@click.argument('text')
@click.option('--kind', type=click.Choice(['book', 'customer']), default='book', show_default=True)
@_threshold_option
@click.option('--json', 'as_json', is_flag=True, help='Emit machine-readable JSON')
@click.pass_context
def search(ctx: click.Context, text: str, kind: str, threshold: float | None, as_json: bool):
    """Free-text lookup: TEXT is tried against every field (any field wins).

    For customers, numeric TEXT is also tried as an order id.
    """
    if not text:
        raise click.UsageError("TEXT must not be empty")
    _run_lookup(
        ctx,
        lambda db: run_text_lookup(db, ctx.obj, kind, text, threshold=threshold),
        as_json,
    )


__all__ = ["query_books", "query_customers", "search"]
