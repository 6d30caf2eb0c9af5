"""Catalog maintenance commands: create the schema and add records."""

from __future__ import annotations
import click
import sqlite3
import time

from .helpers import cli, get_db


def _insert(ctx: click.Context, label: str, method: str, data: dict) -> None:
    """Run one repository insert, mapping validation errors to a red message."""
    with get_db(ctx.obj) as db:
        try:
            new_id = getattr(db, method)(data)
        except ValueError as e:
            click.echo(click.style(f"Error: {e}", fg='red'))
            ctx.exit(1)
        except sqlite3.IntegrityError as e:
            click.echo(click.style(f"Error: {label} rejected by database: {e}", fg='red'))
            ctx.exit(1)
        db.set_meta('last_write_epoch', str(time.time()))
        db.commit()
    click.echo(click.style(f"✓ Added {label} (id={new_id})", fg='green'))


@cli.command(name="init-db")
@click.pass_context
def init_db(ctx: click.Context):
    """Create the SQLite database and schema (safe to re-run)."""
    cfg = ctx.obj
    with get_db(cfg) as db:
        books = db.count_books()
        customers = db.count_customers()
        orders = db.count_customer_orders()
    click.echo(click.style(f"✓ Database ready: {cfg['database']['path']}", fg='green'))
    click.echo(f"  {books} books, {customers} customers, {orders} orders")


@cli.command(name="add-book")
@click.option('--book-no', required=True, help='Catalog number (unique)')
@click.option('--title', required=True)
@click.option('--publisher', 'publisher_name', required=True, help='Publisher name')
@click.option('--price', type=int, required=True, help='Price in minor currency units')
@click.option('--stock', 'stock_quantity', type=int, default=1, show_default=True, help='Units in stock')
@click.option('--keywords', default=None, help='Comma-separated keywords, e.g. "programming,go"')
@click.option('--authors', default=None, help='Comma-separated authors, e.g. "John Doe,Jane Roe"')
@click.pass_context
def add_book(ctx: click.Context, book_no: str, title: str, publisher_name: str, price: int,
             stock_quantity: int, keywords: str | None, authors: str | None):
    """Add a book to the catalog."""
    data = {
        'book_no': book_no,
        'title': title,
        'publisher_name': publisher_name,
        'price': price,
        'stock_quantity': stock_quantity,
        'keywords': keywords,
        'authors': authors,
    }
    _insert(ctx, f"book {book_no}", "add_book", data)


@cli.command(name="add-customer")
@click.option('--online-id', required=True, help='Login id (unique)')
@click.option('--password', required=True, prompt=True, hide_input=True)
@click.option('--name', required=True)
@click.option('--address', required=True)
@click.option('--balance', 'account_balance', type=int, default=0, show_default=True,
              help='Account balance; determines the credit level')
@click.pass_context
def add_customer(ctx: click.Context, online_id: str, password: str, name: str, address: str, account_balance: int):
    """Add a customer account."""
    data = {
        'online_id': online_id,
        'password': password,
        'name': name,
        'address': address,
        'account_balance': account_balance,
    }
    _insert(ctx, f"customer {online_id}", "add_customer", data)


@cli.command(name="add-order")
@click.option('--customer', 'customer_online_id', required=True, help='Online id of the ordering customer')
@click.option('--book-no', required=True)
@click.option('--count', 'book_count', type=int, default=1, show_default=True)
@click.option('--price', type=int, required=True)
@click.option('--address', required=True, help='Delivery address')
@click.option('--date', 'order_date', default=None, help='Order date (default: today, YYYY-MM-DD)')
@click.pass_context
def add_order(ctx: click.Context, customer_online_id: str, book_no: str, book_count: int, price: int,
              address: str, order_date: str | None):
    """Record a customer order (its id is usable with query-customers --order-id)."""
    data = {
        'order_date': order_date or time.strftime('%Y-%m-%d'),
        'customer_online_id': customer_online_id,
        'book_no': book_no,
        'book_count': book_count,
        'price': price,
        'address': address,
    }
    _insert(ctx, "order", "add_customer_order", data)


__all__ = ["init_db", "add_book", "add_customer", "add_order"]
