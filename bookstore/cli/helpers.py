from __future__ import annotations
import click
from pathlib import Path

from ..config import load_typed_config, deep_merge
from ..version import __version__
from ..db import Database


def get_db(cfg):
    """Get database instance from config.

    Args:
        cfg: Configuration dictionary

    Returns:
        Database instance
    """
    db_cfg = cfg["database"]
    return Database(Path(db_cfg["path"]), journal_mode=db_cfg.get("pragma_journal_mode", "WAL"))


@click.group()
@click.version_option(version=__version__, prog_name="bookstore-lookup")
@click.option('--db-path', type=click.Path(dir_okay=False), default=None, help='SQLite database file (overrides config)')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False), default=None,
              help='Logging level (overrides config)')
@click.pass_context
def cli(ctx: click.Context, db_path: str | None, log_level: str | None):
    """Fuzzy lookup of books and customers in an online bookstore catalog.

    \b
    TYPICAL WORKFLOWS:

    \b
    Initial Setup:
      bookstore init-db                       # Create the SQLite schema
      bookstore add-book --book-no B1 ...     # Add catalog entries
      bookstore add-customer --online-id ...  # Add customers

    \b
    Lookups:
      bookstore query-books --title Programming --threshold 50
      bookstore query-customers --name "Jon Doe" --order-id 7
      bookstore search "Programming"          # Try every field (any wins)

    \b
    Configuration:
      bookstore config                        # Show effective settings
      BOOKSTORE__MATCHING__DEFAULT_THRESHOLD=70 bookstore query-books ...
    """
    overrides = {}
    if db_path:
        overrides['database'] = {'path': db_path}
    if log_level:
        overrides['log_level'] = log_level.upper()

    # Tests inject a ready-made config dict via CliRunner(obj=...)
    if isinstance(ctx.obj, dict):
        if overrides:
            ctx.obj = deep_merge(ctx.obj, overrides)
    else:
        ctx.obj = load_typed_config(overrides or None).to_dict()


__all__ = ["cli", "get_db"]
