"""Module entry point for `python -m bookstore.cli`.

Ensures the Click command group runs when the package is executed as a module.
"""

if __name__ == "__main__":  # pragma: no cover (invocation driven)
    from bookstore.cli import cli

    cli()
