"""CLI package bootstrap.

Defines root group (`cli`) in helpers and imports submodules so their
decorators register commands. Keep this file minimal to avoid circular
imports and duplication.
"""
from bookstore.cli.helpers import cli  # root group
from bookstore.cli import config_cmds  # noqa: F401
from bookstore.cli import record_cmds  # noqa: F401
from bookstore.cli import lookup_cmds  # noqa: F401

__all__ = ["cli"]
