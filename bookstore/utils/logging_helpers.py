"""Logging helper utilities for consistent lookup reporting."""

import logging
from typing import Sequence

import click

logger = logging.getLogger(__name__)


def format_lookup_summary(
    kind: str,
    matched: int,
    candidates: int,
    fields: Sequence[str],
    failed: Sequence[str] = (),
    duration_seconds: float = 0.0,
) -> str:
    """Format a one-line lookup summary with colored counts.

    Args:
        kind: Record kind ("book" or "customer")
        matched: Records in the final result
        candidates: Candidates scored across all fields
        fields: Query fields that were evaluated
        failed: Fields whose storage fetch failed
        duration_seconds: Wall time of the lookup

    Returns:
        Formatted summary string with colors
    """
    parts = [
        f"[lookup] {kind}:",
        click.style(f'{matched} matched', fg='green' if matched else 'yellow'),
        click.style(f'{candidates} candidates', fg='cyan'),
        f"fields={','.join(fields)}",
    ]

    if failed:
        parts.append(click.style(f"failed={','.join(failed)}", fg='red'))

    if duration_seconds > 0:
        parts.append(f"in {duration_seconds:.3f}s")

    return " | ".join(parts)


def format_match_line(index: int, summary: str, feedback: str) -> str:
    """Format one result row for terminal output."""
    return f"{click.style(f'{index:>3}.', fg='cyan')} {summary}  {click.style(feedback, dim=True)}"


__all__ = ["format_lookup_summary", "format_match_line"]
