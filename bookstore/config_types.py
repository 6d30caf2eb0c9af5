"""Typed configuration dataclasses for bookstore-lookup.

Provides strongly-typed configuration objects that can be used throughout
the application for better type safety and IDE support.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Dict, Any


@dataclass
class MatchingConfig:
    """Lookup engine configuration (aligned with _DEFAULTS)."""
    default_threshold: float = 50  # 0-100 scale, used when a request omits one
    match_mode: str = "all"  # "all" (every supplied field) or "any" (legacy)
    prefilter: str = "substring"  # "substring" or "none" (full scan)
    max_workers: int = 4  # per-field fan-out; 1 runs fields inline

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for backward compatibility."""
        return asdict(self)


@dataclass
class DatabaseConfig:
    """Database configuration."""
    path: str = "data/db/bookstore.db"
    pragma_journal_mode: str = "WAL"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for backward compatibility."""
        return asdict(self)


@dataclass
class AppConfig:
    """Root application configuration with all subsections."""
    log_level: str = "INFO"
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to nested dictionary for backward compatibility.

        Returns:
            Nested dict structure matching config format
        """
        return {
            "log_level": self.log_level,
            "matching": self.matching.to_dict(),
            "database": self.database.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AppConfig:
        """Create typed config from dictionary.

        Unknown keys inside a section are ignored so that stray environment
        variables do not break startup.

        Args:
            data: Dictionary config (from load_config)

        Returns:
            Typed AppConfig instance
        """
        return cls(
            log_level=data.get("log_level", "INFO"),
            matching=MatchingConfig(**_known(MatchingConfig, data.get("matching", {}))),
            database=DatabaseConfig(**_known(DatabaseConfig, data.get("database", {}))),
        )


def _known(section_cls, values: Dict[str, Any]) -> Dict[str, Any]:
    names = section_cls.__dataclass_fields__.keys()
    return {k: v for k, v in values.items() if k in names}


__all__ = ["MatchingConfig", "DatabaseConfig", "AppConfig"]
