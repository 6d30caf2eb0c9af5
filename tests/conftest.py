"""Pytest fixtures for test configuration.

Global test safety measures:
 - Strip BOOKSTORE__* variables from the environment so a developer's shell
   settings cannot leak into config-loading tests
"""
import os

import pytest
from pathlib import Path
from typing import Dict, Any

# Expose mock fixtures (mock_db, catalog_db)
from tests.mocks.fixtures import *  # noqa: F401,F403


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith('BOOKSTORE__') or key == 'BOOKSTORE_ENABLE_DOTENV':
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def test_config(tmp_path: Path) -> Dict[str, Any]:
    """Provide a minimal test configuration as a dict.

    Tests should use this fixture and pass cfg to CLI/modules directly,
    rather than creating config files or setting environment variables.

    Default paths are isolated to tmp_path for test isolation.
    Tests can override individual values using dict update or deep_merge.
    """
    return {
        'log_level': 'DEBUG',
        'matching': {
            'default_threshold': 50,
            'match_mode': 'all',
            'prefilter': 'substring',
            'max_workers': 4,
        },
        'database': {
            'path': str(tmp_path / 'db.sqlite'),
            'pragma_journal_mode': 'WAL',
        },
    }
