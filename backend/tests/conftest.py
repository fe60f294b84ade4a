"""
backend/tests/conftest.py

Purpose:
    Import roots for the suite (poolsettle under backend/, CLIs under tools/)
    and a settings factory that ignores any local .env file.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[2]

for import_root in (_REPO_ROOT / "backend", _REPO_ROOT):
    if str(import_root) not in sys.path:
        sys.path.insert(0, str(import_root))


@pytest.fixture
def make_settings():
    from poolsettle.config import Settings

    def _make(**overrides):
        return Settings(_env_file=None, **overrides)

    return _make
