"""
Repository-level pytest configuration.

Provides predictable environment defaults so the suites run the same way
locally and in CI:
  - UI_BASE_URL used by page objects when no base URL is passed
  - Resolution waits short enough for fixture pages served from memory

Values already set by the user or CI are never overridden.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _env_defaults() -> Generator[None, None, None]:
    """Set environment defaults if not already provided by the user/CI."""
    defaults = {
        "UI_BASE_URL": "http://localhost:3000",
        "BROWSER_HEADLESS": "true",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    yield
