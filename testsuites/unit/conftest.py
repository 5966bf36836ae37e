"""
Unit test fixtures: loguru capture and configuration isolation.
"""

from typing import Generator, List

import pytest
from loguru import logger

from boundary_tools.common import ConfigLoader


@pytest.fixture
def log_records() -> Generator[List[dict], None, None]:
    """Collect loguru records emitted during the test."""
    records: List[dict] = []
    sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(sink_id)


@pytest.fixture
def warnings_logged(log_records):
    """Messages of the WARNING records captured so far (call it to read)."""
    def read() -> List[str]:
        return [r["message"] for r in log_records if r["level"].name == "WARNING"]
    return read


@pytest.fixture(autouse=True)
def _fresh_config() -> Generator[None, None, None]:
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()
