"""
Pytest configuration and fixtures
"""
import logging
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from highscores.config import Settings
from highscores.index import create_app
from highscores.services.score_store import InMemoryScoreStore


@pytest.fixture
def settings():
    """Settings for an isolated in-memory app without rate limiting"""
    return Settings(storage_backend="memory", rate_limit_enabled=False)


@pytest.fixture
def store():
    return InMemoryScoreStore()


@pytest.fixture
def client(settings, store):
    """Create a test client bound to the in-memory store"""
    return TestClient(create_app(settings, store))


@pytest.fixture
def mock_table():
    """DynamoDB Table resource mock with no stored item"""
    table = MagicMock()
    table.name = "highscores"
    table.get_item.return_value = {}
    return table


@pytest.fixture
def restore_root_logger():
    """Put root logging back the way it was after tests that reconfigure it"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
