"""
Global fixtures for all unit tests.

Unit tests never reach MongoDB or a generation provider:
- The Atlas MongoClient is replaced by a MagicMock (an unreachable URI
  would otherwise block on server selection for up to 30s per test)
- Config is pinned to a provider-less setup so any code path that builds
  a chat model from configuration gets None and uses its fallback

These fixtures apply automatically to ALL tests in tests/unit/.
"""

import os
import pytest
from unittest.mock import MagicMock, patch

# Config reads the environment at import time
os.environ["OPENAI_API_KEY"] = ""
os.environ["DEBUG_MODE"] = "false"

TEST_MONGODB_URI = "mongodb://test-host:27017"


@pytest.fixture(autouse=True)
def mock_mongodb():
    """Replace the Atlas client with an empty in-memory stand-in."""
    from src.common.repositories.atlas_repository import AtlasBase

    AtlasBase._client = None
    with patch("src.common.repositories.atlas_repository.MongoClient") as mock_client:
        collection = MagicMock()
        collection.find_one.return_value = None
        collection.find.return_value = []
        mock_client.return_value.__getitem__.return_value.__getitem__.return_value = collection
        yield mock_client
    AtlasBase._client = None


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Pin wizard settings to their defaults with no provider configured."""
    from src.common.config import Config

    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("MONGODB_URI", TEST_MONGODB_URI)
    for name, value in {
        "OPENAI_API_KEY": "",
        "MONGODB_URI": TEST_MONGODB_URI,
        "ENABLE_DYNAMIC_QUESTIONS": True,
        "MIN_CONTENT_LENGTH": 50,
        "MAX_RANKED_ACTIVITIES": 30,
    }.items():
        monkeypatch.setattr(Config, name, value)
