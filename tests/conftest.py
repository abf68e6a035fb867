"""
Shared pytest fixtures for asset pipeline tests.
"""
import os
from unittest.mock import patch

import pytest

from asset_pipeline.core.config import reset_settings
from asset_pipeline.core.security import create_jwt_token
from tests.fakes import InMemoryAssetRepository, InMemoryJobRepository

TEST_ENV = {
    "MONGO_URI": "mongodb://localhost:27017",
    "MONGO_DB_NAME": "test_asset_pipeline",
    "JWT_SECRET_KEY": "test_secret_key_for_testing_only",
    "JWT_ALGORITHM": "HS256",
    "AI_SERVICE_URL": "http://ai.test",
    "AI_SERVICE_TIMEOUT_SECONDS": "5",
    "WORKER_ENABLED": "false",
    "WORKER_POLL_INTERVAL_SECONDS": "0.01",
    "WORKER_STALLED_CHECK_SECONDS": "0.05",
    "WORKER_DRAIN_TIMEOUT_SECONDS": "1",
    "WS_HANDSHAKE_TIMEOUT_SECONDS": "1",
    "LOG_LEVEL": "DEBUG",
}


@pytest.fixture(autouse=True)
def mock_env():
    """Every test sees the same environment and a freshly built Settings."""
    with patch.dict(os.environ, TEST_ENV, clear=False):
        reset_settings()
        yield TEST_ENV
    reset_settings()


@pytest.fixture
def asset_repository():
    return InMemoryAssetRepository()


@pytest.fixture
def job_repository():
    return InMemoryJobRepository()


@pytest.fixture
def make_token():
    """Build a signed identity token for an owner ID."""
    def _make(owner_id: str, expires_in_seconds=None, claim: str = "sub") -> str:
        return create_jwt_token({claim: owner_id}, expires_in_seconds=expires_in_seconds)
    return _make
