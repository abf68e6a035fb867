"""
Fixtures that run the FastAPI application against in-memory stores.
"""
import pytest
from fastapi.testclient import TestClient

from asset_pipeline.core.config import reset_settings
from asset_pipeline.di.container import DIContainer
from asset_pipeline.domain.repositories.asset_repository import AssetRepository
from asset_pipeline.domain.repositories.job_repository import JobRepository
from asset_pipeline.infrastructure.external.analysis_client import AnalysisClient
from asset_pipeline.main import create_application
from tests.fakes import ScriptedAnalysisService

DEFAULT_REPLY = (200, {
    "brand": {"value": "Nike", "confidence": 0.93},
    "model": "Air Max 90",
    "processed_image_url": "https://cdn.test/processed.jpg",
})


@pytest.fixture
def analysis_service():
    return ScriptedAnalysisService(DEFAULT_REPLY)


@pytest.fixture
def worker_enabled(monkeypatch):
    """Run the worker pool inside the application lifespan."""
    monkeypatch.setenv("WORKER_ENABLED", "true")
    reset_settings()


@pytest.fixture
def container(asset_repository, job_repository, analysis_service):
    return DIContainer(overrides={
        AssetRepository: asset_repository,
        JobRepository: job_repository,
        AnalysisClient: AnalysisClient(base_url="http://ai.test", transport=analysis_service.transport),
    })


@pytest.fixture
def client(container):
    with TestClient(create_application(container=container)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(make_token):
    def _headers(owner_id: str = "U1") -> dict:
        return {"Authorization": f"Bearer {make_token(owner_id)}"}
    return _headers
