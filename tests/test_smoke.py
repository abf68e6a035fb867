"""
Smoke test: the package imports and the application can be built.
"""
from asset_pipeline.core.config import get_settings


def test_settings_load_from_environment():
    settings = get_settings()
    assert settings.queue_name == "ai-processing"
    assert settings.ai_service_url == "http://ai.test"
    assert settings.worker_enabled is False


def test_application_routes_are_registered():
    from asset_pipeline.main import create_application

    paths = {route.path for route in create_application().routes}
    assert {
        "/health",
        "/api/v1/assets/analyze-queue",
        "/api/v1/assets/queue-status",
        "/api/v1/assets/{asset_id}",
        "/api/v1/notifications/ws",
    } <= paths
