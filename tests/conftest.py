"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add repo root to Python path
repo_dir = Path(__file__).parent.parent
sys.path.insert(0, str(repo_dir))

import pytest
from datetime import date
from unittest.mock import patch

from config.shipping import EngineConfig


# ===================
# ENGINE FIXTURES
# ===================

@pytest.fixture
def today() -> date:
    """Fixed reference date so depletion dates are predictable."""
    return date(2025, 1, 1)


@pytest.fixture
def engine_config() -> EngineConfig:
    """Default engine constants, independent of any .env file."""
    return EngineConfig()


@pytest.fixture
def small_container_config() -> EngineConfig:
    """
    5 m³ container with no tolerance.

    Usage:
        def test_split(small_container_config):
            # 1 m³ cartons → 5 per container
    """
    return EngineConfig(container_capacity_m3=5.0, capacity_tolerance_m3=0.0)


# ===================
# SERVICE FIXTURES
# ===================

@pytest.fixture
def recommendation_service(engine_config):
    """Fresh RecommendationService with its own empty snapshot store."""
    from services.recommendation_service import RecommendationService

    return RecommendationService(config=engine_config)


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client(recommendation_service):
    """
    Create FastAPI test client.

    Routes get a fresh recommendation service per test so stored
    snapshots do not leak between tests.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    with patch(
        "routes.recommendations.get_recommendation_service",
        return_value=recommendation_service
    ):
        yield TestClient(app)
