"""
Unit tests for engine settings and EngineConfig.
"""

import pytest

from config.settings import Settings
from config.shipping import (
    CONTAINER_CAPACITY_M3,
    COALESCING_WINDOW_DAYS,
    PLANNING_HORIZON_WEEKS,
    SHIPPING_LEAD_TIME_WEEKS,
    EngineConfig,
    get_engine_config,
)

ENGINE_FIELDS = [
    "container_capacity_m3",
    "capacity_tolerance_m3",
    "packing_increment_cartons",
    "shipping_lead_time_weeks",
    "coalescing_window_days",
    "planning_horizon_weeks",
    "urgency_threshold_days",
]


@pytest.fixture
def clean_env(monkeypatch):
    """No engine overrides from the environment."""
    for name in ENGINE_FIELDS:
        monkeypatch.delenv(name.upper(), raising=False)


class TestSettingsDefaults:

    def test_engine_defaults_match_shipping_constants(self, clean_env):
        settings = Settings(_env_file=None)
        defaults = EngineConfig()

        for name in ENGINE_FIELDS:
            assert getattr(settings, name) == getattr(defaults, name), name

    def test_env_overrides_default(self, clean_env, monkeypatch):
        monkeypatch.setenv("COALESCING_WINDOW_DAYS", "10")

        assert Settings(_env_file=None).coalescing_window_days == 10


class TestGetEngineConfig:

    def test_overrides_win(self):
        config = get_engine_config({"container_capacity_m3": 33.0})

        assert config.container_capacity_m3 == 33.0

    def test_constants(self):
        config = EngineConfig()

        assert config.container_capacity_m3 == CONTAINER_CAPACITY_M3 == 76.0
        assert config.shipping_lead_time_weeks == SHIPPING_LEAD_TIME_WEEKS == 8
        assert config.coalescing_window_days == COALESCING_WINDOW_DAYS == 7
        assert config.planning_horizon_weeks == PLANNING_HORIZON_WEEKS == 52
