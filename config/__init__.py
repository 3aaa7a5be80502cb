"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings (for dependency injection)
    EngineConfig: Tunable constants for one engine run
    get_engine_config: Build EngineConfig from settings
"""

from config.settings import settings, get_settings, Settings
from config.shipping import EngineConfig, get_engine_config

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Engine
    "EngineConfig",
    "get_engine_config",
]
