"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
Engine tunables default to the values in config/shipping.py.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache

from config.shipping import (
    CONTAINER_CAPACITY_M3,
    CAPACITY_TOLERANCE_M3,
    PACKING_INCREMENT_CARTONS,
    SHIPPING_LEAD_TIME_WEEKS,
    COALESCING_WINDOW_DAYS,
    PLANNING_HORIZON_WEEKS,
    URGENCY_THRESHOLD_DAYS,
)


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # CONTAINER CONSTRAINTS
    # ===================
    container_capacity_m3: float = Field(
        default=CONTAINER_CAPACITY_M3,
        gt=0,
        le=200,
        description="Usable volume per container in m³ (40HC)"
    )
    capacity_tolerance_m3: float = Field(
        default=CAPACITY_TOLERANCE_M3,
        ge=0,
        le=1,
        description="Floating-point slack applied to capacity checks"
    )
    packing_increment_cartons: int = Field(
        default=PACKING_INCREMENT_CARTONS,
        ge=1,
        le=10000,
        description="Cartons added per product per round-robin pass"
    )

    # ===================
    # PLANNING
    # ===================
    shipping_lead_time_weeks: int = Field(
        default=SHIPPING_LEAD_TIME_WEEKS,
        ge=1,
        le=52,
        description="Weeks from order placement to delivery"
    )
    coalescing_window_days: int = Field(
        default=COALESCING_WINDOW_DAYS,
        ge=0,
        le=60,
        description="Days within which replenishment events share a shipment"
    )
    planning_horizon_weeks: int = Field(
        default=PLANNING_HORIZON_WEEKS,
        ge=1,
        le=156,
        description="Weeks of consumption to simulate"
    )
    urgency_threshold_days: int = Field(
        default=URGENCY_THRESHOLD_DAYS,
        ge=0,
        le=90,
        description="Order-by dates within this many days are URGENT"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Frontend origins allowed by CORS (JSON list in env)"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
