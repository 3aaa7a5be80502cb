"""
Shipping configuration and engine constants.

Module-level defaults for the container recommendation engine, and the
EngineConfig that carries them into a run.
"""

from datetime import date, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# CONTAINER CONSTANTS (40ft High Cube)
# =============================================================================

# Usable volume per container in m³
CONTAINER_CAPACITY_M3 = 76.0

# Slack applied when comparing accumulated volume against capacity.
# 2000 cartons × 0.038 m³ sums to 76.00000000000x in floating point.
CAPACITY_TOLERANCE_M3 = 0.01

# Cartons added per product on each round-robin pass
PACKING_INCREMENT_CARTONS = 1


# =============================================================================
# PLANNING CONSTANTS
# =============================================================================

# China → New Zealand, order placed to stock on the shelf
SHIPPING_LEAD_TIME_WEEKS = 8

# Replenishment events within this many days of the anchor ship together
COALESCING_WINDOW_DAYS = 7

# Twelve months of simulated consumption
PLANNING_HORIZON_WEEKS = 52

# Order-by dates this close to today are flagged URGENT
URGENCY_THRESHOLD_DAYS = 14


# =============================================================================
# INVENTORY CONSTANTS
# =============================================================================

# Target stock on hand (weeks) when the customer has not set one
DEFAULT_TARGET_SOH_WEEKS = 6

# Bounds accepted on inventory input. 0 = product no longer needed.
MIN_TARGET_SOH_WEEKS = 0
MAX_TARGET_SOH_WEEKS = 52

# Target (6) + lead time (8) + buffer (2): at 16+ weeks all near-term
# orders are already placed
HEALTHY_THRESHOLD_WEEKS = 16


class EngineConfig(BaseModel):
    """
    Tunable constants for one engine run.

    Passed explicitly into the engine entry point so tests can exercise
    boundary values without touching engine internals.
    """

    model_config = ConfigDict(frozen=True)

    container_capacity_m3: float = Field(CONTAINER_CAPACITY_M3, gt=0)
    capacity_tolerance_m3: float = Field(CAPACITY_TOLERANCE_M3, ge=0)
    packing_increment_cartons: int = Field(PACKING_INCREMENT_CARTONS, ge=1)
    shipping_lead_time_weeks: int = Field(SHIPPING_LEAD_TIME_WEEKS, ge=0)
    coalescing_window_days: int = Field(COALESCING_WINDOW_DAYS, ge=0)
    planning_horizon_weeks: int = Field(PLANNING_HORIZON_WEEKS, ge=1)
    urgency_threshold_days: int = Field(URGENCY_THRESHOLD_DAYS, ge=0)

    @property
    def lead_time(self) -> timedelta:
        return timedelta(weeks=self.shipping_lead_time_weeks)

    def horizon_end(self, today: date) -> date:
        """First day after the simulated horizon."""
        return today + timedelta(weeks=self.planning_horizon_weeks)


def get_engine_config(overrides: Optional[dict] = None) -> EngineConfig:
    """
    Build engine config from application settings.

    Args:
        overrides: Optional field values that win over settings

    Returns:
        EngineConfig
    """
    from config.settings import get_settings

    settings = get_settings()
    values = {
        "container_capacity_m3": settings.container_capacity_m3,
        "capacity_tolerance_m3": settings.capacity_tolerance_m3,
        "packing_increment_cartons": settings.packing_increment_cartons,
        "shipping_lead_time_weeks": settings.shipping_lead_time_weeks,
        "coalescing_window_days": settings.coalescing_window_days,
        "planning_horizon_weeks": settings.planning_horizon_weeks,
        "urgency_threshold_days": settings.urgency_threshold_days,
    }
    if overrides:
        values.update(overrides)
    return EngineConfig(**values)
