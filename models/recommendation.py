"""
Recommendation schemas for container recommendations.

Output of the engine: which containers to order, when, and with what.
"""

from pydantic import Field
from typing import Optional, Any
from datetime import date, datetime
from enum import Enum

from models.base import BaseSchema, FrozenSchema
from models.product import ProductInput
from models.order import ExistingOrder


class Urgency(str, Enum):
    """Urgency of a container's order-by date. Normal containers carry None."""
    OVERDUE = "OVERDUE"  # Order-by date already passed
    URGENT = "URGENT"    # Order-by date within the near-term threshold


class ExclusionReason(str, Enum):
    """Why a product produced no replenishment event."""
    NON_FINITE_VALUE = "NON_FINITE_VALUE"
    INVALID_VOLUME = "INVALID_VOLUME"
    INVALID_PALLET_SIZE = "INVALID_PALLET_SIZE"
    CARTON_EXCEEDS_CAPACITY = "CARTON_EXCEEDS_CAPACITY"
    NO_CONSUMPTION = "NO_CONSUMPTION"
    DISCONTINUED = "DISCONTINUED"
    NO_DEPLETION_IN_HORIZON = "NO_DEPLETION_IN_HORIZON"


# Reasons caused by bad data, as opposed to a product that simply needs nothing
INVALID_DATA_REASONS = frozenset({
    ExclusionReason.NON_FINITE_VALUE,
    ExclusionReason.INVALID_VOLUME,
    ExclusionReason.INVALID_PALLET_SIZE,
    ExclusionReason.CARTON_EXCEEDS_CAPACITY,
})


class ContainerProduct(FrozenSchema):
    """One product line inside a recommended container."""

    product_id: str
    sku: str
    name: Optional[str] = None
    quantity: int = Field(..., ge=1, description="Cartons")
    volume: float = Field(..., ge=0, description="m³")
    pieces_per_pallet: int


class ContainerRecommendation(FrozenSchema):
    """A single container to order."""

    container_number: int = Field(..., ge=1)
    order_by_date: date
    delivery_date: date
    products: list[ContainerProduct]
    total_cartons: int = Field(..., ge=0)
    total_volume: float = Field(..., ge=0, description="m³")
    utilization_pct: float = Field(..., ge=0, le=100)
    product_count: int = Field(..., ge=0)
    urgency: Optional[Urgency] = None


class ProductExclusion(FrozenSchema):
    """A product left out of the recommendation run."""

    product_id: str
    sku: str
    reason: ExclusionReason
    detail: Optional[str] = None


class RecommendationMetadata(FrozenSchema):
    """Run-level facts about a recommendation result."""

    total_containers: int
    total_cartons: int
    total_volume: float
    planning_horizon_start: date
    planning_horizon_end: date


class RecommendationResult(FrozenSchema):
    """Complete engine output for one snapshot."""

    containers: list[ContainerRecommendation]
    excluded_products: list[ProductExclusion] = Field(default_factory=list)
    metadata: RecommendationMetadata


class RecommendationSnapshot(FrozenSchema):
    """Stored result for an organization, replaced wholesale on regeneration."""

    org_id: str
    generated_at: datetime
    calculation_date: date
    containers: list[ContainerRecommendation]
    excluded_products: list[ProductExclusion] = Field(default_factory=list)
    metadata: RecommendationMetadata


# ===================
# REQUEST SCHEMAS
# ===================

class RecommendationRequest(BaseSchema):
    """Snapshot to run the engine on."""

    products: list[ProductInput]
    orders: list[ExistingOrder] = Field(default_factory=list)
    today: Optional[date] = Field(None, description="Defaults to the server date")


class ErpRecommendationRequest(BaseSchema):
    """Raw ERP payloads plus inventory levels keyed by SKU."""

    products: list[dict[str, Any]] = Field(..., description="ERP product list")
    inventory: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Rows with sku, current_stock, weekly_consumption, target_soh"
    )
    orders: list[dict[str, Any]] = Field(default_factory=list, description="ERP current orders")
    today: Optional[date] = None


class ErpRecommendationResult(RecommendationResult):
    """Engine output plus warnings from the ERP transform."""

    date_fallbacks: list[str] = Field(
        default_factory=list,
        description="Order numbers whose ETA was unreadable (ordered date + 8 weeks used)"
    )
    unmatched_skus: list[str] = Field(
        default_factory=list,
        description="Catalog SKUs with no inventory levels"
    )
