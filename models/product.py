"""
Product schemas for the recommendation engine.

A product snapshot combines catalog data (pallet size and volume, from
the ERP) with the customer's inventory levels (stock, consumption, SOH).
"""

from pydantic import Field, field_validator
from typing import Optional
from enum import Enum
from datetime import date

from config.shipping import DEFAULT_TARGET_SOH_WEEKS
from models.base import BaseSchema


class ProductStatus(str, Enum):
    """Stock status from weeks of cover."""
    CRITICAL = "CRITICAL"    # Below target SOH
    ORDER_NOW = "ORDER_NOW"  # At target but inside the reorder horizon
    HEALTHY = "HEALTHY"      # All near-term orders already placed


class ProductInput(BaseSchema):
    """
    Product snapshot fed into one engine run.

    Numeric fields accept any float so that bad records (NaN, negative
    volume) reach the engine and are excluded there, instead of failing
    the whole request.
    """

    id: str = Field(..., min_length=1, description="Product identifier")
    sku: str = Field(..., min_length=1, description="Product SKU")
    name: Optional[str] = Field(None, description="Display name")
    current_stock: Optional[float] = Field(
        None,
        description="Cartons on hand. Missing or negative is treated as zero"
    )
    weekly_consumption: float = Field(
        0,
        description="Cartons consumed per week"
    )
    target_soh_weeks: float = Field(
        DEFAULT_TARGET_SOH_WEEKS,
        description="Target stock on hand in weeks. 0 = discontinued"
    )
    pieces_per_pallet: float = Field(..., description="Cartons per pallet")
    volume_per_pallet: float = Field(..., description="Pallet volume in m³")

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v):
        """ERP ids arrive as integers."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def volume_per_carton(self) -> float:
        """m³ per carton."""
        return self.volume_per_pallet / self.pieces_per_pallet


class StockStatus(BaseSchema):
    """Weeks of cover and runs-out date for a single product."""

    product_id: str
    sku: str
    current_stock: float
    weekly_consumption: float
    target_soh_weeks: float
    weeks_remaining: Optional[float] = Field(
        None,
        description="None when the product is not consumed"
    )
    runs_out_date: Optional[date] = None
    runs_out_days: Optional[int] = None
    status: ProductStatus


class StockStatusSummary(BaseSchema):
    """Stock status across all products."""

    total_products: int
    critical_count: int = 0
    order_now_count: int = 0
    healthy_count: int = 0
    products: list[StockStatus]


class StockStatusRequest(BaseSchema):
    """Products to classify."""

    products: list[ProductInput]
    today: Optional[date] = Field(None, description="Defaults to the server date")


class InventoryUploadResponse(BaseSchema):
    """Rows read from an uploaded inventory sheet."""

    success: bool
    rows: list[dict]
    message: str
