"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    FrozenSchema,
)
from models.product import (
    ProductInput,
    ProductStatus,
    StockStatus,
    StockStatusSummary,
    StockStatusRequest,
    InventoryUploadResponse,
)
from models.order import (
    OrderStatus,
    OrderLine,
    ExistingOrder,
)
from models.recommendation import (
    Urgency,
    ExclusionReason,
    ContainerProduct,
    ContainerRecommendation,
    ProductExclusion,
    RecommendationMetadata,
    RecommendationResult,
    RecommendationSnapshot,
    RecommendationRequest,
    ErpRecommendationRequest,
    ErpRecommendationResult,
)

__all__ = [
    # Base
    "BaseSchema",
    "FrozenSchema",

    # Product
    "ProductInput",
    "ProductStatus",
    "StockStatus",
    "StockStatusSummary",
    "StockStatusRequest",
    "InventoryUploadResponse",

    # Order
    "OrderStatus",
    "OrderLine",
    "ExistingOrder",

    # Recommendation
    "Urgency",
    "ExclusionReason",
    "ContainerProduct",
    "ContainerRecommendation",
    "ProductExclusion",
    "RecommendationMetadata",
    "RecommendationResult",
    "RecommendationSnapshot",
    "RecommendationRequest",
    "ErpRecommendationRequest",
    "ErpRecommendationResult",
]
