"""
Business logic services.

The engine stages (simulation, coalescing, packing) are plain functions;
the service classes wrap them with logging and state.
"""

from services.recommendation_service import (
    RecommendationService,
    get_recommendation_service,
    calculate_recommendations,
)
from services.stock_status_service import StockStatusService, get_stock_status_service

__all__ = [
    "RecommendationService",
    "get_recommendation_service",
    "calculate_recommendations",
    "StockStatusService",
    "get_stock_status_service",
]
