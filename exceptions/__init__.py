"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,

    # Engine
    EngineInputError,
    PackingError,

    # Recommendations
    RecommendationSnapshotNotFoundError,

    # Parsers
    ErpParseError,
    InventoryParseError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",

    # Engine
    "EngineInputError",
    "PackingError",

    # Recommendations
    "RecommendationSnapshotNotFoundError",

    # Parsers
    "ErpParseError",
    "InventoryParseError",
]
