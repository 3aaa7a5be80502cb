"""
Custom exception classes for the application.

All errors carry a stable code and HTTP status so routes can convert
them to the standard error envelope.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "RECOMMENDATIONS_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


# ===================
# ENGINE ERRORS
# ===================

class EngineInputError(ValidationError):
    """Engine input has the wrong shape (not a bad value in one record)."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="ENGINE_INPUT_INVALID",
            message=message,
            details=details
        )


class PackingError(AppError):
    """Packer could not place any cartons into an empty container."""

    def __init__(self, skus: list[str], capacity_m3: float):
        super().__init__(
            code="PACKING_FAILED",
            message="No increment fits into an empty container",
            status_code=500,
            details={"skus": skus, "capacity_m3": capacity_m3}
        )


# ===================
# RECOMMENDATION ERRORS
# ===================

class RecommendationSnapshotNotFoundError(NotFoundError):
    """No recommendations generated yet for this organization."""

    def __init__(self, org_id: str):
        super().__init__(
            resource="Recommendations",
            identifier=org_id,
            code="RECOMMENDATIONS_NOT_FOUND"
        )


# ===================
# PARSER ERRORS
# ===================

class ErpParseError(ValidationError):
    """ERP payload could not be transformed."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="ERP_PARSE_ERROR",
            message=message,
            details=details
        )


class InventoryParseError(ValidationError):
    """Inventory file could not be read."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="INVENTORY_PARSE_ERROR",
            message=message,
            details=details
        )
