"""
Recommendations API routes.

Runs the container recommendation engine on a snapshot sent by the
caller, and stores/serves the latest recommendations per organization.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.recommendation import (
    ErpRecommendationRequest,
    ErpRecommendationResult,
    RecommendationRequest,
    RecommendationResult,
    RecommendationSnapshot,
    Urgency,
)
from services.recommendation_service import get_recommendation_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/calculate", response_model=RecommendationResult)
async def calculate_recommendations(request: RecommendationRequest):
    """
    Calculate container recommendations for a snapshot.

    Nothing is stored. Containers come back numbered in order-by date
    order; products that cannot or need not be ordered are listed in
    excluded_products with a reason.
    """
    try:
        service = get_recommendation_service()
        return service.calculate(request.products, request.orders, request.today)

    except Exception as e:
        return handle_error(e)


@router.put("/organizations/{org_id}", response_model=RecommendationSnapshot)
async def regenerate_recommendations(org_id: str, request: RecommendationRequest):
    """
    Regenerate an organization's recommendations.

    Call after every inventory save. The stored recommendations are
    replaced only when the run succeeds.
    """
    try:
        service = get_recommendation_service()
        return service.regenerate(org_id, request.products, request.orders, request.today)

    except Exception as e:
        return handle_error(e)


@router.get("/organizations/{org_id}", response_model=RecommendationSnapshot)
async def get_recommendations(org_id: str):
    """
    Get an organization's latest recommendations.

    Raises:
        404: No recommendations generated yet
    """
    try:
        service = get_recommendation_service()
        return service.get_snapshot(org_id)

    except Exception as e:
        return handle_error(e)


@router.get("/organizations/{org_id}/summary")
async def get_recommendations_summary(org_id: str):
    """
    Get counts and totals without container details.

    Useful for dashboard widgets.
    """
    try:
        service = get_recommendation_service()
        snapshot = service.get_snapshot(org_id)
        today = snapshot.calculation_date

        return {
            "org_id": snapshot.org_id,
            "generated_at": snapshot.generated_at,
            "calculation_date": snapshot.calculation_date,
            "total_containers": snapshot.metadata.total_containers,
            "total_cartons": snapshot.metadata.total_cartons,
            "total_volume": snapshot.metadata.total_volume,
            "excluded_products": len(snapshot.excluded_products),
            "next_order_by_date": min(
                (c.order_by_date for c in snapshot.containers if c.order_by_date >= today),
                default=None
            ),
            "by_urgency": {
                "overdue": sum(1 for c in snapshot.containers if c.urgency == Urgency.OVERDUE),
                "urgent": sum(1 for c in snapshot.containers if c.urgency == Urgency.URGENT),
                "normal": sum(1 for c in snapshot.containers if c.urgency is None),
            }
        }

    except Exception as e:
        return handle_error(e)


@router.post("/erp/calculate", response_model=ErpRecommendationResult)
async def calculate_from_erp(request: ErpRecommendationRequest):
    """
    Calculate recommendations from raw ERP payloads.

    ERP products are merged with inventory rows by SKU; ERP orders are
    normalized (status mapping, ETA parsing) before the engine runs.
    Order numbers whose ETA could not be read are listed in
    date_fallbacks.
    """
    try:
        service = get_recommendation_service()
        return service.calculate_from_erp(
            request.products,
            request.inventory,
            request.orders,
            request.today,
        )

    except Exception as e:
        return handle_error(e)
