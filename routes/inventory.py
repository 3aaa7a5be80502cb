"""
Inventory API routes.

Reads inventory sheets and reports weeks of cover per product.
"""

from fastapi import APIRouter, UploadFile, File
from fastapi.responses import JSONResponse
from io import BytesIO
import structlog

from models.product import (
    InventoryUploadResponse,
    StockStatusRequest,
    StockStatusSummary,
)
from services.stock_status_service import get_stock_status_service
from parsers.inventory_parser import parse_inventory_file
from exceptions import AppError, InventoryParseError

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
    # Unexpected error
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

@router.post("/upload", response_model=InventoryUploadResponse)
async def upload_inventory(file: UploadFile = File(...)):
    """
    Read inventory levels from a CSV or Excel sheet.

    Columns: SKU, Current Stock, Weekly Consumption, Target SOH (optional,
    defaults to 6). Rejects the entire sheet if any row has errors.

    Raises:
        422: Validation error (bad numbers, missing columns, duplicate SKU)
    """
    logger.info(
        "inventory_upload_started",
        filename=file.filename,
        content_type=file.content_type
    )

    try:
        content = await file.read()
        parse_result = parse_inventory_file(BytesIO(content), filename=file.filename)

        if not parse_result.success:
            logger.warning(
                "inventory_upload_validation_failed",
                error_count=len(parse_result.errors)
            )
            raise InventoryParseError(
                message=f"Inventory sheet has {len(parse_result.errors)} error(s)",
                details={"errors": parse_result.to_dict()["errors"]}
            )

        rows = [r.to_dict() for r in parse_result.rows]

        logger.info("inventory_upload_completed", rows=len(rows))

        return InventoryUploadResponse(
            success=True,
            rows=rows,
            message=f"Read {len(rows)} inventory rows"
        )

    except Exception as e:
        return handle_error(e)


@router.post("/status", response_model=StockStatusSummary)
async def get_stock_status(request: StockStatusRequest):
    """
    Weeks of cover and runs-out date per product, worst first.

    CRITICAL below target SOH, ORDER_NOW below 16 weeks, else HEALTHY.
    """
    try:
        service = get_stock_status_service()
        return service.calculate_all(request.products, request.today)

    except Exception as e:
        return handle_error(e)
