"""
Stock status service - weeks of cover per product.

Classifies each product by how long current stock lasts at its weekly
consumption, independent of any existing orders:

    CRITICAL   weeks remaining < target SOH
    ORDER_NOW  target SOH ≤ weeks remaining < 16
    HEALTHY    16+ weeks, or not consumed at all
"""

import math
from datetime import date, timedelta
from typing import Iterable, Optional
import structlog

from config.shipping import HEALTHY_THRESHOLD_WEEKS
from models.product import ProductInput, ProductStatus, StockStatus, StockStatusSummary

logger = structlog.get_logger(__name__)


# Worst first
STATUS_ORDER = {
    ProductStatus.CRITICAL: 0,
    ProductStatus.ORDER_NOW: 1,
    ProductStatus.HEALTHY: 2,
}


def classify_status(weeks_remaining: float, target_soh_weeks: float) -> ProductStatus:
    """Status from weeks of cover and the product's target SOH."""
    if weeks_remaining < target_soh_weeks:
        return ProductStatus.CRITICAL
    if weeks_remaining < HEALTHY_THRESHOLD_WEEKS:
        return ProductStatus.ORDER_NOW
    return ProductStatus.HEALTHY


def _finite_or_zero(value: Optional[float]) -> float:
    if value is None or not math.isfinite(value) or value < 0:
        return 0.0
    return value


def calculate_stock_status(product: ProductInput, today: date) -> StockStatus:
    """
    Weeks remaining and runs-out date for one product.

    Args:
        product: Product snapshot
        today: Reference date

    Returns:
        StockStatus (weeks/date None when the product is not consumed)
    """
    stock = _finite_or_zero(product.current_stock)
    consumption = _finite_or_zero(product.weekly_consumption)
    target_soh = _finite_or_zero(product.target_soh_weeks)

    if consumption <= 0:
        return StockStatus(
            product_id=product.id,
            sku=product.sku,
            current_stock=stock,
            weekly_consumption=consumption,
            target_soh_weeks=target_soh,
            status=ProductStatus.HEALTHY,
        )

    weeks_remaining = stock / consumption
    days_remaining: Optional[int] = None
    runs_out_date: Optional[date] = None
    if math.isfinite(weeks_remaining):
        days_remaining = math.floor(weeks_remaining * 7)
        # No calendar date past date.max
        if days_remaining <= (date.max - today).days:
            runs_out_date = today + timedelta(days=days_remaining)

    return StockStatus(
        product_id=product.id,
        sku=product.sku,
        current_stock=stock,
        weekly_consumption=consumption,
        target_soh_weeks=target_soh,
        weeks_remaining=round(weeks_remaining, 2) if math.isfinite(weeks_remaining) else None,
        runs_out_date=runs_out_date,
        runs_out_days=days_remaining,
        status=classify_status(weeks_remaining, target_soh),
    )


class StockStatusService:
    """Stock status across a product snapshot."""

    def calculate_all(
        self,
        products: Iterable[ProductInput],
        today: Optional[date] = None,
    ) -> StockStatusSummary:
        """
        Status for every product, worst first.

        Sorted by status, then fewest weeks remaining, then SKU.

        Args:
            products: Product snapshots
            today: Reference date (defaults to today)

        Returns:
            StockStatusSummary with per-status counts
        """
        today = today or date.today()
        statuses = [calculate_stock_status(p, today) for p in products]

        statuses.sort(key=lambda s: (
            STATUS_ORDER[s.status],
            s.weeks_remaining if s.weeks_remaining is not None else float("inf"),
            s.sku,
        ))

        summary = StockStatusSummary(
            total_products=len(statuses),
            critical_count=sum(1 for s in statuses if s.status == ProductStatus.CRITICAL),
            order_now_count=sum(1 for s in statuses if s.status == ProductStatus.ORDER_NOW),
            healthy_count=sum(1 for s in statuses if s.status == ProductStatus.HEALTHY),
            products=statuses,
        )

        logger.info(
            "stock_status_calculated",
            total=summary.total_products,
            critical=summary.critical_count,
            order_now=summary.order_now_count,
            healthy=summary.healthy_count
        )

        return summary


# Singleton instance
_stock_status_service: Optional[StockStatusService] = None


def get_stock_status_service() -> StockStatusService:
    """Get the singleton stock status service instance."""
    global _stock_status_service
    if _stock_status_service is None:
        _stock_status_service = StockStatusService()
    return _stock_status_service
