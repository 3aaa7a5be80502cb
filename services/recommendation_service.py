"""
Recommendation service - Core "which containers to order" logic.

Runs the container recommendation pipeline:
    simulate depletion → extract events → coalesce → pack → materialize

calculate_recommendations() is a pure function of
(products, orders, today, config). RecommendationService wraps it with
logging and keeps the latest snapshot per organization, replaced
wholesale and only after a successful run.
"""

import threading
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from config.shipping import EngineConfig, URGENCY_THRESHOLD_DAYS, get_engine_config
from exceptions import EngineInputError, RecommendationSnapshotNotFoundError
from models.order import ExistingOrder
from models.product import ProductInput
from models.recommendation import (
    ContainerProduct,
    ContainerRecommendation,
    ErpRecommendationResult,
    ProductExclusion,
    RecommendationMetadata,
    RecommendationResult,
    RecommendationSnapshot,
    Urgency,
    INVALID_DATA_REASONS,
)
from models.simulation import PackedContainer
from parsers.erp_parser import transform_erp_payload
from services.coalescing_service import coalesce_events
from services.packing_service import pack_clusters
from services.simulation_service import build_replenishment_events
from utils.capacity import utilization_pct

logger = structlog.get_logger(__name__)


ProductLike = Union[ProductInput, dict[str, Any]]
OrderLike = Union[ExistingOrder, dict[str, Any]]


# ===================
# MATERIALIZER
# ===================

def classify_urgency(
    order_by_date: date,
    today: date,
    threshold_days: int = URGENCY_THRESHOLD_DAYS,
) -> Optional[Urgency]:
    """
    Urgency of a container from its order-by date.

    Anything already past is OVERDUE, however far past.

    Args:
        order_by_date: Container order-by date
        today: Reference date
        threshold_days: Near-term window for URGENT

    Returns:
        OVERDUE, URGENT, or None for normal
    """
    days_until = (order_by_date - today).days
    if days_until < 0:
        return Urgency.OVERDUE
    if days_until <= threshold_days:
        return Urgency.URGENT
    return None


def materialize(
    packed: list[PackedContainer],
    today: date,
    config: EngineConfig,
) -> list[ContainerRecommendation]:
    """
    Number packed containers and compute their totals and urgency.

    Numbers run 1..N in the order containers were produced across all
    clusters.
    """
    recommendations = []
    for number, container in enumerate(packed, start=1):
        products = [
            ContainerProduct(
                product_id=line.event.product_id,
                sku=line.event.sku,
                name=line.event.name,
                quantity=line.quantity,
                volume=round(line.volume, 4),
                pieces_per_pallet=line.event.pieces_per_pallet,
            )
            for line in container.lines.values()
        ]
        recommendations.append(ContainerRecommendation(
            container_number=number,
            order_by_date=container.order_by_date,
            delivery_date=container.delivery_date,
            products=products,
            total_cartons=container.total_cartons,
            total_volume=round(container.volume, 2),
            utilization_pct=round(utilization_pct(container.volume, config.container_capacity_m3), 1),
            product_count=len(products),
            urgency=classify_urgency(container.order_by_date, today, config.urgency_threshold_days),
        ))
    return recommendations


# ===================
# INPUT BOUNDARY
# ===================

def _validation_details(index: int, error: PydanticValidationError) -> dict:
    return {
        "index": index,
        "errors": error.errors(include_url=False, include_context=False, include_input=False),
    }


def coerce_products(products: Iterable[ProductLike]) -> list[ProductInput]:
    """
    Validate the product snapshot's shape.

    Raises:
        EngineInputError: On a record that is not a product (missing
            sku, wrong type) or duplicate product ids
    """
    if products is None or isinstance(products, (str, bytes, dict)):
        raise EngineInputError("Products must be a list")

    coerced: list[ProductInput] = []
    seen: set[str] = set()
    for index, product in enumerate(products):
        if not isinstance(product, ProductInput):
            if not isinstance(product, dict):
                raise EngineInputError(
                    "Product record must be an object",
                    details={"index": index, "type": type(product).__name__},
                )
            try:
                product = ProductInput.model_validate(product)
            except PydanticValidationError as e:
                raise EngineInputError("Invalid product record", details=_validation_details(index, e))

        if product.id in seen:
            raise EngineInputError("Duplicate product id", details={"index": index, "id": product.id})
        seen.add(product.id)
        coerced.append(product)

    return coerced


def coerce_orders(orders: Optional[Iterable[OrderLike]]) -> list[ExistingOrder]:
    """
    Validate the existing-order snapshot's shape.

    Raises:
        EngineInputError: On a record that is not an order
    """
    if orders is None:
        return []
    if isinstance(orders, (str, bytes, dict)):
        raise EngineInputError("Orders must be a list")

    coerced: list[ExistingOrder] = []
    for index, order in enumerate(orders):
        if isinstance(order, ExistingOrder):
            coerced.append(order)
            continue
        if not isinstance(order, dict):
            raise EngineInputError(
                "Order record must be an object",
                details={"index": index, "type": type(order).__name__},
            )
        try:
            coerced.append(ExistingOrder.model_validate(order))
        except PydanticValidationError as e:
            raise EngineInputError("Invalid order record", details=_validation_details(index, e))

    return coerced


# ===================
# ENGINE ENTRY POINT
# ===================

def calculate_recommendations(
    products: Iterable[ProductLike],
    orders: Optional[Iterable[OrderLike]],
    today: date,
    config: Optional[EngineConfig] = None,
) -> RecommendationResult:
    """
    Calculate container recommendations for one inventory snapshot.

    Pure function: identical inputs give identical output, including
    container order.

    Args:
        products: Product snapshots (models or dicts)
        orders: Existing orders (models or dicts); delivered ones ignored
        today: Reference date
        config: Engine constants (defaults from settings)

    Returns:
        RecommendationResult with containers, excluded products, metadata

    Raises:
        EngineInputError: If the snapshot is structurally invalid
        PackingError: If a carton cannot fit an empty container
    """
    config = config or get_engine_config()
    product_list = coerce_products(products)
    order_list = coerce_orders(orders)

    events, exclusions = build_replenishment_events(product_list, order_list, today, config)
    clusters = coalesce_events(events, config.coalescing_window_days)
    packed = pack_clusters(clusters, config)
    containers = materialize(packed, today, config)

    return RecommendationResult(
        containers=containers,
        excluded_products=exclusions,
        metadata=RecommendationMetadata(
            total_containers=len(containers),
            total_cartons=sum(c.total_cartons for c in containers),
            total_volume=round(sum(c.total_volume for c in containers), 2),
            planning_horizon_start=today,
            planning_horizon_end=config.horizon_end(today),
        ),
    )


# ===================
# SERVICE
# ===================

class RecommendationService:
    """
    Recommendation business logic.

    Runs the engine on a snapshot supplied by the caller and keeps the
    latest result per organization. A failed run never touches the
    stored snapshot.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or get_engine_config()
        self._snapshots: dict[str, RecommendationSnapshot] = {}
        self._generations: dict[str, int] = {}
        self._stored_generation: dict[str, int] = {}
        self._lock = threading.Lock()

    def calculate(
        self,
        products: Iterable[ProductLike],
        orders: Optional[Iterable[OrderLike]] = None,
        today: Optional[date] = None,
    ) -> RecommendationResult:
        """
        Run the engine without storing anything.

        Args:
            products: Product snapshots
            orders: Existing orders
            today: Reference date (defaults to today)

        Returns:
            RecommendationResult
        """
        today = today or date.today()
        products = coerce_products(products)
        orders = coerce_orders(orders)

        logger.info(
            "calculating_recommendations",
            products=len(products),
            orders=len(orders),
            today=today.isoformat()
        )

        result = calculate_recommendations(products, orders, today, self.config)
        self._log_exclusions(result.excluded_products)

        logger.info(
            "recommendations_calculated",
            containers=result.metadata.total_containers,
            total_cartons=result.metadata.total_cartons,
            total_volume=result.metadata.total_volume,
            excluded=len(result.excluded_products)
        )

        return result

    def calculate_from_erp(
        self,
        erp_products: list[dict],
        inventory: list[dict],
        erp_orders: list[dict],
        today: Optional[date] = None,
    ) -> ErpRecommendationResult:
        """
        Run the engine on raw ERP payloads.

        Raises:
            ErpParseError: If the payload cannot be transformed
        """
        today = today or date.today()
        payload = transform_erp_payload(erp_products, inventory, erp_orders, today)

        for order_number in payload.date_fallbacks:
            logger.warning("erp_eta_fallback_used", order_number=order_number)

        result = self.calculate(payload.products, payload.orders, today)

        return ErpRecommendationResult(
            containers=result.containers,
            excluded_products=result.excluded_products,
            metadata=result.metadata,
            date_fallbacks=payload.date_fallbacks,
            unmatched_skus=payload.unmatched_skus,
        )

    def regenerate(
        self,
        org_id: str,
        products: Iterable[ProductLike],
        orders: Optional[Iterable[OrderLike]] = None,
        today: Optional[date] = None,
    ) -> RecommendationSnapshot:
        """
        Recompute and replace an organization's recommendations.

        Called after every inventory update. If two regenerations for
        the same organization overlap, the one started last wins.

        Args:
            org_id: Organization identifier
            products: Product snapshots
            orders: Existing orders
            today: Reference date (defaults to today)

        Returns:
            The newly stored snapshot

        Raises:
            EngineInputError, PackingError: Previous snapshot kept
        """
        today = today or date.today()
        logger.info("regenerating_recommendations", org_id=org_id)

        with self._lock:
            generation = self._generations.get(org_id, 0) + 1
            self._generations[org_id] = generation

        try:
            result = self.calculate(products, orders, today)
        except Exception as e:
            logger.error(
                "recommendation_generation_failed",
                org_id=org_id,
                error=str(e),
                error_type=type(e).__name__
            )
            raise

        snapshot = RecommendationSnapshot(
            org_id=org_id,
            generated_at=datetime.now(timezone.utc),
            calculation_date=today,
            containers=result.containers,
            excluded_products=result.excluded_products,
            metadata=result.metadata,
        )

        with self._lock:
            if generation < self._stored_generation.get(org_id, 0):
                logger.warning(
                    "stale_recommendations_discarded",
                    org_id=org_id,
                    generation=generation
                )
                return self._snapshots[org_id]
            self._snapshots[org_id] = snapshot
            self._stored_generation[org_id] = generation

        logger.info(
            "recommendations_saved",
            org_id=org_id,
            containers=len(snapshot.containers)
        )

        return snapshot

    def get_snapshot(self, org_id: str) -> RecommendationSnapshot:
        """
        Get the latest stored recommendations for an organization.

        Raises:
            RecommendationSnapshotNotFoundError: If none generated yet
        """
        snapshot = self._snapshots.get(org_id)
        if snapshot is None:
            raise RecommendationSnapshotNotFoundError(org_id)
        return snapshot

    def _log_exclusions(self, exclusions: list[ProductExclusion]) -> None:
        """Bad records are warnings; products that need nothing are debug."""
        for exclusion in exclusions:
            log = logger.warning if exclusion.reason in INVALID_DATA_REASONS else logger.debug
            log(
                "product_excluded",
                product_id=exclusion.product_id,
                sku=exclusion.sku,
                reason=exclusion.reason.value,
                detail=exclusion.detail
            )


# Singleton instance
_recommendation_service: Optional[RecommendationService] = None


def get_recommendation_service() -> RecommendationService:
    """Get the singleton recommendation service instance."""
    global _recommendation_service
    if _recommendation_service is None:
        _recommendation_service = RecommendationService()
    return _recommendation_service
