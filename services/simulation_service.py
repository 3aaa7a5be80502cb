"""
Depletion simulation - when does each product run out?

Projects stock week by week across the planning horizon, crediting
existing orders in the week they arrive, and turns the day stock hits
zero into a replenishment event.

Pure functions: no database access, no logging. Callers log exclusions.
"""

import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional

from config.shipping import EngineConfig
from models.order import ExistingOrder
from models.product import ProductInput
from models.recommendation import ExclusionReason, ProductExclusion
from models.simulation import DepletionResult, ReplenishmentEvent, SimulatedWeekPoint
from utils.capacity import fits_within_capacity
from utils.text_utils import normalize_sku


# ===================
# ELIGIBILITY
# ===================

def check_product(
    product: ProductInput,
    config: EngineConfig,
) -> Optional[tuple[ExclusionReason, str]]:
    """
    Decide whether a product can take part in a run.

    Bad records are dropped here rather than aborting the run, so one
    broken catalog row never blocks recommendations for the rest.

    Args:
        product: Product snapshot
        config: Engine config (for the carton-vs-capacity check)

    Returns:
        (reason, detail) if the product must be excluded, else None
    """
    numbers = {
        "weekly_consumption": product.weekly_consumption,
        "target_soh_weeks": product.target_soh_weeks,
        "pieces_per_pallet": product.pieces_per_pallet,
        "volume_per_pallet": product.volume_per_pallet,
    }
    if product.current_stock is not None:
        numbers["current_stock"] = product.current_stock

    bad = [name for name, value in numbers.items() if not math.isfinite(value)]
    if bad:
        return ExclusionReason.NON_FINITE_VALUE, f"Non-finite value in {', '.join(bad)}"

    if product.pieces_per_pallet <= 0:
        return ExclusionReason.INVALID_PALLET_SIZE, "pieces_per_pallet must be positive"

    if product.volume_per_pallet <= 0:
        return ExclusionReason.INVALID_VOLUME, "volume_per_pallet must be positive"

    if not fits_within_capacity(
        product.volume_per_carton,
        config.container_capacity_m3,
        config.capacity_tolerance_m3,
    ):
        return (
            ExclusionReason.CARTON_EXCEEDS_CAPACITY,
            f"{product.volume_per_carton:.3f} m³ per carton exceeds container capacity",
        )

    if product.weekly_consumption <= 0:
        return ExclusionReason.NO_CONSUMPTION, "Product is not consumed"

    if product.target_soh_weeks <= 0:
        return ExclusionReason.DISCONTINUED, "Target SOH is 0 weeks"

    return None


# ===================
# DEPLETION
# ===================

def collect_deliveries(sku: str, orders: Iterable[ExistingOrder]) -> list[tuple[date, int]]:
    """
    Get open-order deliveries for one SKU.

    Delivered orders are already in current stock and are skipped.

    Args:
        sku: Product SKU
        orders: Existing orders

    Returns:
        (delivery_date, cartons) pairs, in order encountered
    """
    key = normalize_sku(sku)
    deliveries = []
    for order in orders:
        if not order.is_open:
            continue
        for line in order.lines:
            if line.quantity > 0 and normalize_sku(line.sku) == key:
                deliveries.append((order.delivery_date, line.quantity))
    return deliveries


def _credits_by_week(
    deliveries: Iterable[tuple[date, int]],
    today: date,
    horizon_weeks: int,
) -> dict[int, float]:
    """Bucket deliveries into simulation weeks. Late-but-open orders land in week 0."""
    credits: dict[int, float] = defaultdict(float)
    for delivery_date, quantity in deliveries:
        week = max(0, (delivery_date - today).days // 7)
        if week < horizon_weeks:
            credits[week] += quantity
    return credits


def simulate_depletion(
    product: ProductInput,
    deliveries: Iterable[tuple[date, int]],
    today: date,
    config: EngineConfig,
) -> DepletionResult:
    """
    Project stock forward one week at a time until it reaches zero.

    Each week: stock at week start + deliveries that week - consumption.
    The first week ending at or below zero gives the depletion day,
    interpolated linearly within the week from the consumption rate.

    Args:
        product: Eligible product (see check_product)
        deliveries: (delivery_date, cartons) for this product's open orders
        today: Simulation start
        config: Engine config (horizon)

    Returns:
        DepletionResult with week points and depletion date (None if the
        product lasts the whole horizon)
    """
    consumption = product.weekly_consumption
    if consumption <= 0:
        return DepletionResult(product_id=product.id, never_depletes=True)

    stock = product.current_stock if product.current_stock and product.current_stock > 0 else 0.0
    if stock <= 0:
        # Nothing on hand: already due
        return DepletionResult(product_id=product.id, depletion_date=today)

    credits = _credits_by_week(deliveries, today, config.planning_horizon_weeks)
    points: list[SimulatedWeekPoint] = []

    for week in range(config.planning_horizon_weeks):
        week_start = today + timedelta(weeks=week)
        credited = credits.get(week, 0.0)
        available = stock + credited
        stock = available - consumption

        if stock <= 0:
            points.append(SimulatedWeekPoint(
                product_id=product.id,
                week_index=week,
                week_start=week_start,
                stock_level=0.0,
                shortfall=-stock,
                credited=credited,
            ))
            # 0..7; 7 when available exactly covers the week
            day = math.floor(7 * available / consumption)
            return DepletionResult(
                product_id=product.id,
                points=tuple(points),
                depletion_date=week_start + timedelta(days=day),
            )

        points.append(SimulatedWeekPoint(
            product_id=product.id,
            week_index=week,
            week_start=week_start,
            stock_level=stock,
            credited=credited,
        ))

    return DepletionResult(product_id=product.id, points=tuple(points))


# ===================
# EVENTS
# ===================

def recommended_quantity(product: ProductInput) -> int:
    """
    Cartons needed to refill to target cover from zero.

    quantity = weekly_consumption × target_soh_weeks, rounded up
    """
    # Round first so 100 × 0.07 (7.000000000000001) stays 7
    return math.ceil(round(product.weekly_consumption * product.target_soh_weeks, 6))


def extract_event(
    product: ProductInput,
    depletion: DepletionResult,
    config: EngineConfig,
) -> Optional[ReplenishmentEvent]:
    """
    Turn a depletion date into a replenishment event.

    Delivery is scheduled for the depletion date itself (arrive exactly
    when stock would run out, never earlier). Order-by dates in the past
    are kept: they surface downstream as OVERDUE containers.

    Args:
        product: Product the depletion belongs to
        depletion: Simulation result
        config: Engine config (lead time)

    Returns:
        ReplenishmentEvent, or None if the product never runs out in the
        horizon or needs no cartons
    """
    if not depletion.depletes:
        return None

    quantity = recommended_quantity(product)
    if quantity <= 0:
        return None

    delivery_date = depletion.depletion_date
    return ReplenishmentEvent(
        product_id=product.id,
        sku=product.sku,
        name=product.name,
        order_by_date=delivery_date - config.lead_time,
        delivery_date=delivery_date,
        quantity=quantity,
        volume_per_carton=product.volume_per_carton,
        pieces_per_pallet=int(product.pieces_per_pallet),
        weekly_consumption=product.weekly_consumption,
    )


def build_replenishment_events(
    products: Iterable[ProductInput],
    orders: list[ExistingOrder],
    today: date,
    config: EngineConfig,
) -> tuple[list[ReplenishmentEvent], list[ProductExclusion]]:
    """
    Simulate every product and collect its replenishment event.

    Args:
        products: Product snapshots
        orders: Existing orders (delivered ones are ignored)
        today: Reference date
        config: Engine config

    Returns:
        (events, exclusions) in product input order
    """
    events: list[ReplenishmentEvent] = []
    exclusions: list[ProductExclusion] = []

    for product in products:
        problem = check_product(product, config)
        if problem:
            reason, detail = problem
            exclusions.append(ProductExclusion(
                product_id=product.id,
                sku=product.sku,
                reason=reason,
                detail=detail,
            ))
            continue

        deliveries = collect_deliveries(product.sku, orders)
        depletion = simulate_depletion(product, deliveries, today, config)
        event = extract_event(product, depletion, config)

        if event is None:
            exclusions.append(ProductExclusion(
                product_id=product.id,
                sku=product.sku,
                reason=ExclusionReason.NO_DEPLETION_IN_HORIZON,
                detail=f"Stock lasts beyond {config.planning_horizon_weeks} weeks",
            ))
            continue

        events.append(event)

    return events, exclusions
