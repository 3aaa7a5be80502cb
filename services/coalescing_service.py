"""
Coalescing window - group replenishment events into shipments.

Products rarely run out on the same day. Events whose order-by dates
fall within a few days of each other are batched so one shipment
covers everything due around then.
"""

from datetime import date
from typing import Optional

from config.shipping import COALESCING_WINDOW_DAYS
from models.simulation import Cluster, ReplenishmentEvent


def product_id_key(product_id: str) -> tuple[int, int, str]:
    """Numeric ids in numeric order ("9" before "10"), ahead of other ids."""
    if product_id.isascii() and product_id.isdigit():
        return 0, int(product_id), product_id
    return 1, 0, product_id


def event_sort_key(event: ReplenishmentEvent) -> tuple[date, tuple[int, int, str], str]:
    """Order-by date first, then product id (then SKU) for repeatable output."""
    return event.order_by_date, product_id_key(event.product_id), event.sku


def coalesce_events(
    events: list[ReplenishmentEvent],
    window_days: int = COALESCING_WINDOW_DAYS,
) -> list[Cluster]:
    """
    Partition events into clusters anchored on their earliest date.

    Single left-to-right sweep over events sorted by order-by date.
    The first unclustered event becomes the anchor; every following
    event within window_days of the anchor (inclusive) joins it. The
    first event outside the window closes the cluster and anchors the
    next one.

    Events 7 days from the anchor share a cluster; 8 days apart do not.

    Args:
        events: Replenishment events, any order
        window_days: Window length measured from the anchor

    Returns:
        Clusters in ascending anchor-date order, events sorted inside each
    """
    clusters: list[Cluster] = []
    current: Optional[Cluster] = None

    for event in sorted(events, key=event_sort_key):
        if current is not None and (event.order_by_date - current.anchor_date).days <= window_days:
            current.events.append(event)
            continue

        current = Cluster(anchor_date=event.order_by_date, events=[event])
        clusters.append(current)

    return clusters
