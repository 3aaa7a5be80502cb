"""
Container packer - round-robin fill to capacity.

Fills containers one carton increment per product per pass, cycling
through the cluster's products until the container is full or every
product is packed.
"""

import math
from dataclasses import dataclass

from config.shipping import EngineConfig
from exceptions import PackingError
from models.simulation import Cluster, PackedContainer, PackedLine, ReplenishmentEvent
from utils.capacity import fits_within_capacity


@dataclass
class _Slot:
    """Cartons of one event still waiting to be packed."""
    index: int
    event: ReplenishmentEvent
    remaining: int


def _increment_that_fits(
    container: PackedContainer,
    slot: _Slot,
    config: EngineConfig,
) -> int:
    """
    Cartons of this product the container can take on this pass.

    Normally the full increment (1 carton by default). With a larger
    increment, a partial increment is taken when only that much fits.

    Returns:
        Cartons to add (0 if not even one carton fits)
    """
    per_carton = slot.event.volume_per_carton
    take = min(config.packing_increment_cartons, slot.remaining)

    if fits_within_capacity(
        container.volume + take * per_carton,
        config.container_capacity_m3,
        config.capacity_tolerance_m3,
    ):
        return take

    if take == 1:
        return 0

    space = config.container_capacity_m3 + config.capacity_tolerance_m3 - container.volume
    partial = min(take - 1, math.floor(space / per_carton))
    while partial > 0 and not fits_within_capacity(
        container.volume + partial * per_carton,
        config.container_capacity_m3,
        config.capacity_tolerance_m3,
    ):
        partial -= 1
    return max(0, partial)


def _fill_round(
    container: PackedContainer,
    slots: list[_Slot],
    config: EngineConfig,
) -> int:
    """
    One round-robin pass: at most one increment per product.

    Products that do not fit are skipped for this pass and carry over.

    Returns:
        Cartons added during the pass
    """
    added = 0
    for slot in slots:
        if slot.remaining <= 0:
            continue

        take = _increment_that_fits(container, slot, config)
        if take == 0:
            continue

        line = container.lines.get(slot.index)
        if line is None:
            line = PackedLine(event=slot.event)
            container.lines[slot.index] = line

        line.quantity += take
        container.volume += take * slot.event.volume_per_carton
        slot.remaining -= take
        added += take

    return added


def _fill_whole_rounds(
    container: PackedContainer,
    slots: list[_Slot],
    config: EngineConfig,
) -> int:
    """
    Apply many round-robin passes at once while nothing is near capacity.

    Takes k rounds in one step, where every open product has at least k
    full increments left and k rounds leave room for one more. The
    remaining passes near capacity go through _fill_round, so the result
    matches carton-by-carton packing.

    Returns:
        Cartons added
    """
    open_slots = [slot for slot in slots if slot.remaining > 0]
    if not open_slots:
        return 0

    increment = config.packing_increment_cartons
    round_volume = increment * sum(slot.event.volume_per_carton for slot in open_slots)
    if round_volume <= 0:
        return 0

    space = config.container_capacity_m3 + config.capacity_tolerance_m3 - container.volume
    rounds = min(
        min(slot.remaining for slot in open_slots) // increment,
        math.floor(space / round_volume),
    ) - 1
    if rounds <= 0:
        return 0

    take = rounds * increment
    for slot in open_slots:
        line = container.lines.get(slot.index)
        if line is None:
            line = PackedLine(event=slot.event)
            container.lines[slot.index] = line

        line.quantity += take
        container.volume += take * slot.event.volume_per_carton
        slot.remaining -= take

    return take * len(open_slots)


def pack_cluster(cluster: Cluster, config: EngineConfig) -> list[PackedContainer]:
    """
    Pack every carton of a cluster into as many containers as needed.

    Repeats round-robin passes on the open container; a pass that adds
    nothing closes it and the leftovers move to a fresh one. Stops when
    every product's cartons are placed.

    Args:
        cluster: Events to pack, already in tie-break order
        config: Engine config (capacity, tolerance, increment, lead time)

    Returns:
        Packed containers in the order they were filled

    Raises:
        PackingError: If an empty container cannot take a single
            increment (carton larger than the container)
    """
    slots = [
        _Slot(index=i, event=event, remaining=event.quantity)
        for i, event in enumerate(cluster.events)
        if event.quantity > 0
    ]
    delivery_date = cluster.anchor_date + config.lead_time

    def new_container() -> PackedContainer:
        return PackedContainer(order_by_date=cluster.anchor_date, delivery_date=delivery_date)

    containers: list[PackedContainer] = []
    current = new_container()

    while any(slot.remaining > 0 for slot in slots):
        _fill_whole_rounds(current, slots, config)
        if _fill_round(current, slots, config) > 0:
            continue

        if current.is_empty:
            raise PackingError(
                skus=[slot.event.sku for slot in slots if slot.remaining > 0],
                capacity_m3=config.container_capacity_m3,
            )

        containers.append(current)
        current = new_container()

    if not current.is_empty:
        containers.append(current)

    return containers


def pack_clusters(clusters: list[Cluster], config: EngineConfig) -> list[PackedContainer]:
    """Pack clusters in order (ascending anchor date)."""
    packed: list[PackedContainer] = []
    for cluster in clusters:
        packed.extend(pack_cluster(cluster, config))
    return packed
