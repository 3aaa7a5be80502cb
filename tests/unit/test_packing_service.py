"""
Unit tests for the round-robin container packer.
"""

import math
import time

import pytest
from datetime import date, timedelta

from config.shipping import EngineConfig
from exceptions import PackingError
from models.simulation import Cluster, ReplenishmentEvent
from services.packing_service import pack_cluster, pack_clusters


ORDER_BY = date(2025, 3, 3)


def make_event(
    product_id: str,
    quantity: int,
    volume_per_carton: float = 1.0,
    order_by: date = ORDER_BY,
) -> ReplenishmentEvent:
    return ReplenishmentEvent(
        product_id=product_id,
        sku=f"SKU-{product_id}",
        order_by_date=order_by,
        delivery_date=order_by + timedelta(weeks=8),
        quantity=quantity,
        volume_per_carton=volume_per_carton,
        pieces_per_pallet=1,
        weekly_consumption=quantity / 6,
    )


def quantities(container) -> dict[str, int]:
    return {line.event.product_id: line.quantity for line in container.lines.values()}


class TestRoundRobinFill:
    """Tests for fairness across products within a container."""

    def test_two_products_split_evenly(self, small_container_config):
        """5 m³ container, 1 m³ cartons: first container holds 3 + 2."""
        cluster = Cluster(anchor_date=ORDER_BY, events=[make_event("A", 5), make_event("B", 5)])

        containers = pack_cluster(cluster, small_container_config)

        assert [quantities(c) for c in containers] == [
            {"A": 3, "B": 2},
            {"A": 2, "B": 3},
        ]

    def test_no_product_more_than_one_increment_ahead(self, small_container_config):
        cluster = Cluster(
            anchor_date=ORDER_BY,
            events=[make_event("A", 50), make_event("B", 50), make_event("C", 50)]
        )

        for container in pack_cluster(cluster, small_container_config):
            counts = list(quantities(container).values())
            assert max(counts) - min(counts) <= 1

    def test_small_product_finishes_and_others_fill_the_rest(self, small_container_config):
        cluster = Cluster(anchor_date=ORDER_BY, events=[make_event("A", 1), make_event("B", 10)])

        containers = pack_cluster(cluster, small_container_config)

        assert quantities(containers[0]) == {"A": 1, "B": 4}
        assert quantities(containers[1]) == {"B": 5}
        assert quantities(containers[2]) == {"B": 1}

    def test_oversized_carton_skipped_while_smaller_fit(self):
        """Once B's 2 m³ carton no longer fits, A keeps filling the last cubic metres."""
        config = EngineConfig(container_capacity_m3=5.0, capacity_tolerance_m3=0.0)
        cluster = Cluster(
            anchor_date=ORDER_BY,
            events=[make_event("A", 10), make_event("B", 10, volume_per_carton=2.0)]
        )

        containers = pack_cluster(cluster, config)

        assert quantities(containers[0]) == {"A": 3, "B": 1}
        assert math.isclose(containers[0].volume, 5.0)


class TestCapacity:
    """Tests for the capacity invariant and container splitting."""

    def test_full_size_split_into_2000_carton_containers(self, engine_config):
        """6000 cartons × 0.038 m³ = 228 m³ → three 76 m³ containers."""
        cluster = Cluster(anchor_date=ORDER_BY, events=[make_event("A", 6000, volume_per_carton=0.038)])

        containers = pack_cluster(cluster, engine_config)

        assert [c.total_cartons for c in containers] == [2000, 2000, 2000]
        for c in containers:
            assert c.volume <= engine_config.container_capacity_m3 + engine_config.capacity_tolerance_m3
            assert math.isclose(c.volume, 76.0)

    def test_volume_never_exceeds_capacity(self, engine_config):
        cluster = Cluster(anchor_date=ORDER_BY, events=[
            make_event("A", 1234, volume_per_carton=0.041),
            make_event("B", 3321, volume_per_carton=0.0275),
            make_event("C", 777, volume_per_carton=0.113),
        ])

        containers = pack_cluster(cluster, engine_config)

        for c in containers:
            assert c.volume <= engine_config.container_capacity_m3 + engine_config.capacity_tolerance_m3

    def test_every_carton_packed_exactly_once(self, engine_config):
        events = [
            make_event("A", 1234, volume_per_carton=0.041),
            make_event("B", 3321, volume_per_carton=0.0275),
            make_event("C", 777, volume_per_carton=0.113),
        ]

        containers = pack_cluster(Cluster(anchor_date=ORDER_BY, events=events), engine_config)

        totals: dict[str, int] = {}
        for c in containers:
            for product_id, qty in quantities(c).items():
                totals[product_id] = totals.get(product_id, 0) + qty
        assert totals == {"A": 1234, "B": 3321, "C": 777}

    def test_carton_larger_than_container_raises(self, small_container_config):
        cluster = Cluster(anchor_date=ORDER_BY, events=[make_event("A", 1, volume_per_carton=6.0)])

        with pytest.raises(PackingError) as exc_info:
            pack_cluster(cluster, small_container_config)

        assert exc_info.value.details["skus"] == ["SKU-A"]
        assert exc_info.value.status_code == 500


class TestIncrement:
    """Tests for a configurable packing increment."""

    def test_partial_increment_when_full_one_does_not_fit(self):
        config = EngineConfig(
            container_capacity_m3=5.0,
            capacity_tolerance_m3=0.0,
            packing_increment_cartons=10,
        )
        cluster = Cluster(anchor_date=ORDER_BY, events=[make_event("A", 12)])

        containers = pack_cluster(cluster, config)

        assert [c.total_cartons for c in containers] == [5, 5, 2]

    def test_increment_larger_than_remaining(self):
        config = EngineConfig(container_capacity_m3=100.0, packing_increment_cartons=10)
        cluster = Cluster(anchor_date=ORDER_BY, events=[make_event("A", 3), make_event("B", 25)])

        containers = pack_cluster(cluster, config)

        assert quantities(containers[0]) == {"A": 3, "B": 25}


class TestContainerDates:
    """Containers take the cluster's dates."""

    def test_order_by_is_anchor_and_delivery_adds_lead_time(self, engine_config):
        cluster = Cluster(anchor_date=ORDER_BY, events=[make_event("A", 10)])

        container = pack_cluster(cluster, engine_config)[0]

        assert container.order_by_date == ORDER_BY
        assert container.delivery_date == ORDER_BY + timedelta(weeks=8)

    def test_clusters_packed_in_order(self, engine_config):
        later = ORDER_BY + timedelta(days=30)
        clusters = [
            Cluster(anchor_date=ORDER_BY, events=[make_event("A", 10)]),
            Cluster(anchor_date=later, events=[make_event("B", 10, order_by=later)]),
        ]

        packed = pack_clusters(clusters, engine_config)

        assert [c.order_by_date for c in packed] == [ORDER_BY, later]

    def test_zero_quantity_events_produce_nothing(self, engine_config):
        cluster = Cluster(anchor_date=ORDER_BY, events=[make_event("A", 0)])
        assert pack_cluster(cluster, engine_config) == []


def pack_one_carton_at_a_time(events: list[ReplenishmentEvent], config: EngineConfig) -> list[dict[str, int]]:
    """Plain round-robin, one increment per product per pass, as a reference split."""
    remaining = {e.product_id: e.quantity for e in events}
    capacity = config.container_capacity_m3 + config.capacity_tolerance_m3
    containers = []
    current: dict[str, int] = {}
    volume = 0.0

    while any(remaining.values()):
        added = 0
        for e in events:
            take = min(config.packing_increment_cartons, remaining[e.product_id])
            while take > 0 and volume + take * e.volume_per_carton > capacity:
                take -= 1
            if take == 0:
                continue
            current[e.product_id] = current.get(e.product_id, 0) + take
            volume += take * e.volume_per_carton
            remaining[e.product_id] -= take
            added += take
        if added == 0:
            containers.append(current)
            current, volume = {}, 0.0
    if current:
        containers.append(current)
    return containers


class TestLargeClusters:
    """Large quantities pack quickly with the same split as carton-by-carton packing."""

    @pytest.mark.parametrize("increment", [1, 10])
    def test_matches_carton_by_carton_split(self, increment):
        config = EngineConfig(
            container_capacity_m3=76.0,
            capacity_tolerance_m3=0.0,
            packing_increment_cartons=increment,
        )
        events = [
            make_event("A", 300, volume_per_carton=0.25),
            make_event("B", 451, volume_per_carton=0.375),
            make_event("C", 1200, volume_per_carton=0.125),
            make_event("D", 7, volume_per_carton=0.5),
        ]

        containers = pack_cluster(Cluster(anchor_date=ORDER_BY, events=events), config)

        assert [quantities(c) for c in containers] == pack_one_carton_at_a_time(events, config)

    def test_million_cartons_pack_quickly(self, engine_config):
        cluster = Cluster(anchor_date=ORDER_BY, events=[
            make_event("A", 1_000_000, volume_per_carton=0.038),
            make_event("B", 600_000, volume_per_carton=0.038),
        ])

        started = time.perf_counter()
        containers = pack_cluster(cluster, engine_config)
        elapsed = time.perf_counter() - started

        assert elapsed < 2.0
        assert len(containers) == 800
        assert all(c.total_cartons == 2000 for c in containers)
        assert quantities(containers[0]) == {"A": 1000, "B": 1000}
        assert quantities(containers[-1]) == {"A": 2000}
