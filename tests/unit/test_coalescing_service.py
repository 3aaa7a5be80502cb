"""
Unit tests for the coalescing window.
"""

from datetime import date, timedelta

from models.simulation import ReplenishmentEvent
from services.coalescing_service import coalesce_events, event_sort_key


def make_event(product_id: str, order_by: date, quantity: int = 100) -> ReplenishmentEvent:
    return ReplenishmentEvent(
        product_id=product_id,
        sku=f"SKU-{product_id}",
        order_by_date=order_by,
        delivery_date=order_by + timedelta(weeks=8),
        quantity=quantity,
        volume_per_carton=0.038,
        pieces_per_pallet=1000,
        weekly_consumption=100,
    )


ANCHOR = date(2025, 3, 3)


class TestCoalesceEvents:
    """Tests for anchor-based clustering."""

    def test_empty_input(self):
        assert coalesce_events([]) == []

    def test_seven_days_apart_share_cluster(self):
        events = [make_event("A", ANCHOR), make_event("B", ANCHOR + timedelta(days=7))]

        clusters = coalesce_events(events, window_days=7)

        assert len(clusters) == 1
        assert clusters[0].anchor_date == ANCHOR
        assert [e.product_id for e in clusters[0].events] == ["A", "B"]

    def test_eight_days_apart_split(self):
        events = [make_event("A", ANCHOR), make_event("B", ANCHOR + timedelta(days=8))]

        clusters = coalesce_events(events, window_days=7)

        assert len(clusters) == 2
        assert [c.anchor_date for c in clusters] == [ANCHOR, ANCHOR + timedelta(days=8)]

    def test_window_measured_from_anchor_not_previous_event(self):
        """Day 0, 5, 10: day 10 is 10 days from the anchor, so it starts a new cluster."""
        events = [
            make_event("A", ANCHOR),
            make_event("B", ANCHOR + timedelta(days=5)),
            make_event("C", ANCHOR + timedelta(days=10)),
        ]

        clusters = coalesce_events(events, window_days=7)

        assert [[e.product_id for e in c.events] for c in clusters] == [["A", "B"], ["C"]]
        assert clusters[1].anchor_date == ANCHOR + timedelta(days=10)

    def test_unsorted_input_sorted_by_date_then_product_id(self):
        events = [
            make_event("C", ANCHOR + timedelta(days=2)),
            make_event("B", ANCHOR),
            make_event("A", ANCHOR),
        ]

        clusters = coalesce_events(events, window_days=7)

        assert [e.product_id for e in clusters[0].events] == ["A", "B", "C"]

    def test_zero_window_groups_same_day_only(self):
        events = [
            make_event("A", ANCHOR),
            make_event("B", ANCHOR),
            make_event("C", ANCHOR + timedelta(days=1)),
        ]

        clusters = coalesce_events(events, window_days=0)

        assert [len(c.events) for c in clusters] == [2, 1]

    def test_every_event_in_exactly_one_cluster(self):
        events = [make_event(f"P{i:02d}", ANCHOR + timedelta(days=3 * i)) for i in range(20)]

        clusters = coalesce_events(events, window_days=7)

        clustered = [e.product_id for c in clusters for e in c.events]
        assert sorted(clustered) == sorted(e.product_id for e in events)
        assert len(clustered) == len(set(clustered))

    def test_clusters_in_ascending_anchor_order(self):
        events = [make_event(f"P{i}", ANCHOR - timedelta(days=9 * i)) for i in range(5)]

        clusters = coalesce_events(events, window_days=7)

        anchors = [c.anchor_date for c in clusters]
        assert anchors == sorted(anchors)
        assert len(clusters) == 5


class TestEventSortKey:
    """Tie-break ordering."""

    def test_date_before_product_id(self):
        early = make_event("Z", ANCHOR)
        late = make_event("A", ANCHOR + timedelta(days=1))
        assert event_sort_key(early) < event_sort_key(late)

    def test_numeric_ids_in_numeric_order(self):
        events = [make_event("10", ANCHOR), make_event("9", ANCHOR), make_event("B", ANCHOR)]

        clusters = coalesce_events(events, window_days=7)

        assert [e.product_id for e in clusters[0].events] == ["9", "10", "B"]
