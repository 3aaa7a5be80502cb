"""
End-to-end recommendation tests.

Runs raw ERP payloads through the whole pipeline:
    ERP transform → depletion → events → coalescing → packing → containers

Uses "The Coffee Bar" scenario: four catalog SKUs, one ERP order with an
unreadable ETA. TODAY = 2025-01-01 (frozen).

    CUP-8    no stock, 1000/week, 6 weeks SOH → 6000 cartons, due now
    LID-8    2000 on hand, 100/week, +1000 arriving (ASAP → 2025-01-26)
    STRAW    discontinued (target SOH 0)
    SPOON    in the catalog, no inventory row
"""

import importlib.util
import json
import sys
from datetime import date
from pathlib import Path

import pytest

from models.recommendation import ExclusionReason, Urgency
from tests.factories import ErpFactory

TODAY = date(2025, 1, 1)

SCRIPT = Path(__file__).parent.parent / "scripts" / "run_recommendations.py"


def coffee_bar_payload() -> dict:
    return {
        "products": [
            ErpFactory.product(id=1, sku="CUP-8", name="Cup 8oz"),
            ErpFactory.product(id=2, sku="LID-8", name="Lid 8oz"),
            ErpFactory.product(id=3, sku="STRAW", name="Straw"),
            ErpFactory.product(id=4, sku="SPOON", name="Spoon"),
        ],
        "inventory": [
            ErpFactory.inventory("cup-8", current_stock=0, weekly_consumption=1000),
            ErpFactory.inventory("LID-8", current_stock=2000, weekly_consumption=100),
            ErpFactory.inventory("STRAW", current_stock=50, weekly_consumption=10, target_soh=0),
        ],
        "orders": [
            ErpFactory.order(
                order_number="SO-1",
                ordered_date="2024-12-01",
                eta="ASAP",
                lines=[ErpFactory.line("LID-8", 1000, "Lid 8oz")],
            ),
        ],
    }


@pytest.fixture
def coffee_bar_result(recommendation_service):
    payload = coffee_bar_payload()
    return recommendation_service.calculate_from_erp(
        payload["products"], payload["inventory"], payload["orders"], TODAY
    )


def load_cli():
    module_spec = importlib.util.spec_from_file_location("run_recommendations", SCRIPT)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


# ===================
# PIPELINE
# ===================

class TestCoffeeBarScenario:

    def test_containers_in_order_by_date_order(self, coffee_bar_result):
        containers = coffee_bar_result.containers

        assert [c.container_number for c in containers] == [1, 2, 3, 4]
        assert [c.order_by_date for c in containers] == [
            date(2024, 11, 6),
            date(2024, 11, 6),
            date(2024, 11, 6),
            date(2025, 6, 4),
        ]

    def test_empty_product_splits_across_full_containers(self, coffee_bar_result):
        cup_containers = coffee_bar_result.containers[:3]

        for c in cup_containers:
            assert [p.sku for p in c.products] == ["CUP-8"]
            assert c.total_cartons == 2000
            assert c.utilization_pct == 100.0
            assert c.urgency == Urgency.OVERDUE
            assert c.delivery_date == TODAY

    def test_order_with_unreadable_eta_still_extends_cover(self, coffee_bar_result):
        """3000 cartons at 100/week last until 2025-07-30 → order by 2025-06-04."""
        lid = coffee_bar_result.containers[3]

        assert [(p.sku, p.quantity) for p in lid.products] == [("LID-8", 600)]
        assert lid.delivery_date == date(2025, 7, 30)
        assert lid.total_volume == 22.8
        assert lid.urgency is None
        assert coffee_bar_result.date_fallbacks == ["SO-1"]

    def test_exclusions_and_unmatched(self, coffee_bar_result):
        reasons = {e.sku: e.reason for e in coffee_bar_result.excluded_products}

        assert reasons == {
            "STRAW": ExclusionReason.DISCONTINUED,
            "SPOON": ExclusionReason.NO_CONSUMPTION,
        }
        assert coffee_bar_result.unmatched_skus == ["SPOON"]

    def test_metadata(self, coffee_bar_result):
        meta = coffee_bar_result.metadata

        assert meta.total_containers == 4
        assert meta.total_cartons == 6600
        assert meta.total_volume == 250.8
        assert meta.planning_horizon_start == TODAY


# ===================
# CLI
# ===================

class TestRunRecommendationsScript:
    """scripts/run_recommendations.py"""

    def test_report(self, tmp_path, monkeypatch, capsys):
        snapshot = tmp_path / "erp.json"
        snapshot.write_text(json.dumps(coffee_bar_payload()))
        monkeypatch.setattr(sys, "argv", ["run_recommendations.py", str(snapshot), "--erp", "--today", "2025-01-01"])

        load_cli().main()

        out = capsys.readouterr().out
        assert "Containers: 4" in out
        assert "#1  order by 2024-11-06" in out
        assert "[OVERDUE]" in out
        assert "DISCONTINUED" in out

    def test_json_output_uses_snapshot_today(self, tmp_path, monkeypatch, capsys):
        snapshot = tmp_path / "snapshot.json"
        snapshot.write_text(json.dumps({
            "today": "2025-01-01",
            "products": [{
                "id": "A",
                "sku": "CUP-8",
                "current_stock": 0,
                "weekly_consumption": 1000,
                "target_soh_weeks": 6,
                "pieces_per_pallet": 1000,
                "volume_per_pallet": 38.0,
            }],
            "orders": [],
        }))
        monkeypatch.setattr(sys, "argv", ["run_recommendations.py", str(snapshot), "--json"])

        load_cli().main()

        result = json.loads(capsys.readouterr().out)
        assert result["metadata"]["planning_horizon_start"] == "2025-01-01"
        assert result["metadata"]["total_cartons"] == 6000

    def test_engine_error_exits_2(self, tmp_path, monkeypatch, capsys):
        snapshot = tmp_path / "snapshot.json"
        snapshot.write_text(json.dumps({"products": "not a list"}))
        monkeypatch.setattr(sys, "argv", ["run_recommendations.py", str(snapshot)])

        with pytest.raises(SystemExit) as exc_info:
            load_cli().main()

        assert exc_info.value.code == 2
        assert "ENGINE_INPUT_INVALID" in capsys.readouterr().err

    def test_missing_file_exits_1(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["run_recommendations.py", str(tmp_path / "nope.json")])

        with pytest.raises(SystemExit) as exc_info:
            load_cli().main()

        assert exc_info.value.code == 1
