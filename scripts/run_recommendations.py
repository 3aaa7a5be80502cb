#!/usr/bin/env python3
"""
Run the container recommendation engine on a JSON snapshot.

Snapshot file:
    {"products": [...], "orders": [...], "today": "2025-01-01"}

With --erp the file holds raw ERP payloads instead:
    {"products": [...ERP products...], "inventory": [...], "orders": [...ERP orders...]}

Usage:
    python scripts/run_recommendations.py snapshot.json
    python scripts/run_recommendations.py snapshot.json --today 2025-01-01
    python scripts/run_recommendations.py snapshot.json --json > out.json
    python scripts/run_recommendations.py erp_dump.json --erp
"""

import argparse
import json
import logging
import os
import sys
from datetime import date

import structlog

# Allow imports from the repo root when running as a script
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from exceptions import AppError
from models.recommendation import RecommendationResult
from services.recommendation_service import RecommendationService


def _configure_logging(verbose: bool) -> None:
    """Log to stderr so stdout stays clean for the report / JSON."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=logging.INFO if verbose else logging.WARNING
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}")


def print_report(result: RecommendationResult) -> None:
    """Human-readable summary, one block per container."""
    meta = result.metadata
    print(f"Planning horizon: {meta.planning_horizon_start} → {meta.planning_horizon_end}")
    print(f"Containers: {meta.total_containers}  Cartons: {meta.total_cartons}  Volume: {meta.total_volume} m³")
    print()

    for c in result.containers:
        flag = f" [{c.urgency.value}]" if c.urgency else ""
        print(
            f"#{c.container_number}  order by {c.order_by_date}  deliver {c.delivery_date}"
            f"  {c.total_cartons} cartons  {c.total_volume} m³ ({c.utilization_pct}%){flag}"
        )
        for p in c.products:
            print(f"    {p.sku:<24} {p.quantity:>8}  {p.volume:>10.3f} m³")

    if result.excluded_products:
        print()
        print("Excluded:")
        for e in result.excluded_products:
            print(f"    {e.sku:<24} {e.reason.value:<26} {e.detail or ''}")


def main():
    parser = argparse.ArgumentParser(
        description="Container recommendations from an inventory snapshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_recommendations.py snapshot.json
  python scripts/run_recommendations.py snapshot.json --today 2025-01-01 --json
  python scripts/run_recommendations.py erp_dump.json --erp
        """
    )

    parser.add_argument(
        "snapshot",
        help="Path to the JSON snapshot"
    )
    parser.add_argument(
        "--today",
        type=_parse_date,
        default=None,
        help="Reference date YYYY-MM-DD (default: snapshot's today, else the current date)"
    )
    parser.add_argument(
        "--erp",
        action="store_true",
        help="Snapshot holds raw ERP products/orders plus inventory rows"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="as_json",
        help="Print the full result as JSON"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log engine progress to stderr"
    )

    args = parser.parse_args()
    _configure_logging(args.verbose)

    try:
        with open(args.snapshot, encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: Could not read snapshot: {e}", file=sys.stderr)
        sys.exit(1)

    today = args.today
    if today is None and payload.get("today"):
        try:
            today = date.fromisoformat(payload["today"])
        except ValueError:
            print(f"Error: Invalid today in snapshot: {payload['today']}", file=sys.stderr)
            sys.exit(1)

    service = RecommendationService()

    try:
        if args.erp:
            result = service.calculate_from_erp(
                payload.get("products", []),
                payload.get("inventory", []),
                payload.get("orders", []),
                today,
            )
        else:
            result = service.calculate(payload.get("products", []), payload.get("orders", []), today)
    except AppError as e:
        print(json.dumps(e.to_dict(), indent=2, default=str), file=sys.stderr)
        sys.exit(2)

    if args.as_json:
        print(result.model_dump_json(indent=2))
    else:
        print_report(result)


if __name__ == "__main__":
    main()
