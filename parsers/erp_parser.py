"""
ERP payload transformer.

Turns the ERP's raw product catalog and order list (camelCase JSON)
into engine inputs. The ERP carries no inventory levels, so catalog
rows are merged with the customer's inventory rows by SKU.

Delivery dates arrive in several shapes (DD/MM/YYYY, YYYY-MM-DD,
"ASAP", free text, null). Anything unreadable becomes ordered date +
8 weeks so an open order is never dropped for a bad date.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Optional
import math
import re
import structlog

from pydantic import ValidationError as PydanticValidationError

from config.shipping import DEFAULT_TARGET_SOH_WEEKS, SHIPPING_LEAD_TIME_WEEKS
from exceptions import ErpParseError
from models.order import ExistingOrder, OrderLine, OrderStatus
from models.product import ProductInput
from utils.text_utils import clean_product_name, normalize_sku

logger = structlog.get_logger(__name__)


# ERP status → order status
ERP_STATUS_MAP = {
    "APPROVED": OrderStatus.PENDING_APPROVAL,
    "IN_TRANSIT": OrderStatus.IN_TRANSIT,
    "COMPLETE": OrderStatus.DELIVERED,
}

# Placeholder ETAs meaning "as soon as possible"
ASAP_MARKERS = ("ASAP", "BEFORE CHRISTMAS")

# (pattern, strptime format); order matters
DATE_FORMATS = [
    (re.compile(r"^\d{4}-\d{2}-\d{2}$"), "%Y-%m-%d"),
    (re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$"), "%d/%m/%Y"),
    (re.compile(r"^[A-Za-z]{3}\s+\d{1,2},\s+\d{4}$"), "%b %d, %Y"),
]


@dataclass
class ErpTransformResult:
    """Engine inputs built from one ERP payload."""
    products: list[ProductInput] = field(default_factory=list)
    orders: list[ExistingOrder] = field(default_factory=list)
    date_fallbacks: list[str] = field(default_factory=list)  # order numbers
    unmatched_skus: list[str] = field(default_factory=list)  # catalog SKUs with no inventory row


# ===================
# DATES
# ===================

def parse_erp_date(value: Optional[str]) -> Optional[date]:
    """
    Parse one ERP date string.

    "26/01/2026" -> 2026-01-26
    "2025-11-23" -> 2025-11-23
    "Nov 23, 2025" -> 2025-11-23

    Returns:
        date, or None for empty, placeholder or unknown values
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    for pattern, fmt in DATE_FORMATS:
        if pattern.match(text):
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                return None
    return None


def normalize_delivery_date(
    eta: Optional[str],
    ordered_date: Optional[date],
    today: date,
) -> tuple[date, bool]:
    """
    Resolve an order's delivery date.

    Args:
        eta: Raw ERP ETA (eta, else requiredEta)
        ordered_date: Parsed order date, if any
        today: Fallback base when the order date is unknown too

    Returns:
        (delivery_date, used_fallback)
    """
    text = (eta or "").strip()
    upper = text.upper()

    if text and not any(marker in upper for marker in ASAP_MARKERS):
        parsed = parse_erp_date(text)
        if parsed is not None:
            return parsed, False
        logger.warning("erp_date_unknown_format", eta=text)

    base = ordered_date or today
    return base + timedelta(weeks=SHIPPING_LEAD_TIME_WEEKS), True


# ===================
# PRODUCTS
# ===================

def _get(row: dict, *keys: str, default: Any = None) -> Any:
    """First present key; accepts camelCase and snake_case spellings."""
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return default


def _number(value: Any, default: float = float("nan")) -> float:
    """Loose numeric conversion; unreadable values become NaN and get excluded downstream."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


def _index_inventory(inventory: list[dict]) -> dict[str, dict]:
    """Inventory rows by normalized SKU; a SKU may appear only once."""
    indexed: dict[str, dict] = {}
    first_seen: dict[str, int] = {}
    for i, row in enumerate(inventory):
        if not isinstance(row, dict):
            raise ErpParseError("Inventory row must be an object", details={"index": i})
        key = normalize_sku(_get(row, "sku"))
        if key is None:
            raise ErpParseError("Inventory row missing SKU", details={"index": i})
        if key in first_seen:
            logger.warning("erp_inventory_duplicate_sku", sku=key, index=i, first_index=first_seen[key])
            raise ErpParseError(
                "Duplicate inventory SKU",
                details={"index": i, "sku": key, "first_index": first_seen[key]}
            )
        first_seen[key] = i
        indexed[key] = row
    return indexed


def transform_erp_products(
    erp_products: list[dict],
    inventory: list[dict],
    result: Optional[ErpTransformResult] = None,
) -> list[ProductInput]:
    """
    Merge ERP catalog rows with inventory rows into product snapshots.

    Stock fields come from the matching inventory row, else from the
    catalog row itself. Products with neither get zero stock and zero
    consumption (so they are excluded as not consumed). A missing target
    SOH defaults to 6 weeks; an explicit 0 is kept and means discontinued.

    Raises:
        ErpParseError: If a catalog row has no SKU or is not an object
    """
    inventory_by_sku = _index_inventory(inventory)
    products: list[ProductInput] = []

    for i, row in enumerate(erp_products):
        if not isinstance(row, dict):
            raise ErpParseError("ERP product must be an object", details={"index": i})

        sku = _get(row, "sku")
        key = normalize_sku(sku)
        if key is None:
            raise ErpParseError("ERP product missing SKU", details={"index": i})

        stock_row = inventory_by_sku.get(key)
        if stock_row is None:
            # Stock fields may ride along on the catalog row itself
            stock_row = row
            if result is not None and _get(row, "weekly_consumption", "weeklyConsumption") is None:
                result.unmatched_skus.append(str(sku))

        try:
            products.append(ProductInput(
                id=str(_get(row, "id", default=i + 1)),
                sku=str(sku).strip(),
                name=clean_product_name(_get(row, "name")),
                current_stock=_number(_get(stock_row, "current_stock", "currentStock"), default=0.0),
                weekly_consumption=_number(
                    _get(stock_row, "weekly_consumption", "weeklyConsumption"), default=0.0
                ),
                target_soh_weeks=_number(
                    _get(stock_row, "target_soh", "targetSOH", "target_soh_weeks"),
                    default=float(DEFAULT_TARGET_SOH_WEEKS),
                ),
                pieces_per_pallet=_number(_get(row, "piecesPerPallet", "pieces_per_pallet")),
                volume_per_pallet=_number(_get(row, "volumePerPallet", "volume_per_pallet")),
            ))
        except PydanticValidationError as e:
            raise ErpParseError(
                "Invalid ERP product",
                details={"index": i, "errors": e.errors(include_url=False, include_context=False, include_input=False)}
            )

    return products


# ===================
# ORDERS
# ===================

def transform_erp_orders(
    erp_orders: list[dict],
    today: date,
    result: Optional[ErpTransformResult] = None,
) -> list[ExistingOrder]:
    """
    Convert ERP orders to existing orders.

    Unknown statuses are treated as in transit. Lines with unreadable
    or negative quantities are skipped.

    Raises:
        ErpParseError: If an order is not an object or a line has no SKU
    """
    orders: list[ExistingOrder] = []

    for i, row in enumerate(erp_orders):
        if not isinstance(row, dict):
            raise ErpParseError("ERP order must be an object", details={"index": i})

        order_number = str(_get(row, "orderNumber", "order_number", default=f"ORDER-{i + 1}"))
        ordered_date = parse_erp_date(_get(row, "orderedDate", "ordered_date"))
        delivery_date, fallback = normalize_delivery_date(
            _get(row, "eta", "requiredEta", "delivery_date"),
            ordered_date,
            today,
        )
        if fallback and result is not None:
            result.date_fallbacks.append(order_number)

        raw_status = str(_get(row, "status", default="IN_TRANSIT")).strip().upper()
        status = ERP_STATUS_MAP.get(raw_status)
        if status is None:
            logger.warning("erp_status_unknown", order_number=order_number, status=raw_status)
            status = OrderStatus.IN_TRANSIT

        lines = []
        for j, line in enumerate(_get(row, "lines", default=[])):
            line_sku = _get(line, "sku") if isinstance(line, dict) else None
            if normalize_sku(line_sku) is None:
                raise ErpParseError(
                    "ERP order line missing SKU",
                    details={"order_number": order_number, "line": j}
                )
            qty = _number(_get(line, "qty", "quantity"))
            if not math.isfinite(qty) or qty < 0 or qty != int(qty):
                logger.warning(
                    "erp_line_skipped",
                    order_number=order_number,
                    sku=line_sku,
                    qty=_get(line, "qty", "quantity")
                )
                continue
            lines.append(OrderLine(sku=str(line_sku).strip(), quantity=int(qty)))

        orders.append(ExistingOrder(
            id=str(_get(row, "id", default=i + 1)),
            order_number=order_number,
            ordered_date=ordered_date,
            delivery_date=delivery_date,
            status=status,
            lines=lines,
        ))

    return orders


def transform_erp_payload(
    erp_products: list[dict],
    inventory: list[dict],
    erp_orders: list[dict],
    today: date,
) -> ErpTransformResult:
    """
    Build engine inputs from ERP catalog, inventory rows and ERP orders.

    Returns:
        ErpTransformResult with products, orders and warnings

    Raises:
        ErpParseError: On structurally broken payloads
    """
    logger.info(
        "transforming_erp_payload",
        products=len(erp_products),
        inventory=len(inventory),
        orders=len(erp_orders)
    )

    result = ErpTransformResult()
    result.products = transform_erp_products(erp_products, inventory, result)
    result.orders = transform_erp_orders(erp_orders, today, result)

    logger.info(
        "erp_payload_transformed",
        products=len(result.products),
        orders=len(result.orders),
        date_fallbacks=len(result.date_fallbacks),
        unmatched_skus=len(result.unmatched_skus)
    )

    return result
