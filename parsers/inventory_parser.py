"""
Inventory spreadsheet parser.

Parses the customer's inventory sheet (CSV or Excel) with one row per
product: SKU, current stock, weekly consumption and optional target SOH
(all in cartons / weeks). Row problems are collected, not raised, so the
whole sheet can be reported back in one pass.
"""

from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Optional, Union
import structlog

import pandas as pd

from config.shipping import DEFAULT_TARGET_SOH_WEEKS, MAX_TARGET_SOH_WEEKS, MIN_TARGET_SOH_WEEKS
from exceptions import InventoryParseError
from utils.text_utils import normalize_sku

logger = structlog.get_logger(__name__)


# Header spellings seen in customer sheets → canonical column
COLUMN_ALIASES = {
    "sku": "sku",
    "product_sku": "sku",
    "current_stock": "current_stock",
    "currentstock": "current_stock",
    "stock": "current_stock",
    "stock_on_hand": "current_stock",
    "weekly_consumption": "weekly_consumption",
    "weeklyconsumption": "weekly_consumption",
    "consumption": "weekly_consumption",
    "weekly_usage": "weekly_consumption",
    "target_soh": "target_soh",
    "targetsoh": "target_soh",
    "soh": "target_soh",
    "target_soh_weeks": "target_soh",
}

REQUIRED_COLUMNS = ["sku", "current_stock", "weekly_consumption"]

DISPLAY_NAMES = {
    "sku": "SKU",
    "current_stock": "Current Stock",
    "weekly_consumption": "Weekly Consumption",
    "target_soh": "Target SOH",
}


@dataclass
class InventoryRow:
    """Validated inventory levels for one product."""
    sku: str
    current_stock: int
    weekly_consumption: int
    target_soh: int = DEFAULT_TARGET_SOH_WEEKS

    def to_dict(self) -> dict:
        return {
            "sku": self.sku,
            "current_stock": self.current_stock,
            "weekly_consumption": self.weekly_consumption,
            "target_soh": self.target_soh,
        }


@dataclass
class ParseError:
    """Single validation error from parsing."""
    row: int
    field: str
    error: str


@dataclass
class InventoryParseResult:
    """Result of parsing an inventory sheet."""
    rows: list[InventoryRow] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if no errors occurred."""
        return len(self.errors) == 0

    @property
    def has_data(self) -> bool:
        """True if any rows were parsed."""
        return len(self.rows) > 0

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "rows": [r.to_dict() for r in self.rows],
            "errors": [
                {"row": e.row, "field": e.field, "error": e.error}
                for e in self.errors
            ],
        }


def parse_inventory_file(
    file: Union[str, Path, BytesIO],
    filename: Optional[str] = None,
) -> InventoryParseResult:
    """
    Parse an inventory sheet.

    Args:
        file: File path (str/Path) or file-like object (BytesIO)
        filename: Original file name, used to tell CSV from Excel for
                  file-like objects

    Returns:
        InventoryParseResult with rows and any row errors

    Raises:
        InventoryParseError: If the file cannot be read at all
    """
    name = filename or (str(file) if isinstance(file, (str, Path)) else "")
    is_csv = name.lower().endswith(".csv")

    logger.info("parsing_inventory_file", filename=name or None, csv=is_csv)

    try:
        if is_csv:
            df = pd.read_csv(file)
        else:
            df = pd.read_excel(file, engine="openpyxl")
    except Exception as e:
        logger.error("inventory_read_failed", error=str(e))
        raise InventoryParseError(
            message="Failed to read inventory file",
            details={"original_error": str(e)}
        )

    result = parse_inventory_frame(df)

    logger.info(
        "inventory_file_parsed",
        row_count=len(result.rows),
        error_count=len(result.errors),
        success=result.success
    )

    return result


def parse_inventory_frame(df: pd.DataFrame) -> InventoryParseResult:
    """Validate an already-loaded inventory sheet."""
    result = InventoryParseResult()

    df = df.rename(columns={col: _normalize_column(col) for col in df.columns})

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        result.errors.append(ParseError(
            row=0,
            field="columns",
            error=f"Missing required columns: {', '.join(DISPLAY_NAMES[c] for c in missing)}"
        ))
        return result

    seen: dict[str, int] = {}

    for idx, row in df.iterrows():
        row_num = idx + 2  # Sheet row (1-indexed + header)

        raw_sku = row.get("sku")
        if pd.isna(raw_sku) or str(raw_sku).strip() == "":
            continue

        sku = str(raw_sku).strip()
        row_errors = []

        key = normalize_sku(sku)
        if key in seen:
            row_errors.append(ParseError(
                row=row_num,
                field=DISPLAY_NAMES["sku"],
                error=f"Duplicate SKU (first seen on row {seen[key]})"
            ))
        else:
            seen[key] = row_num

        stock = _parse_whole_number(row.get("current_stock"))
        if stock is None or stock < 0:
            row_errors.append(ParseError(
                row=row_num,
                field=DISPLAY_NAMES["current_stock"],
                error="Must be a whole number ≥ 0"
            ))

        consumption = _parse_whole_number(row.get("weekly_consumption"))
        if consumption is None or consumption < 0:
            row_errors.append(ParseError(
                row=row_num,
                field=DISPLAY_NAMES["weekly_consumption"],
                error="Must be a whole number ≥ 0"
            ))

        soh: Optional[int] = DEFAULT_TARGET_SOH_WEEKS
        raw_soh = row.get("target_soh")
        if raw_soh is not None and not pd.isna(raw_soh):
            soh = _parse_whole_number(raw_soh)
            if soh is None or not MIN_TARGET_SOH_WEEKS <= soh <= MAX_TARGET_SOH_WEEKS:
                row_errors.append(ParseError(
                    row=row_num,
                    field=DISPLAY_NAMES["target_soh"],
                    error=f"Must be a whole number from {MIN_TARGET_SOH_WEEKS} to {MAX_TARGET_SOH_WEEKS}"
                ))

        if row_errors:
            result.errors.extend(row_errors)
            continue

        result.rows.append(InventoryRow(
            sku=sku,
            current_stock=stock,
            weekly_consumption=consumption,
            target_soh=soh,
        ))

    return result


# ===================
# HELPER FUNCTIONS
# ===================

def _normalize_column(col) -> str:
    """
    Normalize column name for alias lookup.

    "Current Stock" -> "current_stock"
    "Target SOH (weeks)" -> "target_soh"
    """
    col = str(col).lower().strip()
    col = col.replace("(weeks)", "").replace("(cartons)", "").strip()
    col = "_".join(col.replace("-", " ").split())
    return COLUMN_ALIASES.get(col, col)


def _parse_whole_number(value) -> Optional[int]:
    """Whole number from a cell; 12.0 is fine, 12.5 and text are not."""
    if value is None or pd.isna(value):
        return None
    try:
        num = float(value)
    except (ValueError, TypeError):
        return None
    if not num.is_integer():
        return None
    return int(num)
