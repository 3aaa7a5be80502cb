"""
Text utilities for matching SKUs across sources.

ERP order lines, ERP products and customer inventory rows are typed by
different people; SKUs differ in case and stray whitespace.
"""

import re
import unicodedata
from typing import Optional


def normalize_sku(sku: Optional[str]) -> Optional[str]:
    """
    Normalize SKU for comparison/lookup.

    - "  mp-cup 8oz " → "MP-CUP 8OZ"
    - "Café-Lid 12" → "CAFE-LID 12"

    Args:
        sku: Raw SKU (may have accents, mixed case, odd spacing)

    Returns:
        Normalized uppercase ASCII string, or None if input is empty
    """
    if sku is None:
        return None

    sku = str(sku).strip()

    if not sku:
        return None

    # NFD decomposition separates base chars from accents
    normalized = unicodedata.normalize('NFD', sku)
    ascii_sku = ''.join(
        c for c in normalized
        if unicodedata.category(c) != 'Mn'
    )

    # Collapse runs of whitespace (including non-breaking spaces)
    ascii_sku = re.sub(r'\s+', ' ', ascii_sku)

    return ascii_sku.upper()


def clean_product_name(name: Optional[str], max_length: int = 255) -> Optional[str]:
    """
    Clean product name for display (preserves accents).

    Args:
        name: Raw product name from the ERP
        max_length: Maximum characters to keep

    Returns:
        Cleaned name or None
    """
    if not name:
        return None

    name = name.strip()

    if not name:
        return None

    if len(name) > max_length:
        name = name[:max_length]

    return name
