"""
ERP payload and inventory file parsers.
"""

from parsers.erp_parser import (
    transform_erp_payload,
    ErpTransformResult,
)
from parsers.inventory_parser import (
    parse_inventory_file,
    InventoryParseResult,
)

__all__ = [
    "transform_erp_payload",
    "ErpTransformResult",
    "parse_inventory_file",
    "InventoryParseResult",
]
