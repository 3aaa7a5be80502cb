"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.inventory import router as inventory_router
from routes.recommendations import router as recommendations_router

__all__ = [
    "inventory_router",
    "recommendations_router",
]
