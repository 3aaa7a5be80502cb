"""
Existing order schemas.

Orders already placed with the supplier. Their quantities are credited
into the depletion simulation in the week they are delivered.
"""

from pydantic import Field, field_validator
from typing import Optional
from enum import Enum
from datetime import date

from models.base import BaseSchema


class OrderStatus(str, Enum):
    """Order lifecycle."""
    PENDING_APPROVAL = "PENDING_APPROVAL"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"


class OrderLine(BaseSchema):
    """One product line on an order."""

    sku: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=0, description="Cartons")


class ExistingOrder(BaseSchema):
    """An order already placed with the supplier."""

    id: str = Field(..., min_length=1)
    order_number: Optional[str] = None
    ordered_date: Optional[date] = None
    delivery_date: date = Field(..., description="Expected arrival at the customer")
    status: OrderStatus = OrderStatus.IN_TRANSIT
    lines: list[OrderLine] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def is_open(self) -> bool:
        """True until the goods have been delivered."""
        return self.status != OrderStatus.DELIVERED
