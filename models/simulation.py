"""
Intermediate engine structures.

These live for the duration of a single engine run and are never
serialized, so they are plain frozen dataclasses rather than schemas.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class SimulatedWeekPoint:
    """Projected stock at the end of one simulated week."""
    product_id: str
    week_index: int
    week_start: date
    stock_level: float          # clamped at zero
    shortfall: float = 0.0      # cartons the week would have gone below zero
    credited: float = 0.0       # existing-order cartons delivered this week


@dataclass(frozen=True)
class DepletionResult:
    """Outcome of simulating one product across the planning horizon."""
    product_id: str
    points: tuple[SimulatedWeekPoint, ...] = ()
    depletion_date: Optional[date] = None
    never_depletes: bool = False

    @property
    def depletes(self) -> bool:
        return self.depletion_date is not None


@dataclass(frozen=True)
class ReplenishmentEvent:
    """A product that needs a new order placed by order_by_date."""
    product_id: str
    sku: str
    order_by_date: date
    delivery_date: date
    quantity: int               # cartons
    volume_per_carton: float    # m³
    pieces_per_pallet: int
    weekly_consumption: float
    name: Optional[str] = None

    @property
    def volume(self) -> float:
        return self.quantity * self.volume_per_carton


@dataclass
class Cluster:
    """Events whose order-by dates fall inside one coalescing window."""
    anchor_date: date
    events: list[ReplenishmentEvent] = field(default_factory=list)


@dataclass
class PackedLine:
    """Cartons of one product placed in a container."""
    event: ReplenishmentEvent
    quantity: int = 0

    @property
    def volume(self) -> float:
        return self.quantity * self.event.volume_per_carton


@dataclass
class PackedContainer:
    """A container filled by the packer, before numbering and urgency."""
    order_by_date: date
    delivery_date: date
    lines: dict[int, PackedLine] = field(default_factory=dict)
    volume: float = 0.0

    @property
    def total_cartons(self) -> int:
        return sum(line.quantity for line in self.lines.values())

    @property
    def is_empty(self) -> bool:
        return not self.lines
