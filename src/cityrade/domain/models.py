"""Dataclasses describing every Cityrade game entity.

The records below are pure data: the rules that mutate them live in the
sibling modules (:mod:`ledger`, :mod:`city`, :mod:`population`, :mod:`market`,
:mod:`trade`, :mod:`world`).  Keeping state and behaviour apart lets the
persistence adapters serialize any aggregate with a ``pydantic.TypeAdapter``
and reconstruct it without loss.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import NewType

from .enums import BuildingType, PopulationClass, ResourceType, TechnologyType, Terrain

# --- Strongly typed identifiers -------------------------------------------------

WorldID = NewType("WorldID", int)
CityID = NewType("CityID", str)
BuildingID = NewType("BuildingID", str)
OwnerID = NewType("OwnerID", str)

Position = tuple[int, int]
CostLine = tuple[ResourceType, int]
EffectLine = tuple[ResourceType, int]


# --- Settlement state ----------------------------------------------------------


@dataclass(slots=True)
class ResourceLedger:
    """Per-settlement resource stock and signed production rates."""

    quantities: dict[ResourceType, int] = field(default_factory=dict)
    production_rates: dict[ResourceType, int] = field(default_factory=dict)


@dataclass(slots=True)
class Building:
    """Instance of a catalog entry placed in a city."""

    id: BuildingID
    name: str
    building_type: BuildingType
    position: Position
    level: int = 1


@dataclass(slots=True)
class CityStats:
    """Derived city statistics, recomputed every tick."""

    happiness: int = 50
    defense: int = 10
    culture: int = 0
    max_population: int = 50
    max_buildings: int = 5


@dataclass(slots=True)
class PopulationModel:
    """Class-stratified population with happiness-driven growth."""

    classes: dict[PopulationClass, int] = field(default_factory=dict)
    happiness: float = 0.7
    growth_rate: float = 0.02
    food_consumption: float = 0.5
    next_growth_tick: int = 10


@dataclass(slots=True)
class City:
    """Root aggregate for a single settlement."""

    id: CityID
    name: str
    owner_id: OwnerID
    terrain: Terrain
    position: Position
    created_at: datetime
    last_updated: datetime
    population: int = 10
    buildings: dict[BuildingID, Building] = field(default_factory=dict)
    resources: ResourceLedger = field(default_factory=ResourceLedger)
    stats: CityStats = field(default_factory=CityStats)
    demographics: PopulationModel | None = None


# --- Trade ---------------------------------------------------------------------


@dataclass(slots=True)
class MarketItem:
    """Price book entry for one resource."""

    resource: ResourceType
    quantity: int
    base_price: int
    current_price: int


@dataclass(slots=True)
class Market:
    """Per-settlement price book with independent demand/supply factors."""

    items: dict[ResourceType, MarketItem] = field(default_factory=dict)
    demand_factors: dict[ResourceType, float] = field(default_factory=dict)
    supply_factors: dict[ResourceType, float] = field(default_factory=dict)


@dataclass(slots=True)
class TradeRoute:
    """Time-delayed, one-shot transfer between two settlements."""

    source_city: str
    target_city: str
    resource: ResourceType
    quantity: int
    price_per_unit: int
    duration: int
    overdue_ticks: int = 0


@dataclass(slots=True)
class TradeBook:
    """All in-flight routes plus the market of every trading settlement."""

    routes: list[TradeRoute] = field(default_factory=list)
    markets: dict[str, Market] = field(default_factory=dict)


# --- Research ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Technology:
    """Static definition of a researchable capability."""

    tech_type: TechnologyType
    name: str
    description: str
    cost: int
    prerequisites: tuple[TechnologyType, ...] = ()
    unlock_effects: tuple[str, ...] = ()


# --- World ---------------------------------------------------------------------


@dataclass(slots=True)
class TerrainTile:
    """Map tile produced by the terrain source."""

    x: int
    y: int
    terrain: Terrain
    resource_modifiers: dict[ResourceType, float] = field(default_factory=dict)


@dataclass(slots=True)
class World:
    """Registry of terrain tiles, cities and the shared trade book."""

    id: WorldID
    name: str
    width: int
    height: int
    seed: int | None = None
    current_tick: int = 0
    tiles: dict[str, TerrainTile] = field(default_factory=dict)
    cities: dict[str, City] = field(default_factory=dict)
    trade: TradeBook = field(default_factory=TradeBook)
