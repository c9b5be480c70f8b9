"""Building catalog: static cost, production and description rules.

Behaviour for each :class:`BuildingType` is resolved through the
``BUILDING_SPECS`` lookup table.  Production effects are linear in level:
each line is ``base + per_level * level`` (or ``// divisor`` for the slow
growing outputs), negated for upkeep lines.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .enums import BuildingType, ResourceType
from .models import Building, CostLine, EffectLine
from .rules_config import DEFAULT_RULES, RulesConfig


@dataclass(frozen=True, slots=True)
class EffectTerm:
    """One signed production line of a building type."""

    resource: ResourceType
    base: int
    per_level: int = 1
    level_divisor: int = 1
    upkeep: bool = False

    def at(self, level: int) -> int:
        amount = self.base + (self.per_level * level) // self.level_divisor
        return -amount if self.upkeep else amount


@dataclass(frozen=True, slots=True)
class BuildingSpec:
    """Catalog entry for a building type."""

    display_name: str
    description: str
    base_cost: tuple[CostLine, ...]
    effects: tuple[EffectTerm, ...] = ()


R = ResourceType

BUILDING_SPECS: dict[BuildingType, BuildingSpec] = {
    BuildingType.RESIDENTIAL: BuildingSpec(
        "Residential",
        "Raises the population ceiling of the city",
        ((R.WOOD, 50), (R.STONE, 30)),
        (EffectTerm(R.POPULATION, 10, 5),),
    ),
    BuildingType.FARM: BuildingSpec(
        "Farm",
        "Grows food for the population",
        ((R.WOOD, 30), (R.GOLD, 20)),
        (EffectTerm(R.FOOD, 10, 3),),
    ),
    BuildingType.LUMBER_MILL: BuildingSpec(
        "Lumber Mill",
        "Cuts timber from the surrounding forests",
        ((R.WOOD, 20), (R.STONE, 50), (R.GOLD, 30)),
        (EffectTerm(R.WOOD, 8, 2),),
    ),
    BuildingType.MINE: BuildingSpec(
        "Mine",
        "Extracts stone and iron from the ground",
        ((R.WOOD, 40), (R.STONE, 20), (R.GOLD, 50)),
        (EffectTerm(R.STONE, 5), EffectTerm(R.IRON, 2, level_divisor=2)),
    ),
    BuildingType.MARKET: BuildingSpec(
        "Market",
        "Increases the gold income of the city",
        ((R.WOOD, 60), (R.STONE, 40), (R.GOLD, 100)),
        (EffectTerm(R.GOLD, 15, 5),),
    ),
    BuildingType.BARRACKS: BuildingSpec(
        "Barracks",
        "Trains military units",
        ((R.WOOD, 80), (R.STONE, 100), (R.IRON, 50)),
        (EffectTerm(R.GOLD, 10, 2, upkeep=True), EffectTerm(R.FOOD, 5, upkeep=True)),
    ),
    BuildingType.POWER_PLANT: BuildingSpec(
        "Power Plant",
        "Generates energy for the city",
        ((R.STONE, 150), (R.IRON, 80), (R.GOLD, 200)),
        (EffectTerm(R.ENERGY, 20, 10),),
    ),
    BuildingType.LABORATORY: BuildingSpec(
        "Laboratory",
        "Opens up new technologies",
        ((R.STONE, 100), (R.CRYSTAL, 30), (R.GOLD, 250)),
        (EffectTerm(R.GOLD, 20, 5, upkeep=True), EffectTerm(R.ENERGY, 5, 2, upkeep=True)),
    ),
    BuildingType.TEMPLE: BuildingSpec(
        "Temple",
        "Raises the happiness and morale of the population",
        ((R.STONE, 200), (R.WOOD, 100), (R.GOLD, 150), (R.CRYSTAL, 20)),
        (EffectTerm(R.GOLD, 10, 3, upkeep=True),),
    ),
    BuildingType.WATER_MILL: BuildingSpec(
        "Water Mill",
        "Improves overall productivity",
        ((R.WOOD, 120), (R.STONE, 80), (R.GOLD, 100)),
        (EffectTerm(R.FOOD, 5), EffectTerm(R.WOOD, 5)),
    ),
    BuildingType.WALL: BuildingSpec(
        "Wall",
        "Protects the city from attacks",
        ((R.STONE, 300), (R.IRON, 100)),
    ),
    BuildingType.WORKSHOP: BuildingSpec(
        "Workshop",
        "Improves production and crafting",
        ((R.WOOD, 150), (R.STONE, 100), (R.IRON, 50), (R.GOLD, 120)),
        (EffectTerm(R.GOLD, 10, 3), EffectTerm(R.ENERGY, 3, upkeep=True)),
    ),
    BuildingType.CRYSTAL_MINE: BuildingSpec(
        "Crystal Mine",
        "Extracts rare magic crystals",
        ((R.STONE, 200), (R.IRON, 150), (R.GOLD, 300)),
        (
            EffectTerm(R.CRYSTAL, 1, level_divisor=3),
            EffectTerm(R.ENERGY, 10, 2, upkeep=True),
        ),
    ),
}

del R


def display_name(building_type: BuildingType) -> str:
    return BUILDING_SPECS[building_type].display_name


def description(building_type: BuildingType) -> str:
    return BUILDING_SPECS[building_type].description


def base_cost(building_type: BuildingType) -> list[CostLine]:
    return list(BUILDING_SPECS[building_type].base_cost)


def production_effect(building_type: BuildingType, level: int) -> list[EffectLine]:
    """Return the signed per-tick resource deltas of a building at ``level``."""

    if level < 1:
        raise ValueError(f"level must be at least 1, got {level}")
    return [(term.resource, term.at(level)) for term in BUILDING_SPECS[building_type].effects]


def building_effect(building: Building) -> list[EffectLine]:
    return production_effect(building.building_type, building.level)


def upgrade_cost(building: Building, rules: RulesConfig = DEFAULT_RULES) -> list[CostLine]:
    """Cost of taking ``building`` to the next level, truncated per resource."""

    multiplier = rules.city.upgrade_cost_multiplier**building.level
    return [
        (resource, math.trunc(amount * multiplier))
        for resource, amount in base_cost(building.building_type)
    ]


def upgrade(building: Building) -> None:
    building.level += 1


def building_info(building: Building) -> str:
    """Human readable summary of a placed building."""

    return (
        f"{building.name} ({building.id}), level {building.level}\n"
        f"Type: {display_name(building.building_type)}\n"
        f"Description: {description(building.building_type)}"
    )
