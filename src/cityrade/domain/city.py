"""City aggregate rules: the tick pipeline, building commands and reports."""

from __future__ import annotations

import logging
import math
import random
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

from . import catalog, ledger, terrain
from . import population as population_rules
from .enums import RESOURCE_ORDER, BuildingType, CommandError, ResourceType, Terrain
from .models import Building, BuildingID, City, CityID, CityStats, OwnerID, Position
from .results import CommandResult
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)

# Stat contribution per level: (happiness, defense, culture, max_population).
STAT_CONTRIBUTIONS: dict[BuildingType, tuple[int, int, int, int]] = {
    BuildingType.RESIDENTIAL: (0, 0, 0, 10),
    BuildingType.TEMPLE: (5, 0, 3, 0),
    BuildingType.WALL: (0, 20, 0, 0),
    BuildingType.LABORATORY: (0, 0, 5, 0),
    BuildingType.BARRACKS: (-2, 10, 0, 0),
}


def new_city(
    name: str,
    owner_id: str,
    terrain_tag: Terrain,
    position: Position,
    *,
    rules: RulesConfig = DEFAULT_RULES,
    now: datetime | None = None,
) -> City:
    """Found a city with the default ledger, stats and population."""

    stamp = now or datetime.now(UTC)
    return City(
        id=CityID(uuid.uuid4().hex),
        name=name,
        owner_id=OwnerID(owner_id),
        terrain=terrain_tag,
        position=position,
        created_at=stamp,
        last_updated=stamp,
        population=rules.city.starting_population,
        resources=ledger.new_ledger(rules),
        stats=default_stats(rules),
    )


def default_stats(rules: RulesConfig = DEFAULT_RULES) -> CityStats:
    return CityStats(
        happiness=rules.city.default_happiness,
        defense=rules.city.default_defense,
        culture=rules.city.default_culture,
        max_population=rules.city.default_max_population,
        max_buildings=rules.city.default_max_buildings,
    )


# ---------------------------------------------------------------------------
# Tick pipeline


def tick(
    city: City,
    *,
    rng: random.Random | None = None,
    rules: RulesConfig = DEFAULT_RULES,
    now: datetime | None = None,
) -> None:
    """Advance ``city`` by one step: production, stats, population, timestamp."""

    update_resource_production(city, rules=rules)
    update_stats(city, rules=rules)
    update_population(city, rng=rng, rules=rules)
    city.last_updated = now or datetime.now(UTC)


def compute_production_rates(
    city: City, rules: RulesConfig = DEFAULT_RULES
) -> dict[ResourceType, int]:
    """Base rates plus building effects, scaled by the terrain modifiers."""

    rates = {resource: rules.city.base_production.get(resource, 0) for resource in RESOURCE_ORDER}
    for building in city.buildings.values():
        for resource, amount in catalog.building_effect(building):
            rates[resource] = rates.get(resource, 0) + amount
    return {
        resource: math.trunc(rate * terrain.resource_modifier(city.terrain, resource))
        for resource, rate in rates.items()
    }


def update_resource_production(city: City, *, rules: RulesConfig = DEFAULT_RULES) -> None:
    for resource, rate in compute_production_rates(city, rules).items():
        ledger.set_production_rate(city.resources, resource, rate)
    ledger.update_production(city.resources)


def update_stats(city: City, *, rules: RulesConfig = DEFAULT_RULES) -> None:
    stats = default_stats(rules)
    for building in city.buildings.values():
        contribution = STAT_CONTRIBUTIONS.get(building.building_type)
        if contribution is None:
            continue
        happiness, defense, culture, max_population = contribution
        stats.happiness += happiness * building.level
        stats.defense += defense * building.level
        stats.culture += culture * building.level
        stats.max_population += max_population * building.level
    stats.happiness = max(0, stats.happiness)
    stats.max_buildings = rules.city.default_max_buildings + (
        city.population // rules.city.population_per_building_slot
    )
    city.stats = stats


def update_population(
    city: City,
    *,
    rng: random.Random | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> None:
    """Grow or starve the settlement.

    Cities carrying a class-stratified ``demographics`` model delegate to it and
    mirror its total into the scalar counter; otherwise the scalar counter moves
    by at most one member per tick.
    """

    food = ledger.get(city.resources, ResourceType.FOOD)

    if city.demographics is not None:
        population_rules.update(
            city.demographics, food, city.stats.max_population, rules=rules
        )
        city.population = population_rules.total(city.demographics)
        return

    if food < city.population:
        decrease_population(city, rules.city.starvation_population_loss)
        city.stats.happiness = max(0, city.stats.happiness - rules.city.starvation_happiness_loss)
        return

    draw: Callable[[], float] = rng.random if rng is not None else random.random
    growth_chance = city.stats.happiness / 100
    if draw() < growth_chance and city.population < city.stats.max_population:
        increase_population(city, rules.city.growth_step)


def increase_population(city: City, amount: int) -> None:
    city.population = min(city.population + amount, city.stats.max_population)


def decrease_population(city: City, amount: int) -> None:
    city.population = max(0, city.population - amount)


# ---------------------------------------------------------------------------
# Commands


def add_building(
    city: City,
    building_type: BuildingType,
    name: str,
    position: Position,
) -> CommandResult:
    """Place a new level 1 building, paying its base cost."""

    if len(city.buildings) >= city.stats.max_buildings:
        return CommandResult.fail(
            CommandError.BUILDING_LIMIT_REACHED,
            f"{city.name} already has {len(city.buildings)}/{city.stats.max_buildings} buildings",
        )

    position = (int(position[0]), int(position[1]))
    if any(building.position == position for building in city.buildings.values()):
        return CommandResult.fail(
            CommandError.POSITION_OCCUPIED, f"position {position} is already occupied"
        )

    costs = catalog.base_cost(building_type)
    if not ledger.pay(city.resources, costs):
        return CommandResult.fail(
            CommandError.INSUFFICIENT_RESOURCES,
            f"not enough resources to build {catalog.display_name(building_type)}",
        )

    building_id = _fresh_building_id(city)
    city.buildings[building_id] = Building(
        id=building_id,
        name=name,
        building_type=building_type,
        position=position,
    )
    logger.debug("city %s built %s %s at %s", city.name, building_type, building_id, position)
    return CommandResult.ok(f"{name} built", building_id=building_id)


def upgrade_building(
    city: City, building_id: str, *, rules: RulesConfig = DEFAULT_RULES
) -> CommandResult:
    building = city.buildings.get(BuildingID(building_id))
    if building is None:
        return CommandResult.fail(
            CommandError.BUILDING_NOT_FOUND, f"building {building_id} not found"
        )

    if not ledger.pay(city.resources, catalog.upgrade_cost(building, rules)):
        return CommandResult.fail(
            CommandError.INSUFFICIENT_RESOURCES,
            f"not enough resources to upgrade {building.name} past level {building.level}",
        )

    catalog.upgrade(building)
    logger.debug("city %s upgraded %s to level %d", city.name, building.id, building.level)
    return CommandResult.ok(
        f"{building.name} upgraded to level {building.level}", building_id=building.id
    )


def remove_building(city: City, building_id: str) -> CommandResult:
    """Demolish a building; nothing is refunded."""

    building = city.buildings.pop(BuildingID(building_id), None)
    if building is None:
        return CommandResult.fail(
            CommandError.BUILDING_NOT_FOUND, f"building {building_id} not found"
        )
    logger.debug("city %s demolished %s", city.name, building.id)
    return CommandResult.ok(f"{building.name} demolished", building_id=building.id)


def _fresh_building_id(city: City) -> BuildingID:
    while True:
        candidate = BuildingID(uuid.uuid4().hex)
        if candidate not in city.buildings:
            return candidate


# ---------------------------------------------------------------------------
# Reports


def resource_report(city: City) -> str:
    lines = [f"Resources of {city.name}:"]
    for resource, amount in ledger.get_all_resources(city.resources):
        rate = ledger.get_production_rate(city.resources, resource)
        rate_text = f"+{rate}" if rate > 0 else str(rate)
        lines.append(f"{resource.name.title()}: {amount} ({rate_text})")
    return "\n".join(lines) + "\n"


def buildings_report(city: City) -> str:
    lines = [f"Buildings of {city.name} ({len(city.buildings)}/{city.stats.max_buildings})"]
    ordered = sorted(city.buildings.values(), key=lambda b: (b.position, b.id))
    lines.extend(f"- {building.name}, level {building.level}" for building in ordered)
    return "\n".join(lines) + "\n"


def stats_report(city: City) -> str:
    return (
        f"Statistics of {city.name}:\n"
        f"Population: {city.population}/{city.stats.max_population}\n"
        f"Happiness: {city.stats.happiness}\n"
        f"Defense: {city.stats.defense}\n"
        f"Culture: {city.stats.culture}\n"
        f"Terrain: {terrain.display_name(city.terrain)}\n"
        f"Founded: {city.created_at:%d.%m.%Y}\n"
    )
