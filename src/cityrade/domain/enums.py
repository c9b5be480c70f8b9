"""Enumerations and type aliases for the Cityrade domain."""

from __future__ import annotations

from enum import StrEnum


class ResourceType(StrEnum):
    """Resources stored in a settlement ledger."""

    GOLD = "gold"
    WOOD = "wood"
    STONE = "stone"
    FOOD = "food"
    IRON = "iron"
    CRYSTAL = "crystal"
    POPULATION = "population"
    ENERGY = "energy"


class BuildingType(StrEnum):
    """Building variants available in the catalog."""

    RESIDENTIAL = "residential"
    FARM = "farm"
    LUMBER_MILL = "lumber_mill"
    MINE = "mine"
    MARKET = "market"
    BARRACKS = "barracks"
    POWER_PLANT = "power_plant"
    LABORATORY = "laboratory"
    TEMPLE = "temple"
    WATER_MILL = "water_mill"
    WALL = "wall"
    WORKSHOP = "workshop"
    CRYSTAL_MINE = "crystal_mine"


class Terrain(StrEnum):
    """Terrain tags a settlement can be founded on."""

    PLAIN = "plain"
    FOREST = "forest"
    MOUNTAIN = "mountain"
    DESERT = "desert"
    SWAMP = "swamp"
    WATER = "water"
    SNOW = "snow"


class PopulationClass(StrEnum):
    """Social strata of the class-stratified population model."""

    PEASANT = "peasant"
    WORKER = "worker"
    MERCHANT = "merchant"
    SOLDIER = "soldier"
    SCHOLAR = "scholar"
    NOBLE = "noble"


class TechnologyType(StrEnum):
    """Research nodes of the technology tree."""

    # Economy
    AGRICULTURE = "agriculture"
    MINING = "mining"
    FORESTRY = "forestry"
    TRADE = "trade"
    BANKING = "banking"

    # Construction
    BASIC_CONSTRUCTION = "basic_construction"
    ADVANCED_CONSTRUCTION = "advanced_construction"
    STONE_WORKS = "stone_works"

    # Military
    BASIC_MILITARY = "basic_military"
    ADVANCED_MILITARY = "advanced_military"
    FORTIFICATION = "fortification"

    # Society
    EDUCATION = "education"
    CULTURE = "culture"
    ADMINISTRATION = "administration"


class CommandError(StrEnum):
    """Recoverable business failures returned by commands."""

    INSUFFICIENT_RESOURCES = "insufficient_resources"
    BUILDING_LIMIT_REACHED = "building_limit_reached"
    POSITION_OCCUPIED = "position_occupied"
    BUILDING_NOT_FOUND = "building_not_found"
    MARKET_NOT_FOUND = "market_not_found"
    RESOURCE_UNTRACKED = "resource_untracked"
    ROUTE_ENDPOINT_MISSING_MARKET = "route_endpoint_missing_market"
    TILE_NOT_FOUND = "tile_not_found"
    CITY_NOT_FOUND = "city_not_found"
    CITY_EXISTS = "city_exists"


class RouteStatus(StrEnum):
    """Lifecycle of a trade route within a trade tick."""

    IN_TRANSIT = "in_transit"
    RETRYING = "retrying"
    DELIVERED = "delivered"
    ABANDONED = "abandoned"


# Fixed iteration order used wherever results must be deterministic.
RESOURCE_ORDER: tuple[ResourceType, ...] = tuple(ResourceType)
POPULATION_ORDER: tuple[PopulationClass, ...] = tuple(PopulationClass)
