"""Declarative rule configuration for the Cityrade domain."""

from __future__ import annotations

from dataclasses import dataclass, field

from .enums import ResourceType


def _starting_stock() -> dict[ResourceType, int]:
    return {
        ResourceType.GOLD: 100,
        ResourceType.WOOD: 100,
        ResourceType.STONE: 50,
        ResourceType.FOOD: 200,
        ResourceType.IRON: 0,
        ResourceType.CRYSTAL: 0,
        ResourceType.POPULATION: 10,
        ResourceType.ENERGY: 50,
    }


def _starting_rates() -> dict[ResourceType, int]:
    return {
        ResourceType.GOLD: 5,
        ResourceType.WOOD: 8,
        ResourceType.STONE: 3,
        ResourceType.FOOD: 10,
        ResourceType.IRON: 0,
        ResourceType.CRYSTAL: 0,
        ResourceType.POPULATION: 1,
        ResourceType.ENERGY: 2,
    }


def _base_production() -> dict[ResourceType, int]:
    return {
        ResourceType.GOLD: 5,
        ResourceType.WOOD: 3,
        ResourceType.STONE: 2,
        ResourceType.FOOD: 8,
    }


def _base_prices() -> dict[ResourceType, int]:
    return {
        ResourceType.GOLD: 100,
        ResourceType.WOOD: 20,
        ResourceType.STONE: 40,
        ResourceType.FOOD: 10,
        ResourceType.IRON: 60,
        ResourceType.CRYSTAL: 150,
        ResourceType.ENERGY: 30,
    }


@dataclass(frozen=True, slots=True)
class LedgerRules:
    """Opening balance of a freshly founded settlement."""

    starting_stock: dict[ResourceType, int] = field(default_factory=_starting_stock)
    starting_rates: dict[ResourceType, int] = field(default_factory=_starting_rates)


@dataclass(frozen=True, slots=True)
class CityRules:
    """City tick constants: base production, stat defaults and growth."""

    base_production: dict[ResourceType, int] = field(default_factory=_base_production)
    default_happiness: int = 50
    default_defense: int = 10
    default_culture: int = 0
    default_max_population: int = 50
    default_max_buildings: int = 5
    population_per_building_slot: int = 20
    starting_population: int = 10
    starvation_population_loss: int = 1
    starvation_happiness_loss: int = 5
    growth_step: int = 1
    upgrade_cost_multiplier: float = 1.5


@dataclass(frozen=True, slots=True)
class PopulationRules:
    """Class-stratified population dynamics."""

    default_happiness: float = 0.7
    default_growth_rate: float = 0.02
    default_food_consumption: float = 0.5
    growth_interval_ticks: int = 10
    starvation_happiness_factor: float = 0.1
    fed_happiness_gain: float = 0.01
    peasant_growth_share: float = 0.6
    worker_growth_share: float = 0.3


@dataclass(frozen=True, slots=True)
class MarketRules:
    """Price book defaults and factor nudges."""

    base_prices: dict[ResourceType, int] = field(default_factory=_base_prices)
    starting_quantity: int = 100
    demand_step: float = 0.01
    supply_step: float = 0.01


@dataclass(frozen=True, slots=True)
class TradeRules:
    """Trade route timing and settlement factors."""

    route_duration_ticks: int = 10
    completion_factor_step: float = 0.02
    min_factor: float = 0.01
    abandon_after_ticks: int = 5


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    ledger: LedgerRules = LedgerRules()
    city: CityRules = CityRules()
    population: PopulationRules = PopulationRules()
    market: MarketRules = MarketRules()
    trade: TradeRules = TradeRules()


DEFAULT_RULES = RulesConfig()
