"""Class-stratified population dynamics."""

from __future__ import annotations

import math

from .enums import POPULATION_ORDER, PopulationClass, ResourceType
from .models import PopulationModel
from .rules_config import DEFAULT_RULES, RulesConfig

MINOR_CLASSES: tuple[PopulationClass, ...] = (
    PopulationClass.MERCHANT,
    PopulationClass.SOLDIER,
    PopulationClass.SCHOLAR,
    PopulationClass.NOBLE,
)

# Per-class weight of each class towards a resource's production bonus.
PRODUCTION_WEIGHTS: dict[ResourceType, dict[PopulationClass, float]] = {
    ResourceType.WOOD: {PopulationClass.PEASANT: 0.5, PopulationClass.WORKER: 1.0},
    ResourceType.STONE: {PopulationClass.WORKER: 1.5},
    ResourceType.GOLD: {
        PopulationClass.MERCHANT: 2.0,
        PopulationClass.NOBLE: 3.0,
        PopulationClass.SCHOLAR: 1.0,
    },
    ResourceType.FOOD: {PopulationClass.PEASANT: 1.0, PopulationClass.WORKER: 0.5},
    ResourceType.IRON: {PopulationClass.WORKER: 1.0, PopulationClass.SOLDIER: 0.5},
    ResourceType.CRYSTAL: {PopulationClass.SCHOLAR: 1.0},
}


def new_population(rules: RulesConfig = DEFAULT_RULES) -> PopulationModel:
    """Return the default founding population."""

    return PopulationModel(
        classes={
            PopulationClass.PEASANT: 20,
            PopulationClass.WORKER: 10,
            PopulationClass.MERCHANT: 3,
            PopulationClass.SOLDIER: 5,
            PopulationClass.SCHOLAR: 1,
            PopulationClass.NOBLE: 1,
        },
        happiness=rules.population.default_happiness,
        growth_rate=rules.population.default_growth_rate,
        food_consumption=rules.population.default_food_consumption,
        next_growth_tick=rules.population.growth_interval_ticks,
    )


def total(model: PopulationModel) -> int:
    return sum(model.classes.values())


def daily_food_consumption(model: PopulationModel) -> int:
    return math.floor(total(model) * model.food_consumption)


def update(
    model: PopulationModel,
    food_available: int,
    housing_capacity: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> None:
    """Advance happiness and, every growth interval, grow or shrink the population."""

    food_needed = daily_food_consumption(model)
    if food_available < food_needed:
        shortfall = 1.0 - food_available / food_needed
        model.happiness -= shortfall * rules.population.starvation_happiness_factor
    else:
        model.happiness += rules.population.fed_happiness_gain
    model.happiness = min(1.0, max(0.0, model.happiness))

    if model.next_growth_tick > 0:
        model.next_growth_tick -= 1
    if model.next_growth_tick > 0:
        return

    current = total(model)
    if current >= housing_capacity:
        modifier = 0.0
    else:
        modifier = model.happiness * 2.0 - 0.5
    effective_rate = model.growth_rate * modifier

    if effective_rate > 0:
        distribute_growth(model, math.floor(current * effective_rate), rules=rules)
    elif effective_rate < 0:
        distribute_decline(model, math.floor(current * -effective_rate))

    model.next_growth_tick = rules.population.growth_interval_ticks


def distribute_growth(
    model: PopulationModel, growth: int, *, rules: RulesConfig = DEFAULT_RULES
) -> None:
    """Spread ``growth`` newcomers: mostly peasants and workers, the rest evenly."""

    if growth <= 0:
        return
    peasants = math.floor(growth * rules.population.peasant_growth_share)
    workers = math.floor(growth * rules.population.worker_growth_share)
    others = growth - peasants - workers

    _bump(model, PopulationClass.PEASANT, peasants)
    _bump(model, PopulationClass.WORKER, workers)

    share, remainder = divmod(others, len(MINOR_CLASSES))
    for index, population_class in enumerate(MINOR_CLASSES):
        extra = 1 if index < remainder else 0
        _bump(model, population_class, share + extra)


def distribute_decline(model: PopulationModel, decline: int) -> None:
    """Remove up to ``decline`` members in proportion to each class's share."""

    population = total(model)
    if decline <= 0 or population == 0:
        return

    removed = 0
    for population_class in POPULATION_ORDER:
        count = model.classes.get(population_class, 0)
        if count == 0:
            continue
        proportional = math.floor(decline * count / population)
        loss = min(proportional, count, decline - removed)
        model.classes[population_class] = count - loss
        removed += loss
        if removed >= decline or removed >= population:
            break


def get_production_bonus(model: PopulationModel, resource: ResourceType) -> float:
    """Weighted contribution of the population towards ``resource`` output."""

    population = total(model)
    weights = PRODUCTION_WEIGHTS.get(resource)
    if population == 0 or not weights:
        return 0.0
    weighted = sum(model.classes.get(cls, 0) * weight for cls, weight in weights.items())
    return weighted / population


def _bump(model: PopulationModel, population_class: PopulationClass, amount: int) -> None:
    if amount:
        model.classes[population_class] = model.classes.get(population_class, 0) + amount
