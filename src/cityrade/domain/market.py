"""Market price book rules.

``buy`` and ``sell`` only nudge the demand and supply factors; prices move
exclusively in ``update_prices``, which the trade manager calls once per
world step.
"""

from __future__ import annotations

import math

from .enums import CommandError, ResourceType
from .models import Market, MarketItem
from .results import CommandResult
from .rules_config import DEFAULT_RULES, RulesConfig


def new_market(rules: RulesConfig = DEFAULT_RULES) -> Market:
    """Return a price book tracking every resource with a configured base price."""

    market = Market()
    for resource, base_price in rules.market.base_prices.items():
        market.items[resource] = MarketItem(
            resource=resource,
            quantity=rules.market.starting_quantity,
            base_price=base_price,
            current_price=base_price,
        )
        market.demand_factors[resource] = 1.0
        market.supply_factors[resource] = 1.0
    return market


def is_tracked(market: Market, resource: ResourceType) -> bool:
    return resource in market.items


def current_price(market: Market, resource: ResourceType) -> int | None:
    item = market.items.get(resource)
    return item.current_price if item is not None else None


def buy(
    market: Market,
    resource: ResourceType,
    quantity: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> CommandResult:
    """Take ``quantity`` from the market; ``value`` is the total at the current price."""

    _require_positive(quantity)
    item = market.items.get(resource)
    if item is None:
        return CommandResult.fail(
            CommandError.RESOURCE_UNTRACKED, f"{resource} is not traded on this market"
        )
    if item.quantity < quantity:
        return CommandResult.fail(
            CommandError.INSUFFICIENT_RESOURCES,
            f"market holds only {item.quantity} {resource}",
        )

    price = item.current_price * quantity
    item.quantity -= quantity
    market.demand_factors[resource] = market.demand_factors.get(resource, 1.0) + (
        rules.market.demand_step
    )
    return CommandResult.ok(f"bought {quantity} {resource}", value=price)


def sell(
    market: Market,
    resource: ResourceType,
    quantity: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> CommandResult:
    """Put ``quantity`` on the market; ``value`` is the revenue at the current price."""

    _require_positive(quantity)
    item = market.items.get(resource)
    if item is None:
        return CommandResult.fail(
            CommandError.RESOURCE_UNTRACKED, f"{resource} is not traded on this market"
        )

    revenue = item.current_price * quantity
    item.quantity += quantity
    market.supply_factors[resource] = market.supply_factors.get(resource, 1.0) + (
        rules.market.supply_step
    )
    return CommandResult.ok(f"sold {quantity} {resource}", value=revenue)


def update_prices(market: Market) -> None:
    for resource, item in market.items.items():
        demand = market.demand_factors.get(resource, 1.0)
        supply = market.supply_factors.get(resource, 1.0)
        item.current_price = math.floor(item.base_price * demand / supply + 0.5)


def adjust_factor(
    factors: dict[ResourceType, float],
    resource: ResourceType,
    delta: float,
    *,
    floor: float,
) -> None:
    """Shift a demand/supply factor, never letting it drop below ``floor``."""

    if resource not in factors:
        return
    factors[resource] = max(floor, factors[resource] + delta)


def _require_positive(quantity: int) -> None:
    if quantity <= 0:
        raise ValueError(f"quantity must be positive, got {quantity}")
