"""Resource ledger rules.

Every function here preserves the ledger invariant: no quantity is ever
negative.  ``pay`` is atomic, and applying a negative production rate floors
the resource at zero instead of failing.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping

from .enums import RESOURCE_ORDER, ResourceType
from .models import CostLine, ResourceLedger
from .rules_config import DEFAULT_RULES, RulesConfig


def new_ledger(rules: RulesConfig = DEFAULT_RULES) -> ResourceLedger:
    """Return the opening ledger of a freshly founded settlement."""

    return ResourceLedger(
        quantities=dict(rules.ledger.starting_stock),
        production_rates=dict(rules.ledger.starting_rates),
    )


def with_values(
    values: Mapping[ResourceType, int], rules: RulesConfig = DEFAULT_RULES
) -> ResourceLedger:
    """Return a default ledger with the supplied quantities overwritten."""

    ledger = new_ledger(rules)
    for resource, amount in values.items():
        set_quantity(ledger, resource, amount)
    return ledger


def get(ledger: ResourceLedger, resource: ResourceType) -> int:
    return ledger.quantities.get(resource, 0)


def set_quantity(ledger: ResourceLedger, resource: ResourceType, amount: int) -> None:
    _require_non_negative(amount)
    ledger.quantities[resource] = amount


def add(ledger: ResourceLedger, resource: ResourceType, amount: int) -> None:
    _require_non_negative(amount)
    ledger.quantities[resource] = get(ledger, resource) + amount


def subtract(ledger: ResourceLedger, resource: ResourceType, amount: int) -> bool:
    """Remove ``amount`` if available; return ``False`` without mutating otherwise."""

    _require_non_negative(amount)
    current = get(ledger, resource)
    if current < amount:
        return False
    ledger.quantities[resource] = current - amount
    return True


def can_afford(ledger: ResourceLedger, costs: Iterable[CostLine]) -> bool:
    """Return whether every cost line can be paid, summing repeated resources."""

    totals: Counter[ResourceType] = Counter()
    for resource, amount in costs:
        _require_non_negative(amount)
        totals[resource] += amount
    return all(get(ledger, resource) >= amount for resource, amount in totals.items())


def pay(ledger: ResourceLedger, costs: Iterable[CostLine]) -> bool:
    """Debit all costs or nothing at all."""

    lines = list(costs)
    if not can_afford(ledger, lines):
        return False
    for resource, amount in lines:
        subtract(ledger, resource, amount)
    return True


def get_production_rate(ledger: ResourceLedger, resource: ResourceType) -> int:
    return ledger.production_rates.get(resource, 0)


def set_production_rate(ledger: ResourceLedger, resource: ResourceType, rate: int) -> None:
    ledger.production_rates[resource] = rate


def update_production(ledger: ResourceLedger) -> None:
    """Apply one tick of production; shortfalls floor the resource at zero."""

    for resource, rate in list(ledger.production_rates.items()):
        if rate > 0:
            add(ledger, resource, rate)
        elif rate < 0 and not subtract(ledger, resource, -rate):
            ledger.quantities[resource] = 0


def get_all_resources(ledger: ResourceLedger) -> list[tuple[ResourceType, int]]:
    """Return tracked quantities in canonical resource order."""

    return [
        (resource, ledger.quantities[resource])
        for resource in RESOURCE_ORDER
        if resource in ledger.quantities
    ]


def get_all_production_rates(ledger: ResourceLedger) -> list[tuple[ResourceType, int]]:
    return [
        (resource, ledger.production_rates[resource])
        for resource in RESOURCE_ORDER
        if resource in ledger.production_rates
    ]


def _require_non_negative(amount: int) -> None:
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")
