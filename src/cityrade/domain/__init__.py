"""Domain model for Cityrade.

This package hosts the settlement economy core.  It exposes:

* Dataclasses describing every game entity (see :mod:`models`).
* Enumerations and strongly-typed identifiers used across the rules layer.
* Rule configuration objects (see :mod:`rules_config`).
* Pure rule functions for the ledger, buildings, cities, population,
  markets, trade routes, technologies and the world map.

Everything here operates purely in-memory and is persisted through the thin
repository adapter in :mod:`cityrade.repository`.
"""

from . import (
    capabilities,
    catalog,
    city,
    enums,
    ledger,
    market,
    models,
    population,
    results,
    rules_config,
    technology,
    terrain,
    tick,
    trade,
    world,
)

__all__ = [
    "capabilities",
    "catalog",
    "city",
    "enums",
    "ledger",
    "market",
    "models",
    "population",
    "results",
    "rules_config",
    "technology",
    "terrain",
    "tick",
    "trade",
    "world",
]
