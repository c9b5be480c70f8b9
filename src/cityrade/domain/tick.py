"""World step orchestration for Cityrade."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import UTC, datetime

from cityrade.utils.rng import generate_seed, seeded_random

from . import city as city_rules
from .capabilities import WORLD_TICK_TOPIC, CapabilityMessage, CapabilityRegistry, CapabilityReply
from .models import City, World
from .rules_config import DEFAULT_RULES, RulesConfig
from .trade import TradeManager, TradeTickReport


@dataclass(slots=True)
class WorldTickReport:
    """Summary of one world step."""

    tick: int
    cities_ticked: int
    trade: TradeTickReport
    capability_replies: list[CapabilityReply] = field(default_factory=list)


def run_world_tick(
    world: World,
    *,
    trade: TradeManager | None = None,
    capabilities: CapabilityRegistry | None = None,
    rules: RulesConfig = DEFAULT_RULES,
    now: datetime | None = None,
) -> WorldTickReport:
    """Advance every city, then the trade routes, by one step."""

    stamp = now or datetime.now(UTC)
    manager = trade if trade is not None else TradeManager(world.trade, rules=rules)

    for city in world.cities.values():
        city_rules.tick(city, rng=_city_rng(world, city), rules=rules, now=stamp)

    trade_report = manager.tick(world.cities)
    world.current_tick += 1

    report = WorldTickReport(
        tick=world.current_tick,
        cities_ticked=len(world.cities),
        trade=trade_report,
    )
    if capabilities is not None:
        report.capability_replies = capabilities.broadcast(
            CapabilityMessage(
                topic=WORLD_TICK_TOPIC,
                payload={
                    "world_id": int(world.id),
                    "tick": world.current_tick,
                    "delivered": len(trade_report.delivered),
                    "abandoned": len(trade_report.abandoned),
                },
            )
        )
    return report


def _city_rng(world: World, city: City) -> random.Random | None:
    if world.seed is None:
        return None
    return seeded_random(generate_seed(world.seed, world.current_tick, f"population:{city.id}"))
