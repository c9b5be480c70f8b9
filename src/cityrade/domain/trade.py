"""Trade route scheduling between settlements.

A completed route debits the source city's ledger, credits the target city's
ledger and shifts both markets' factors.  Those four mutations touch two
independent aggregates, so :class:`TradeManager` serializes its whole tick
(and every mutating call) behind one lock.

Failed transfers are retried: a route whose source cannot pay stays on the
book with its duration at zero and is abandoned only after
``TradeRules.abandon_after_ticks`` unsuccessful attempts.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field

from . import ledger
from . import market as market_rules
from .enums import CommandError, ResourceType, RouteStatus
from .models import City, Market, TradeBook, TradeRoute
from .results import CommandResult
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TradeTickReport:
    """Summary of one trade tick."""

    delivered: list[TradeRoute] = field(default_factory=list)
    retrying: list[TradeRoute] = field(default_factory=list)
    abandoned: list[TradeRoute] = field(default_factory=list)
    in_transit: int = 0


class TradeManager:
    """Owns every in-flight trade route and the market of each settlement."""

    def __init__(
        self,
        book: TradeBook | None = None,
        *,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self.book = book if book is not None else TradeBook()
        self._rules = rules
        self._lock = threading.Lock()

    @property
    def routes(self) -> list[TradeRoute]:
        return self.book.routes

    @property
    def markets(self) -> dict[str, Market]:
        return self.book.markets

    def create_city_market(self, city_name: str) -> Market:
        """Register (or replace) the default market for ``city_name``."""

        with self._lock:
            market = market_rules.new_market(self._rules)
            self.book.markets[city_name] = market
            return market

    def get_market(self, city_name: str) -> Market | None:
        return self.book.markets.get(city_name)

    def buy(self, city_name: str, resource: ResourceType, quantity: int) -> CommandResult:
        with self._lock:
            market = self.book.markets.get(city_name)
            if market is None:
                return _missing_market(city_name)
            return market_rules.buy(market, resource, quantity, rules=self._rules)

    def sell(self, city_name: str, resource: ResourceType, quantity: int) -> CommandResult:
        with self._lock:
            market = self.book.markets.get(city_name)
            if market is None:
                return _missing_market(city_name)
            return market_rules.sell(market, resource, quantity, rules=self._rules)

    def establish_route(
        self,
        source_city: str,
        target_city: str,
        resource: ResourceType,
        quantity: int,
    ) -> CommandResult:
        """Open a route, snapshotting the source market's current price."""

        if quantity <= 0:
            raise ValueError(f"quantity must be positive, got {quantity}")

        with self._lock:
            for endpoint in (source_city, target_city):
                if endpoint not in self.book.markets:
                    return CommandResult.fail(
                        CommandError.ROUTE_ENDPOINT_MISSING_MARKET,
                        f"city {endpoint} has no market",
                    )

            price = market_rules.current_price(self.book.markets[source_city], resource)
            if price is None:
                return CommandResult.fail(
                    CommandError.RESOURCE_UNTRACKED,
                    f"{resource} is not traded on the market of {source_city}",
                )

            route = TradeRoute(
                source_city=source_city,
                target_city=target_city,
                resource=resource,
                quantity=quantity,
                price_per_unit=price,
                duration=self._rules.trade.route_duration_ticks,
            )
            self.book.routes.append(route)

        logger.debug(
            "route %s -> %s opened: %d %s at %d",
            source_city,
            target_city,
            quantity,
            resource,
            price,
        )
        return CommandResult.ok(
            f"route {source_city} -> {target_city} established", value=route.duration
        )

    def tick(self, cities: Mapping[str, City]) -> TradeTickReport:
        """Advance every route by one step and settle the ones that arrived."""

        report = TradeTickReport()
        with self._lock:
            for route in self.book.routes:
                if route.duration > 0:
                    route.duration -= 1

            remaining: list[TradeRoute] = []
            for route in self.book.routes:
                if route.duration > 0:
                    remaining.append(route)
                    continue

                status = self._settle(route, cities)
                if status is RouteStatus.DELIVERED:
                    report.delivered.append(route)
                elif status is RouteStatus.ABANDONED:
                    report.abandoned.append(route)
                else:
                    report.retrying.append(route)
                    remaining.append(route)

            self.book.routes[:] = remaining
            report.in_transit = len(remaining) - len(report.retrying)

            for market in self.book.markets.values():
                market_rules.update_prices(market)

        return report

    def _settle(self, route: TradeRoute, cities: Mapping[str, City]) -> RouteStatus:
        source = cities.get(route.source_city)
        target = cities.get(route.target_city)

        if (
            source is not None
            and target is not None
            and ledger.pay(source.resources, [(route.resource, route.quantity)])
        ):
            ledger.add(target.resources, route.resource, route.quantity)
            self._shift_factors(route)
            logger.info(
                "route %s -> %s delivered %d %s",
                route.source_city,
                route.target_city,
                route.quantity,
                route.resource,
            )
            return RouteStatus.DELIVERED

        if route.overdue_ticks >= self._rules.trade.abandon_after_ticks:
            self._shift_factors(route)
            logger.warning(
                "route %s -> %s abandoned after %d failed transfers",
                route.source_city,
                route.target_city,
                route.overdue_ticks + 1,
            )
            return RouteStatus.ABANDONED

        route.overdue_ticks += 1
        logger.warning(
            "route %s -> %s could not transfer %d %s; retrying next tick",
            route.source_city,
            route.target_city,
            route.quantity,
            route.resource,
        )
        return RouteStatus.RETRYING

    def _shift_factors(self, route: TradeRoute) -> None:
        step = self._rules.trade.completion_factor_step
        floor = self._rules.trade.min_factor
        source_market = self.book.markets.get(route.source_city)
        if source_market is not None:
            market_rules.adjust_factor(
                source_market.supply_factors, route.resource, -step, floor=floor
            )
        target_market = self.book.markets.get(route.target_city)
        if target_market is not None:
            market_rules.adjust_factor(
                target_market.demand_factors, route.resource, -step, floor=floor
            )


def _missing_market(city_name: str) -> CommandResult:
    return CommandResult.fail(CommandError.MARKET_NOT_FOUND, f"city {city_name} has no market")
