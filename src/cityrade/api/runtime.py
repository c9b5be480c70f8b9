"""Runtime primitives backing the Cityrade HTTP API."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections.abc import Callable
from contextlib import suppress
from dataclasses import replace
from pathlib import Path

from cityrade import savegame
from cityrade.config import Settings, get_settings
from cityrade.domain import catalog, ledger
from cityrade.domain import city as city_rules
from cityrade.domain import models as dm
from cityrade.domain import world as world_rules
from cityrade.domain.capabilities import CapabilityRegistry
from cityrade.domain.enums import BuildingType, CommandError, ResourceType
from cityrade.domain.results import CommandResult
from cityrade.domain.rules_config import DEFAULT_RULES, RulesConfig
from cityrade.domain.tick import WorldTickReport, run_world_tick
from cityrade.domain.trade import TradeManager
from cityrade.repository import JsonWorldRepository

logger = logging.getLogger(__name__)


def rules_from_settings(settings: Settings, base: RulesConfig = DEFAULT_RULES) -> RulesConfig:
    """Overlay the tunables exposed through settings onto ``base``."""

    return replace(
        base,
        trade=replace(base.trade, route_duration_ticks=settings.trade_route_duration),
    )


class WorldService:
    """Utilities for loading and mutating world aggregates.

    Every command follows the same load, mutate, save cycle against the
    repository.  The cycle runs under a lock shared with :class:`TickManager`
    so a command never interleaves with a tick of the same snapshot.
    """

    def __init__(
        self,
        repository: JsonWorldRepository,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        default_seed: int | None = None,
        scenario_dir: Path | None = None,
        lock: threading.Lock | None = None,
    ) -> None:
        self._repository = repository
        self._rules = rules
        self._default_seed = default_seed
        self._scenario_dir = scenario_dir
        self.lock = lock or threading.Lock()

    def list_worlds(self) -> list[dm.World]:
        """Return every persisted world ordered by identifier."""

        worlds: list[dm.World] = []
        for world_id in self._repository.list_worlds():
            with suppress(FileNotFoundError):
                worlds.append(self._repository.load(world_id))
        return worlds

    def get_world(self, world_id: dm.WorldID) -> dm.World:
        """Load a single world or raise ``FileNotFoundError``."""

        return self._repository.load(world_id)

    def save_world(self, world: dm.World) -> dm.World:
        self._repository.save(world)
        return world

    def create_world(
        self,
        name: str,
        width: int,
        height: int,
        *,
        seed: int | None = None,
    ) -> dm.World:
        """Create and persist an all-plain world."""

        with self.lock:
            world = world_rules.new_world(
                int(self._next_identifier()),
                name,
                width,
                height,
                seed=seed if seed is not None else self._default_seed,
            )
            self._repository.save(world)
        logger.info("created world %s (%dx%d)", name, width, height)
        return world

    def expand_world(self, world_id: dm.WorldID, width: int, height: int) -> dm.World:
        with self.lock:
            world = self.get_world(world_id)
            world_rules.expand(world, width, height)
            self._repository.save(world)
        return world

    def _next_identifier(self) -> dm.WorldID:
        existing = self._repository.list_worlds()
        if not existing:
            return dm.WorldID(1)
        return dm.WorldID(int(max(existing, key=int)) + 1)

    # -- cities ---------------------------------------------------------------

    def found_city(
        self,
        world_id: dm.WorldID,
        name: str,
        owner_id: str,
        position: dm.Position,
    ) -> CommandResult:
        with self.lock:
            world = self.get_world(world_id)
            result = world_rules.found_city(world, name, owner_id, position, rules=self._rules)
            if result:
                self._repository.save(world)
        return result

    def get_city(self, world_id: dm.WorldID, name: str) -> dm.City:
        """Return the named city or raise ``KeyError``."""

        city = world_rules.get_city(self.get_world(world_id), name)
        if city is None:
            raise KeyError(name)
        return city

    def add_building(
        self,
        world_id: dm.WorldID,
        city_name: str,
        building_type: BuildingType,
        name: str,
        position: dm.Position,
    ) -> CommandResult:
        return self._city_command(
            world_id,
            city_name,
            lambda city: city_rules.add_building(city, building_type, name, position),
        )

    def upgrade_building(
        self, world_id: dm.WorldID, city_name: str, building_id: str
    ) -> CommandResult:
        return self._city_command(
            world_id,
            city_name,
            lambda city: city_rules.upgrade_building(city, building_id, rules=self._rules),
        )

    def remove_building(
        self, world_id: dm.WorldID, city_name: str, building_id: str
    ) -> CommandResult:
        return self._city_command(
            world_id, city_name, lambda city: city_rules.remove_building(city, building_id)
        )

    def _city_command(
        self,
        world_id: dm.WorldID,
        city_name: str,
        command: Callable[[dm.City], CommandResult],
    ) -> CommandResult:
        with self.lock:
            world = self.get_world(world_id)
            city = world_rules.get_city(world, city_name)
            if city is None:
                return _missing_city(city_name)
            result = command(city)
            if result:
                self._repository.save(world)
        return result

    # -- trade ----------------------------------------------------------------

    def open_market(self, world_id: dm.WorldID, city_name: str) -> CommandResult:
        with self.lock:
            world = self.get_world(world_id)
            if world_rules.get_city(world, city_name) is None:
                return _missing_city(city_name)
            self._trade(world).create_city_market(city_name)
            self._repository.save(world)
        return CommandResult.ok(f"market opened in {city_name}")

    def trade_on_market(
        self,
        world_id: dm.WorldID,
        city_name: str,
        resource: ResourceType,
        quantity: int,
        *,
        selling: bool,
    ) -> CommandResult:
        with self.lock:
            world = self.get_world(world_id)
            manager = self._trade(world)
            if selling:
                result = manager.sell(city_name, resource, quantity)
            else:
                result = manager.buy(city_name, resource, quantity)
            if result:
                self._repository.save(world)
        return result

    def establish_route(
        self,
        world_id: dm.WorldID,
        source_city: str,
        target_city: str,
        resource: ResourceType,
        quantity: int,
    ) -> CommandResult:
        with self.lock:
            world = self.get_world(world_id)
            for endpoint in (source_city, target_city):
                if world_rules.get_city(world, endpoint) is None:
                    return _missing_city(endpoint)
            result = self._trade(world).establish_route(
                source_city, target_city, resource, quantity
            )
            if result:
                self._repository.save(world)
        return result

    def _trade(self, world: dm.World) -> TradeManager:
        return TradeManager(world.trade, rules=self._rules)

    # -- scenarios ------------------------------------------------------------

    def import_from_manifest(
        self,
        manifest: savegame.SaveManifest,
        *,
        assign_new_id: bool = True,
    ) -> dm.World:
        """Persist a world described by a savegame manifest."""

        with self.lock:
            next_id = int(self._next_identifier()) if assign_new_id else None
            world = savegame.import_world_from_manifest(
                manifest, assign_new_id=assign_new_id, next_id=next_id
            )
            self._repository.save(world)
        return world

    def import_from_file(
        self, manifest_path: Path | str, *, assign_new_id: bool = True
    ) -> dm.World:
        """Load a `.cityrade` archive and persist the contained world."""

        manifest = savegame.load_manifest(manifest_path)
        return self.import_from_manifest(manifest, assign_new_id=assign_new_id)

    def list_scenarios(self) -> list[dict[str, object]]:
        """Enumerate available scenario manifests."""

        if self._scenario_dir is None:
            return []
        summaries: list[dict[str, object]] = []
        for path in sorted(self._scenario_dir.glob("*.cityrade")):
            try:
                manifest = savegame.load_manifest(path)
            except (FileNotFoundError, json.JSONDecodeError):  # pragma: no cover - invalid archive
                continue
            summaries.append(
                {
                    "slug": path.name,
                    "kind": manifest.kind,
                    "metadata": manifest.metadata.model_dump(mode="json"),
                }
            )
        return summaries

    def import_scenario(self, slug: str, *, assign_new_id: bool = True) -> dm.World:
        """Load a scenario archive from the configured directory."""

        if self._scenario_dir is None:
            raise FileNotFoundError("Scenario directory not configured")
        manifest_path = self._scenario_dir / slug
        if not manifest_path.exists():
            raise FileNotFoundError(f"Scenario '{slug}' not found")
        return self.import_from_file(manifest_path, assign_new_id=assign_new_id)

    def export_world(
        self,
        world_id: dm.WorldID,
        *,
        kind: savegame.SaveKind = savegame.SaveKind.SAVE,
        metadata: savegame.SaveMetadata | None = None,
    ) -> savegame.SaveManifest:
        return savegame.export_world(self.get_world(world_id), kind=kind, metadata=metadata)

    # -- views ----------------------------------------------------------------

    @staticmethod
    def to_summary_dict(world: dm.World) -> dict[str, object]:
        """Return a JSON-friendly overview of a world."""

        return {
            "id": int(world.id),
            "name": world.name,
            "width": world.width,
            "height": world.height,
            "seed": world.seed,
            "current_tick": world.current_tick,
            "city_count": len(world.cities),
            "market_count": len(world.trade.markets),
            "route_count": len(world.trade.routes),
        }

    @staticmethod
    def to_detail_dict(world: dm.World) -> dict[str, object]:
        summary = WorldService.to_summary_dict(world)
        summary.update(
            {
                "cities": {
                    name: WorldService.to_city_dict(city)
                    for name, city in sorted(world.cities.items())
                },
                "routes": [WorldService.to_route_dict(route) for route in world.trade.routes],
            }
        )
        return summary

    @staticmethod
    def to_city_dict(city: dm.City) -> dict[str, object]:
        return {
            "id": str(city.id),
            "name": city.name,
            "owner_id": str(city.owner_id),
            "terrain": str(city.terrain),
            "position": list(city.position),
            "population": city.population,
            "happiness": city.stats.happiness,
            "defense": city.stats.defense,
            "culture": city.stats.culture,
            "max_population": city.stats.max_population,
            "max_buildings": city.stats.max_buildings,
            "resources": {
                str(resource): amount
                for resource, amount in ledger.get_all_resources(city.resources)
            },
            "production_rates": {
                str(resource): rate
                for resource, rate in ledger.get_all_production_rates(city.resources)
            },
            "buildings": [
                WorldService.to_building_dict(building)
                for building in sorted(city.buildings.values(), key=lambda b: (b.position, b.id))
            ],
        }

    @staticmethod
    def to_building_dict(building: dm.Building) -> dict[str, object]:
        return {
            "id": str(building.id),
            "name": building.name,
            "building_type": str(building.building_type),
            "display_name": catalog.display_name(building.building_type),
            "position": list(building.position),
            "level": building.level,
        }

    @staticmethod
    def to_route_dict(route: dm.TradeRoute) -> dict[str, object]:
        return {
            "source_city": route.source_city,
            "target_city": route.target_city,
            "resource": str(route.resource),
            "quantity": route.quantity,
            "price_per_unit": route.price_per_unit,
            "duration": route.duration,
            "overdue_ticks": route.overdue_ticks,
        }

    @staticmethod
    def city_reports(city: dm.City) -> dict[str, str]:
        return {
            "resources": city_rules.resource_report(city),
            "buildings": city_rules.buildings_report(city),
            "stats": city_rules.stats_report(city),
        }


class TickManager:
    """Background scheduler that advances worlds using the rules engine."""

    MIN_INTERVAL_SECONDS = 0.1

    def __init__(
        self,
        repository: JsonWorldRepository,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        base_interval_seconds: float,
        debug_multiplier: float = 1.0,
        capabilities: CapabilityRegistry | None = None,
        world_lock: threading.Lock | None = None,
    ) -> None:
        self._repository = repository
        self._rules = rules
        self._base_interval = max(base_interval_seconds, self.MIN_INTERVAL_SECONDS)
        self._debug_multiplier = max(debug_multiplier, 0.01)
        self._capabilities = capabilities
        self._world_lock = world_lock or threading.Lock()
        self._auto_worlds: set[dm.WorldID] = set()
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._advance_lock = asyncio.Lock()

    @property
    def interval_seconds(self) -> float:
        return max(self.MIN_INTERVAL_SECONDS, self._base_interval * self._debug_multiplier)

    @property
    def base_interval_seconds(self) -> float:
        return self._base_interval

    @property
    def debug_multiplier(self) -> float:
        return self._debug_multiplier

    def set_base_interval(self, seconds: float) -> None:
        self._base_interval = max(seconds, self.MIN_INTERVAL_SECONDS)

    def set_debug_multiplier(self, multiplier: float) -> None:
        self._debug_multiplier = max(multiplier, 0.01)

    def enabled_worlds(self) -> set[dm.WorldID]:
        return set(self._auto_worlds)

    def is_enabled(self, world_id: dm.WorldID) -> bool:
        return world_id in self._auto_worlds

    async def set_enabled(self, world_id: dm.WorldID, enabled: bool) -> None:
        if enabled:
            self._auto_worlds.add(world_id)
            self._ensure_running()
        else:
            self._auto_worlds.discard(world_id)
            if not self._auto_worlds:
                await self.stop()

    def _ensure_running(self) -> None:
        if self._task is None or self._task.done():
            self._stop_event = asyncio.Event()
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(self._run_loop(), name="cityrade-tick-loop")

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        self._stop_event.set()
        await task
        self._task = None

    async def advance_now(self, world_id: dm.WorldID, ticks: int = 1) -> list[WorldTickReport]:
        if ticks <= 0:
            return []
        async with self._advance_lock:
            reports = await asyncio.to_thread(self._advance_world_sync, world_id, ticks)
        if reports is None:
            self._auto_worlds.discard(world_id)
            return []
        return reports

    async def _run_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
                    break
                except TimeoutError:
                    pass
                await self._run_cycle()
        finally:
            self._task = None

    async def _run_cycle(self) -> None:
        if not self._auto_worlds:
            return
        ids = list(self._auto_worlds)
        async with self._advance_lock:
            for world_id in ids:
                reports = await asyncio.to_thread(self._advance_world_sync, world_id, 1)
                if reports is None:
                    self._auto_worlds.discard(world_id)

    def _advance_world_sync(
        self, world_id: dm.WorldID, ticks: int
    ) -> list[WorldTickReport] | None:
        with self._world_lock:
            try:
                world = self._repository.load(world_id)
            except FileNotFoundError:
                logger.warning(
                    "world %s missing from repository; disabling autotick", int(world_id)
                )
                return None

            manager = TradeManager(world.trade, rules=self._rules)
            reports = [
                run_world_tick(
                    world, trade=manager, capabilities=self._capabilities, rules=self._rules
                )
                for _ in range(ticks)
            ]
            self._repository.save(world)
        return reports


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self, *, settings: Settings | None = None, rules: RulesConfig | None = None
    ) -> None:
        self.settings = settings or get_settings()
        self.repository = JsonWorldRepository(self.settings.data_dir)
        self.rules = rules or rules_from_settings(self.settings)
        self.capabilities = CapabilityRegistry()
        world_lock = threading.Lock()
        self.worlds = WorldService(
            self.repository,
            rules=self.rules,
            default_seed=self.settings.world_seed,
            scenario_dir=self.settings.scenarios_dir,
            lock=world_lock,
        )
        self.ticks = TickManager(
            self.repository,
            rules=self.rules,
            base_interval_seconds=self.settings.tick_interval_seconds,
            debug_multiplier=self.settings.debug_tick_speed_multiplier,
            capabilities=self.capabilities,
            world_lock=world_lock,
        )

    async def shutdown(self) -> None:
        await self.ticks.stop()


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()


def _missing_city(name: str) -> CommandResult:
    return CommandResult.fail(CommandError.CITY_NOT_FOUND, f"city {name} not found")
