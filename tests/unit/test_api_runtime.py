"""Tests for API runtime helpers (world service and tick manager)."""

from __future__ import annotations

import pytest

from cityrade import savegame
from cityrade.api.runtime import TickManager, WorldService, rules_from_settings
from cityrade.config import Settings
from cityrade.domain import models as dm
from cityrade.domain import world as world_rules
from cityrade.domain.enums import BuildingType, CommandError, ResourceType
from cityrade.repository import JsonWorldRepository


def _seeded_world(repo: JsonWorldRepository) -> dm.World:
    world = world_rules.new_world(1, "Ardania", 6, 6, seed=3)
    world_rules.found_city(world, "Avalon", "p1", (1, 1))
    world_rules.found_city(world, "Brightwater", "p2", (4, 4))
    repo.save(world)
    return world


def test_world_service_create_and_list(tmp_path):
    repo = JsonWorldRepository(tmp_path)
    service = WorldService(repo, default_seed=42)

    alpha = service.create_world("Alpha", 3, 3)
    beta = service.create_world("Beta", 2, 2, seed=7)

    worlds = service.list_worlds()
    assert [w.name for w in worlds] == ["Alpha", "Beta"]
    assert (int(alpha.id), int(beta.id)) == (1, 2)
    assert alpha.seed == 42
    assert beta.seed == 7

    summary = service.to_summary_dict(alpha)
    assert summary["city_count"] == 0
    assert summary["current_tick"] == 0
    detail = service.to_detail_dict(beta)
    assert detail["cities"] == {}
    assert detail["routes"] == []


def test_world_service_city_commands_persist(tmp_path):
    repo = JsonWorldRepository(tmp_path)
    service = WorldService(repo)
    world = service.create_world("Alpha", 4, 4)

    assert service.found_city(world.id, "Avalon", "p1", (2, 2))
    built = service.add_building(world.id, "Avalon", BuildingType.FARM, "Farm", (0, 0))
    assert built.success

    stored = repo.load(world.id)
    assert built.building_id in stored.cities["Avalon"].buildings

    upgraded = service.upgrade_building(world.id, "Avalon", built.building_id)
    assert upgraded.success
    assert repo.load(world.id).cities["Avalon"].buildings[built.building_id].level == 2

    removed = service.remove_building(world.id, "Avalon", built.building_id)
    assert removed.success
    assert repo.load(world.id).cities["Avalon"].buildings == {}


def test_world_service_reports_missing_city(tmp_path):
    repo = JsonWorldRepository(tmp_path)
    service = WorldService(repo)
    world = service.create_world("Alpha", 2, 2)

    result = service.add_building(world.id, "Ghost", BuildingType.FARM, "Farm", (0, 0))

    assert result.error is CommandError.CITY_NOT_FOUND
    with pytest.raises(KeyError):
        service.get_city(world.id, "Ghost")
    with pytest.raises(FileNotFoundError):
        service.get_world(dm.WorldID(99))


def test_world_service_trade_flow(tmp_path):
    repo = JsonWorldRepository(tmp_path)
    service = WorldService(repo)
    world = _seeded_world(repo)

    missing = service.establish_route(world.id, "Avalon", "Brightwater", ResourceType.WOOD, 5)
    assert missing.error is CommandError.ROUTE_ENDPOINT_MISSING_MARKET

    assert service.open_market(world.id, "Avalon")
    assert service.open_market(world.id, "Brightwater")
    route = service.establish_route(world.id, "Avalon", "Brightwater", ResourceType.WOOD, 5)
    assert route.success

    bought = service.trade_on_market(world.id, "Avalon", ResourceType.FOOD, 4, selling=False)
    assert bought.value == 40

    stored = repo.load(world.id)
    assert len(stored.trade.routes) == 1
    assert stored.trade.markets["Avalon"].items[ResourceType.FOOD].quantity == 96


@pytest.mark.asyncio
async def test_tick_manager_advances_world(tmp_path):
    repo = JsonWorldRepository(tmp_path)
    world = _seeded_world(repo)

    manager = TickManager(repo, base_interval_seconds=1.0)
    reports = await manager.advance_now(world.id, ticks=2)

    assert [report.tick for report in reports] == [1, 2]
    updated = repo.load(world.id)
    assert updated.current_tick == 2


@pytest.mark.asyncio
async def test_tick_manager_missing_world(tmp_path):
    manager = TickManager(JsonWorldRepository(tmp_path), base_interval_seconds=1.0)
    assert await manager.advance_now(dm.WorldID(5)) == []


@pytest.mark.asyncio
async def test_tick_manager_schedule_toggle(tmp_path):
    repo = JsonWorldRepository(tmp_path)
    world = _seeded_world(repo)

    manager = TickManager(repo, base_interval_seconds=2.0)

    await manager.set_enabled(world.id, True)
    assert manager.is_enabled(world.id)
    assert world.id in manager.enabled_worlds()

    manager.set_base_interval(10.0)
    manager.set_debug_multiplier(0.5)
    assert manager.base_interval_seconds == 10.0
    assert manager.debug_multiplier == 0.5
    assert manager.interval_seconds == pytest.approx(5.0)

    await manager.set_enabled(world.id, False)
    assert not manager.is_enabled(world.id)

    await manager.stop()


def test_world_service_import_template(tmp_path):
    repo = JsonWorldRepository(tmp_path / "worlds")
    service = WorldService(repo, scenario_dir=tmp_path)

    template = world_rules.new_world(1, "Template", 3, 3)
    world_rules.found_city(template, "Capital", "admin", (1, 1))
    manifest = savegame.export_world(
        template,
        kind=savegame.SaveKind.TEMPLATE,
        metadata=savegame.SaveMetadata(name="Template Scenario"),
    )
    archive = tmp_path / "scenario.cityrade"
    savegame.save_manifest(manifest, archive)

    imported = service.import_scenario(archive.name)
    stored = repo.load(imported.id)
    assert stored == imported
    assert imported.name == "Template"
    assert "Capital" in imported.cities
    scenarios = service.list_scenarios()
    assert any(item["slug"] == archive.name for item in scenarios)
    with pytest.raises(FileNotFoundError):
        service.import_scenario("missing.cityrade")


def test_rules_from_settings_overrides_route_duration(tmp_path):
    settings = Settings(data_dir=tmp_path, trade_route_duration=4)
    rules = rules_from_settings(settings)
    assert rules.trade.route_duration_ticks == 4
    assert rules.city == rules_from_settings(Settings(data_dir=tmp_path)).city
