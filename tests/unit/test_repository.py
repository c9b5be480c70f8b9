"""Tests for the JSON world repository."""

from __future__ import annotations

import random
from datetime import UTC, datetime

import pytest
from pydantic import TypeAdapter

from cityrade.domain import city as city_rules
from cityrade.domain import models as dm
from cityrade.domain import population
from cityrade.domain import world as world_rules
from cityrade.domain.enums import BuildingType, ResourceType, Terrain
from cityrade.domain.tick import run_world_tick
from cityrade.domain.trade import TradeManager
from cityrade.repository import JsonWorldRepository


def _populated_world(world_id: int = 1) -> dm.World:
    world = world_rules.new_world(world_id, "Ardania", 4, 4, seed=99)
    world_rules.found_city(
        world, "Avalon", "p1", (1, 1), now=datetime(2024, 3, 3, tzinfo=UTC)
    )
    world_rules.found_city(world, "Brightwater", "p2", (3, 3))
    avalon = world.cities["Avalon"]
    city_rules.add_building(avalon, BuildingType.FARM, "Farm", (0, 0))
    avalon.demographics = population.new_population()

    manager = TradeManager(world.trade)
    manager.create_city_market("Avalon")
    manager.create_city_market("Brightwater")
    manager.establish_route("Avalon", "Brightwater", ResourceType.WOOD, 5)
    return world


def test_city_round_trips_through_json():
    city = city_rules.new_city("Avalon", "p1", Terrain.MOUNTAIN, (2, 7))
    city_rules.add_building(city, BuildingType.FARM, "Farm", (1, 1))
    city_rules.add_building(city, BuildingType.RESIDENTIAL, "Homes", (2, 1))
    city.demographics = population.new_population()
    city_rules.tick(city, rng=random.Random(1), now=datetime(2024, 3, 4, tzinfo=UTC))
    city.stats.culture = 7
    adapter = TypeAdapter(dm.City)

    restored = adapter.validate_json(adapter.dump_json(city))

    assert city.stats != dm.CityStats()
    assert restored == city
    assert restored.stats == city.stats
    assert restored.demographics == city.demographics
    assert restored.position == (2, 7)
    assert restored.terrain is Terrain.MOUNTAIN


def test_save_and_load_world(tmp_path):
    repo = JsonWorldRepository(tmp_path)
    world = _populated_world()
    run_world_tick(world)
    world.cities["Brightwater"].stats.defense = 25

    path = repo.save(world)
    loaded = repo.load(world.id)

    assert path.name == "world_1.json"
    assert loaded == world
    assert loaded.current_tick == 1
    assert loaded.cities["Brightwater"].stats.defense == 25
    assert loaded.trade.routes[0].resource is ResourceType.WOOD


def test_list_and_delete(tmp_path):
    repo = JsonWorldRepository(tmp_path)
    for world_id in (3, 1, 2):
        repo.save(world_rules.new_world(world_id, f"W{world_id}", 1, 1))
    (tmp_path / "world_notes.json").write_text("{}")

    assert repo.list_worlds() == [1, 2, 3]

    repo.delete(dm.WorldID(2))
    assert repo.list_worlds() == [1, 3]
    with pytest.raises(FileNotFoundError):
        repo.load(dm.WorldID(2))


def test_save_replaces_snapshot_without_leftovers(tmp_path):
    repo = JsonWorldRepository(tmp_path)
    world = world_rules.new_world(5, "Ardania", 2, 2)
    assert not repo.exists(world.id)

    repo.save(world)
    world.current_tick = 4
    repo.save(world)
    (tmp_path / "world_6.json.tmp").write_text("{")

    assert repo.exists(world.id)
    assert repo.load(world.id).current_tick == 4
    assert repo.list_worlds() == [5]
    assert sorted(path.name for path in tmp_path.glob("world_5*")) == ["world_5.json"]

    repo.delete(world.id)
    repo.delete(world.id)
    assert not repo.exists(world.id)
