"""Unit tests for the building catalog."""

from __future__ import annotations

import pytest

from cityrade.domain import catalog
from cityrade.domain import models as dm
from cityrade.domain.enums import BuildingType, ResourceType


def _building(building_type: BuildingType, level: int = 1) -> dm.Building:
    return dm.Building(
        id=dm.BuildingID("b1"),
        name="Test",
        building_type=building_type,
        position=(0, 0),
        level=level,
    )


def test_every_type_has_a_catalog_entry():
    for building_type in BuildingType:
        assert catalog.display_name(building_type)
        assert catalog.description(building_type)
        assert catalog.base_cost(building_type)


def test_residential_upgrade_from_level_one():
    cost = dict(catalog.upgrade_cost(_building(BuildingType.RESIDENTIAL)))
    assert cost == {ResourceType.WOOD: 75, ResourceType.STONE: 45}


def test_upgrade_cost_grows_geometrically_and_truncates():
    cost = dict(catalog.upgrade_cost(_building(BuildingType.FARM, level=2)))
    # 30 * 2.25 = 67.5 and 20 * 2.25 = 45.0
    assert cost == {ResourceType.WOOD: 67, ResourceType.GOLD: 45}


def test_mine_effect_lines():
    effects = dict(catalog.production_effect(BuildingType.MINE, 3))
    assert effects == {ResourceType.STONE: 8, ResourceType.IRON: 3}


def test_upkeep_lines_are_negative():
    effects = dict(catalog.production_effect(BuildingType.LABORATORY, 1))
    assert effects[ResourceType.GOLD] == -25
    assert effects[ResourceType.ENERGY] == -7

    barracks = dict(catalog.production_effect(BuildingType.BARRACKS, 2))
    assert barracks == {ResourceType.GOLD: -14, ResourceType.FOOD: -7}


def test_wall_has_no_production_effect():
    assert catalog.production_effect(BuildingType.WALL, 5) == []


@pytest.mark.parametrize("building_type", list(BuildingType))
def test_effect_magnitude_never_shrinks_with_level(building_type):
    for level in range(1, 8):
        lower = catalog.production_effect(building_type, level)
        higher = catalog.production_effect(building_type, level + 1)
        for (resource_a, amount_a), (resource_b, amount_b) in zip(lower, higher, strict=True):
            assert resource_a == resource_b
            assert abs(amount_b) >= abs(amount_a)


def test_production_effect_rejects_level_zero():
    with pytest.raises(ValueError):
        catalog.production_effect(BuildingType.FARM, 0)


def test_upgrade_increments_level():
    building = _building(BuildingType.FARM)
    catalog.upgrade(building)
    assert building.level == 2
    assert dict(catalog.building_effect(building)) == {ResourceType.FOOD: 16}


def test_building_info_mentions_type_and_description():
    info = catalog.building_info(_building(BuildingType.LUMBER_MILL, level=2))

    assert "Test (b1), level 2" in info
    assert "Type: Lumber Mill" in info
    assert "Description: Cuts timber" in info
