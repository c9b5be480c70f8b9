"""Terrain modifier tables."""

from __future__ import annotations

from .enums import ResourceType, Terrain

R = ResourceType

TERRAIN_MODIFIERS: dict[Terrain, dict[ResourceType, float]] = {
    Terrain.PLAIN: {R.FOOD: 1.2, R.GOLD: 1.0},
    Terrain.FOREST: {R.WOOD: 1.5, R.FOOD: 0.8},
    Terrain.MOUNTAIN: {R.STONE: 1.5, R.IRON: 1.3, R.CRYSTAL: 1.2, R.FOOD: 0.6},
    Terrain.DESERT: {R.CRYSTAL: 1.3, R.FOOD: 0.5, R.WOOD: 0.3},
    Terrain.SWAMP: {R.WOOD: 1.1, R.FOOD: 0.7},
    Terrain.WATER: {R.FOOD: 1.3, R.GOLD: 1.1},
    Terrain.SNOW: {R.CRYSTAL: 1.4, R.FOOD: 0.4, R.ENERGY: 0.8},
}

TERRAIN_NAMES: dict[Terrain, str] = {
    Terrain.PLAIN: "Plain",
    Terrain.FOREST: "Forest",
    Terrain.MOUNTAIN: "Mountains",
    Terrain.DESERT: "Desert",
    Terrain.SWAMP: "Swamp",
    Terrain.WATER: "Water",
    Terrain.SNOW: "Snow",
}

del R


def resource_modifiers(terrain: Terrain) -> dict[ResourceType, float]:
    """Return a copy of the modifier table for ``terrain``."""

    return dict(TERRAIN_MODIFIERS[terrain])


def resource_modifier(terrain: Terrain, resource: ResourceType) -> float:
    return TERRAIN_MODIFIERS[terrain].get(resource, 1.0)


def display_name(terrain: Terrain) -> str:
    return TERRAIN_NAMES[terrain]
