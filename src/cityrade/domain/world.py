"""World map and city registry rules."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from . import city as city_rules
from . import terrain
from .enums import CommandError, Terrain
from .models import City, Position, TerrainTile, World, WorldID
from .results import CommandResult
from .rules_config import DEFAULT_RULES, RulesConfig

if TYPE_CHECKING:
    from cityrade.interfaces.terrain import TerrainSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UniformTerrain:
    """Terrain source that paints every tile with the same terrain."""

    terrain: Terrain = Terrain.PLAIN

    def terrain_at(self, x: int, y: int) -> Terrain:
        return self.terrain


def tile_key(x: int, y: int) -> str:
    return f"{x}:{y}"


def new_world(
    world_id: int,
    name: str,
    width: int,
    height: int,
    *,
    seed: int | None = None,
    source: TerrainSource | None = None,
) -> World:
    """Create a ``width`` x ``height`` world painted by ``source``."""

    if width <= 0 or height <= 0:
        raise ValueError(f"world dimensions must be positive, got {width}x{height}")
    if seed is not None and seed < 0:
        raise ValueError(f"world seed must be non-negative, got {seed}")
    world = World(id=WorldID(world_id), name=name, width=width, height=height, seed=seed)
    _paint(world, source or UniformTerrain(), range(width), range(height))
    return world


def get_tile(world: World, x: int, y: int) -> TerrainTile | None:
    return world.tiles.get(tile_key(x, y))


def set_tile(world: World, x: int, y: int, terrain_tag: Terrain) -> TerrainTile:
    tile = TerrainTile(
        x=x, y=y, terrain=terrain_tag, resource_modifiers=terrain.resource_modifiers(terrain_tag)
    )
    world.tiles[tile_key(x, y)] = tile
    return tile


def expand(
    world: World,
    width: int,
    height: int,
    source: TerrainSource | None = None,
) -> int:
    """Grow the map to ``width`` x ``height``; return the number of new tiles."""

    if width < world.width or height < world.height:
        raise ValueError("a world can only grow")
    before = len(world.tiles)
    _paint(world, source or UniformTerrain(), range(width), range(height))
    world.width = width
    world.height = height
    return len(world.tiles) - before


def found_city(
    world: World,
    name: str,
    owner_id: str,
    position: Position,
    *,
    rules: RulesConfig = DEFAULT_RULES,
    now: datetime | None = None,
) -> CommandResult:
    """Found a city on an empty tile, taking the tile's terrain."""

    tile = get_tile(world, *position)
    if tile is None:
        return CommandResult.fail(CommandError.TILE_NOT_FOUND, f"no tile at {position}")
    if name in world.cities:
        return CommandResult.fail(CommandError.CITY_EXISTS, f"city {name} already exists")
    if any(existing.position == tuple(position) for existing in world.cities.values()):
        return CommandResult.fail(
            CommandError.POSITION_OCCUPIED, f"a city already stands at {position}"
        )

    city = city_rules.new_city(
        name, owner_id, tile.terrain, (tile.x, tile.y), rules=rules, now=now
    )
    world.cities[name] = city
    logger.debug("world %s: founded %s at %s", world.name, name, position)
    return CommandResult.ok(f"{name} founded")


def add_city(world: World, city: City) -> None:
    world.cities[city.name] = city


def get_city(world: World, name: str) -> City | None:
    return world.cities.get(name)


def city_registry(world: World) -> dict[str, City]:
    """Live name -> City mapping handed to the trade manager."""

    return world.cities


def _paint(world: World, source: TerrainSource, xs: range, ys: range) -> None:
    for x in xs:
        for y in ys:
            if tile_key(x, y) not in world.tiles:
                set_tile(world, x, y, source.terrain_at(x, y))
