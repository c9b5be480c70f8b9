"""Terrain Source Protocol Interface.

Procedural map generation is not part of the domain core; a world only needs
something that can name the terrain of a tile.
"""

from typing import Protocol

from cityrade.domain.enums import Terrain


class TerrainSource(Protocol):
    """Protocol for anything that assigns terrain to map coordinates."""

    def terrain_at(self, x: int, y: int) -> Terrain:
        """Return the terrain tag of the tile at ``(x, y)``.

        Args:
            x: Column of the tile
            y: Row of the tile

        Returns:
            Terrain tag for the tile
        """
        ...
