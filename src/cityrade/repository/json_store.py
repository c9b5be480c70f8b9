"""World snapshots on disk.

Each world lives in ``world_<id>.json`` under the repository directory: the
whole aggregate (tiles, cities with their ledgers and buildings, the trade
book with markets and in-flight routes) dumped through one pydantic
``TypeAdapter``.  Snapshots are written to a sibling ``.tmp`` file and renamed
into place so a reader never sees half a world.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import TypeAdapter

from cityrade.domain import models as dm

logger = logging.getLogger(__name__)

_SNAPSHOT_NAME = re.compile(r"^world_(\d+)\.json$")


class JsonWorldRepository:
    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._adapter: TypeAdapter[dm.World] = TypeAdapter(dm.World)

    def _path_for(self, world_id: dm.WorldID) -> Path:
        return self.base_path / f"world_{int(world_id)}.json"

    def save(self, world: dm.World) -> Path:
        """Write ``world`` and return the snapshot path."""

        path = self._path_for(world.id)
        staging = path.with_name(f"{path.name}.tmp")
        staging.write_bytes(self._adapter.dump_json(world, indent=2))
        staging.replace(path)
        logger.debug(
            "saved world %s at tick %d (%d cities)",
            int(world.id),
            world.current_tick,
            len(world.cities),
        )
        return path

    def load(self, world_id: dm.WorldID) -> dm.World:
        """Read a snapshot; ``FileNotFoundError`` when the world was never saved."""

        return self._adapter.validate_json(self._path_for(world_id).read_bytes())

    def exists(self, world_id: dm.WorldID) -> bool:
        return self._path_for(world_id).is_file()

    def list_worlds(self) -> list[dm.WorldID]:
        ids = [
            dm.WorldID(int(match.group(1)))
            for path in self.base_path.iterdir()
            if (match := _SNAPSHOT_NAME.match(path.name))
        ]
        return sorted(ids, key=int)

    def delete(self, world_id: dm.WorldID) -> None:
        self._path_for(world_id).unlink(missing_ok=True)
