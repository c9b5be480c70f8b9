"""Import and export helpers for Cityrade save files."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4
from zipfile import ZIP_DEFLATED, ZipFile

from pydantic import BaseModel, Field, TypeAdapter, model_validator

from cityrade.domain import models as dm

WORLD_ADAPTER: TypeAdapter[dm.World] = TypeAdapter(dm.World)


class SaveKind(StrEnum):
    """Distinguish between scenario templates and full running saves."""

    TEMPLATE = "template"
    SAVE = "save"


class SaveMetadata(BaseModel):
    """High-level information about the packaged scenario or save."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    description: str | None = None
    author: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    rules_version: str = "1.0"
    game_version: str = "0.1.0"


class SaveManifest(BaseModel):
    """Top-level manifest stored in a `.cityrade` archive."""

    format_version: int = 1
    kind: SaveKind
    metadata: SaveMetadata
    world: dm.World

    @model_validator(mode="before")
    @classmethod
    def _convert_world(cls, values: dict[str, Any]) -> dict[str, Any]:
        raw = values.get("world")
        if raw is not None and not isinstance(raw, dm.World):
            values["world"] = WORLD_ADAPTER.validate_python(raw)
        return values

    def model_dump(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        data = super().model_dump(*args, **kwargs)
        data["world"] = WORLD_ADAPTER.dump_python(self.world, mode="json")
        return data


MANIFEST_PATH = "cityrade/manifest.json"


def load_manifest(path: Path | str) -> SaveManifest:
    """Load a savegame manifest from a `.cityrade` archive."""

    zip_path = Path(path)
    with ZipFile(zip_path, "r") as archive:
        try:
            with archive.open(MANIFEST_PATH) as manifest_file:
                payload = json.load(manifest_file)
        except KeyError as exc:  # pragma: no cover - invalid archive
            raise FileNotFoundError("manifest.json not found in archive") from exc
    return SaveManifest.model_validate(payload)


def save_manifest(manifest: SaveManifest, path: Path | str) -> Path:
    """Write a manifest to a `.cityrade` archive."""

    payload = json.dumps(
        manifest.model_dump(mode="json", by_alias=True),
        indent=2,
        sort_keys=True,
    ).encode("utf-8")
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with ZipFile(target, "w", ZIP_DEFLATED) as archive:
        archive.writestr(MANIFEST_PATH, payload)
    return target


def import_world_from_manifest(
    manifest: SaveManifest,
    *,
    assign_new_id: bool = False,
    next_id: int | None = None,
) -> dm.World:
    """Return a world instance derived from a saved manifest.

    Parameters
    ----------
    manifest:
        The loaded manifest describing the scenario/save.
    assign_new_id:
        When `True`, a new `WorldID` is assigned, either using `next_id` or
        derived from the current value stored on the world.
    next_id:
        Optional explicit world identifier to use when `assign_new_id` is
        `True`.
    """

    world = manifest.world
    if world.seed is not None and world.seed < 0:
        raise ValueError(f"world seed must be non-negative, got {world.seed}")
    if assign_new_id:
        world.id = dm.WorldID(next_id if next_id is not None else int(world.id) + 1)
    return world


def export_world(
    world: dm.World,
    *,
    kind: SaveKind = SaveKind.SAVE,
    metadata: SaveMetadata | None = None,
) -> SaveManifest:
    """Produce a manifest from an in-memory world."""

    return SaveManifest(
        kind=kind,
        metadata=metadata or SaveMetadata(name=world.name),
        world=world,
    )
