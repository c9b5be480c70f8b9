"""Tests for the savegame import/export helpers."""

from __future__ import annotations

from zipfile import ZipFile

import pytest

from cityrade.domain import models as dm
from cityrade.domain import world as world_rules
from cityrade.savegame import (
    MANIFEST_PATH,
    SaveKind,
    SaveMetadata,
    export_world,
    import_world_from_manifest,
    load_manifest,
    save_manifest,
)


def _world() -> dm.World:
    world = world_rules.new_world(4, "Ardania", 3, 3, seed=5)
    world_rules.found_city(world, "Avalon", "p1", (1, 1))
    return world


def test_export_and_reload_archive(tmp_path):
    world = _world()
    manifest = export_world(
        world,
        kind=SaveKind.TEMPLATE,
        metadata=SaveMetadata(name="Starter", author="tests"),
    )

    archive = save_manifest(manifest, tmp_path / "saves" / "starter.cityrade")
    loaded = load_manifest(archive)

    assert loaded.kind is SaveKind.TEMPLATE
    assert loaded.metadata.name == "Starter"
    assert loaded.metadata.author == "tests"
    assert loaded.world == world
    with ZipFile(archive) as bundle:
        assert MANIFEST_PATH in bundle.namelist()


def test_export_defaults_metadata_to_world_name():
    manifest = export_world(_world())
    assert manifest.kind is SaveKind.SAVE
    assert manifest.metadata.name == "Ardania"


def test_import_can_assign_new_id():
    manifest = export_world(_world())

    same = import_world_from_manifest(manifest)
    assert same.id == 4

    renumbered = import_world_from_manifest(manifest, assign_new_id=True, next_id=9)
    assert renumbered.id == 9


def test_import_rejects_negative_seed():
    manifest = export_world(_world())
    manifest.world.seed = -3

    with pytest.raises(ValueError, match="seed"):
        import_world_from_manifest(manifest)


def test_manifest_validates_raw_world_payload(tmp_path):
    manifest = export_world(_world())
    payload = manifest.model_dump(mode="json")

    assert isinstance(payload["world"], dict)
    rebuilt = type(manifest).model_validate(payload)
    assert rebuilt.world.cities["Avalon"].position == (1, 1)


def test_archive_without_manifest(tmp_path):
    archive = tmp_path / "broken.cityrade"
    with ZipFile(archive, "w") as bundle:
        bundle.writestr("other.txt", "nothing here")

    with pytest.raises(FileNotFoundError):
        load_manifest(archive)
