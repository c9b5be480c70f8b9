"""Integration tests for the FastAPI layer."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest
from httpx import ASGITransport, AsyncClient

from cityrade.api.app import create_app
from cityrade.api.runtime import ApiState
from cityrade.config import Settings
from cityrade.domain import models as dm
from cityrade.repository import JsonWorldRepository


def _make_app(tmp_path):
    def factory() -> ApiState:
        settings = Settings(
            data_dir=tmp_path,
            tick_interval_seconds=0.5,
            debug_tick_speed_multiplier=0.5,
            world_seed=17,
        )
        return ApiState(settings=settings)

    app = create_app(state_factory=factory)
    transport = ASGITransport(app=app)
    return app, transport


async def _create_world(client: AsyncClient) -> int:
    response = await client.post("/worlds", json={"name": "Ardania", "width": 8, "height": 8})
    assert response.status_code == 201
    payload = response.json()
    assert payload["current_tick"] == 0
    assert payload["seed"] == 17
    return payload["id"]


async def _found(client: AsyncClient, world_id: int, name: str, x: int, y: int) -> dict:
    response = await client.post(
        f"/worlds/{world_id}/cities",
        json={"name": name, "owner_id": "player-1", "x": x, "y": y},
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_world_lifecycle_via_api(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

        world_id = await _create_world(client)
        city = await _found(client, world_id, "Avalon", 1, 1)
        assert city["population"] == 10
        assert city["terrain"] == "plain"

        response = await client.post(
            f"/worlds/{world_id}/tick/advance",
            json={"ticks": 3},
        )
        assert response.status_code == 200
        advanced = response.json()
        assert advanced["world"]["current_tick"] == 3

        response = await client.post(
            f"/worlds/{world_id}/tick/schedule",
            json={"enabled": True, "interval_seconds": 1.5, "debug_multiplier": 0.2},
        )
        assert response.status_code == 200
        schedule = response.json()
        assert schedule["enabled"] is True
        assert schedule["interval_seconds"] == 1.5
        assert schedule["effective_interval_seconds"] == pytest.approx(0.3)

        response = await client.get(f"/worlds/{world_id}/tick/schedule")
        assert response.status_code == 200
        assert response.json()["enabled"] is True

        response = await client.get(f"/worlds/{world_id}/cities/Avalon/reports")
        assert response.status_code == 200
        reports = response.json()
        assert reports["resources"].startswith("Resources of Avalon:")
        assert "Terrain: Plain" in reports["stats"]

    repo = JsonWorldRepository(tmp_path)
    stored = repo.load(dm.WorldID(world_id))
    assert stored.current_tick >= 3


@pytest.mark.asyncio
async def test_building_commands_via_api(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        world_id = await _create_world(client)
        await _found(client, world_id, "Avalon", 2, 2)
        base = f"/worlds/{world_id}/cities/Avalon/buildings"

        response = await client.post(
            base, json={"building_type": "farm", "name": "Farm", "x": 0, "y": 0}
        )
        assert response.status_code == 201
        building_id = response.json()["building_id"]

        response = await client.post(
            base, json={"building_type": "mine", "name": "Mine", "x": 0, "y": 0}
        )
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "position_occupied"

        response = await client.post(
            base, json={"building_type": "power_plant", "name": "Plant", "x": 1, "y": 0}
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "insufficient_resources"

        response = await client.post(f"{base}/{building_id}/upgrade")
        assert response.status_code == 200
        assert response.json()["success"] is True

        response = await client.get(f"/worlds/{world_id}/cities/Avalon")
        assert response.status_code == 200
        (building,) = response.json()["buildings"]
        assert building["level"] == 2
        assert building["display_name"] == "Farm"

        response = await client.delete(f"{base}/{building_id}")
        assert response.status_code == 200
        response = await client.delete(f"{base}/{building_id}")
        assert response.status_code == 404

        response = await client.post(
            f"/worlds/{world_id}/cities/Ghost/buildings",
            json={"building_type": "farm", "name": "Farm", "x": 0, "y": 0},
        )
        assert response.status_code == 404


@pytest.mark.asyncio
async def test_trade_route_via_api(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        world_id = await _create_world(client)
        await _found(client, world_id, "Avalon", 1, 1)
        await _found(client, world_id, "Brightwater", 6, 6)

        route = {
            "source_city": "Avalon",
            "target_city": "Brightwater",
            "resource": "stone",
            "quantity": 5,
        }
        response = await client.post(f"/worlds/{world_id}/routes", json=route)
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "route_endpoint_missing_market"

        for name in ("Avalon", "Brightwater"):
            response = await client.post(f"/worlds/{world_id}/cities/{name}/market")
            assert response.status_code == 201

        response = await client.post(f"/worlds/{world_id}/routes", json=route)
        assert response.status_code == 201
        assert response.json()["value"] == 10

        response = await client.post(
            f"/worlds/{world_id}/cities/Avalon/market/sell",
            json={"resource": "iron", "quantity": 2},
        )
        assert response.status_code == 200
        assert response.json()["value"] == 120

        response = await client.get(f"/worlds/{world_id}")
        assert response.json()["route_count"] == 1

        response = await client.post(f"/worlds/{world_id}/tick/advance", json={"ticks": 10})
        assert response.status_code == 200
        payload = response.json()
        assert payload["delivered"] == 1
        assert payload["world"]["route_count"] == 0


@pytest.mark.asyncio
async def test_lookup_errors_via_api(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/worlds/404")
        assert response.status_code == 404

        response = await client.post("/worlds/404/tick/advance", json={"ticks": 1})
        assert response.status_code == 404

        response = await client.get("/worlds/404/tick/schedule")
        assert response.status_code == 404

        world_id = await _create_world(client)
        await _found(client, world_id, "Avalon", 1, 1)

        response = await client.post(
            f"/worlds/{world_id}/cities",
            json={"name": "Avalon", "owner_id": "p2", "x": 3, "y": 3},
        )
        assert response.status_code == 409

        response = await client.post(
            f"/worlds/{world_id}/cities",
            json={"name": "Far", "owner_id": "p2", "x": 30, "y": 3},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "tile_not_found"

        response = await client.get(f"/worlds/{world_id}/cities/Ghost")
        assert response.status_code == 404

        response = await client.post(
            f"/worlds/{world_id}/expand", json={"width": 4, "height": 4}
        )
        assert response.status_code == 400

        response = await client.post(
            f"/worlds/{world_id}/expand", json={"width": 10, "height": 9}
        )
        assert response.status_code == 200
        assert response.json()["width"] == 10

        response = await client.get("/worlds")
        assert [world["id"] for world in response.json()] == [world_id]

        response = await client.get("/technologies")
        assert response.status_code == 200
        assert len(response.json()) == 14


@pytest.mark.asyncio
async def test_command_waiting_on_world_lock_keeps_event_loop_running(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        world_id = await _create_world(client)
        await _found(client, world_id, "Avalon", 2, 2)
        state: ApiState = app.state.api_state

        held = threading.Event()
        release = threading.Event()

        def hold_world_lock() -> None:
            with state.worlds.lock:
                held.set()
                release.wait(timeout=5)

        holder = asyncio.create_task(asyncio.to_thread(hold_world_lock))
        assert await asyncio.to_thread(held.wait, 5)

        gaps: list[float] = []

        async def heartbeat() -> None:
            last = time.perf_counter()
            while not release.is_set():
                await asyncio.sleep(0.02)
                now = time.perf_counter()
                gaps.append(now - last)
                last = now

        beat = asyncio.create_task(heartbeat())
        pending = asyncio.create_task(
            client.post(
                f"/worlds/{world_id}/cities/Avalon/buildings",
                json={"building_type": "farm", "name": "Farm", "x": 0, "y": 0},
            )
        )
        await asyncio.sleep(0.4)
        health = await client.get("/health")
        assert health.status_code == 200
        assert not pending.done()

        release.set()
        response = await pending
        await beat
        await holder

        assert response.status_code == 201
        assert max(gaps) < 0.3


@pytest.mark.asyncio
async def test_cors_origins_come_from_given_settings(tmp_path):
    settings = Settings(data_dir=tmp_path, cors_origins=["http://maps.example"])
    app = create_app(state_factory=lambda: ApiState(settings=settings), settings=settings)
    transport = ASGITransport(app=app)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        allowed = await client.get("/health", headers={"Origin": "http://maps.example"})
        other = await client.get("/health", headers={"Origin": "http://elsewhere.example"})

    assert allowed.headers["access-control-allow-origin"] == "http://maps.example"
    assert "access-control-allow-origin" not in other.headers
    assert app.description.startswith("Found cities")
