"""HTTP routes for the Cityrade API."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from cityrade.api.runtime import ApiState, WorldService
from cityrade.domain import models as dm
from cityrade.domain.enums import BuildingType, CommandError, ResourceType
from cityrade.domain.results import CommandResult
from cityrade.domain.technology import DEFAULT_TREE

router = APIRouter()

_ERROR_STATUS: dict[CommandError, int] = {
    CommandError.CITY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    CommandError.BUILDING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    CommandError.MARKET_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    CommandError.POSITION_OCCUPIED: status.HTTP_409_CONFLICT,
    CommandError.CITY_EXISTS: status.HTTP_409_CONFLICT,
    CommandError.BUILDING_LIMIT_REACHED: status.HTTP_409_CONFLICT,
}


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


class WorldSummary(BaseModel):
    id: int
    name: str
    width: int
    height: int
    seed: int | None
    current_tick: int
    city_count: int
    market_count: int
    route_count: int


class BuildingSummary(BaseModel):
    id: str
    name: str
    building_type: str
    display_name: str
    position: list[int]
    level: int


class CityDetail(BaseModel):
    id: str
    name: str
    owner_id: str
    terrain: str
    position: list[int]
    population: int
    happiness: int
    defense: int
    culture: int
    max_population: int
    max_buildings: int
    resources: dict[str, int]
    production_rates: dict[str, int]
    buildings: list[BuildingSummary]


class RouteSummary(BaseModel):
    source_city: str
    target_city: str
    resource: str
    quantity: int
    price_per_unit: int
    duration: int
    overdue_ticks: int


class WorldDetail(WorldSummary):
    cities: dict[str, CityDetail]
    routes: list[RouteSummary]


class CreateWorldRequest(BaseModel):
    name: str = Field(min_length=1)
    width: int = Field(ge=1, le=512)
    height: int = Field(ge=1, le=512)
    seed: int | None = Field(default=None, ge=0)


class ExpandWorldRequest(BaseModel):
    width: int = Field(ge=1, le=512)
    height: int = Field(ge=1, le=512)


class FoundCityRequest(BaseModel):
    name: str = Field(min_length=1)
    owner_id: str = Field(min_length=1)
    x: int
    y: int


class BuildRequest(BaseModel):
    building_type: BuildingType
    name: str = Field(min_length=1)
    x: int
    y: int


class MarketOrderRequest(BaseModel):
    resource: ResourceType
    quantity: int = Field(ge=1)


class RouteRequest(BaseModel):
    source_city: str
    target_city: str
    resource: ResourceType
    quantity: int = Field(ge=1)


class CommandResponse(BaseModel):
    success: bool
    message: str
    building_id: str | None = None
    value: int | None = None


class CityReports(BaseModel):
    resources: str
    buildings: str
    stats: str


class TickAdvanceRequest(BaseModel):
    ticks: int = Field(default=1, ge=1, le=100)


class TickAdvanceResponse(BaseModel):
    world: WorldSummary
    delivered: int
    retrying: int
    abandoned: int


class TickScheduleRequest(BaseModel):
    enabled: bool
    interval_seconds: float | None = Field(default=None, gt=0.0)
    debug_multiplier: float | None = Field(default=None, gt=0.0)


class TickStatusResponse(BaseModel):
    enabled: bool
    interval_seconds: float
    debug_multiplier: float
    effective_interval_seconds: float


class TechnologySummary(BaseModel):
    tech_type: str
    name: str
    description: str
    cost: int
    prerequisites: list[str]
    unlock_effects: list[str]


class ScenarioSummary(BaseModel):
    slug: str
    kind: str
    name: str
    description: str | None
    author: str | None
    created_at: datetime


class ScenarioImportRequest(BaseModel):
    slug: str


def _load_world(state: ApiState, world_id: int) -> dm.World:
    try:
        return state.worlds.get_world(dm.WorldID(world_id))
    except FileNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="world not found"
        ) from exc


def _command_response(result: CommandResult) -> CommandResponse:
    if not result:
        code = _ERROR_STATUS.get(result.error, status.HTTP_400_BAD_REQUEST)
        raise HTTPException(
            status_code=code, detail={"error": str(result.error), "message": result.message}
        )
    return CommandResponse(
        success=True,
        message=result.message,
        building_id=result.building_id,
        value=result.value,
    )


def _tick_status(state: ApiState, world_key: dm.WorldID) -> TickStatusResponse:
    return TickStatusResponse(
        enabled=state.ticks.is_enabled(world_key),
        interval_seconds=state.ticks.base_interval_seconds,
        debug_multiplier=state.ticks.debug_multiplier,
        effective_interval_seconds=state.ticks.interval_seconds,
    )


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "rules_version": state.settings.rules_version,
        "tick_interval_seconds": state.ticks.interval_seconds,
        "debug_tick_multiplier": state.ticks.debug_multiplier,
        "capabilities": state.capabilities.enabled(),
    }


@router.get("/worlds", response_model=list[WorldSummary])
async def list_worlds(state: ApiStateDep) -> list[WorldSummary]:
    worlds = state.worlds.list_worlds()
    return [WorldSummary.model_validate(WorldService.to_summary_dict(w)) for w in worlds]


# Handlers that take the world lock are plain functions so they run in the threadpool.
@router.post("/worlds", response_model=WorldDetail, status_code=status.HTTP_201_CREATED)
def create_world(request: CreateWorldRequest, state: ApiStateDep) -> WorldDetail:
    world = state.worlds.create_world(
        request.name, request.width, request.height, seed=request.seed
    )
    return WorldDetail.model_validate(WorldService.to_detail_dict(world))


@router.get("/worlds/{world_id}", response_model=WorldDetail)
async def get_world(world_id: int, state: ApiStateDep) -> WorldDetail:
    world = _load_world(state, world_id)
    return WorldDetail.model_validate(WorldService.to_detail_dict(world))


@router.post("/worlds/{world_id}/expand", response_model=WorldSummary)
def expand_world(
    world_id: int, request: ExpandWorldRequest, state: ApiStateDep
) -> WorldSummary:
    _load_world(state, world_id)
    try:
        world = state.worlds.expand_world(dm.WorldID(world_id), request.width, request.height)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return WorldSummary.model_validate(WorldService.to_summary_dict(world))


@router.post(
    "/worlds/{world_id}/cities",
    response_model=CityDetail,
    status_code=status.HTTP_201_CREATED,
)
def found_city(world_id: int, request: FoundCityRequest, state: ApiStateDep) -> CityDetail:
    world_key = dm.WorldID(world_id)
    _load_world(state, world_id)
    _command_response(
        state.worlds.found_city(world_key, request.name, request.owner_id, (request.x, request.y))
    )
    city = state.worlds.get_city(world_key, request.name)
    return CityDetail.model_validate(WorldService.to_city_dict(city))


@router.get("/worlds/{world_id}/cities/{city_name}", response_model=CityDetail)
async def get_city(world_id: int, city_name: str, state: ApiStateDep) -> CityDetail:
    world = _load_world(state, world_id)
    city = world.cities.get(city_name)
    if city is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="city not found")
    return CityDetail.model_validate(WorldService.to_city_dict(city))


@router.get("/worlds/{world_id}/cities/{city_name}/reports", response_model=CityReports)
async def city_reports(world_id: int, city_name: str, state: ApiStateDep) -> CityReports:
    world = _load_world(state, world_id)
    city = world.cities.get(city_name)
    if city is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="city not found")
    return CityReports.model_validate(WorldService.city_reports(city))


@router.post(
    "/worlds/{world_id}/cities/{city_name}/buildings",
    response_model=CommandResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_building(
    world_id: int, city_name: str, request: BuildRequest, state: ApiStateDep
) -> CommandResponse:
    _load_world(state, world_id)
    result = state.worlds.add_building(
        dm.WorldID(world_id), city_name, request.building_type, request.name, (request.x, request.y)
    )
    return _command_response(result)


@router.post(
    "/worlds/{world_id}/cities/{city_name}/buildings/{building_id}/upgrade",
    response_model=CommandResponse,
)
def upgrade_building(
    world_id: int, city_name: str, building_id: str, state: ApiStateDep
) -> CommandResponse:
    _load_world(state, world_id)
    result = state.worlds.upgrade_building(dm.WorldID(world_id), city_name, building_id)
    return _command_response(result)


@router.delete(
    "/worlds/{world_id}/cities/{city_name}/buildings/{building_id}",
    response_model=CommandResponse,
)
def remove_building(
    world_id: int, city_name: str, building_id: str, state: ApiStateDep
) -> CommandResponse:
    _load_world(state, world_id)
    result = state.worlds.remove_building(dm.WorldID(world_id), city_name, building_id)
    return _command_response(result)


@router.post(
    "/worlds/{world_id}/cities/{city_name}/market",
    response_model=CommandResponse,
    status_code=status.HTTP_201_CREATED,
)
def open_market(world_id: int, city_name: str, state: ApiStateDep) -> CommandResponse:
    _load_world(state, world_id)
    return _command_response(state.worlds.open_market(dm.WorldID(world_id), city_name))


@router.post("/worlds/{world_id}/cities/{city_name}/market/buy", response_model=CommandResponse)
def market_buy(
    world_id: int, city_name: str, request: MarketOrderRequest, state: ApiStateDep
) -> CommandResponse:
    _load_world(state, world_id)
    result = state.worlds.trade_on_market(
        dm.WorldID(world_id), city_name, request.resource, request.quantity, selling=False
    )
    return _command_response(result)


@router.post("/worlds/{world_id}/cities/{city_name}/market/sell", response_model=CommandResponse)
def market_sell(
    world_id: int, city_name: str, request: MarketOrderRequest, state: ApiStateDep
) -> CommandResponse:
    _load_world(state, world_id)
    result = state.worlds.trade_on_market(
        dm.WorldID(world_id), city_name, request.resource, request.quantity, selling=True
    )
    return _command_response(result)


@router.post(
    "/worlds/{world_id}/routes",
    response_model=CommandResponse,
    status_code=status.HTTP_201_CREATED,
)
def establish_route(
    world_id: int, request: RouteRequest, state: ApiStateDep
) -> CommandResponse:
    _load_world(state, world_id)
    result = state.worlds.establish_route(
        dm.WorldID(world_id),
        request.source_city,
        request.target_city,
        request.resource,
        request.quantity,
    )
    return _command_response(result)


@router.post("/worlds/{world_id}/tick/advance", response_model=TickAdvanceResponse)
async def advance_tick(
    world_id: int,
    request: TickAdvanceRequest,
    state: ApiStateDep,
) -> TickAdvanceResponse:
    world_key = dm.WorldID(world_id)
    _load_world(state, world_id)

    reports = await state.ticks.advance_now(world_key, ticks=request.ticks)
    updated = state.worlds.get_world(world_key)
    return TickAdvanceResponse(
        world=WorldSummary.model_validate(WorldService.to_summary_dict(updated)),
        delivered=sum(len(report.trade.delivered) for report in reports),
        retrying=len(reports[-1].trade.retrying) if reports else 0,
        abandoned=sum(len(report.trade.abandoned) for report in reports),
    )


@router.get("/worlds/{world_id}/tick/schedule", response_model=TickStatusResponse)
async def get_tick_schedule(world_id: int, state: ApiStateDep) -> TickStatusResponse:
    world_key = dm.WorldID(world_id)
    if not state.repository.exists(world_key):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="world not found")
    return _tick_status(state, world_key)


@router.post("/worlds/{world_id}/tick/schedule", response_model=TickStatusResponse)
async def update_tick_schedule(
    world_id: int,
    request: TickScheduleRequest,
    state: ApiStateDep,
) -> TickStatusResponse:
    world_key = dm.WorldID(world_id)
    _load_world(state, world_id)

    if request.interval_seconds is not None:
        state.ticks.set_base_interval(request.interval_seconds)
    if request.debug_multiplier is not None:
        state.ticks.set_debug_multiplier(request.debug_multiplier)

    await state.ticks.set_enabled(world_key, request.enabled)
    return _tick_status(state, world_key)


@router.get("/technologies", response_model=list[TechnologySummary])
async def list_technologies() -> list[TechnologySummary]:
    return [
        TechnologySummary(
            tech_type=str(tech.tech_type),
            name=tech.name,
            description=tech.description,
            cost=tech.cost,
            prerequisites=[str(prereq) for prereq in tech.prerequisites],
            unlock_effects=list(tech.unlock_effects),
        )
        for tech in DEFAULT_TREE.get_all().values()
    ]


@router.get("/scenarios", response_model=list[ScenarioSummary])
async def list_scenarios(state: ApiStateDep) -> list[ScenarioSummary]:
    result: list[ScenarioSummary] = []
    for item in state.worlds.list_scenarios():
        metadata = item.get("metadata", {})
        created_at = metadata.get("created_at")
        created = (
            datetime.fromisoformat(created_at) if isinstance(created_at, str) else datetime.now(UTC)
        )
        result.append(
            ScenarioSummary(
                slug=item["slug"],
                kind=str(item["kind"]),
                name=metadata.get("name", item["slug"]),
                description=metadata.get("description"),
                author=metadata.get("author"),
                created_at=created,
            )
        )
    return result


@router.post("/scenarios/import", response_model=WorldSummary, status_code=status.HTTP_201_CREATED)
def import_scenario(
    request: ScenarioImportRequest,
    state: ApiStateDep,
) -> WorldSummary:
    try:
        world = state.worlds.import_scenario(request.slug)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return WorldSummary.model_validate(WorldService.to_summary_dict(world))
