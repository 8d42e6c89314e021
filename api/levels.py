"""Scenario, level document and tile editing endpoints."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ValidationError

from config import LEVEL_FILE
from engine.levels import parse_level_data, save_level
from engine.sandbox import Sandbox
from engine.scenarios import build_scenario, list_scenarios
from models.level import Level
from models.tiles import TileProperties

router = APIRouter()


class ScenarioInfo(BaseModel):
    id: str
    name: str
    description: str
    phase: int


class LoadScenarioRequest(BaseModel):
    scenario_id: str


class SetTileRequest(BaseModel):
    """Place a gameplay tile on the current level."""
    x: int
    y: int
    properties: TileProperties


class TileTypeInfo(BaseModel):
    type: str
    overlay_color: str
    icon: str | None = None


def _get_sandbox(request: Request) -> Sandbox:
    """Get the singleton sandbox from app state."""
    return request.app.state.sandbox


def _level_document(level: Level) -> dict:
    return level.to_data().model_dump(mode="json", by_alias=True, exclude_none=True)


@router.get("/scenarios", response_model=list[ScenarioInfo])
def get_scenarios(phase: int | None = None) -> list[ScenarioInfo]:
    """List the built-in test maps."""
    return [
        ScenarioInfo(id=s.id, name=s.name, description=s.description, phase=s.phase)
        for s in list_scenarios(phase)
    ]


@router.post("/load")
def load_scenario(body: LoadScenarioRequest, request: Request) -> dict:
    """Replace the current level with a built-in scenario."""
    sandbox = _get_sandbox(request)
    try:
        level = build_scenario(body.scenario_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    sandbox.set_level(level)
    return {"message": f"Loaded {body.scenario_id}", "level": _level_document(level)}


@router.get("/current")
def get_current_level(request: Request) -> dict:
    """The current level document."""
    return _level_document(_get_sandbox(request).level)


@router.put("/current")
def replace_current_level(document: dict, request: Request) -> dict:
    """Replace the current level with an uploaded document (v1 or v2)."""
    try:
        data = parse_level_data(document)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))
    level = Level.from_data(data)
    _get_sandbox(request).set_level(level)
    return _level_document(level)


@router.post("/tiles")
def set_tile(body: SetTileRequest, request: Request) -> dict:
    """Set one gameplay tile and restart every driver on the edited level."""
    sandbox = _get_sandbox(request)
    if not sandbox.level.set_gameplay_tile((body.x, body.y), body.properties):
        raise HTTPException(status_code=400, detail=f"({body.x}, {body.y}) is out of bounds")
    sandbox.sync_level()
    return {"position": [body.x, body.y], "properties": body.properties.model_dump(by_alias=True)}


@router.get("/tile-types", response_model=list[TileTypeInfo])
def get_tile_types(request: Request) -> list[TileTypeInfo]:
    """Registered gameplay tile types and their overlay styling."""
    registry = _get_sandbox(request).registry
    infos = []
    for tile_type in registry.types():
        behavior = registry.get(tile_type)
        infos.append(TileTypeInfo(
            type=tile_type.value, overlay_color=behavior.overlay_color, icon=behavior.icon,
        ))
    return infos


@router.post("/save")
def save_current_level(request: Request) -> dict:
    """Write the current level to the data directory."""
    sandbox = _get_sandbox(request)
    save_level(sandbox.level, LEVEL_FILE)
    return {"message": "Level saved", "path": LEVEL_FILE}
