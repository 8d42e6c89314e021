"""Manual movement tester endpoints."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from engine.manual import ClickMode, MovementTester
from models.tiles import TileProperties

router = APIRouter()


class TickRequest(BaseModel):
    """Frame delta in seconds."""
    dt: float = Field(gt=0, le=1.0)
    frames: int = Field(default=1, ge=1, le=10_000)


class CoordRequest(BaseModel):
    x: int
    y: int


class FlagRequest(BaseModel):
    enabled: bool


class SpeedRequest(BaseModel):
    speed: int


class ClickModeRequest(BaseModel):
    mode: ClickMode


class PropertiesRequest(BaseModel):
    properties: TileProperties


def _get_tester(request: Request) -> MovementTester:
    """Get the movement tester from the app's sandbox."""
    return request.app.state.sandbox.movement


def _state(tester: MovementTester) -> dict:
    gs = tester.game_state
    return {
        "player": tester.player.model_dump(mode="json"),
        "click_mode": tester.click_mode.value,
        "selected": list(tester.selected) if tester.selected else None,
        "speed": tester.speed,
        "turn_number": gs.turn_number,
        "is_step_mode": gs.is_step_mode,
        "waiting_for_step": gs.waiting_for_step,
        "doors": {door_id: gs.is_door_open(door_id) for door_id in tester.door_ids()},
        "damage_flash": tester.damage_flash_timer > 0,
    }


@router.get("/state")
def get_state(request: Request) -> dict:
    return _state(_get_tester(request))


@router.post("/move")
def move_to(body: CoordRequest, request: Request) -> dict:
    """Path the player to a tile using true tile costs."""
    tester = _get_tester(request)
    if not tester.level.is_in_bounds((body.x, body.y)):
        raise HTTPException(status_code=400, detail=f"({body.x}, {body.y}) is out of bounds")
    if tester.player.is_terminal:
        raise HTTPException(status_code=400, detail=f"Player is {tester.player.state.value}")
    found = tester.move_player_to((body.x, body.y))
    return {"path_found": found, **_state(tester)}


@router.post("/click")
def click(body: CoordRequest, request: Request) -> dict:
    tester = _get_tester(request)
    tester.click((body.x, body.y))
    return _state(tester)


@router.post("/click-mode")
def set_click_mode(body: ClickModeRequest, request: Request) -> dict:
    tester = _get_tester(request)
    tester.set_click_mode(body.mode)
    return _state(tester)


@router.post("/selected")
def set_selected_properties(body: PropertiesRequest, request: Request) -> dict:
    """Change the gameplay tile under the current selection."""
    tester = _get_tester(request)
    if tester.selected is None:
        raise HTTPException(status_code=400, detail="No tile selected")
    tester.set_selected_properties(body.properties)
    return _state(tester)


@router.post("/tick")
def tick(body: TickRequest, request: Request) -> dict:
    tester = _get_tester(request)
    for _ in range(body.frames):
        tester.update(body.dt)
    return _state(tester)


@router.post("/speed")
def set_speed(body: SpeedRequest, request: Request) -> dict:
    tester = _get_tester(request)
    try:
        tester.set_speed(body.speed)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _state(tester)


@router.post("/step-mode")
def set_step_mode(body: FlagRequest, request: Request) -> dict:
    tester = _get_tester(request)
    tester.set_step_mode(body.enabled)
    return _state(tester)


@router.post("/step")
def advance_step(request: Request) -> dict:
    tester = _get_tester(request)
    tester.advance_step()
    return _state(tester)


@router.post("/doors/{door_id}/toggle")
def toggle_door(door_id: str, request: Request) -> dict:
    tester = _get_tester(request)
    if door_id not in tester.door_ids():
        raise HTTPException(status_code=404, detail=f"Door {door_id} not found")
    tester.toggle_door(door_id)
    return _state(tester)


@router.post("/reset")
def reset(request: Request) -> dict:
    tester = _get_tester(request)
    tester.reset_player()
    return _state(tester)
