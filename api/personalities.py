"""Personality tester endpoints."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from engine.personalities import ClopPersonalityTester
from models.simulation import Personality

router = APIRouter()


class TickRequest(BaseModel):
    dt: float = Field(gt=0, le=1.0)
    frames: int = Field(default=1, ge=1, le=10_000)


class SeedRequest(BaseModel):
    seed: int


class SpeedRequest(BaseModel):
    speed: int


class FlagRequest(BaseModel):
    enabled: bool


class PersonalityRequest(BaseModel):
    personality: Personality


def _get_tester(request: Request) -> ClopPersonalityTester:
    """Get the personality tester from the app's sandbox."""
    return request.app.state.sandbox.personalities


def _state(tester: ClopPersonalityTester) -> dict:
    return {
        "clops": [s.model_dump(mode="json") for s in tester.snapshots()],
        "seed": tester.seed,
        "speed": tester.speed,
        "paused": tester.paused,
        "step_mode": tester.step_mode,
        "detours": [{"clop_id": cid, "to": list(coord)} for cid, coord in tester.detour_log],
    }


@router.get("/state")
def get_state(request: Request) -> dict:
    return _state(_get_tester(request))


@router.post("/tick")
def tick(body: TickRequest, request: Request) -> dict:
    tester = _get_tester(request)
    for _ in range(body.frames):
        tester.update(body.dt)
    return _state(tester)


@router.post("/reset")
def reset(request: Request) -> dict:
    tester = _get_tester(request)
    tester.reset_clops()
    return _state(tester)


@router.post("/seed")
def set_seed(body: SeedRequest, request: Request) -> dict:
    """Change the detour seed and restart the clops with it."""
    tester = _get_tester(request)
    tester.set_seed(body.seed)
    tester.reset_clops()
    return _state(tester)


@router.post("/speed")
def set_speed(body: SpeedRequest, request: Request) -> dict:
    tester = _get_tester(request)
    try:
        tester.set_speed(body.speed)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _state(tester)


@router.post("/pause")
def set_paused(body: FlagRequest, request: Request) -> dict:
    tester = _get_tester(request)
    tester.set_paused(body.enabled)
    return _state(tester)


@router.post("/step-mode")
def set_step_mode(body: FlagRequest, request: Request) -> dict:
    tester = _get_tester(request)
    tester.set_step_mode(body.enabled)
    return _state(tester)


@router.post("/step")
def advance_turn(request: Request) -> dict:
    tester = _get_tester(request)
    tester.advance_turn()
    return _state(tester)


@router.post("/clops/{clop_id}/personality")
def set_clop_personality(clop_id: int, body: PersonalityRequest, request: Request) -> dict:
    tester = _get_tester(request)
    try:
        tester.set_clop_personality(clop_id, body.personality)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _state(tester)


@router.post("/doors/{door_id}/toggle")
def toggle_door(door_id: str, request: Request) -> dict:
    tester = _get_tester(request)
    if door_id not in tester.level.door_ids():
        raise HTTPException(status_code=404, detail=f"Door {door_id} not found")
    tester.toggle_door(door_id)
    return _state(tester)
