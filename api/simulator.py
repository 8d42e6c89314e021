"""AI simulator endpoints."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from engine.simulator import AISimulator
from models.simulation import SimulationMode

router = APIRouter()


class TickRequest(BaseModel):
    """Frame delta in seconds, optionally repeated."""
    dt: float = Field(gt=0, le=1.0)
    frames: int = Field(default=1, ge=1, le=10_000)


class SpeedRequest(BaseModel):
    speed: int


class ModeRequest(BaseModel):
    mode: SimulationMode


class FlagRequest(BaseModel):
    enabled: bool


def _get_simulator(request: Request) -> AISimulator:
    """Get the AI simulator from the app's sandbox."""
    return request.app.state.sandbox.simulator


def _state(sim: AISimulator) -> dict:
    agent = sim.agent
    return {
        "simulation": sim.simulation.model_dump(mode="json"),
        "agent": agent.state.model_dump(mode="json") if agent else None,
        "status_line": agent.status() if agent else None,
        "path_preview": [list(c) for c in sim.path_preview()],
        "result": sim.result.model_dump(mode="json") if sim.result else None,
        "doors": {door_id: sim.is_door_open(door_id) for door_id in sim.door_ids()},
    }


@router.get("/state")
def get_state(request: Request) -> dict:
    return _state(_get_simulator(request))


@router.post("/play")
def play(request: Request) -> dict:
    sim = _get_simulator(request)
    sim.play()
    return _state(sim)


@router.post("/pause")
def pause(request: Request) -> dict:
    sim = _get_simulator(request)
    sim.pause()
    return _state(sim)


@router.post("/reset")
def reset(request: Request) -> dict:
    sim = _get_simulator(request)
    sim.reset_simulation()
    return _state(sim)


@router.post("/step")
def step(request: Request) -> dict:
    """Take one turn (step mode only)."""
    sim = _get_simulator(request)
    if sim.simulation.mode != SimulationMode.STEP:
        raise HTTPException(status_code=400, detail="Simulator is not in step mode")
    executed = sim.advance_step()
    return {"executed": executed, **_state(sim)}


@router.post("/tick")
def tick(body: TickRequest, request: Request) -> dict:
    sim = _get_simulator(request)
    for _ in range(body.frames):
        sim.update(body.dt)
    return _state(sim)


@router.post("/speed")
def set_speed(body: SpeedRequest, request: Request) -> dict:
    sim = _get_simulator(request)
    try:
        sim.set_speed(body.speed)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _state(sim)


@router.post("/mode")
def set_mode(body: ModeRequest, request: Request) -> dict:
    sim = _get_simulator(request)
    sim.set_mode(body.mode)
    return _state(sim)


@router.post("/path-preview")
def set_path_preview(body: FlagRequest, request: Request) -> dict:
    sim = _get_simulator(request)
    sim.set_show_path_preview(body.enabled)
    return _state(sim)


@router.post("/doors/{door_id}/toggle")
def toggle_door(door_id: str, request: Request) -> dict:
    sim = _get_simulator(request)
    if door_id not in sim.door_ids():
        raise HTTPException(status_code=404, detail=f"Door {door_id} not found")
    sim.toggle_door(door_id)
    return _state(sim)
