"""FastAPI app entry point for the Clop Sandbox."""

import logging

from fastapi import FastAPI

from api.levels import router as levels_router
from api.movement import router as movement_router
from api.personalities import router as personalities_router
from api.simulator import router as simulator_router
from config import DEFAULT_SCENARIO, LEVEL_FILE, LOG_LEVEL
from engine.levels import load_level
from engine.sandbox import Sandbox
from engine.scenarios import build_scenario

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Clop Sandbox",
    description="Headless tile-behavior pathfinding and turn simulation sandbox",
    version="0.1.0",
)

# Load the saved level or fall back to a built-in scenario
loaded = load_level(LEVEL_FILE)
if loaded is None:
    logger.info("No saved level at %s, using scenario %s", LEVEL_FILE, DEFAULT_SCENARIO)
    loaded = build_scenario(DEFAULT_SCENARIO)
app.state.sandbox = Sandbox.create(loaded)

app.include_router(levels_router, prefix="/levels", tags=["Levels"])
app.include_router(movement_router, prefix="/movement", tags=["Movement"])
app.include_router(simulator_router, prefix="/simulator", tags=["Simulator"])
app.include_router(personalities_router, prefix="/personalities", tags=["Personalities"])


@app.get("/")
def root() -> dict:
    """Root endpoint returning server info."""
    return {"name": "Clop Sandbox", "version": "0.1.0", "status": "running"}


@app.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"healthy": True, "level": app.state.sandbox.level.metadata.name}
