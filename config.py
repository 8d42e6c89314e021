"""Sandbox-wide configuration constants for the Clop Sandbox."""

import os

GRID_WIDTH = 8           # Default level width in tiles
GRID_HEIGHT = 8          # Default level height in tiles
TILE_WIDTH = 32          # Source sprite size, kept in level documents
TILE_HEIGHT = 32
MAX_GRID_SIZE = 256

# Movement timing (seconds)
BASE_STEP_DURATION = 0.25   # One floor tile at speed x1
TURN_DELAY_SECONDS = 0.5    # Delay between AI simulator turns in auto mode
DAMAGE_FLASH_SECONDS = 0.3
HURT_DURATION = 0.3
SCARED_DURATION = 0.5
SIMULATION_SPEEDS = (1, 2, 4)

# Pathfinding
DEFAULT_HAZARD_AVOIDANCE_WEIGHT = 5.0
DEFAULT_MAX_ITERATIONS = 1000

# Actors
PLAYER_MAX_HP = 3
CLOP_MAX_HP = 2
CLOP_MOVE_SPEED = 4.0       # Visual interpolation speed, tiles per second

# Personality tester
MAX_PERSONALITY_CLOPS = 3
PERSONALITY_SEED = 42
PERSONALITY_HAZARD_COST = 2.5
COWARD_HAZARD_COST = 100.0
HYPERACTIVE_DETOUR_CHANCE = 0.2
HYPERACTIVE_STEP_SCALE = 0.6

DATA_DIR = os.environ.get("DATA_DIR", ".")  # Persistent data directory
LEVEL_FILE = os.path.join(DATA_DIR, "level.json")
DEFAULT_SCENARIO = os.environ.get("DEFAULT_SCENARIO", "slow-path")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
