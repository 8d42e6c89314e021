"""ClopPersonalityTester: up to three clops with different personalities on one level."""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from config import (
    CLOP_MAX_HP,
    COWARD_HAZARD_COST,
    HYPERACTIVE_DETOUR_CHANCE,
    HYPERACTIVE_STEP_SCALE,
    MAX_PERSONALITY_CLOPS,
    PERSONALITY_HAZARD_COST,
    PERSONALITY_SEED,
    SIMULATION_SPEEDS,
)
from engine.behaviors import TileBehaviorRegistry
from engine.events import EventEmitter
from engine.movement import MovementEngine, MovementUpdate, begin_path, clear_path
from engine.pathfinding import find_path, is_walkable, spawn_position, tile_at
from models.actors import ActorState, ActorStateType, create_actor_state
from models.game_state import GameState
from models.level import Level
from models.simulation import PERSONALITY_ORDER, ClopSnapshot, ClopStatus, Personality
from models.tiles import GridCoord, TileProperties, TileType

logger = logging.getLogger(__name__)


@dataclass
class ClopRecord:
    """One tester clop: its actor snapshot plus planning bookkeeping."""
    id: int
    personality: Personality
    actor: ActorState
    destination: GridCoord | None = None
    status: ClopStatus = ClopStatus.ACTIVE
    blocked: bool = False
    path_has_hazard: bool = False
    visited: set[GridCoord] = field(default_factory=set)

    @property
    def live(self) -> bool:
        return self.status in (ClopStatus.ACTIVE, ClopStatus.STUCK)


class ClopPersonalityTester:
    """Simulates several clops at once, each planning by its personality.

    Clops never path through a tile another live clop is standing on, and
    never start a step onto a tile another clop stands on or is walking into.
    In step mode each advance lets one clop start one segment.
    Hyperactive detours come from a seeded ``random.Random``, so the same
    seed and the same sequence of updates always choose the same tiles.
    """

    def __init__(
        self,
        level: Level,
        registry: TileBehaviorRegistry,
        seed: int = PERSONALITY_SEED,
        max_clops: int = MAX_PERSONALITY_CLOPS,
        clop_hp: int = CLOP_MAX_HP,
    ) -> None:
        self.registry = registry
        self.level = level
        self.engine = MovementEngine(level, registry)
        self.events = EventEmitter()
        self.game_state = GameState()
        self.max_clops = max_clops
        self.clop_hp = clop_hp
        self.seed = seed
        self.rng = random.Random(seed)
        self.speed = 1
        self.paused = False
        self.step_mode = False
        self.pending_step = True
        self.exit_tile: GridCoord | None = None
        self.clops: list[ClopRecord] = []
        self.detour_log: list[tuple[int, GridCoord]] = []
        self.set_level(level)

    def on(self, event: str, listener: Callable[[dict], None]) -> Callable[[], None]:
        return self.events.on(event, listener)

    # -- controls --

    def set_level(self, level: Level) -> None:
        self.level = level
        self.engine.level = level
        self.exit_tile = level.find_exit_tile()
        self.reset_clops()
        self.events.emit("level:changed", {"level": level})

    def set_paused(self, paused: bool) -> None:
        self.paused = paused

    def set_step_mode(self, enabled: bool) -> None:
        self.step_mode = enabled
        self.pending_step = not enabled

    def advance_turn(self) -> None:
        """In step mode, let the next ready clop start one segment."""
        if self.step_mode:
            self.pending_step = True

    def set_speed(self, speed: int) -> None:
        if speed not in SIMULATION_SPEEDS:
            raise ValueError(f"Speed must be one of {SIMULATION_SPEEDS}, got {speed}")
        self.speed = speed

    def set_seed(self, seed: int) -> None:
        self.seed = seed
        self.rng = random.Random(seed)
        self._log(f"Seed set to {seed}")

    def toggle_door(self, door_id: str) -> bool:
        is_open = self.game_state.toggle_door(door_id)
        for clop in self.clops:
            if clop.live:
                clop.blocked = True
        return is_open

    def reset_clops(self) -> None:
        """Respawn clops on the spawn tiles, reseeding the detour RNG."""
        spawns = self.level.find_spawn_tiles()[: self.max_clops]
        if not spawns:
            spawns = [spawn_position(self.level, self.game_state, self.registry, is_blocked=self._is_hole)]
        self.rng = random.Random(self.seed)
        self.detour_log = []
        self.game_state = GameState(open_doors=set(self.game_state.open_doors))
        self.pending_step = not self.step_mode
        self.clops = [
            self._create_clop(i + 1, PERSONALITY_ORDER[i % len(PERSONALITY_ORDER)], spawn)
            for i, spawn in enumerate(spawns)
        ]
        logger.info("Personality tester reset with %d clops", len(self.clops))
        self._emit_clops()

    def set_clop_personality(self, clop_id: int, personality: Personality) -> None:
        clop = self._get_clop(clop_id)
        clop.personality = Personality(personality)
        clop.destination = None
        clop.actor = clear_path(clop.actor, ActorStateType.IDLE)
        clop.visited.clear()
        clop.status = ClopStatus.ACTIVE
        clop.blocked = False
        self._emit_clops()

    def _get_clop(self, clop_id: int) -> ClopRecord:
        for clop in self.clops:
            if clop.id == clop_id:
                return clop
        raise ValueError(f"Clop {clop_id} not found")

    def _create_clop(self, clop_id: int, personality: Personality, spawn: GridCoord) -> ClopRecord:
        return ClopRecord(
            id=clop_id,
            personality=personality,
            actor=create_actor_state(spawn, self.clop_hp),
            visited={spawn},
        )

    # -- loop --

    def update(self, dt: float) -> None:
        if self.paused:
            return
        for clop in self.clops:
            if not clop.live:
                continue
            if self.exit_tile is None:
                clop.status = ClopStatus.STUCK
                continue

            if clop.destination is None or clop.actor.position == clop.destination:
                self._plan_destination(clop)
            if clop.status == ClopStatus.STUCK or clop.blocked or len(clop.actor.current_path) <= 1:
                self._rebuild_path(clop)

            actor = clop.actor
            if actor.state != ActorStateType.MOVING:
                continue
            if actor.segment_progress == 0.0:
                if self.step_mode and not self.pending_step:
                    continue
                if self._is_claimed(actor.next_coord, clop.id):
                    self._rebuild_path(clop)
                    actor = clop.actor
                    if actor.state != ActorStateType.MOVING or self._is_claimed(actor.next_coord, clop.id):
                        continue
                if self.step_mode:
                    self.pending_step = False

            scale = HYPERACTIVE_STEP_SCALE if clop.personality == Personality.HYPERACTIVE else 1.0
            result = self.engine.update(
                actor, dt, self.game_state,
                speed=self.speed,
                duration_scale=scale,
                is_blocked=lambda c, cid=clop.id: self._is_claimed(c, cid),
            )
            clop.actor = result.actor
            if result.arrived is not None:
                clop.visited.add(result.arrived)
                clop.path_has_hazard = self._path_has_hazard(clop.actor)
                self._handle_arrival(clop, result)

        self._emit_clops()

    def _handle_arrival(self, clop: ClopRecord, result: MovementUpdate) -> None:
        coord = result.arrived
        tile = tile_at(self.level, coord)

        if clop.actor.is_terminal:
            if clop.actor.state == ActorStateType.WON:
                clop.status = ClopStatus.FINISHED
                clop.destination = coord
                self._log(f"Clop {clop.id} ({clop.personality.value}) reached the exit")
            else:
                clop.status = ClopStatus.DEAD
                clop.destination = None
                self._log(f"Clop {clop.id} ({clop.personality.value}) died on {tile.type}")
            clop.path_has_hazard = False
            return

        if result.forced:
            clop.blocked = False
            return

        if tile.type == TileType.HAZARD.value and clop.personality == Personality.COWARD:
            clop.blocked = True
            self._log(f"Clop {clop.id} (coward) stepped on a hazard at {tuple(coord)}, rerouting")

        if clop.personality == Personality.HYPERACTIVE and self.rng.random() < HYPERACTIVE_DETOUR_CHANCE:
            detour = self._random_neighbor(coord)
            if detour is not None:
                self.detour_log.append((clop.id, detour))
                logger.debug("Clop %d detours to %s", clop.id, detour)
                clop.destination = detour
                self._rebuild_path(clop)
                return

        if clop.destination is not None and coord != clop.destination:
            # occupancy and doors may have changed since the last search
            self._rebuild_path(clop)
            return

        if clop.destination is not None and coord == clop.destination:
            self._plan_destination(clop)

    # -- planning --

    def _plan_destination(self, clop: ClopRecord) -> None:
        if clop.personality == Personality.CURIOUS:
            target = self._nearest_unvisited(clop)
            if target is not None:
                clop.destination = target
                self._rebuild_path(clop)
                return
        clop.destination = self.exit_tile
        self._rebuild_path(clop)

    def _rebuild_path(self, clop: ClopRecord) -> None:
        if clop.destination is None:
            return
        result = find_path(
            clop.actor.position,
            clop.destination,
            self.level,
            self.game_state,
            self.registry,
            cost_fn=self._cost_fn(clop.personality),
            is_blocked=lambda c: self._is_occupied(c, clop.id) or self._is_hole(c),
        )
        if not result.found:
            logger.debug("Clop %d has no path to %s", clop.id, clop.destination)
            clop.actor = clear_path(clop.actor, ActorStateType.IDLE)
            clop.status = ClopStatus.STUCK
            clop.blocked = True
            return
        clop.actor = begin_path(clop.actor, result.path)
        clop.status = ClopStatus.ACTIVE
        clop.blocked = False
        clop.path_has_hazard = self._path_has_hazard(clop.actor)

    def _cost_fn(self, personality: Personality) -> Callable[[GridCoord, TileProperties, float], float]:
        hazard_cost = COWARD_HAZARD_COST if personality == Personality.COWARD else PERSONALITY_HAZARD_COST

        def cost(coord: GridCoord, tile: TileProperties, base: float) -> float:
            if tile.type == TileType.SLOW.value:
                return base
            if tile.type == TileType.HAZARD.value:
                return hazard_cost
            return 1.0

        return cost

    def _nearest_unvisited(self, clop: ClopRecord) -> GridCoord | None:
        """Breadth-first search for the closest reachable tile this clop has not stood on."""
        start = clop.actor.position
        queue = deque([start])
        seen = {start}
        while queue:
            current = queue.popleft()
            if current not in clop.visited and self._passable(current):
                return current
            for neighbor in current.neighbors():
                if neighbor in seen or not self._passable(neighbor):
                    continue
                seen.add(neighbor)
                queue.append(neighbor)
        return None

    def _random_neighbor(self, coord: GridCoord) -> GridCoord | None:
        neighbors = [n for n in coord.neighbors() if self._passable(n)]
        if not neighbors:
            return None
        return neighbors[self.rng.randrange(len(neighbors))]

    # -- tile queries --

    def _passable(self, coord: GridCoord) -> bool:
        return is_walkable(coord, self.level, self.game_state, self.registry) and not self._is_hole(coord)

    def _is_hole(self, coord: GridCoord) -> bool:
        return tile_at(self.level, coord).type == TileType.HOLE.value

    def _is_occupied(self, coord: GridCoord, clop_id: int) -> bool:
        return any(
            c.id != clop_id and c.live and c.actor.position == coord
            for c in self.clops
        )

    def _is_claimed(self, coord: GridCoord | None, clop_id: int) -> bool:
        """Another live clop stands on ``coord`` or is partway into a segment toward it."""
        if coord is None:
            return False
        return any(
            c.id != clop_id and c.live and (
                c.actor.position == coord
                or (c.actor.segment_progress > 0 and c.actor.next_coord == coord)
            )
            for c in self.clops
        )

    def _path_has_hazard(self, actor: ActorState) -> bool:
        remaining = actor.current_path[actor.path_index + 1:]
        return any(tile_at(self.level, c).type == TileType.HAZARD.value for c in remaining)

    # -- views --

    def snapshots(self) -> list[ClopSnapshot]:
        return [self._snapshot(c) for c in self.clops]

    def _snapshot(self, clop: ClopRecord) -> ClopSnapshot:
        return ClopSnapshot(
            id=clop.id,
            personality=clop.personality,
            position=clop.actor.position,
            spawn=clop.actor.spawn_position,
            target=clop.destination,
            status=clop.status,
            hp=clop.actor.hp,
            path_length=max(0, len(clop.actor.current_path) - 1 - clop.actor.path_index),
            path_has_hazard=clop.path_has_hazard,
            blocked=clop.blocked,
        )

    def _emit_clops(self) -> None:
        self.events.emit("clops:updated", {"clops": self.snapshots()})

    def _log(self, text: str) -> None:
        logger.info(text)
        self.events.emit("log:message", {"text": text})
