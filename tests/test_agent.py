"""Tests for the turn-based ClopAgent."""

import pytest

from engine.agent import ClopAgent
from engine.behaviors import default_registry
from models.actors import ActorStateType, AgentConfig
from models.game_state import ActorEvent, GameState
from models.level import Level
from models.tiles import (
    BlockerTile,
    ConveyorTile,
    Direction,
    ExitTile,
    GridCoord,
    HazardTile,
    HoleTile,
)


def _make_level(width: int, height: int, tiles: dict | None = None) -> Level:
    """Helper to create a level with the given gameplay tiles."""
    level = Level(width=width, height=height)
    for coord, props in (tiles or {}).items():
        level.set_gameplay_tile(coord, props)
    return level


def _make_agent(spawn=(0, 0), **config) -> ClopAgent:
    agent = ClopAgent(default_registry(), AgentConfig(**config))
    agent.spawn(spawn)
    return agent


def _record(agent: ClopAgent, event: ActorEvent) -> list:
    received = []
    agent.on(event, received.append)
    return received


class TestTakeTurn:
    """Tests for take_turn() movement and targeting."""

    def test_first_turn_targets_exit_and_moves(self):
        level = _make_level(6, 1, {(5, 0): ExitTile()})
        agent = _make_agent()
        assert agent.take_turn(level, GameState())
        assert agent.state.target_position == GridCoord(5, 0)
        assert agent.state.position == GridCoord(1, 0)
        assert agent.state.turns_taken == 1
        assert agent.state.state == ActorStateType.MOVING

    def test_walks_to_exit_and_wins(self):
        level = _make_level(6, 1, {(5, 0): ExitTile()})
        agent = _make_agent()
        won = _record(agent, ActorEvent.WON)
        gs = GameState()
        for _ in range(5):
            agent.take_turn(level, gs)
        assert agent.state.state == ActorStateType.WON
        assert agent.state.position == GridCoord(5, 0)
        assert len(won) == 1
        assert not agent.take_turn(level, gs)

    def test_one_tile_per_turn(self):
        level = _make_level(6, 1, {(5, 0): ExitTile()})
        agent = _make_agent()
        moves = _record(agent, ActorEvent.POSITION_CHANGED)
        gs = GameState()
        agent.take_turn(level, gs)
        agent.take_turn(level, gs)
        assert [m["to"] for m in moves] == [GridCoord(1, 0), GridCoord(2, 0)]

    def test_no_exit_does_nothing(self):
        agent = _make_agent()
        assert not agent.take_turn(_make_level(4, 4), GameState())
        assert agent.state.position == GridCoord(0, 0)

    def test_unreachable_exit(self):
        level = _make_level(5, 1, {(2, 0): BlockerTile(), (4, 0): ExitTile()})
        agent = _make_agent()
        cleared = _record(agent, ActorEvent.PATH_CLEARED)
        assert not agent.take_turn(level, GameState())
        assert agent.state.state == ActorStateType.IDLE
        assert len(cleared) == 1

    def test_path_computed_event(self):
        level = _make_level(4, 1, {(3, 0): ExitTile()})
        agent = _make_agent()
        computed = _record(agent, ActorEvent.PATH_COMPUTED)
        agent.take_turn(level, GameState())
        assert computed[0]["path"][-1] == GridCoord(3, 0)
        assert computed[0]["cost"] == 3.0

    def test_avoids_hazard_with_detour(self):
        level = _make_level(3, 3, {(1, 1): HazardTile(), (2, 1): ExitTile()})
        agent = _make_agent(spawn=(0, 1))
        gs = GameState()
        for _ in range(6):
            agent.take_turn(level, gs)
        assert agent.state.state == ActorStateType.WON
        assert agent.state.hp == agent.state.max_hp


class TestTileEffects:
    """Tests for damage, death and forced moves during turns."""

    def test_hazard_hurts(self):
        level = _make_level(5, 1, {(1, 0): HazardTile(damage=1), (4, 0): ExitTile()})
        agent = _make_agent()
        hp_events = _record(agent, ActorEvent.HP_CHANGED)
        agent.take_turn(level, GameState())
        assert agent.state.hp == 1
        assert agent.state.state == ActorStateType.HURT
        assert hp_events[0]["damage"] == 1
        assert hp_events[0]["source"] == "hazard"

    def test_hurt_agent_keeps_walking(self):
        level = _make_level(5, 1, {(1, 0): HazardTile(damage=1), (4, 0): ExitTile()})
        agent = _make_agent()
        gs = GameState()
        for _ in range(4):
            agent.take_turn(level, gs)
        assert agent.state.state == ActorStateType.WON
        assert agent.state.hp == 1

    def test_hazard_kills(self):
        level = _make_level(5, 1, {(2, 0): HazardTile(damage=2), (4, 0): ExitTile()})
        agent = _make_agent()
        died = _record(agent, ActorEvent.DIED)
        gs = GameState()
        for _ in range(5):
            agent.take_turn(level, gs)
        assert agent.state.state == ActorStateType.DEAD
        assert agent.state.position == GridCoord(2, 0)
        assert died == [{"agent_id": "clop-1", "cause": "hazard"}]

    def test_hole_kills(self):
        level = _make_level(3, 1, {(1, 0): HoleTile(), (2, 0): ExitTile()})
        agent = _make_agent()
        died = _record(agent, ActorEvent.DIED)
        agent.take_turn(level, GameState())
        assert agent.state.state == ActorStateType.DEAD
        assert agent.state.hp == 0
        assert died[0]["cause"] == "hole"
        assert not agent.can_act()

    def test_conveyor_forced_move_next_turn(self):
        level = _make_level(5, 3, {
            (1, 1): ConveyorTile(direction=Direction.SOUTH),
            (4, 1): ExitTile(),
        })
        agent = _make_agent(spawn=(0, 1))
        gs = GameState()
        agent.take_turn(level, gs)
        assert agent.state.position == GridCoord(1, 1)
        assert agent.state.pending_forced_move is None
        agent.take_turn(level, gs)
        assert agent.state.position == GridCoord(1, 2)
        for _ in range(6):
            agent.take_turn(level, gs)
        assert agent.state.state == ActorStateType.WON


class TestVisualsAndLifecycle:
    """Tests for update_visuals(), reset() and status()."""

    def test_visual_position_eases(self):
        level = _make_level(4, 1, {(3, 0): ExitTile()})
        agent = _make_agent(move_speed=4.0)
        agent.take_turn(level, GameState())
        assert agent.state.visual_position == (0.0, 0.0)
        agent.update_visuals(0.1)
        assert agent.state.visual_position == pytest.approx((0.4, 0.0))
        agent.update_visuals(1.0)
        assert agent.state.visual_position == pytest.approx((1.0, 0.0))

    def test_hurt_expires(self):
        level = _make_level(5, 1, {(1, 0): HazardTile(damage=1), (4, 0): ExitTile()})
        agent = _make_agent()
        agent.take_turn(level, GameState())
        agent.update_visuals(0.3)
        assert agent.state.state == ActorStateType.MOVING

    def test_reset(self):
        level = _make_level(5, 1, {(1, 0): HazardTile(damage=1), (4, 0): ExitTile()})
        agent = _make_agent()
        agent.take_turn(level, GameState())
        agent.reset()
        assert agent.state.position == GridCoord(0, 0)
        assert agent.state.hp == agent.config.max_hp
        assert agent.state.state == ActorStateType.IDLE
        assert agent.state.turns_taken == 0

    def test_is_at_target(self):
        agent = _make_agent()
        assert not agent.is_at_target()
        agent.set_target((0, 0))
        assert agent.is_at_target()

    def test_status_line(self):
        agent = _make_agent()
        assert agent.status() == "[clop-1] idle HP:2/2 Pos:(0,0) Turn:0"

    def test_compute_path_without_target(self):
        agent = _make_agent()
        assert agent.compute_path(_make_level(3, 3), GameState()) is None
