"""Tests for the AISimulator driver."""

import pytest

from engine.behaviors import default_registry
from engine.scenarios import build_straight_shot
from engine.simulator import AISimulator
from models.level import Level
from models.simulation import SimulationMode, SimulationResultType, SimulationStatus
from models.tiles import BlockerTile, DoorTile, ExitTile, GridCoord, HazardTile, SpawnTile


def _make_level(width: int, height: int, tiles: dict) -> Level:
    """Helper to create a level with the given gameplay tiles."""
    level = Level(width=width, height=height)
    for coord, props in tiles.items():
        level.set_gameplay_tile(coord, props)
    return level


def _record(sim: AISimulator, event: str) -> list:
    received = []
    sim.on(event, received.append)
    return received


def _step_until_done(sim: AISimulator, limit: int = 50) -> int:
    steps = 0
    while sim.advance_step() and steps < limit:
        steps += 1
    return steps


class TestStepMode:
    """Tests for step-mode simulation."""

    def test_straight_shot_wins(self):
        sim = AISimulator(build_straight_shot(), default_registry())
        assert sim.simulation.mode == SimulationMode.STEP
        steps = _step_until_done(sim)
        assert steps == 7
        assert sim.result.type == SimulationResultType.WON
        assert sim.result.turns_taken == 7
        assert sim.result.final_hp == 2
        assert sim.simulation.status == SimulationStatus.COMPLETE

    def test_each_step_pauses(self):
        sim = AISimulator(build_straight_shot(), default_registry())
        waiting = _record(sim, "step:waiting")
        assert sim.advance_step()
        assert sim.simulation.status == SimulationStatus.PAUSED
        assert sim.simulation.turn_number == 1
        assert sim.agent.state.position == GridCoord(2, 1)
        assert waiting == [{"turn_number": 1}]

    def test_advance_step_rejected_in_auto_mode(self):
        sim = AISimulator(build_straight_shot(), default_registry(), mode=SimulationMode.AUTO)
        assert not sim.advance_step()
        assert sim.simulation.turn_number == 0

    def test_death_result(self):
        level = _make_level(5, 1, {
            (0, 0): SpawnTile(),
            (2, 0): HazardTile(damage=2),
            (4, 0): ExitTile(),
        })
        sim = AISimulator(level, default_registry())
        complete = _record(sim, "complete")
        _step_until_done(sim)
        assert sim.result.type == SimulationResultType.DIED
        assert sim.result.cause == "hazard"
        assert sim.result.final_hp == 0
        assert sim.result.turns_taken == 2
        assert len(complete) == 1

    def test_stuck_result(self):
        level = _make_level(5, 1, {
            (0, 0): SpawnTile(),
            (2, 0): BlockerTile(),
            (4, 0): ExitTile(),
        })
        sim = AISimulator(level, default_registry())
        sim.advance_step()
        assert sim.result.type == SimulationResultType.STUCK
        assert sim.result.cause == "no path to exit"
        assert not sim.advance_step()

    def test_spawned_on_exit_wins(self):
        """With no spawn tile the agent starts on the first walkable tile, here the exit."""
        level = _make_level(3, 1, {(0, 0): ExitTile()})
        sim = AISimulator(level, default_registry())
        assert sim.agent.state.position == GridCoord(0, 0)
        assert sim.advance_step()
        assert sim.result.type == SimulationResultType.WON
        assert sim.result.cause == "started on exit"
        assert sim.simulation.status == SimulationStatus.COMPLETE
        assert not sim.advance_step()

    def test_door_opened_before_run(self):
        level = _make_level(5, 1, {
            (0, 0): SpawnTile(),
            (2, 0): DoorTile(linked_id="A"),
            (4, 0): ExitTile(),
        })
        sim = AISimulator(level, default_registry())
        assert sim.door_ids() == ["A"]
        assert sim.toggle_door("A")
        _step_until_done(sim)
        assert sim.result.type == SimulationResultType.WON


class TestAutoMode:
    """Tests for timer-driven simulation."""

    def test_runs_only_while_playing(self):
        sim = AISimulator(build_straight_shot(), default_registry(), mode=SimulationMode.AUTO)
        sim.update(1.0)
        assert sim.simulation.turn_number == 0
        sim.play()
        sim.update(0.5)
        assert sim.simulation.turn_number == 1

    def test_plays_to_completion(self):
        sim = AISimulator(build_straight_shot(), default_registry(), mode=SimulationMode.AUTO)
        sim.play()
        for _ in range(20):
            sim.update(0.5)
        assert sim.result.type == SimulationResultType.WON
        assert sim.result.turns_taken == 7

    def test_speed_shortens_turn_delay(self):
        sim = AISimulator(build_straight_shot(), default_registry(), mode=SimulationMode.AUTO)
        sim.set_speed(4)
        sim.play()
        sim.update(0.125)
        assert sim.simulation.turn_number == 1

    def test_pause_stops_turns(self):
        sim = AISimulator(build_straight_shot(), default_registry(), mode=SimulationMode.AUTO)
        sim.play()
        sim.pause()
        sim.update(5.0)
        assert sim.simulation.turn_number == 0
        assert sim.simulation.status == SimulationStatus.PAUSED

    def test_play_events(self):
        sim = AISimulator(build_straight_shot(), default_registry(), mode=SimulationMode.AUTO)
        started = _record(sim, "started")
        resumed = _record(sim, "resumed")
        sim.play()
        sim.pause()
        sim.play()
        assert len(started) == 1
        assert len(resumed) == 1

    def test_invalid_speed(self):
        sim = AISimulator(build_straight_shot(), default_registry())
        with pytest.raises(ValueError, match="Speed must be one of"):
            sim.set_speed(3)


class TestResetAndViews:
    """Tests for reset_simulation() and the path preview."""

    def test_reset_mid_run_reports_cancelled(self):
        sim = AISimulator(build_straight_shot(), default_registry())
        complete = _record(sim, "complete")
        sim.advance_step()
        sim.advance_step()
        sim.reset_simulation()
        assert complete[0]["result"].type == SimulationResultType.CANCELLED
        assert complete[0]["result"].turns_taken == 2
        assert sim.result is None
        assert sim.simulation.status == SimulationStatus.IDLE
        assert sim.agent.state.position == GridCoord(1, 1)

    def test_reset_before_any_turn_is_silent(self):
        sim = AISimulator(build_straight_shot(), default_registry())
        complete = _record(sim, "complete")
        sim.reset_simulation()
        assert complete == []

    def test_reset_closes_doors(self):
        level = _make_level(5, 1, {(0, 0): SpawnTile(), (2, 0): DoorTile(linked_id="A")})
        sim = AISimulator(level, default_registry())
        sim.toggle_door("A")
        sim.reset_simulation()
        assert not sim.is_door_open("A")

    def test_play_after_complete_restarts(self):
        sim = AISimulator(build_straight_shot(), default_registry())
        _step_until_done(sim)
        sim.set_mode(SimulationMode.AUTO)
        sim.play()
        assert sim.result is None
        assert sim.simulation.status == SimulationStatus.RUNNING

    def test_path_preview(self):
        sim = AISimulator(build_straight_shot(), default_registry())
        assert sim.path_preview() == []
        sim.advance_step()
        preview = sim.path_preview()
        assert preview[0] == GridCoord(2, 1)
        assert preview[-1] == GridCoord(8, 1)
        sim.set_show_path_preview(False)
        assert sim.path_preview() == []

    def test_set_level(self):
        sim = AISimulator(build_straight_shot(), default_registry())
        level = _make_level(3, 3, {(2, 2): SpawnTile(), (0, 0): ExitTile()})
        sim.set_level(level)
        assert sim.agent.state.position == GridCoord(2, 2)
        assert sim.agent.state.target_position == GridCoord(0, 0)
