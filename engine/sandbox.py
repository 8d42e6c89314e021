"""Composition root: one behavior registry shared by every driver of the current level."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from engine.behaviors import TileBehaviorRegistry, default_registry
from engine.manual import MovementTester
from engine.personalities import ClopPersonalityTester
from engine.simulator import AISimulator
from models.level import Level

logger = logging.getLogger(__name__)


@dataclass
class Sandbox:
    """The editable level plus the three drivers running copies of it."""
    registry: TileBehaviorRegistry
    level: Level
    movement: MovementTester
    simulator: AISimulator
    personalities: ClopPersonalityTester

    @classmethod
    def create(cls, level: Level, registry: TileBehaviorRegistry | None = None) -> Sandbox:
        registry = registry or default_registry()
        return cls(
            registry=registry,
            level=level,
            movement=MovementTester(level.clone(), registry),
            simulator=AISimulator(level.clone(), registry),
            personalities=ClopPersonalityTester(level.clone(), registry),
        )

    def set_level(self, level: Level) -> None:
        """Replace the level. Each driver gets its own copy, so edits made
        through one driver never leak into another."""
        self.level = level
        self.movement.set_level(level.clone())
        self.simulator.set_level(level.clone())
        self.personalities.set_level(level.clone())
        logger.info("Loaded level %r (%dx%d)", level.metadata.name, level.width, level.height)

    def sync_level(self) -> None:
        """Push the current level to every driver again after an edit."""
        self.set_level(self.level)
