"""
Settings and configuration values for the simulation pipeline.

There is exactly one SimSettings per simulation. It is passed explicitly
into every solver call; nothing in the core reads it from global state.

Invalid values (negative gravity, zero substeps) are tolerated here and
clamped at the point of use, so a GUI can push raw values in at any time.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Literal
import logging

logger = logging.getLogger(__name__)


class SimState(Enum):
    """Pause state machine. The only transition is an explicit toggle."""

    PAUSED = "paused"
    RUNNING = "running"


@dataclass
class SimSettings:
    """Process-wide simulation settings."""

    paused: bool = True  # Simulation starts paused
    gravity_constant: float = 500.0  # Must be >= 0
    enable_collisions: bool = False
    collision_substeps: int = 2  # Relaxation passes per tick, >= 1
    clear_all_requested: bool = False  # One-shot, reset once serviced

    @property
    def state(self) -> SimState:
        return SimState.PAUSED if self.paused else SimState.RUNNING

    def toggle_pause(self) -> SimState:
        """Flip between PAUSED and RUNNING."""
        self.paused = not self.paused
        logger.info("toggle pause: now %s", self.state.value)
        return self.state

    def request_clear(self):
        """Ask for every particle to be removed on the next tick."""
        self.clear_all_requested = True

    def effective_gravity_constant(self) -> float:
        """Gravity constant clamped to >= 0."""
        if self.gravity_constant < 0.0:
            logger.debug("clamping gravity_constant %s to 0", self.gravity_constant)
            return 0.0
        return float(self.gravity_constant)

    def effective_substeps(self) -> int:
        """Collision substeps clamped to >= 1."""
        if self.collision_substeps < 1:
            logger.debug("clamping collision_substeps %s to 1", self.collision_substeps)
            return 1
        return int(self.collision_substeps)


@dataclass
class CollisionConfig:
    """Configuration for the collision solver."""

    # How the positional correction is shared between the two bodies:
    # "equal" moves each body by overlap/2 regardless of mass,
    # "mass_weighted" moves the lighter body further (inverse-mass share).
    split: Literal["equal", "mass_weighted"] = "equal"

    # None disables velocity resolution (positional correction only).
    # Otherwise the approaching normal velocity is reflected with this factor.
    restitution: float | None = None

    # Candidate pair generation: KD-tree radius query or every pair
    broad_phase: Literal["kdtree", "all_pairs"] = "kdtree"


@dataclass
class QuadTreeConfig:
    """Configuration for quadtree construction."""

    capacity: int = 1  # Particles per leaf before it subdivides
    max_depth: int = 24  # Leaves at this depth become buckets


@dataclass
class ClockConfig:
    """Configuration for the fixed-rate tick driver."""

    hz: float = 120.0  # Physics ticks per second
    max_frame_time: float = 0.25  # Elapsed time is clamped to this (stall guard)
    max_ticks_per_update: int = 8  # Ticks beyond this in one update are dropped
