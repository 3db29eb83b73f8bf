"""
Simulation: the per-tick physics pipeline.

Each tick runs, strictly in order:
1. Service a pending clear-all request (even while paused)
2. Stop here if paused
3. GravitySolver: reset and recompute accelerations
4. Integrator: advance positions by one fixed dt
5. CollisionSolver: relax overlaps over the configured substeps
6. Clock: count the tick

The quadtree is NOT part of this chain. It is rebuilt on request from the
positions committed by the last tick and handed out as an immutable
snapshot (for debug overlays and future queries).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Sequence
import logging
import time

from gravsim.core.particles import ParticleStore
from gravsim.core.settings import (
    SimSettings,
    CollisionConfig,
    QuadTreeConfig,
    ClockConfig,
)
from gravsim.core.integrator import Integrator
from gravsim.core.gravity import GravitySolver
from gravsim.core.collisions import CollisionSolver
from gravsim.core.quadtree import QuadTree
from gravsim.core.clock import SimulationClock

logger = logging.getLogger(__name__)


@dataclass
class Simulation:
    """
    Owns the particles, the settings and the solver chain.

    External collaborators (GUI, renderer) only push settings in and read
    positions, the particle count and the quadtree between ticks.
    """

    store: ParticleStore = field(default_factory=ParticleStore)
    settings: SimSettings = field(default_factory=SimSettings)
    collision_config: CollisionConfig = field(default_factory=CollisionConfig)
    quadtree_config: QuadTreeConfig = field(default_factory=QuadTreeConfig)
    clock_config: ClockConfig = field(default_factory=ClockConfig)

    # Pipeline stages
    gravity: GravitySolver = field(default_factory=GravitySolver, init=False)
    integrator: Integrator = field(default_factory=Integrator, init=False)
    collisions: CollisionSolver | None = field(default=None, init=False)
    clock: SimulationClock | None = field(default=None, init=False)

    last_corrections: int = field(default=0, init=False)
    _quadtree: QuadTree | None = field(default=None, init=False)

    def __post_init__(self):
        self.collisions = CollisionSolver(self.collision_config)
        self.clock = SimulationClock(self.clock_config)

    # ═══════════════════════════════════════════════════════════════
    # READ SIDE (between ticks)
    # ═══════════════════════════════════════════════════════════════

    @property
    def dt(self) -> float:
        return self.clock.dt

    @property
    def particle_count(self) -> int:
        return len(self.store)

    @property
    def positions(self):
        """Copy of the committed positions, [n, 2]."""
        return self.store.position.copy()

    @property
    def quadtree(self) -> QuadTree | None:
        """Snapshot from the last rebuild_quadtree() call."""
        return self._quadtree

    def rebuild_quadtree(self) -> QuadTree | None:
        """Rebuild the quadtree from current positions."""
        self._quadtree = QuadTree.from_store(self.store, self.quadtree_config)
        return self._quadtree

    # ═══════════════════════════════════════════════════════════════
    # SPAWNING (velocity in distance per second)
    # ═══════════════════════════════════════════════════════════════

    def spawn(
        self,
        position: Sequence[float],
        velocity: Sequence[float] = (0.0, 0.0),
        mass: float = 1.0,
        radius: float = 1.0,
    ) -> int:
        """Spawn one particle; velocity is encoded using the clock's dt."""
        return self.store.spawn(position, velocity, mass, radius, dt=self.dt)

    # ═══════════════════════════════════════════════════════════════
    # TICKING
    # ═══════════════════════════════════════════════════════════════

    def step(self) -> bool:
        """
        Execute one tick.

        Returns:
            True if physics ran, False if the simulation is paused
        """
        if self.settings.clear_all_requested:
            removed = len(self.store)
            self.store.clear()
            self.settings.clear_all_requested = False
            logger.info("cleared all particles (%d removed)", removed)

        if self.settings.paused:
            return False

        self.gravity.compute(self.store, self.settings)
        self.integrator.step(self.store, self.dt)
        self.last_corrections = self.collisions.resolve(self.store, self.settings)
        self.clock.mark_tick()
        return True

    def update(self, elapsed: float) -> int:
        """
        Advance by wall-clock time; runs every fixed tick that is due.

        Returns:
            Number of ticks in which physics actually ran
        """
        ran = 0
        for _ in range(self.clock.advance(elapsed)):
            if self.step():
                ran += 1
        return ran

    def run(self, n_ticks: int) -> dict:
        """
        Run n ticks back to back (ignores wall-clock time).

        Args:
            n_ticks: Number of ticks to run

        Returns:
            Statistics dictionary
        """
        start = time.perf_counter()
        ran = 0
        for _ in range(n_ticks):
            if self.step():
                ran += 1
        wall = time.perf_counter() - start

        stats = {
            "n_ticks": n_ticks,
            "ticks_run": ran,
            "current_tick": self.clock.tick_count,
            "sim_time": self.clock.elapsed,
            "particle_count": self.particle_count,
            "last_corrections": self.last_corrections,
            "wall_time": wall,
        }
        logger.debug("run summary: %s", stats)
        return stats
