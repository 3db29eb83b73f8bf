"""
ParticleStore: the mutable collection of simulated bodies.

Bodies are stored as parallel numpy arrays (one row per particle), so the
solvers can work on whole columns at once:
- position, old_position: [n, 2]
- acceleration, previous_acceleration: [n, 2]
- mass, radius: [n]
- ids: [n] opaque integer handles

Velocity is NOT stored. It is implicit: position - old_position is the
displacement over the last tick. A spawn velocity v is encoded by setting
old_position = position - v * dt.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence
import itertools
import logging

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Particle:
    """Read-only copy of a single body's state."""

    id: int
    position: tuple[float, float]
    old_position: tuple[float, float]
    mass: float
    radius: float
    acceleration: tuple[float, float]
    previous_acceleration: tuple[float, float]

    @property
    def displacement(self) -> tuple[float, float]:
        """Implicit velocity over one tick (position - old_position)."""
        return (
            self.position[0] - self.old_position[0],
            self.position[1] - self.old_position[1],
        )


def _as_rows(values, n: int, name: str) -> np.ndarray:
    """Broadcast a vector or [n, 2] array-like to float64 [n, 2]."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.shape == (2,):
        arr = np.broadcast_to(arr, (n, 2))
    if arr.shape != (n, 2):
        raise ValueError(f"{name} must have shape (2,) or ({n}, 2), got {arr.shape}")
    return arr


def _as_column(values, n: int, name: str) -> np.ndarray:
    """Broadcast a scalar or [n] array-like to float64 [n]."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim == 0:
        arr = np.full(n, float(arr))
    if arr.shape != (n,):
        raise ValueError(f"{name} must be a scalar or have shape ({n},), got {arr.shape}")
    return arr


class ParticleStore:
    """
    Struct-of-arrays storage for particles.

    Row order is insertion order and is stable between spawns and despawns,
    which gives the solvers a canonical (index-ascending) pair order.
    Ids are never reused within one store.
    """

    def __init__(self):
        self._next_id = itertools.count()

        # ═══════════════════════════════════════════════════════════════
        # PER-PARTICLE STATE
        # ═══════════════════════════════════════════════════════════════
        self.ids = np.zeros(0, dtype=np.int64)
        self.position = np.zeros((0, 2), dtype=np.float64)
        self.old_position = np.zeros((0, 2), dtype=np.float64)
        self.mass = np.zeros(0, dtype=np.float64)
        self.radius = np.zeros(0, dtype=np.float64)

        # Accumulator: zeroed by the gravity pass, consumed by the integrator
        self.acceleration = np.zeros((0, 2), dtype=np.float64)

        # Diagnostic copy of the acceleration used by the last integration
        self.previous_acceleration = np.zeros((0, 2), dtype=np.float64)

    def __len__(self) -> int:
        return int(self.ids.shape[0])

    def __iter__(self) -> Iterator[Particle]:
        for index in range(len(self)):
            yield self._particle_at(index)

    @property
    def count(self) -> int:
        """Live particle count."""
        return len(self)

    def spawn(
        self,
        position: Sequence[float],
        velocity: Sequence[float] = (0.0, 0.0),
        mass: float = 1.0,
        radius: float = 1.0,
        dt: float = 1.0,
    ) -> int:
        """
        Add a single particle and return its id.

        Args:
            position: Initial (x, y)
            velocity: Initial velocity, in distance per `dt`
            mass: Must be finite and > 0
            radius: Must be finite and >= 0
            dt: Time unit the velocity is expressed in. With dt=1.0 the
                velocity is the displacement per tick.
        """
        ids = self.spawn_many([position], [velocity], mass, radius, dt=dt)
        return int(ids[0])

    def spawn_many(
        self,
        positions,
        velocities=None,
        masses=1.0,
        radii=1.0,
        dt: float = 1.0,
    ) -> np.ndarray:
        """
        Add many particles at once and return their ids.

        `masses` and `radii` may be scalars (shared) or one value per particle.
        """
        positions = np.asarray(positions, dtype=np.float64)
        if positions.ndim == 1 and positions.size == 0:
            positions = positions.reshape(0, 2)
        if positions.ndim != 2 or positions.shape[1] != 2:
            raise ValueError(f"positions must have shape (n, 2), got {positions.shape}")
        n = positions.shape[0]
        if n == 0:
            return np.zeros(0, dtype=np.int64)

        if velocities is None:
            velocities = np.zeros((n, 2), dtype=np.float64)
        velocities = _as_rows(velocities, n, "velocities")
        masses = _as_column(masses, n, "masses")
        radii = _as_column(radii, n, "radii")

        if np.any(~np.isfinite(positions)) or np.any(~np.isfinite(velocities)):
            raise ValueError("positions and velocities must be finite")
        if np.any(~np.isfinite(masses)) or np.any(masses <= 0.0):
            raise ValueError("particle mass must be finite and > 0")
        if np.any(~np.isfinite(radii)) or np.any(radii < 0.0):
            raise ValueError("particle radius must be finite and >= 0")

        new_ids = np.fromiter(
            (next(self._next_id) for _ in range(n)), dtype=np.int64, count=n
        )
        zeros = np.zeros((n, 2), dtype=np.float64)

        self.ids = np.concatenate([self.ids, new_ids])
        self.position = np.concatenate([self.position, positions])
        self.old_position = np.concatenate([self.old_position, positions - velocities * dt])
        self.mass = np.concatenate([self.mass, masses])
        self.radius = np.concatenate([self.radius, radii])
        self.acceleration = np.concatenate([self.acceleration, zeros])
        self.previous_acceleration = np.concatenate([self.previous_acceleration, zeros])

        return new_ids

    def despawn(self, ids: Iterable[int]):
        """Remove the given particles. Unknown ids raise KeyError."""
        indices = [self.index_of(pid) for pid in ids]
        if not indices:
            return
        keep = np.ones(len(self), dtype=bool)
        keep[indices] = False
        self._select(keep)

    def clear(self):
        """Remove every particle."""
        removed = len(self)
        self._select(np.zeros(len(self), dtype=bool))
        logger.debug("cleared %d particles", removed)

    def index_of(self, particle_id: int) -> int:
        """Row index of a particle id."""
        matches = np.flatnonzero(self.ids == particle_id)
        if matches.size == 0:
            raise KeyError(f"no particle with id {particle_id}")
        return int(matches[0])

    def get(self, particle_id: int) -> Particle:
        """Read-only copy of one particle."""
        return self._particle_at(self.index_of(particle_id))

    def velocities(self, dt: float = 1.0) -> np.ndarray:
        """Implicit velocities, (position - old_position) / dt."""
        return (self.position - self.old_position) / dt

    def set_velocity(self, particle_id: int, velocity: Sequence[float], dt: float = 1.0):
        """Re-encode a particle's velocity by rewriting its old position."""
        index = self.index_of(particle_id)
        self.old_position[index] = self.position[index] - np.asarray(velocity, dtype=np.float64) * dt

    def _particle_at(self, index: int) -> Particle:
        return Particle(
            id=int(self.ids[index]),
            position=(float(self.position[index, 0]), float(self.position[index, 1])),
            old_position=(float(self.old_position[index, 0]), float(self.old_position[index, 1])),
            mass=float(self.mass[index]),
            radius=float(self.radius[index]),
            acceleration=(float(self.acceleration[index, 0]), float(self.acceleration[index, 1])),
            previous_acceleration=(
                float(self.previous_acceleration[index, 0]),
                float(self.previous_acceleration[index, 1]),
            ),
        )

    def _select(self, mask: np.ndarray):
        self.ids = self.ids[mask]
        self.position = self.position[mask]
        self.old_position = self.old_position[mask]
        self.mass = self.mass[mask]
        self.radius = self.radius[mask]
        self.acceleration = self.acceleration[mask]
        self.previous_acceleration = self.previous_acceleration[mask]
