"""
Integrator: implicit-velocity (Störmer–Verlet) position update.

    x_new = x + (x - x_old) + a * dt²
    x_old <- x

Velocity never appears explicitly; it is the difference between the two
most recent positions. This is symplectic and time-reversible, so orbits
stay bounded instead of slowly spiralling in or out.

Gravity accelerations are NOT pre-multiplied by dt anywhere. The dt² term
here is the only place time enters a position update.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from gravsim.core.particles import ParticleStore


def verlet_integrate(
    dt: float,
    position: np.ndarray,
    old_position: np.ndarray,
    acceleration: np.ndarray,
) -> np.ndarray:
    """
    Next position from dt, current position, previous position and acceleration.

    Works on single (2,) vectors or whole [n, 2] arrays. Callers that move
    things with it must also update old_position and reset acceleration.
    """
    velocity = position - old_position
    return position + velocity + acceleration * dt * dt


class Integrator:
    """Advances every particle one fixed tick."""

    def step(self, store: "ParticleStore", dt: float):
        """
        Integrate all particles in place.

        Each row only touches its own state, so the whole update is one
        vectorized expression.
        """
        if len(store) == 0:
            return

        new_position = verlet_integrate(dt, store.position, store.old_position, store.acceleration)

        store.old_position = store.position
        store.position = new_position

        store.previous_acceleration = store.acceleration.copy()
        store.acceleration.fill(0.0)
