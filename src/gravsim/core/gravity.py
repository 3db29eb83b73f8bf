"""
GravitySolver: pairwise Newtonian accelerations.

For every unordered pair (i < j), in index-ascending order:

    delta    = pos_j - pos_i
    distance = max(|delta|, r_i + r_j)        (softening by contact radius)
    a_i     += G * m_j * delta / distance³
    a_j     -= G * m_i * delta / distance³

Newton's third law halves the work: each pair is visited once and updates
both bodies. Exactly coincident pairs are skipped (no direction exists).

This is O(n²). No Barnes–Hut approximation is done, even though the
quadtree exists; the tree is a diagnostic path only.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from gravsim.core.particles import ParticleStore
    from gravsim.core.settings import SimSettings


@dataclass
class GravitySolver:
    """Computes gravitational acceleration for every particle."""

    epsilon: float = 1e-12  # Squared distance below which a pair is skipped

    def compute(self, store: "ParticleStore", settings: "SimSettings"):
        """
        Reset accelerations and accumulate pairwise gravity.

        Rows are processed in ascending order; within a row the partners
        j > i are handled as one vectorized block, so the accumulation
        order (and the result) is deterministic.
        """
        store.acceleration.fill(0.0)
        n = len(store)
        if n < 2:
            return

        G = settings.effective_gravity_constant()
        if G == 0.0:
            return

        pos = store.position
        mass = store.mass
        radius = store.radius
        accel = store.acceleration

        for i in range(n - 1):
            delta = pos[i + 1:] - pos[i]
            dist_sq = np.einsum("ij,ij->i", delta, delta)

            # Coincident points have no direction; skip before dividing
            valid = dist_sq >= self.epsilon
            if not np.any(valid):
                continue

            delta = delta[valid]
            others = np.flatnonzero(valid) + i + 1

            distance = np.maximum(np.sqrt(dist_sq[valid]), radius[i] + radius[others])
            scaled = delta / (distance ** 3)[:, None]

            accel[i] += G * np.sum(mass[others, None] * scaled, axis=0)
            accel[others] -= G * mass[i] * scaled


def pair_acceleration(
    pos_i: np.ndarray,
    pos_j: np.ndarray,
    mass_j: float,
    radius_i: float,
    radius_j: float,
    G: float,
    epsilon: float = 1e-12,
) -> np.ndarray:
    """Acceleration on body i due to body j alone (same rule as the solver)."""
    delta = np.asarray(pos_j, dtype=np.float64) - np.asarray(pos_i, dtype=np.float64)
    dist_sq = float(delta @ delta)
    if dist_sq < epsilon:
        return np.zeros(2)
    distance = max(np.sqrt(dist_sq), radius_i + radius_j)
    return G * mass_j * delta / distance ** 3
