"""
Conserved quantities for checking integrator quality.

IMPORTANT: The engine never reads these. One-way derivation only.

Velocity is recovered from the stored positions. (pos - old_pos) / dt is the
velocity half a tick ago; adding previous_acceleration * dt / 2 moves the
estimate onto the current position, which is what the Verlet scheme conserves
energy against.

The potential matches the solver's softening: for distance d below the
contact distance R = r_i + r_j the force is linear in d, so

    U(d) = -G m_i m_j / d                        d >= R
    U(d) = -G m_i m_j (3R² - d²) / (2R³)         d <  R

which is continuous at d = R.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from gravsim.core.particles import ParticleStore


@dataclass
class EnergyReport:
    """Mechanical energy breakdown at one instant."""

    kinetic: float
    potential: float

    @property
    def total(self) -> float:
        return self.kinetic + self.potential


def estimate_velocities(
    store: "ParticleStore", dt: float, half_step_correction: bool = True
) -> np.ndarray:
    """Velocities (distance per second) at the current positions."""
    velocity = (store.position - store.old_position) / dt
    if half_step_correction:
        velocity = velocity + 0.5 * store.previous_acceleration * dt
    return velocity


def kinetic_energy(store: "ParticleStore", dt: float, half_step_correction: bool = True) -> float:
    velocity = estimate_velocities(store, dt, half_step_correction)
    return float(0.5 * np.sum(store.mass * np.einsum("ij,ij->i", velocity, velocity)))


def potential_energy(store: "ParticleStore", G: float) -> float:
    """Pairwise softened gravitational potential energy."""
    n = len(store)
    if n < 2:
        return 0.0

    i, j = np.triu_indices(n, k=1)
    delta = store.position[j] - store.position[i]
    dist_sq = np.einsum("ij,ij->i", delta, delta)
    d = np.sqrt(dist_sq)
    contact = store.radius[i] + store.radius[j]
    mm = store.mass[i] * store.mass[j]

    # Zero-distance pairs with zero contact radius contribute nothing
    outside = d >= contact
    with np.errstate(divide="ignore", invalid="ignore"):
        u_out = np.where(d > 0, -G * mm / d, 0.0)
        u_in = np.where(
            contact > 0,
            -G * mm * (3.0 * contact**2 - dist_sq) / (2.0 * contact**3),
            0.0,
        )
    return float(np.sum(np.where(outside, u_out, u_in)))


def mechanical_energy(
    store: "ParticleStore", G: float, dt: float, half_step_correction: bool = True
) -> EnergyReport:
    """Kinetic + softened potential energy."""
    return EnergyReport(
        kinetic=kinetic_energy(store, dt, half_step_correction),
        potential=potential_energy(store, G),
    )


def total_momentum(store: "ParticleStore", dt: float) -> np.ndarray:
    """Sum of m·v over all particles, shape (2,)."""
    velocity = estimate_velocities(store, dt)
    return (store.mass[:, None] * velocity).sum(axis=0)


def angular_momentum(store: "ParticleStore", dt: float, origin=(0.0, 0.0)) -> float:
    """z-component of Σ m (r × v) about `origin`."""
    r = store.position - np.asarray(origin, dtype=np.float64)
    velocity = estimate_velocities(store, dt)
    cross = r[:, 0] * velocity[:, 1] - r[:, 1] * velocity[:, 0]
    return float(np.sum(store.mass * cross))


def center_of_mass(store: "ParticleStore") -> np.ndarray:
    """Mass-weighted mean position, shape (2,). NaN for an empty store."""
    if len(store) == 0:
        return np.full(2, np.nan)
    return (store.mass[:, None] * store.position).sum(axis=0) / store.mass.sum()


def separation(store: "ParticleStore", id_a: int, id_b: int) -> float:
    """Distance between two particles."""
    a = store.position[store.index_of(id_a)]
    b = store.position[store.index_of(id_b)]
    return float(np.linalg.norm(a - b))
