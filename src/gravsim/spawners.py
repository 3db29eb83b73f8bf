"""
Spawners: helpers that put particles into a store.

Spawning is an external concern (the GUI does it in an interactive session),
but scripted scenarios, demos and tests need the same setups repeatedly.

- spawn_random_particles: bodies scattered over a disk or annulus
- spawn_two_body: two equal masses on opposite sides of a centre

Velocities here are in distance per `dt`. Pass the simulation's tick length
as `dt` to give velocities in distance per second.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import numpy as np

if TYPE_CHECKING:
    from gravsim.core.particles import ParticleStore


@dataclass
class RandomSpawnConfig:
    """Configuration for a random disk/annulus of particles."""

    amount: int = 100
    outer_radius: float = 100.0  # Particles are placed at distance < outer_radius
    inner_radius: float = 0.0  # ... and >= inner_radius from the centre
    radius: float = 1.0  # Body radius
    mass: float = 1.0
    velocity_range: float = 0.0  # Max speed; direction is uniform random
    position: tuple[float, float] = (0.0, 0.0)  # Centre of the disk


def spawn_random_particles(
    store: "ParticleStore",
    config: RandomSpawnConfig | None = None,
    rng: np.random.Generator | None = None,
    dt: float = 1.0,
) -> np.ndarray:
    """
    Scatter particles uniformly in angle and distance around a centre.

    Distance is drawn uniformly (not uniformly by area), so the disk is
    denser near the middle.

    Args:
        store: Store to spawn into
        config: Placement parameters
        rng: Random generator (a fresh default_rng if None)
        dt: Time unit of `velocity_range`

    Returns:
        Ids of the new particles
    """
    if config is None:
        config = RandomSpawnConfig()
    if rng is None:
        rng = np.random.default_rng()
    if config.inner_radius > config.outer_radius:
        raise ValueError("inner_radius must not exceed outer_radius")

    n = config.amount
    angle = rng.uniform(0.0, 2.0 * np.pi, size=n)
    distance = rng.uniform(config.inner_radius, config.outer_radius, size=n)
    positions = np.asarray(config.position, dtype=np.float64) + np.column_stack(
        [np.cos(angle), np.sin(angle)]
    ) * distance[:, None]

    velocities = np.zeros((n, 2), dtype=np.float64)
    if config.velocity_range != 0.0:
        velo_angle = rng.uniform(0.0, 2.0 * np.pi, size=n)
        speed = rng.uniform(0.0, config.velocity_range, size=n)
        velocities = np.column_stack([np.cos(velo_angle), np.sin(velo_angle)]) * speed[:, None]

    return store.spawn_many(positions, velocities, config.mass, config.radius, dt=dt)


def spawn_two_body(
    store: "ParticleStore",
    mass: float = 1000.0,
    separation: float = 100.0,
    speed: float = 1.0,
    radius: float = 10.0,
    center: Sequence[float] = (0.0, 0.0),
    dt: float = 1.0,
) -> tuple[int, int]:
    """
    Two equal masses on the x axis, moving in opposite y directions.

    The left body moves in -y and the right body in +y, so with enough
    speed the pair orbits anticlockwise around `center`.

    Returns:
        (left_id, right_id)
    """
    cx, cy = center
    half = separation / 2.0
    left = store.spawn((cx - half, cy), (0.0, -speed), mass, radius, dt=dt)
    right = store.spawn((cx + half, cy), (0.0, speed), mass, radius, dt=dt)
    return left, right
