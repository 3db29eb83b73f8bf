"""
Pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Reproducible random number generator."""
    return np.random.default_rng(seed=42)


@pytest.fixture
def store():
    """Empty particle store."""
    from gravsim.core import ParticleStore
    return ParticleStore()


@pytest.fixture
def running_settings():
    """Unpaused settings with unit gravity and collisions off."""
    from gravsim.core import SimSettings
    return SimSettings(
        paused=False,
        gravity_constant=1.0,
        enable_collisions=False,
        collision_substeps=1,
    )


@pytest.fixture
def two_body_sim():
    """Running simulation with the standard equal-mass pair (G=500, 120 Hz)."""
    from gravsim.core import Simulation, SimSettings
    from gravsim.spawners import spawn_two_body

    sim = Simulation(
        settings=SimSettings(paused=False, gravity_constant=500.0, enable_collisions=False)
    )
    ids = spawn_two_body(
        sim.store, mass=1000.0, separation=100.0, speed=1.0, radius=25.0, dt=sim.dt
    )
    return sim, ids
