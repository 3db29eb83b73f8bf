"""
Core engine primitives.

This layer knows how to move particles and nothing about drawing them:
- ParticleStore: positions, old positions (implicit velocity), masses, radii
- GravitySolver: pairwise O(n²) accelerations, softened by contact radius
- Integrator: Störmer–Verlet position update
- CollisionSolver: substepped relaxation of overlaps
- QuadTree: arena point-quadtree, rebuilt from a snapshot on demand
- SimulationClock / Simulation: fixed-rate tick driver and the pipeline

Settings are passed explicitly into every solver; there is no global state.
"""

from gravsim.core.settings import (
    SimSettings,
    SimState,
    CollisionConfig,
    QuadTreeConfig,
    ClockConfig,
)
from gravsim.core.particles import Particle, ParticleStore
from gravsim.core.integrator import Integrator, verlet_integrate
from gravsim.core.gravity import GravitySolver, pair_acceleration
from gravsim.core.collisions import CollisionSolver
from gravsim.core.quadtree import AABB, QuadNode, QuadTree
from gravsim.core.clock import SimulationClock
from gravsim.core.simulation import Simulation

__all__ = [
    "SimSettings",
    "SimState",
    "CollisionConfig",
    "QuadTreeConfig",
    "ClockConfig",
    "Particle",
    "ParticleStore",
    "Integrator",
    "verlet_integrate",
    "GravitySolver",
    "pair_acceleration",
    "CollisionSolver",
    "AABB",
    "QuadNode",
    "QuadTree",
    "SimulationClock",
    "Simulation",
]
