"""
Analysis layer: derived quantities for diagnostics and regression checks.

IMPORTANT: This is NOT seen by the engine. One-way derivation only.

- mechanical_energy: kinetic + softened potential energy
- total_momentum / angular_momentum: conservation checks
- quadtree_summary: node, leaf and bucket counts of a spatial index
"""

from gravsim.analysis.energy import (
    EnergyReport,
    estimate_velocities,
    kinetic_energy,
    potential_energy,
    mechanical_energy,
    total_momentum,
    angular_momentum,
    center_of_mass,
    separation,
)
from gravsim.analysis.spatial import quadtree_summary

__all__ = [
    "EnergyReport",
    "estimate_velocities",
    "kinetic_energy",
    "potential_energy",
    "mechanical_energy",
    "total_momentum",
    "angular_momentum",
    "center_of_mass",
    "separation",
    "quadtree_summary",
]
