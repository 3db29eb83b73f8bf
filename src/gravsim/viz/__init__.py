"""
Visualization utilities.

- Particle scatter with collision radii
- Quadtree debug overlay
- Trajectory and energy plots
"""

from gravsim.viz.plots import (
    plot_particles,
    plot_quadtree,
    plot_trajectories,
    plot_energy,
    save_figure,
)

__all__ = [
    "plot_particles",
    "plot_quadtree",
    "plot_trajectories",
    "plot_energy",
    "save_figure",
]
