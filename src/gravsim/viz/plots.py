"""
Diagnostic plots of particle state.

- plot_particles: bodies drawn as circles of their collision radius
- plot_quadtree: node rectangles of a quadtree snapshot (debug overlay)
- plot_trajectories: recorded position history
- plot_energy: energy time series from a run

Plots read committed state only; nothing here touches the engine.
"""

from __future__ import annotations
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.collections import EllipseCollection, PatchCollection
from matplotlib.figure import Figure
from matplotlib.patches import Rectangle

if TYPE_CHECKING:
    from gravsim.core.particles import ParticleStore
    from gravsim.core.quadtree import QuadTree


def _figure_axes(ax: Axes | None, figsize: tuple[float, float]) -> tuple[Figure, Axes]:
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure
    return fig, ax


def plot_particles(
    store: "ParticleStore",
    title: str = "Particles",
    ax: Axes | None = None,
    figsize: tuple[float, float] = (8, 8),
    color: str = "white",
    background: str = "black",
    show_acceleration: bool = False,
) -> tuple[Figure, Axes]:
    """
    Draw every particle as a circle of its radius (in data units).

    Args:
        store: Particles to draw
        title: Plot title
        ax: Existing axes (creates new if None)
        color: Fill colour of the bodies
        background: Axes face colour
        show_acceleration: Draw previous_acceleration arrows

    Returns:
        (fig, ax) tuple
    """
    fig, ax = _figure_axes(ax, figsize)
    ax.set_facecolor(background)

    if len(store) > 0:
        diameters = 2.0 * store.radius
        circles = EllipseCollection(
            diameters, diameters, np.zeros(len(store)),
            units="xy",
            offsets=store.position,
            offset_transform=ax.transData,
            facecolors=color,
            edgecolors="none",
        )
        ax.add_collection(circles)

        if show_acceleration:
            ax.quiver(
                store.position[:, 0], store.position[:, 1],
                store.previous_acceleration[:, 0], store.previous_acceleration[:, 1],
                color="tab:red", angles="xy",
            )

        pad = float(store.radius.max()) + 1.0
        lo = store.position.min(axis=0) - pad
        hi = store.position.max(axis=0) + pad
        ax.set_xlim(lo[0], hi[0])
        ax.set_ylim(lo[1], hi[1])

    ax.set_aspect("equal")
    ax.set_title(title)
    ax.set_xlabel("x")
    ax.set_ylabel("y")

    return fig, ax


def plot_quadtree(
    tree: "QuadTree | None",
    title: str = "Quadtree",
    ax: Axes | None = None,
    figsize: tuple[float, float] = (8, 8),
    color: str = "tab:green",
    alpha: float = 0.6,
    linewidth: float = 0.5,
    show_points: bool = True,
) -> tuple[Figure, Axes]:
    """
    Outline every node of a quadtree snapshot.

    Drawing onto the axes returned by plot_particles gives the debug overlay.
    """
    fig, ax = _figure_axes(ax, figsize)
    if tree is None:
        ax.set_title(title)
        return fig, ax

    rects = [
        Rectangle((b.min_x, b.min_y), b.max_x - b.min_x, b.max_y - b.min_y)
        for b in tree.iter_bounds()
    ]
    ax.add_collection(
        PatchCollection(
            rects, facecolor="none", edgecolor=color, alpha=alpha, linewidth=linewidth
        )
    )

    if show_points:
        points = np.array(
            [pos for leaf in tree.leaves() for _, pos, _ in leaf.particles]
        ).reshape(-1, 2)
        ax.scatter(points[:, 0], points[:, 1], s=4, color=color, zorder=3)

    b = tree.bounds
    ax.set_xlim(b.min_x, b.max_x)
    ax.set_ylim(b.min_y, b.max_y)
    ax.set_aspect("equal")
    ax.set_title(title)
    ax.set_xlabel("x")
    ax.set_ylabel("y")

    return fig, ax


def plot_trajectories(
    history: np.ndarray,
    title: str = "Particle Trajectories",
    ax: Axes | None = None,
    figsize: tuple[float, float] = (8, 8),
    colors: Sequence[str] | None = None,
    show_start: bool = True,
) -> tuple[Figure, Axes]:
    """
    Plot recorded positions.

    Args:
        history: [n_ticks, n_particles, 2] array of positions
        colors: Optional colour per particle
        show_start: Mark starting positions
    """
    history = np.asarray(history, dtype=np.float64)
    if history.ndim != 3 or history.shape[2] != 2:
        raise ValueError(f"history must have shape (ticks, particles, 2), got {history.shape}")

    fig, ax = _figure_axes(ax, figsize)
    n_particles = history.shape[1]
    if colors is None:
        cmap = plt.get_cmap("tab10")
        colors = [cmap(k % 10) for k in range(n_particles)]

    for k in range(n_particles):
        ax.plot(history[:, k, 0], history[:, k, 1], color=colors[k], linewidth=1.0)
        if show_start:
            ax.scatter(
                [history[0, k, 0]], [history[0, k, 1]],
                color=colors[k], s=30, marker="o", zorder=3,
            )

    ax.set_aspect("equal")
    ax.set_title(title)
    ax.set_xlabel("x")
    ax.set_ylabel("y")

    return fig, ax


def plot_energy(
    times: np.ndarray,
    kinetic: np.ndarray,
    potential: np.ndarray,
    title: str = "Mechanical Energy",
    ax: Axes | None = None,
    figsize: tuple[float, float] = (10, 5),
) -> tuple[Figure, Axes]:
    """Kinetic, potential and total energy against time."""
    fig, ax = _figure_axes(ax, figsize)
    kinetic = np.asarray(kinetic)
    potential = np.asarray(potential)

    ax.plot(times, kinetic, label="kinetic", linewidth=1.0)
    ax.plot(times, potential, label="potential", linewidth=1.0)
    ax.plot(times, kinetic + potential, label="total", linewidth=2.0, color="black")

    ax.set_title(title)
    ax.set_xlabel("t [s]")
    ax.set_ylabel("E")
    ax.legend(loc="best")
    ax.grid(True, alpha=0.3)

    return fig, ax


def save_figure(fig: Figure, path: str | Path, dpi: int = 150, **kwargs) -> None:
    """Save figure to file."""
    fig.savefig(path, dpi=dpi, bbox_inches="tight", **kwargs)
