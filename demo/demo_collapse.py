#!/usr/bin/env python3
"""
Demo: Gravitational Collapse With Collisions

A disk of particles at rest collapses under mutual gravity. Collisions
stop bodies from passing through each other, so the disk settles into a
packed clump:
1. Scatter particles over a disk
2. Run with collisions enabled
3. Draw the final state with the quadtree debug overlay
"""

import logging
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from gravsim.core import Simulation, SimSettings, CollisionConfig
from gravsim.spawners import RandomSpawnConfig, spawn_random_particles
from gravsim.analysis import center_of_mass, quadtree_summary
from gravsim.viz import plot_particles, plot_quadtree, save_figure
from gravsim.logging_config import setup_logging


def main():
    setup_logging(logging.INFO)
    rng = np.random.default_rng(42)

    print("=" * 60)
    print("  GRAVITATIONAL COLLAPSE")
    print("=" * 60)

    settings = SimSettings(
        paused=False,
        gravity_constant=500.0,
        enable_collisions=True,
        collision_substeps=4,
    )
    sim = Simulation(settings=settings, collision_config=CollisionConfig(split="equal"))

    spawn_config = RandomSpawnConfig(amount=200, outer_radius=150.0, radius=3.0, mass=1.0)
    spawn_random_particles(sim.store, spawn_config, rng=rng, dt=sim.dt)

    print(f"\n1. Setup:")
    print(f"   Particles: {sim.particle_count}, disk radius {spawn_config.outer_radius}")
    print(f"   Collision substeps: {settings.collision_substeps}")

    snapshots = {}
    n_ticks = 1200
    print(f"\n2. Running {n_ticks} ticks...")
    for t in range(n_ticks):
        sim.step()
        if (t + 1) % 400 == 0:
            spread = np.linalg.norm(sim.positions - center_of_mass(sim.store), axis=1).mean()
            print(f"   tick {t + 1:5d}: mean distance from COM {spread:7.2f}, "
                  f"corrections {sim.last_corrections}")
            snapshots[t + 1] = spread

    tree = sim.rebuild_quadtree()
    summary = quadtree_summary(tree)
    print("\n3. Quadtree:")
    print(f"   {summary['nodes']} nodes, {summary['leaves']} leaves, depth {summary['depth']}")

    print("\n4. Creating visualization...")
    fig, ax = plot_particles(sim.store, title=f"Collapse after {n_ticks} ticks")
    plot_quadtree(tree, ax=ax, show_points=False, title=f"Collapse after {n_ticks} ticks")

    output_dir = Path("output/demo_collapse")
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "collapse.png"
    save_figure(fig, output_path)
    plt.close()
    print(f"   Saved: {output_path}")

    print("\n" + "=" * 60)
    print("  SUMMARY")
    print("=" * 60)
    for tick, spread in snapshots.items():
        print(f"  • tick {tick}: mean spread {spread:.2f}")
    print("=" * 60)


if __name__ == "__main__":
    main()
