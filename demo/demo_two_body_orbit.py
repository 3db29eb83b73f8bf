#!/usr/bin/env python3
"""
Demo: Two-Body Orbit

Two equal masses start on opposite sides of the origin with small opposite
velocities and fall into an elongated orbit around their common centre:
1. Spawn the pair (G=500, 120 Hz)
2. Run 1000 ticks, recording positions and energy
3. Plot trajectories and the energy time series

The softened potential keeps the close passage finite; the Verlet scheme
keeps total energy within a fraction of a percent away from contact.
"""

import logging
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from gravsim.core import Simulation, SimSettings
from gravsim.spawners import spawn_two_body
from gravsim.analysis import mechanical_energy, angular_momentum, separation
from gravsim.viz import plot_trajectories, plot_energy, save_figure
from gravsim.logging_config import setup_logging


def main():
    setup_logging(logging.INFO)

    print("=" * 60)
    print("  TWO-BODY ORBIT")
    print("=" * 60)

    mass = 1000.0
    radius = 25.0
    n_ticks = 1000

    sim = Simulation(settings=SimSettings(paused=False, gravity_constant=500.0))
    left, right = spawn_two_body(
        sim.store, mass=mass, separation=100.0, speed=1.0, radius=radius, dt=sim.dt
    )
    G = sim.settings.gravity_constant

    print(f"\n1. Setup:")
    print(f"   G = {G}, dt = {sim.dt:.5f} s")
    print(f"   Masses: {mass} each, radius {radius}")
    print(f"   Separation: {separation(sim.store, left, right):.1f}")

    print(f"\n2. Running {n_ticks} ticks...")
    history = np.zeros((n_ticks, 2, 2))
    kinetic = np.zeros(n_ticks)
    potential = np.zeros(n_ticks)
    distance = np.zeros(n_ticks)
    for t in range(n_ticks):
        sim.step()
        history[t] = sim.positions
        report = mechanical_energy(sim.store, G, sim.dt)
        kinetic[t] = report.kinetic
        potential[t] = report.potential
        distance[t] = separation(sim.store, left, right)

    total = kinetic + potential
    drift = np.abs(total - total[0]) / np.abs(total[0])
    print(f"   Separation range: {distance.min():.2f} .. {distance.max():.2f}")
    print(f"   Max energy drift: {drift.max():.2e}")
    print(f"   Angular momentum: {angular_momentum(sim.store, sim.dt):.2f}")

    print("\n3. Creating visualization...")
    fig, axes = plt.subplots(1, 2, figsize=(14, 6))
    plot_trajectories(history, title="Trajectories", ax=axes[0])
    times = np.arange(1, n_ticks + 1) * sim.dt
    plot_energy(times, kinetic, potential, title="Energy", ax=axes[1])
    fig.suptitle(f"Two-Body Orbit (G={G}, m={mass})", fontsize=14, fontweight="bold")
    fig.tight_layout()

    output_dir = Path("output/demo_two_body_orbit")
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "two_body_orbit.png"
    save_figure(fig, output_path)
    plt.close()
    print(f"   Saved: {output_path}")

    print("\n" + "=" * 60)
    print("  SUMMARY")
    print("=" * 60)
    print(f"  • Closest approach: {distance.min():.2f} (contact at {2 * radius:.0f})")
    print(f"  • Energy drift stays at {drift.max():.2e} of the total")
    print("=" * 60)


if __name__ == "__main__":
    main()
