"""
gravsim: 2D Gravitational Particle Simulator

A small engine for point masses that attract each other under pairwise
gravity and bump into each other when they overlap.

Core concepts:
- Velocity is never stored: it is position - old_position (Verlet)
- Gravity is softened by contact radius so overlapping bodies stay finite
- Collisions are relaxed over several substeps per tick
- A quadtree is rebuilt from scratch whenever it is needed

See SPEC_FULL.md and DESIGN.md for full details.
"""

__version__ = "0.1.0"
