"""Summary statistics of a quadtree snapshot."""

from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gravsim.core.quadtree import QuadTree


def quadtree_summary(tree: "QuadTree | None") -> dict:
    """
    Node, leaf and bucket counts for a tree.

    An empty simulation has no tree; all counts are then zero.
    """
    if tree is None:
        return {
            "nodes": 0,
            "subdivisions": 0,
            "leaves": 0,
            "empty_leaves": 0,
            "buckets": 0,
            "depth": 0,
            "particles": 0,
        }

    leaves = list(tree.leaves())
    return {
        "nodes": len(tree),
        "subdivisions": tree.subdivisions,
        "leaves": len(leaves),
        "empty_leaves": sum(1 for leaf in leaves if not leaf.particles),
        "buckets": sum(1 for leaf in leaves if leaf.is_bucket),
        "depth": tree.depth,
        "particles": tree.particle_count,
    }
