"""
QuadTree: point quadtree stored in a flat arena.

The tree is rebuilt wholesale from a snapshot of positions every time it is
needed. There is no incremental update, and node indices are only valid for
the build that produced them.

Layout:
- `nodes` is a flat tuple; node 0 is the root
- a node's `children` is the index of the FIRST of four consecutive
  children, ordered NW, NE, SW, SE (y grows upwards); None marks a leaf
- a leaf holds up to `capacity` entries (id, (x, y), mass)

    +----+----+
    | NW | NE |      children + 0, children + 1
    +----+----+
    | SW | SE |      children + 2, children + 3
    +----+----+

Containment is half-open (min inclusive, max exclusive), so exactly one
child claims any point on a split line.

Exactly coincident points can never be separated by splitting, so they are
kept together in one leaf (a bucket). Leaves at `max_depth` also become
buckets, which bounds the depth for tightly clustered points.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Sequence
import logging

import numpy as np

from gravsim.core.settings import QuadTreeConfig

if TYPE_CHECKING:
    from gravsim.core.particles import ParticleStore

logger = logging.getLogger(__name__)

NW, NE, SW, SE = 0, 1, 2, 3

Entry = tuple[int, tuple[float, float], float]  # (id, position, mass)


@dataclass(frozen=True)
class AABB:
    """Axis-aligned bounding box with half-open containment."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_points(cls, points: np.ndarray) -> AABB:
        """
        Smallest box containing every point under half-open containment.

        The max corner is nudged up by one ulp, otherwise the points on the
        max edge would fall outside. This also gives a non-empty box when all
        points share a coordinate.
        """
        points = np.asarray(points, dtype=np.float64)
        lo = points.min(axis=0)
        hi = np.nextafter(points.max(axis=0), np.inf)
        return cls(float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1]))

    @property
    def center(self) -> tuple[float, float]:
        return (self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0

    @property
    def size(self) -> tuple[float, float]:
        return self.max_x - self.min_x, self.max_y - self.min_y

    def contains(self, x: float, y: float) -> bool:
        """min <= p < max on both axes."""
        return self.min_x <= x < self.max_x and self.min_y <= y < self.max_y

    def intersects(self, other: AABB) -> bool:
        return (
            self.min_x < other.max_x
            and other.min_x < self.max_x
            and self.min_y < other.max_y
            and other.min_y < self.max_y
        )

    def quadrant_of(self, x: float, y: float) -> int:
        """Which child quadrant (NW, NE, SW, SE) claims a point."""
        mid_x, mid_y = self.center
        right = x >= mid_x
        top = y >= mid_y
        if top:
            return NE if right else NW
        return SE if right else SW

    def quadrants(self) -> tuple[AABB, AABB, AABB, AABB]:
        """Four equal children split at the midpoint, in NW, NE, SW, SE order."""
        mid_x, mid_y = self.center
        return (
            AABB(self.min_x, mid_y, mid_x, self.max_y),  # NW
            AABB(mid_x, mid_y, self.max_x, self.max_y),  # NE
            AABB(self.min_x, self.min_y, mid_x, mid_y),  # SW
            AABB(mid_x, self.min_y, self.max_x, mid_y),  # SE
        )


@dataclass(frozen=True)
class QuadNode:
    """One arena node. `children` is None for a leaf."""

    bounds: AABB
    depth: int
    children: int | None = None
    particles: tuple[Entry, ...] = ()

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    @property
    def is_bucket(self) -> bool:
        """Leaf holding more than one particle."""
        return self.is_leaf and len(self.particles) > 1


class QuadTree:
    """
    Immutable quadtree snapshot.

    Use QuadTree.build() or QuadTree.from_store(); both return None when
    there is nothing to index.
    """

    def __init__(
        self,
        nodes: Sequence[QuadNode],
        lookup: dict[int, int],
        subdivisions: int,
        config: QuadTreeConfig,
    ):
        self._nodes = tuple(nodes)
        self._lookup = dict(lookup)
        self.subdivisions = subdivisions
        self.config = config

    # ═══════════════════════════════════════════════════════════════
    # CONSTRUCTION
    # ═══════════════════════════════════════════════════════════════

    @classmethod
    def build(
        cls,
        positions,
        ids: Sequence[int] | None = None,
        masses: Sequence[float] | None = None,
        config: QuadTreeConfig | None = None,
    ) -> QuadTree | None:
        """
        Build a tree from a snapshot of positions.

        Args:
            positions: [n, 2] array-like of points
            ids: Particle ids (defaults to 0..n-1)
            masses: Particle masses (defaults to 1.0)
            config: Leaf capacity and depth bound

        Returns:
            The tree, or None if there are no points
        """
        positions = np.asarray(positions, dtype=np.float64)
        if positions.size == 0:
            return None
        positions = positions.reshape(-1, 2)
        n = positions.shape[0]

        if ids is None:
            ids = range(n)
        if masses is None:
            masses = np.ones(n)
        if len(ids) != n or len(masses) != n:
            raise ValueError("positions, ids and masses must have the same length")

        builder = _ArenaBuilder(AABB.from_points(positions), config or QuadTreeConfig())
        for pid, (x, y), m in zip(ids, positions, masses):
            builder.insert((int(pid), (float(x), float(y)), float(m)))

        tree = builder.finish()
        logger.debug(
            "quadtree built: %d points, %d nodes, depth %d",
            n, len(tree), tree.depth,
        )
        return tree

    @classmethod
    def from_store(
        cls, store: "ParticleStore", config: QuadTreeConfig | None = None
    ) -> QuadTree | None:
        """Build from the current positions of a ParticleStore."""
        return cls.build(store.position, store.ids, store.mass, config)

    # ═══════════════════════════════════════════════════════════════
    # ACCESS
    # ═══════════════════════════════════════════════════════════════

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> tuple[QuadNode, ...]:
        return self._nodes

    @property
    def root(self) -> QuadNode:
        return self._nodes[0]

    @property
    def bounds(self) -> AABB:
        return self.root.bounds

    @property
    def depth(self) -> int:
        """Deepest node depth (the root is depth 0)."""
        return max(node.depth for node in self._nodes)

    @property
    def particle_count(self) -> int:
        return len(self._lookup)

    def node(self, index: int) -> QuadNode:
        """Node at an arena index. Out-of-range indices are a broken invariant."""
        if not 0 <= index < len(self._nodes):
            raise IndexError(
                f"quadtree node index {index} out of range (arena has {len(self._nodes)} nodes)"
            )
        return self._nodes[index]

    def children_of(self, index: int) -> tuple[QuadNode, QuadNode, QuadNode, QuadNode] | None:
        """The four children (NW, NE, SW, SE) of a node, or None for a leaf."""
        start = self.node(index).children
        if start is None:
            return None
        return tuple(self.node(start + k) for k in range(4))

    def leaf_index_for(self, particle_id: int) -> int:
        """Arena index of the leaf holding a particle."""
        try:
            return self._lookup[particle_id]
        except KeyError:
            raise KeyError(f"particle {particle_id} is not in this quadtree") from None

    def leaf_for(self, particle_id: int) -> QuadNode:
        return self.node(self.leaf_index_for(particle_id))

    def leaves(self) -> Iterator[QuadNode]:
        """All leaves, empty ones included."""
        return (node for node in self._nodes if node.is_leaf)

    def iter_bounds(self) -> Iterator[AABB]:
        """Bounds of every node, for drawing a debug overlay."""
        return (node.bounds for node in self._nodes)

    def query_range(self, area: AABB) -> list[int]:
        """Ids of particles whose positions lie inside `area` (half-open)."""
        found = []
        stack = [0]
        while stack:
            node = self.node(stack.pop())
            if not node.bounds.intersects(area):
                continue
            if node.is_leaf:
                found.extend(pid for pid, (x, y), _ in node.particles if area.contains(x, y))
            else:
                stack.extend(range(node.children, node.children + 4))
        return sorted(found)

    def validate(self):
        """
        Walk the arena and check its structural invariants.

        Raises IndexError for dangling child indices and ValueError when a
        leaf holds a point outside its bounds.
        """
        for index, node in enumerate(self._nodes):
            if node.children is not None:
                if node.particles:
                    raise ValueError(f"internal node {index} holds particles")
                self.children_of(index)
            for pid, (x, y), _ in node.particles:
                if not node.bounds.contains(x, y):
                    raise ValueError(f"particle {pid} lies outside leaf {index}")
                if self._lookup.get(pid) != index:
                    raise ValueError(f"lookup for particle {pid} does not point at leaf {index}")


class _ArenaBuilder:
    """Mutable arena used while inserting; frozen into a QuadTree at the end."""

    def __init__(self, root_bounds: AABB, config: QuadTreeConfig):
        self.config = config
        self.bounds: list[AABB] = [root_bounds]
        self.depths: list[int] = [0]
        self.children: list[int | None] = [None]
        self.payloads: list[list[Entry]] = [[]]
        self.lookup: dict[int, int] = {}
        self.subdivisions = 0

    def insert(self, entry: Entry):
        """Descend from the root, subdividing full leaves on the way."""
        pid, (x, y), _ = entry
        if not self.bounds[0].contains(x, y):
            raise ValueError(f"point ({x}, {y}) lies outside the root bounds")

        index = 0
        while True:
            start = self.children[index]
            if start is not None:
                index = start + self.bounds[index].quadrant_of(x, y)
                continue

            payload = self.payloads[index]
            if len(payload) < self.config.capacity or self._must_bucket(index, x, y):
                payload.append(entry)
                self.lookup[pid] = index
                return

            self._subdivide(index)

    def _must_bucket(self, index: int, x: float, y: float) -> bool:
        """A full leaf that splitting cannot help."""
        if self.depths[index] >= self.config.max_depth:
            return True
        return all(px == x and py == y for _, (px, py), _ in self.payloads[index])

    def _subdivide(self, index: int):
        """Append four children and move the leaf's entries into them."""
        start = len(self.bounds)
        depth = self.depths[index] + 1
        for quad in self.bounds[index].quadrants():
            self.bounds.append(quad)
            self.depths.append(depth)
            self.children.append(None)
            self.payloads.append([])

        moved = self.payloads[index]
        self.payloads[index] = []
        self.children[index] = start
        self.subdivisions += 1

        for entry in moved:
            pid, (x, y), _ = entry
            child = start + self.bounds[index].quadrant_of(x, y)
            self.payloads[child].append(entry)
            self.lookup[pid] = child

    def finish(self) -> QuadTree:
        nodes = [
            QuadNode(bounds=b, depth=d, children=c, particles=tuple(p))
            for b, d, c, p in zip(self.bounds, self.depths, self.children, self.payloads)
        ]
        return QuadTree(nodes, self.lookup, self.subdivisions, self.config)
