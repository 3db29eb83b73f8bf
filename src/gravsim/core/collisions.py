"""
CollisionSolver: iterative relaxation of overlapping bodies.

Each substep is one full pass over all overlapping pairs. Pairs are handled
one at a time and each correction is visible to the next pair in the same
pass (Gauss–Seidel style). A single pass is not globally consistent when
many bodies touch at once, so several substeps are run per tick.

For an overlapping pair (i, j):

    delta   = pos_i - pos_j
    overlap = r_i + r_j - |delta|
    normal  = delta / |delta|          (unit-X if the centres coincide)
    pos_i  += normal * overlap * share_i
    pos_j  -= normal * overlap * share_j

With the default "equal" split both shares are 1/2, independent of mass.

The KD-tree broad-phase only narrows down which pairs are tested; it
corrects the same pairs in the same order as the all-pairs pass, so both
give identical positions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging
import math

import numpy as np
from scipy.spatial import cKDTree

from gravsim.core.settings import CollisionConfig

if TYPE_CHECKING:
    from gravsim.core.particles import ParticleStore
    from gravsim.core.settings import SimSettings

logger = logging.getLogger(__name__)

FALLBACK_NORMAL = (1.0, 0.0)


@dataclass
class CollisionSolver:
    """Detects and relaxes overlaps across configurable substeps."""

    config: CollisionConfig = field(default_factory=CollisionConfig)

    def resolve(self, store: "ParticleStore", settings: "SimSettings") -> int:
        """
        Run all substeps for this tick.

        Returns:
            Number of pair corrections applied (over all substeps)
        """
        if not settings.enable_collisions or len(store) < 2:
            return 0

        substeps = settings.effective_substeps()
        corrections = 0
        for _ in range(substeps):
            corrections += self.substep(store)

        logger.debug("collisions: %d corrections over %d substeps", corrections, substeps)
        return corrections

    def substep(self, store: "ParticleStore") -> int:
        """
        One relaxation pass over every pair, in (i, j) order.

        Pairs are visited against the live positions, so a pair pushed into
        contact earlier in the pass is corrected when its turn comes. The
        KD-tree candidate set is taken from the start-of-pass positions with
        `slack` extra reach per body. If any body ends up moving further than
        that, the candidate set may have missed a pair, and the pass is
        replayed over all pairs from the saved state.
        """
        n = len(store)
        if n < 2:
            return 0
        if self.config.broad_phase == "all_pairs":
            return self._relax(store, self._all_pairs(n))

        slack = self._slack(store)
        saved_position = store.position.copy()
        saved_old = store.old_position.copy()
        moved = np.zeros(n, dtype=np.float64)

        corrections = self._relax(store, self.candidate_pairs(store), moved)
        if moved.max() <= slack:
            return corrections

        logger.debug(
            "broad-phase slack %.3g exceeded (max move %.3g); replaying over all pairs",
            slack, moved.max(),
        )
        store.position[:] = saved_position
        store.old_position[:] = saved_old
        return self._relax(store, self._all_pairs(n))

    def _relax(
        self, store: "ParticleStore", pairs: np.ndarray, moved: np.ndarray | None = None
    ) -> int:
        """
        Correct every overlapping pair in `pairs`, in order.

        `moved` accumulates, per body, the length of every correction applied
        to it (an upper bound on its net displacement during the pass).
        """
        if len(pairs) == 0:
            return 0

        pos = store.position
        old = store.old_position
        mass = store.mass
        radius = store.radius
        restitution = self.config.restitution

        corrections = 0
        for i, j in pairs:
            dx = pos[i, 0] - pos[j, 0]
            dy = pos[i, 1] - pos[j, 1]
            distance = math.hypot(dx, dy)
            contact = radius[i] + radius[j]
            if distance >= contact:
                continue

            overlap = contact - distance
            if distance > 0.0:
                nx, ny = dx / distance, dy / distance
            else:
                nx, ny = FALLBACK_NORMAL

            share_i, share_j = self._shares(mass[i], mass[j])

            if restitution is None:
                # Positional correction only; moving pos without old_position
                # also pushes the pair apart in implicit velocity.
                pos[i, 0] += nx * overlap * share_i
                pos[i, 1] += ny * overlap * share_i
                pos[j, 0] -= nx * overlap * share_j
                pos[j, 1] -= ny * overlap * share_j
            else:
                self._correct_with_restitution(
                    pos, old, i, j, nx, ny, overlap, share_i, share_j, restitution
                )
            if moved is not None:
                moved[i] += overlap * share_i
                moved[j] += overlap * share_j
            corrections += 1

        return corrections

    @staticmethod
    def _slack(store: "ParticleStore") -> float:
        """Extra per-body reach of the KD-tree query beyond contact distance."""
        return float(store.radius.max())

    @staticmethod
    def _all_pairs(n: int) -> np.ndarray:
        i, j = np.triu_indices(n, k=1)
        return np.column_stack([i, j])

    def candidate_pairs(self, store: "ParticleStore") -> np.ndarray:
        """
        Pairs (i < j) that may overlap during a pass, sorted ascending.

        The KD-tree query reaches the largest contact distance plus `slack`
        for each body of the pair, so no pair that comes into contact is
        missed while no body moves further than the slack.
        """
        n = len(store)
        if n < 2:
            return np.zeros((0, 2), dtype=np.int64)

        if self.config.broad_phase == "all_pairs":
            return self._all_pairs(n)

        max_radius = float(store.radius.max())
        reach = 2.0 * max_radius + 2.0 * self._slack(store)
        if reach <= 0.0:
            return np.zeros((0, 2), dtype=np.int64)

        tree = cKDTree(store.position)
        pairs = tree.query_pairs(r=reach, output_type="ndarray")
        if len(pairs) == 0:
            return np.zeros((0, 2), dtype=np.int64)

        order = np.lexsort((pairs[:, 1], pairs[:, 0]))
        return pairs[order]

    def _shares(self, mass_i: float, mass_j: float) -> tuple[float, float]:
        """Fraction of the correction applied to each body."""
        if self.config.split == "mass_weighted":
            total = mass_i + mass_j
            # Inverse-mass share: the heavier body moves less
            return mass_j / total, mass_i / total
        return 0.5, 0.5

    @staticmethod
    def _correct_with_restitution(
        pos, old, i, j, nx, ny, overlap, share_i, share_j, restitution
    ):
        """
        Positional correction that keeps velocity, then a velocity bounce.

        Both pos and old_position are shifted so the correction itself adds
        no velocity. The approaching normal component of relative velocity
        is then reflected with the restitution factor and re-encoded into
        old_position.
        """
        vix, viy = pos[i, 0] - old[i, 0], pos[i, 1] - old[i, 1]
        vjx, vjy = pos[j, 0] - old[j, 0], pos[j, 1] - old[j, 1]

        pos[i, 0] += nx * overlap * share_i
        pos[i, 1] += ny * overlap * share_i
        pos[j, 0] -= nx * overlap * share_j
        pos[j, 1] -= ny * overlap * share_j

        # Normal points from j towards i; negative means approaching
        vn = (vix - vjx) * nx + (viy - vjy) * ny
        if vn < 0.0:
            dv = -(1.0 + restitution) * vn
            vix += dv * share_i * nx
            viy += dv * share_i * ny
            vjx -= dv * share_j * nx
            vjy -= dv * share_j * ny

        old[i, 0] = pos[i, 0] - vix
        old[i, 1] = pos[i, 1] - viy
        old[j, 0] = pos[j, 0] - vjx
        old[j, 1] = pos[j, 1] - vjy
