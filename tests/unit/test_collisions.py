"""Unit tests for CollisionSolver."""

import numpy as np
import pytest

from gravsim.core.collisions import CollisionSolver
from gravsim.core.settings import CollisionConfig, SimSettings


def collision_settings(substeps=1):
    return SimSettings(paused=False, enable_collisions=True, collision_substeps=substeps)


def max_overlap(store):
    worst = 0.0
    n = len(store)
    for i in range(n):
        for j in range(i + 1, n):
            d = np.linalg.norm(store.position[i] - store.position[j])
            worst = max(worst, store.radius[i] + store.radius[j] - d)
    return worst


class TestDisabled:
    """Collisions only run when enabled."""

    def test_disabled_is_noop(self, store):
        store.spawn((0.0, 0.0), radius=1.0)
        store.spawn((0.5, 0.0), radius=1.0)
        before = store.position.copy()
        corrections = CollisionSolver().resolve(store, SimSettings(enable_collisions=False))
        assert corrections == 0
        assert np.array_equal(store.position, before)

    def test_separated_pair_untouched(self, store):
        store.spawn((0.0, 0.0), radius=1.0)
        store.spawn((3.0, 0.0), radius=1.0)
        assert CollisionSolver().resolve(store, collision_settings()) == 0
        assert np.allclose(store.position, [[0.0, 0.0], [3.0, 0.0]])


class TestPositionalCorrection:
    """Overlap is removed along the contact normal."""

    def test_equal_split(self, store):
        store.spawn((0.0, 0.0), radius=1.0, mass=1.0)
        store.spawn((1.5, 0.0), radius=1.0, mass=100.0)
        corrections = CollisionSolver().resolve(store, collision_settings())

        assert corrections == 1
        # overlap 0.5, each body moves 0.25 regardless of mass
        assert np.allclose(store.position, [[-0.25, 0.0], [1.75, 0.0]])

    def test_mass_weighted_split(self, store):
        store.spawn((0.0, 0.0), radius=1.0, mass=1.0)
        store.spawn((1.6, 0.0), radius=1.0, mass=3.0)
        solver = CollisionSolver(CollisionConfig(split="mass_weighted"))
        solver.resolve(store, collision_settings())

        # overlap 0.4: the light body takes 3/4, the heavy one 1/4
        assert np.allclose(store.position, [[-0.3, 0.0], [1.7, 0.0]])

    def test_separation_is_monotonic(self, store, rng):
        solver = CollisionSolver()
        for _ in range(25):
            store.clear()
            angle = rng.uniform(0, 2 * np.pi)
            gap = rng.uniform(0.01, 1.9)
            store.spawn((0.0, 0.0), radius=1.0, mass=rng.uniform(1, 5))
            store.spawn((gap * np.cos(angle), gap * np.sin(angle)), radius=1.0)

            before = np.linalg.norm(store.position[0] - store.position[1])
            solver.substep(store)
            after = np.linalg.norm(store.position[0] - store.position[1])

            assert after >= before
            assert np.isclose(after, 2.0)

    def test_coincident_centres_use_fallback_normal(self, store):
        store.spawn((0.0, 0.0), radius=1.0)
        store.spawn((0.0, 0.0), radius=1.0)
        CollisionSolver().resolve(store, collision_settings())

        assert np.all(np.isfinite(store.position))
        assert np.allclose(store.position, [[1.0, 0.0], [-1.0, 0.0]])

    def test_positional_correction_adds_implicit_velocity(self, store):
        store.spawn((0.0, 0.0), radius=1.0)
        store.spawn((1.5, 0.0), radius=1.0)
        CollisionSolver().resolve(store, collision_settings())
        # old_position is untouched, so the pair now drifts apart
        velocity = store.velocities()
        assert velocity[0, 0] < 0.0
        assert velocity[1, 0] > 0.0


class TestSubsteps:
    """Several passes converge on a consistent configuration."""

    def make_chain(self, store):
        store.spawn_many([[0.0, 0.0], [1.5, 0.0], [3.0, 0.0]], radii=1.0)

    def test_more_substeps_reduce_overlap(self, store):
        self.make_chain(store)
        CollisionSolver().resolve(store, collision_settings(substeps=1))
        one_pass = max_overlap(store)

        store.clear()
        self.make_chain(store)
        CollisionSolver().resolve(store, collision_settings(substeps=10))
        ten_passes = max_overlap(store)

        assert one_pass > 0.1
        assert ten_passes < 1e-3
        assert ten_passes < one_pass

    def test_zero_substeps_clamped_to_one(self, store):
        store.spawn((0.0, 0.0), radius=1.0)
        store.spawn((1.0, 0.0), radius=1.0)
        corrections = CollisionSolver().resolve(store, collision_settings(substeps=0))
        assert corrections == 1
        assert np.isclose(np.linalg.norm(store.position[0] - store.position[1]), 2.0)


class TestRestitution:
    """Optional velocity resolution along the normal."""

    def approaching_pair(self, store):
        store.spawn((0.0, 0.0), velocity=(1.0, 0.0), radius=1.0)
        store.spawn((1.5, 0.0), velocity=(-1.0, 0.0), radius=1.0)

    def test_elastic_swaps_normal_velocity(self, store):
        self.approaching_pair(store)
        solver = CollisionSolver(CollisionConfig(restitution=1.0))
        solver.resolve(store, collision_settings())

        assert np.allclose(store.velocities(), [[-1.0, 0.0], [1.0, 0.0]])
        assert np.isclose(np.linalg.norm(store.position[0] - store.position[1]), 2.0)

    def test_inelastic_stops_normal_velocity(self, store):
        self.approaching_pair(store)
        solver = CollisionSolver(CollisionConfig(restitution=0.0))
        solver.resolve(store, collision_settings())
        assert np.allclose(store.velocities(), 0.0)

    def test_separating_pair_keeps_velocity(self, store):
        store.spawn((0.0, 0.0), velocity=(-1.0, 0.5), radius=1.0)
        store.spawn((1.5, 0.0), velocity=(1.0, 0.0), radius=1.0)
        solver = CollisionSolver(CollisionConfig(restitution=0.5))
        solver.resolve(store, collision_settings())
        assert np.allclose(store.velocities(), [[-1.0, 0.5], [1.0, 0.0]])

    def test_tangential_velocity_untouched(self, store):
        store.spawn((0.0, 0.0), velocity=(1.0, 2.0), radius=1.0)
        store.spawn((1.5, 0.0), velocity=(-1.0, 0.0), radius=1.0)
        solver = CollisionSolver(CollisionConfig(restitution=1.0))
        solver.resolve(store, collision_settings())
        assert np.allclose(store.velocities(), [[-1.0, 2.0], [1.0, 0.0]])


class TestBroadPhase:
    """Candidate pair generation."""

    def test_kdtree_pairs_cover_all_overlaps(self, store, rng):
        store.spawn_many(rng.uniform(0, 10, size=(40, 2)), radii=rng.uniform(0.2, 1.0, size=40))
        pairs = {tuple(p) for p in CollisionSolver().candidate_pairs(store)}

        for i in range(len(store)):
            for j in range(i + 1, len(store)):
                d = np.linalg.norm(store.position[i] - store.position[j])
                if d < store.radius[i] + store.radius[j]:
                    assert (i, j) in pairs

    def test_pairs_sorted(self, store, rng):
        store.spawn_many(rng.uniform(0, 5, size=(30, 2)), radii=1.0)
        pairs = CollisionSolver().candidate_pairs(store)
        assert np.all(pairs[:, 0] < pairs[:, 1])
        keys = pairs[:, 0] * len(store) + pairs[:, 1]
        assert np.all(np.diff(keys) > 0)

    def test_all_pairs(self, store):
        store.spawn_many([[0, 0], [100, 0], [200, 0]], radii=1.0)
        solver = CollisionSolver(CollisionConfig(broad_phase="all_pairs"))
        assert solver.candidate_pairs(store).tolist() == [[0, 1], [0, 2], [1, 2]]

    def test_zero_radius_has_no_candidates(self, store):
        store.spawn_many([[0, 0], [0, 0]], radii=0.0)
        assert len(CollisionSolver().candidate_pairs(store)) == 0

    @pytest.mark.parametrize("broad_phase", ["kdtree", "all_pairs"])
    def test_cluster_relaxes(self, store, rng, broad_phase):
        store.spawn_many(rng.uniform(0, 3, size=(10, 2)), radii=1.0)
        solver = CollisionSolver(CollisionConfig(broad_phase=broad_phase))
        before = max_overlap(store)
        solver.resolve(store, collision_settings(substeps=50))
        assert np.all(np.isfinite(store.position))
        assert max_overlap(store) < before


class TestBroadPhaseAgreement:
    """The KD-tree pass must give exactly the all-pairs result."""

    def relax_both(self, positions, radii, substeps, restitution=None):
        from gravsim.core.particles import ParticleStore

        results = []
        for broad_phase in ("kdtree", "all_pairs"):
            store = ParticleStore()
            store.spawn_many(positions, radii=radii)
            solver = CollisionSolver(CollisionConfig(broad_phase=broad_phase, restitution=restitution))
            solver.resolve(store, collision_settings(substeps=substeps))
            results.append(store)
        return results

    def test_dense_cluster(self, rng):
        positions = rng.uniform(0, 10, size=(30, 2))
        radii = rng.uniform(0.5, 1.5, size=30)
        kd, brute = self.relax_both(positions, radii, substeps=3)
        assert np.allclose(kd.position, brute.position, rtol=0.0, atol=1e-12)

    def test_pile_of_near_coincident_bodies(self):
        # Chained pushes move bodies far beyond the query slack
        positions = np.zeros((12, 2))
        positions[:, 0] = np.linspace(0.0, 1e-3, 12)
        kd, brute = self.relax_both(positions, 1.0, substeps=4)
        assert np.allclose(kd.position, brute.position, rtol=0.0, atol=1e-12)

    def test_with_restitution(self, rng):
        positions = rng.uniform(0, 6, size=(20, 2))
        kd, brute = self.relax_both(positions, 1.0, substeps=2, restitution=0.5)
        assert np.allclose(kd.position, brute.position, rtol=0.0, atol=1e-12)
        assert np.allclose(kd.old_position, brute.old_position, rtol=0.0, atol=1e-12)

    def test_reach_includes_slack(self, store):
        # Not touching at the start of the pass, but close enough to be
        # pushed into contact by a neighbour
        store.spawn_many([[0.0, 0.0], [3.5, 0.0]], radii=1.0)
        pairs = CollisionSolver().candidate_pairs(store)
        assert pairs.tolist() == [[0, 1]]
