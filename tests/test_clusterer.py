import numpy as np
import pytest

from al_selector.active_learning.clusterer import KernelKmeansClusterer
from al_selector.errors import InvalidClusterConfigError
from al_selector.patch import Patch
from conftest import FakeClassifier, make_patches


def _run(patches, h, **kwargs):
    kkc = KernelKmeansClusterer(kwargs.pop('max_iterations', 10), h, FakeClassifier(), **kwargs)
    kkc.set_data(patches)
    kkc.clustering()
    return kkc


@pytest.mark.parametrize("h", [1, 2, 5, 19, 20])
@pytest.mark.parametrize("seeding", ["farthest", "random"])
def test_representatives_are_distinct_candidates(h, seeding):
    patches = make_patches(20, rng=np.random.default_rng(3))
    reps = _run(patches, h, seeding=seeding, random_state=0).get_representatives()
    assert len(reps) == h
    assert len(set(reps)) == h
    assert set(reps) <= {p.id for p in patches}


def test_one_representative_per_separated_blob():
    rng = np.random.default_rng(4)
    centers = [(0, 0, 0), (10, 0, 0), (0, 10, 0), (0, 0, 10)]
    patches = []
    for k, c in enumerate(centers):
        patches += make_patches(5, start=100 * k, rng=rng, center=c, scale=0.2)
    reps = _run(patches, 4).get_representatives()
    assert sorted(r // 100 for r in reps) == [0, 1, 2, 3]


def test_identical_candidates_still_yield_h_representatives():
    patches = [Patch(id=i, features=[1.0, 1.0]) for i in range(8)]
    kkc = _run(patches, 3)
    reps = kkc.get_representatives()
    assert len(reps) == 3
    assert len(set(reps)) == 3
    assert (np.bincount(kkc.assignments, minlength=3) > 0).all()


def test_iterations_are_bounded():
    patches = make_patches(30, rng=np.random.default_rng(5))
    kkc = _run(patches, 6, max_iterations=1)
    assert kkc.iterations_run == 1
    assert len(kkc.get_representatives()) == 6


def test_converges_on_easy_data():
    rng = np.random.default_rng(6)
    patches = make_patches(6, rng=rng, scale=0.1) + make_patches(6, start=50, rng=rng, center=(8, 8, 8), scale=0.1)
    kkc = _run(patches, 2, max_iterations=50)
    assert kkc.converged
    assert kkc.iterations_run < 50


def test_set_data_does_not_mutate_candidates():
    patches = make_patches(10)
    before = [(p.id, p.features.copy(), p.label, p.confidence) for p in patches]
    _run(patches, 3)
    after = [(p.id, p.features, p.label, p.confidence) for p in patches]
    for (i0, f0, l0, c0), (i1, f1, l1, c1) in zip(before, after):
        assert i0 == i1 and l0 == l1 and c0 == c1
        np.testing.assert_array_equal(f0, f1)


def test_more_clusters_than_candidates_fails():
    kkc = KernelKmeansClusterer(10, 6, FakeClassifier())
    kkc.set_data(make_patches(5))
    with pytest.raises(InvalidClusterConfigError):
        kkc.clustering()


@pytest.mark.parametrize("h, n, iters", [(1, 0, 10), (0, 5, 10), (2, 5, 0)])
def test_invalid_configuration_fails(h, n, iters):
    kkc = KernelKmeansClusterer(iters, h, FakeClassifier())
    kkc.set_data(make_patches(n))
    with pytest.raises(InvalidClusterConfigError):
        kkc.clustering()


def test_unknown_seeding_rejected():
    with pytest.raises(InvalidClusterConfigError):
        KernelKmeansClusterer(10, 2, FakeClassifier(), seeding="kmeans++")


def test_representatives_require_clustering():
    kkc = KernelKmeansClusterer(10, 2, FakeClassifier())
    kkc.set_data(make_patches(5))
    with pytest.raises(InvalidClusterConfigError):
        kkc.get_representatives()
