import numpy as np

from al_selector.patch import Patch, PatchPool, sort_by_distance


def _p(pid, label=None):
    return Patch(id=pid, features=[float(pid), 0.0], label=label)


def test_features_are_flat_float_arrays():
    p = Patch(id="a", features=[[1, 2], [3, 4]])
    assert p.features.dtype == float
    assert p.features.shape == (4,)
    assert not p.is_labeled


def test_pool_preserves_insertion_order_and_membership():
    pool = PatchPool([_p(3), _p(1), _p(2)])
    assert [p.id for p in pool] == [3, 1, 2]
    assert 1 in pool and 7 not in pool
    assert len(pool) == 3


def test_pop_entry_by_key():
    pool = PatchPool()
    k1 = pool.add(_p(1))
    k2 = pool.add(_p(2))
    assert pool.pop_entry(k2).id == 2
    assert [k for k, _ in pool.entries()] == [k1]


def test_duplicate_ids_are_separate_entries():
    first, second = _p(5), _p(5)
    pool = PatchPool()
    k1, k2 = pool.add(first), pool.add(second)
    assert len(pool) == 2
    assert pool.pop_entry(k1) is first
    assert 5 in pool
    assert pool.patches() == [second]
    assert pool.pop_entry(k2) is second
    assert 5 not in pool


def test_labels_are_distinct_values():
    pool = PatchPool([_p(1, 0), _p(2, 1), _p(3, 1)])
    assert pool.labels() == {0, 1}
    assert PatchPool().labels() == set()


def test_sort_by_distance_puts_unclassified_last():
    a, b, c = _p(1), _p(2), _p(3)
    a.distance, c.distance = 0.7, -1.2
    ordered = sort_by_distance([a, b, c])
    assert [p.id for p in ordered] == [3, 1, 2]
    assert [p.id for p in sort_by_distance(iter([a, b, c]), reverse=True)] == [1, 3, 2]


def test_to_dict_exposes_display_fields():
    p = Patch(id="x", features=np.ones(2), label=1, confidence=0.25, distance=-0.5)
    assert p.to_dict() == {'id': 'x', 'label': 1, 'confidence': 0.25, 'distance': -0.5}
