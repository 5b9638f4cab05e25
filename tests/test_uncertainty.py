import itertools

import numpy as np
import pytest

from al_selector.active_learning.uncertainty import (
    compute_confidence,
    confidence_from_decision_values,
    rank_least_confident,
    score_patches,
)
from al_selector.patch import Patch
from conftest import FakeClassifier, make_patches


@pytest.mark.parametrize("values", [[-0.8], [-0.8, 5.0, 9.0], [-0.8, -100.0]])
def test_binary_confidence_is_abs_of_first_value(values):
    assert confidence_from_decision_values(values, 2) == pytest.approx(0.8)


@pytest.mark.parametrize("perm", list(itertools.permutations([0.3, -1.0, 2.5])))
def test_multiclass_confidence_is_gap_between_two_largest(perm):
    assert confidence_from_decision_values(list(perm), 3) == pytest.approx(2.2)


def test_multiclass_confidence_needs_two_values():
    with pytest.raises(ValueError):
        confidence_from_decision_values([1.0], 3)
    with pytest.raises(ValueError):
        confidence_from_decision_values([], 2)


def test_confidence_is_idempotent():
    clf = FakeClassifier()
    patch = Patch(id=1, features=[0.1, 1.4, -0.3])
    assert compute_confidence(clf, patch, 3) == compute_confidence(clf, patch, 3)


def test_failed_patch_falls_back_to_pool_index():
    clf = FakeClassifier()
    patches = make_patches(5)
    patches[3].meta['fail'] = True
    scored = score_patches(clf, patches, 3)
    assert scored[3] == (3, 3.0)
    assert [i for i, _ in scored] == [0, 1, 2, 3, 4]


def test_threaded_scoring_matches_sequential():
    clf = FakeClassifier()
    patches = make_patches(64, rng=np.random.default_rng(7))
    patches[10].meta['fail'] = True
    assert score_patches(clf, patches, 3, workers=8) == score_patches(clf, patches, 3, workers=1)


def test_ranking_is_ascending_and_stable_on_ties():
    scored = [(0, 0.5), (1, 0.1), (2, 0.5), (3, 0.1), (4, 0.9)]
    assert rank_least_confident(scored, 4) == [(1, 0.1), (3, 0.1), (0, 0.5), (2, 0.5)]
