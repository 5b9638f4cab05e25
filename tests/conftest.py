import os
import sys

import numpy as np
import pytest

# Ensure the `src/` directory is on sys.path so we can import `al_selector` package
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from al_selector.model.port import ClassifierPort  # noqa: E402
from al_selector.patch import Patch  # noqa: E402


class FakeClassifier(ClassifierPort):
    """Deterministic port: decision values are read straight off the patch.

    ``patch.meta['dv']`` wins over the features; ``patch.meta['fail']`` makes
    classify raise. The kernel is an RBF on the raw features.
    """

    def __init__(self, gamma: float = 0.5):
        self.gamma = gamma
        self.select_calls = 0
        self.train_sizes = []

    def select_model(self, patches):
        self.select_calls += 1

    def train(self, patches):
        self.train_sizes.append(len(patches))

    def classify(self, patch):
        if patch.meta.get('fail'):
            raise RuntimeError(f"cannot score {patch.id}")
        dv = np.asarray(patch.meta.get('dv', patch.features), dtype=float)
        return int(np.argmax(dv)), dv

    def kernel_value(self, a, b):
        diff = a.features - b.features
        return float(np.exp(-self.gamma * diff.dot(diff)))


def make_patches(n, dim=3, start=0, label=None, rng=None, center=None, scale=1.0):
    rng = rng if rng is not None else np.random.default_rng(0)
    center = np.zeros(dim) if center is None else np.asarray(center, dtype=float)
    return [
        Patch(id=start + i, features=center + scale * rng.normal(size=dim), label=label)
        for i in range(n)
    ]


@pytest.fixture
def fake_classifier():
    return FakeClassifier()


@pytest.fixture
def seed_patches():
    """10 labeled patches spanning 3 classes."""
    rng = np.random.default_rng(1)
    out = []
    for label, count in enumerate((4, 3, 3)):
        out += make_patches(count, start=1000 + 100 * label, label=label, rng=rng, center=[4.0 * label, 0, 0])
    return out


@pytest.fixture
def unlabeled_patches():
    return make_patches(200, rng=np.random.default_rng(2), scale=3.0)
