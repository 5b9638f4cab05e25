"""Interface the active learning session expects from a trainable classifier."""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Sequence, Tuple
import numpy as np

from al_selector.patch import Patch


class ClassifierPort(ABC):
    """Trainable multi-class classifier consumed by the engine and the clusterer.

    ``classify`` must return ``k*(k-1)/2`` pairwise decision values in a fixed
    pair order, stable across calls for the same fitted state.
    """

    @abstractmethod
    def select_model(self, patches: Sequence[Patch]) -> None:
        """Choose hyperparameters from the initial labeled set."""

    @abstractmethod
    def train(self, patches: Sequence[Patch]) -> None:
        """Fit on the labeled set, replacing any previous fitted state."""

    @abstractmethod
    def classify(self, patch: Patch) -> Tuple[int, np.ndarray]:
        """Return ``(predicted_label, decision_values)``."""

    @abstractmethod
    def kernel_value(self, a: Patch, b: Patch) -> float:
        """Kernel evaluation in the space the classifier reasons in."""

    def kernel_matrix(self, patches: Sequence[Patch]) -> np.ndarray:
        n = len(patches)
        gram = np.empty((n, n), dtype=float)
        for i in range(n):
            for j in range(i, n):
                gram[i, j] = gram[j, i] = self.kernel_value(patches[i], patches[j])
        return gram


__all__ = ['ClassifierPort']
