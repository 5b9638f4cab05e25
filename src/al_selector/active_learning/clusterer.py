"""Kernel k-means used to thin an uncertain candidate set down to diverse representatives.

Distances are measured in the classifier's kernel-induced space. Centroids are
never materialised; the squared distance of sample i to the centroid of
cluster c is computed from the Gram matrix K as

    K_ii - 2/|c| * sum_{j in c} K_ij + 1/|c|^2 * sum_{j,l in c} K_jl
"""
from __future__ import annotations
from typing import Any, List, Optional, Sequence
import logging
import numpy as np

from al_selector import config
from al_selector.errors import InvalidClusterConfigError
from al_selector.model.port import ClassifierPort
from al_selector.patch import Patch

logger = logging.getLogger(__name__)

SEEDING_STRATEGIES = ('farthest', 'random')


class KernelKmeansClusterer:
    def __init__(self, max_iterations: int, num_clusters: int, classifier: ClassifierPort,
                 seeding: Optional[str] = None, random_state: Optional[int] = None):
        self.max_iterations = max_iterations
        self.num_clusters = num_clusters
        self.classifier = classifier
        self.seeding = seeding or config.KMEANS_SEEDING
        if self.seeding not in SEEDING_STRATEGIES:
            raise InvalidClusterConfigError(f"Unknown seeding strategy: {self.seeding}")
        self.random_state = random_state
        self._patches: List[Patch] = []
        self._assignments: Optional[np.ndarray] = None
        self._distances: Optional[np.ndarray] = None
        self.iterations_run = 0
        self.converged = False

    def set_data(self, patches: Sequence[Patch]) -> None:
        self._patches = list(patches)
        self._assignments = None
        self._distances = None
        self.iterations_run = 0
        self.converged = False

    def _validate(self) -> None:
        m, h = len(self._patches), self.num_clusters
        if m == 0:
            raise InvalidClusterConfigError("Candidate set is empty")
        if h < 1:
            raise InvalidClusterConfigError(f"Number of clusters must be positive, got {h}")
        if h > m:
            raise InvalidClusterConfigError(f"Cannot form {h} clusters from {m} candidates")
        if self.max_iterations < 1:
            raise InvalidClusterConfigError(f"max_iterations must be positive, got {self.max_iterations}")

    def _seed(self, K: np.ndarray, diag: np.ndarray) -> np.ndarray:
        m, h = K.shape[0], self.num_clusters
        if self.seeding == 'random':
            rng = np.random.default_rng(self.random_state)
            return rng.choice(m, size=h, replace=False)

        # Farthest-point seeding from the first (least confident) candidate.
        seeds = [0]
        nearest = diag + diag[0] - 2.0 * K[:, 0]
        for _ in range(1, h):
            nearest[seeds] = -np.inf
            nxt = int(np.argmax(nearest))
            seeds.append(nxt)
            nearest = np.minimum(nearest, diag + diag[nxt] - 2.0 * K[:, nxt])
        return np.asarray(seeds)

    def _centroid_distances(self, K: np.ndarray, diag: np.ndarray, assign: np.ndarray) -> np.ndarray:
        m, h = K.shape[0], self.num_clusters
        A = np.zeros((m, h))
        A[np.arange(m), assign] = 1.0
        sizes = A.sum(axis=0)
        KA = K @ A
        within = np.einsum('ic,ic->c', A, KA)
        return diag[:, None] - 2.0 * KA / sizes + within / sizes ** 2

    def _reseed_empty(self, assign: np.ndarray, dist: np.ndarray) -> np.ndarray:
        m, h = len(assign), self.num_clusters
        assign = assign.copy()
        for c in range(h):
            if np.any(assign == c):
                continue
            sizes = np.bincount(assign, minlength=h)
            own = dist[np.arange(m), assign]
            movable = np.where(sizes[assign] > 1)[0]
            pick = int(movable[np.argmax(own[movable])])
            logger.debug(f"Cluster {c} emptied; reseeding from candidate {pick}")
            assign[pick] = c
        return assign

    def clustering(self) -> None:
        self._validate()
        K = np.asarray(self.classifier.kernel_matrix(self._patches), dtype=float)
        diag = np.diag(K).copy()
        h = self.num_clusters

        seeds = self._seed(K, diag)
        to_seed = diag[:, None] + diag[seeds][None, :] - 2.0 * K[:, seeds]
        assign = np.argmin(to_seed, axis=1)
        assign[seeds] = np.arange(h)

        self.iterations_run = 0
        self.converged = False
        for _ in range(self.max_iterations):
            dist = self._centroid_distances(K, diag, assign)
            updated = self._reseed_empty(np.argmin(dist, axis=1), dist)
            self.iterations_run += 1
            if np.array_equal(updated, assign):
                self.converged = True
                break
            assign = updated

        self._assignments = assign
        self._distances = self._centroid_distances(K, diag, assign)
        logger.debug(
            f"Kernel k-means: {len(self._patches)} candidates, {h} clusters, "
            f"{self.iterations_run} iteration(s), converged={self.converged}"
        )

    @property
    def assignments(self) -> Optional[np.ndarray]:
        return None if self._assignments is None else self._assignments.copy()

    def get_representatives(self) -> List[Any]:
        """Id of the candidate nearest each cluster's centroid, one per cluster."""
        if self._assignments is None or self._distances is None:
            raise InvalidClusterConfigError("clustering() has not been run")
        ids = []
        for c in range(self.num_clusters):
            members = np.where(self._assignments == c)[0]
            best = int(members[np.argmin(self._distances[members, c])])
            ids.append(self._patches[best].id)
        return ids


__all__ = ['KernelKmeansClusterer', 'SEEDING_STRATEGIES']
