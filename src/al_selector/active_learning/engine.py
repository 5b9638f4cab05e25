"""Active learning session.

A session owns its classifier and three patch pools:
 - validation: patches from the user's query, never consumed
 - training: every labeled patch the classifier is fitted on (grows each round)
 - unlabeled: candidate patches; shrinks as batches are handed out for labeling

Each round scores the unlabeled pool (MCLU), keeps the m = 4h least confident
patches and thins them to h diverse representatives with kernel k-means.
A session is not safe for concurrent use; callers drive it sequentially.
"""
from __future__ import annotations
from typing import Callable, Iterable, List, Optional
import logging

from al_selector import config
from al_selector.active_learning.clusterer import KernelKmeansClusterer
from al_selector.active_learning.uncertainty import rank_least_confident, score_patches
from al_selector.errors import (
    ClassificationError,
    ClusteringMismatchError,
    InsufficientClassesError,
    InsufficientPoolError,
    InvalidClusterConfigError,
    SessionStateError,
)
from al_selector.model.port import ClassifierPort
from al_selector.patch import Patch, PatchPool

logger = logging.getLogger(__name__)

ClustererFactory = Callable[[int, ClassifierPort], KernelKmeansClusterer]


class ActiveLearning:
    def __init__(self, classifier: Optional[ClassifierPort] = None,
                 max_kmeans_iterations: Optional[int] = None,
                 scoring_workers: Optional[int] = None,
                 seeding: Optional[str] = None,
                 random_state: Optional[int] = None,
                 clusterer_factory: Optional[ClustererFactory] = None):
        if classifier is None:
            from al_selector.model.svm import SVMClassifier
            classifier = SVMClassifier()
        self.classifier = classifier
        self.max_kmeans_iterations = max_kmeans_iterations or config.KMEANS_MAX_ITERATIONS
        self.scoring_workers = config.SCORING_WORKERS if scoring_workers is None else scoring_workers
        self.seeding = seeding or config.KMEANS_SEEDING
        self.random_state = config.RANDOM_STATE if random_state is None else random_state
        self._clusterer_factory = clusterer_factory or self._default_clusterer

        self._num_classes = 0
        self.validation_pool = PatchPool()
        self.training_pool = PatchPool()
        self.unlabeled_pool = PatchPool()
        self.last_uncertain: List[Patch] = []
        self.last_diverse: List[Patch] = []

    def _default_clusterer(self, num_clusters: int, classifier: ClassifierPort) -> KernelKmeansClusterer:
        return KernelKmeansClusterer(
            self.max_kmeans_iterations, num_clusters, classifier,
            seeding=self.seeding, random_state=self.random_state,
        )

    @property
    def num_classes(self) -> int:
        return self._num_classes

    @property
    def is_seeded(self) -> bool:
        return self._num_classes >= 2

    def _require_seeded(self, operation: str) -> None:
        if not self.is_seeded:
            raise SessionStateError(f"{operation} requires seed patches; call set_seed_items first")

    def set_seed_items(self, patches: Iterable[Patch]) -> None:
        """Start the session from the user's labeled query patches.

        Derives the number of classes, selects the model and trains on the
        seed set. Fails with InsufficientClassesError below two classes.
        """
        patches = list(patches)
        unlabeled = [p.id for p in patches if p.label is None]
        if unlabeled:
            raise ValueError(f"Seed patches must be labeled; missing labels for {unlabeled[:5]}")
        validation = PatchPool(patches)
        num_classes = len(validation.labels())
        if num_classes < 2:
            raise InsufficientClassesError(num_classes)

        training = PatchPool(patches)
        self.classifier.select_model(patches)
        self.classifier.train(training.patches())
        # Pools and class count change together, only once the classifier is fitted.
        self.validation_pool = validation
        self.training_pool = training
        self._num_classes = num_classes

        logger.debug(f"Number of classes: {num_classes}")
        logger.debug(f"Number of patches from query image: {len(patches)}")
        logger.info(f"Session seeded with {len(self.training_pool)} training patches, {num_classes} classes")

    def add_unlabeled_items(self, patches: Iterable[Patch]) -> None:
        before = len(self.unlabeled_pool)
        self.unlabeled_pool.extend(patches)
        logger.debug(
            f"Added {len(self.unlabeled_pool) - before} random patches; "
            f"unlabeled pool now {len(self.unlabeled_pool)}"
        )

    def select_batch(self, batch_size: int) -> List[Patch]:
        """Pick the h most ambiguous yet mutually diverse unlabeled patches.

        The returned patches leave the unlabeled pool and carry their
        confidence for display.
        """
        self._require_seeded("select_batch")
        h = int(batch_size)
        if h < 1:
            raise InvalidClusterConfigError(f"Batch size must be positive, got {h}")
        m = config.UNCERTAIN_OVERSAMPLING * h
        if len(self.unlabeled_pool) < m:
            raise InsufficientPoolError(required=m, available=len(self.unlabeled_pool))
        logger.debug(f"Number of uncertain patches to select: {m}")
        logger.debug(f"Number of diverse patches to select: {h}")

        entries = self.unlabeled_pool.entries()
        uncertain = self._select_most_uncertain(entries, m)
        self.last_uncertain = [patch for _, patch in uncertain]
        self.last_diverse = self._select_most_diverse(uncertain, h)
        return list(self.last_diverse)

    def _select_most_uncertain(self, entries, m: int):
        patches = [patch for _, patch in entries]
        scored = score_patches(self.classifier, patches, self._num_classes, workers=self.scoring_workers)
        selected = []
        for index, confidence in rank_least_confident(scored, m):
            key, patch = entries[index]
            patch.confidence = confidence
            selected.append((key, patch))
        logger.debug(f"Number of uncertain patches selected: {len(selected)}")
        return selected

    def _select_most_diverse(self, uncertain, h: int) -> List[Patch]:
        clusterer = self._clusterer_factory(h, self.classifier)
        clusterer.set_data([patch for _, patch in uncertain])
        clusterer.clustering()
        representative_ids = list(clusterer.get_representatives())

        # Resolve each id to one not-yet-taken uncertain entry; the pool is only touched once all resolve.
        pending = {}
        for key, patch in uncertain:
            pending.setdefault(patch.id, []).append(key)
        resolved = []
        for patch_id in representative_ids:
            keys = pending.get(patch_id)
            if keys:
                resolved.append(keys.pop(0))

        logger.debug(f"Number of diverse patch IDs: {len(representative_ids)}")
        logger.debug(f"Number of diverse patches resolved: {len(resolved)}")
        if len(resolved) != h or len(representative_ids) != h:
            raise ClusteringMismatchError(expected=h, actual=len(resolved))
        return [self.unlabeled_pool.pop_entry(key) for key in resolved]

    def submit_labels(self, patches: Iterable[Patch]) -> None:
        """Fold user-labeled patches into the training pool and retrain on all of it."""
        self._require_seeded("submit_labels")
        patches = list(patches)
        unlabeled = [p.id for p in patches if p.label is None]
        if unlabeled:
            raise ValueError(f"Submitted patches must be labeled; missing labels for {unlabeled[:5]}")
        self.classifier.train(self.training_pool.patches() + patches)
        self.training_pool.extend(patches)
        logger.info(f"Retrained on {len(self.training_pool)} patches ({len(patches)} new)")

    def classify_batch(self, patches: Iterable[Patch]) -> List[Patch]:
        """Set label and distance (first decision value) on every patch."""
        self._require_seeded("classify_batch")
        if not isinstance(patches, list):
            patches = list(patches)
        results = []
        for patch in patches:
            try:
                label, decision_values = self.classifier.classify(patch)
                distance = float(decision_values[0])
            except Exception as e:
                raise ClassificationError(f"Classification failed for patch {patch.id!r}: {e}", patch_id=patch.id) from e
            results.append((label, distance))
        for patch, (label, distance) in zip(patches, results):
            patch.label = int(label)
            patch.distance = distance
        logger.debug(f"Number of patches classified: {len(patches)}")
        return patches

    def summary(self) -> dict:
        return {
            'num_classes': self._num_classes,
            'validation': len(self.validation_pool),
            'training': len(self.training_pool),
            'unlabeled': len(self.unlabeled_pool),
        }


__all__ = ['ActiveLearning']
