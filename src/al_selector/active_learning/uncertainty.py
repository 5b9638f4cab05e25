"""Multi-class level uncertainty (MCLU) ranking of unlabeled patches.

The decision values returned by the classifier are treated as distances to
the pairwise hyperplanes in kernel space. Confidence is the gap between the
two largest values (k > 2) or the absolute distance to the single hyperplane
(k == 2); lower confidence means the patch is more worth labeling.
"""
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence, Tuple
import logging
import numpy as np

from al_selector.model.port import ClassifierPort
from al_selector.patch import Patch

logger = logging.getLogger(__name__)


def confidence_from_decision_values(decision_values, num_classes: int) -> float:
    values = np.asarray(decision_values, dtype=float).ravel()
    if num_classes > 2:
        if values.size < 2:
            raise ValueError(f"Expected at least 2 decision values for {num_classes} classes, got {values.size}")
        values = np.sort(values)
        return float(abs(values[-1] - values[-2]))
    if values.size < 1:
        raise ValueError("Empty decision value vector")
    return float(abs(values[0]))


def compute_confidence(classifier: ClassifierPort, patch: Patch, num_classes: int) -> float:
    _, decision_values = classifier.classify(patch)
    return confidence_from_decision_values(decision_values, num_classes)


def _score(classifier: ClassifierPort, num_classes: int, index: int, patch: Patch) -> Tuple[int, float]:
    try:
        return index, compute_confidence(classifier, patch, num_classes)
    except Exception as e:
        # Fall back to the pool position so one bad patch cannot block the round.
        logger.warning(f"Scoring failed for patch {patch.id!r}, using fallback confidence {index}: {e}")
        return index, float(index)


def score_patches(classifier: ClassifierPort, patches: Sequence[Patch], num_classes: int,
                  workers: int = 1) -> List[Tuple[int, float]]:
    """Return ``(pool_index, confidence)`` for every patch, in pool order."""
    if workers > 1 and len(patches) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            scored = list(pool.map(
                lambda args: _score(classifier, num_classes, *args),
                enumerate(patches),
            ))
    else:
        scored = [_score(classifier, num_classes, i, p) for i, p in enumerate(patches)]
    return scored


def rank_least_confident(scored: Sequence[Tuple[int, float]], m: int) -> List[Tuple[int, float]]:
    """Stable ascending sort by confidence; ties keep pool order."""
    return sorted(scored, key=lambda s: s[1])[:m]


__all__ = ['confidence_from_decision_values', 'compute_confidence', 'score_patches', 'rank_least_confident']
