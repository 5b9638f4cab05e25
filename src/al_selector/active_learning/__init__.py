from al_selector.active_learning.clusterer import KernelKmeansClusterer
from al_selector.active_learning.engine import ActiveLearning
from al_selector.active_learning.uncertainty import (
    compute_confidence,
    confidence_from_decision_values,
    rank_least_confident,
    score_patches,
)

__all__ = [
    'ActiveLearning',
    'KernelKmeansClusterer',
    'compute_confidence',
    'confidence_from_decision_values',
    'rank_least_confident',
    'score_patches',
]
