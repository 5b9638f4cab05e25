"""Active learning patch selector: uncertainty ranking plus kernel k-means diversity."""

from al_selector.active_learning import ActiveLearning, KernelKmeansClusterer
from al_selector.errors import (
    ActiveLearningError,
    InsufficientClassesError,
    InsufficientPoolError,
    ClusteringMismatchError,
    InvalidClusterConfigError,
    ClassificationError,
    SessionStateError,
)
from al_selector.model.port import ClassifierPort
from al_selector.patch import Patch, PatchPool, sort_by_distance

__version__ = "0.1.0"

__all__ = [
    "ActiveLearning",
    "KernelKmeansClusterer",
    "ClassifierPort",
    "Patch",
    "PatchPool",
    "sort_by_distance",
    # Errors
    "ActiveLearningError",
    "InsufficientClassesError",
    "InsufficientPoolError",
    "ClusteringMismatchError",
    "InvalidClusterConfigError",
    "ClassificationError",
    "SessionStateError",
]
