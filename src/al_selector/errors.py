"""Errors raised by the active learning session and its collaborators."""


class ActiveLearningError(Exception):
    """Base class for all selector errors."""


class InsufficientClassesError(ActiveLearningError):
    """Seed patches carry fewer than two distinct labels."""

    def __init__(self, num_classes: int):
        self.num_classes = num_classes
        super().__init__(f"Number of classes cannot be less than 2 (got {num_classes})")


class InsufficientPoolError(ActiveLearningError):
    """Unlabeled pool is smaller than the uncertain-set size."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Unlabeled pool holds {available} patches, {required} required; add more unlabeled patches"
        )


class ClusteringMismatchError(ActiveLearningError):
    """Clusterer representatives could not be resolved to exactly h patches."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Invalid diverse patch array: expected {expected} patches, resolved {actual}")


class InvalidClusterConfigError(ActiveLearningError):
    pass


class ClassificationError(ActiveLearningError):
    """Classifier failed for a patch; the underlying exception is chained as __cause__."""

    def __init__(self, message: str, patch_id=None):
        self.patch_id = patch_id
        super().__init__(message)


class SessionStateError(ActiveLearningError):
    """Operation requires a seeded (trained) session."""


__all__ = [
    'ActiveLearningError',
    'InsufficientClassesError',
    'InsufficientPoolError',
    'ClusteringMismatchError',
    'InvalidClusterConfigError',
    'ClassificationError',
    'SessionStateError',
]
