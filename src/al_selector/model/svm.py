import logging
import joblib
import numpy as np
from typing import Dict, Optional, Sequence, Tuple
from sklearn.svm import SVC
from sklearn.model_selection import GridSearchCV, StratifiedKFold
from sklearn.metrics.pairwise import rbf_kernel, linear_kernel, polynomial_kernel, sigmoid_kernel

from al_selector import config
from al_selector.errors import SessionStateError
from al_selector.model.port import ClassifierPort
from al_selector.patch import Patch

logger = logging.getLogger(__name__)


def _stack(patches: Sequence[Patch]) -> np.ndarray:
    return np.vstack([p.features for p in patches])


def _labels(patches: Sequence[Patch]) -> np.ndarray:
    return np.asarray([int(p.label) for p in patches])


class SVMClassifier(ClassifierPort):
    """One-vs-one SVC exposing pairwise decision values and its fitted kernel."""

    def __init__(self, kernel: Optional[str] = None, C: float = 1.0, gamma: Optional[float] = None,
                 degree: int = 3, coef0: float = 0.0, cv_folds: Optional[int] = None,
                 random_state: Optional[int] = None):
        self.kernel = kernel or config.SVM_KERNEL
        self.C = C
        self.gamma = gamma
        self.degree = degree
        self.coef0 = coef0
        self.cv_folds = cv_folds or config.SVM_CV_FOLDS
        self.random_state = config.RANDOM_STATE if random_state is None else random_state
        self.model: Optional[SVC] = None
        self.selection_score: Optional[float] = None

    def _resolve_gamma(self, X: np.ndarray) -> float:
        if self.gamma is not None:
            return float(self.gamma)
        var = float(X.var())
        return 1.0 / (X.shape[1] * var) if var > 0 else 1.0

    def _build(self, gamma: float) -> SVC:
        return SVC(
            kernel=self.kernel,
            C=self.C,
            gamma=gamma,
            degree=self.degree,
            coef0=self.coef0,
            decision_function_shape='ovo',
            random_state=self.random_state,
        )

    def select_model(self, patches: Sequence[Patch]) -> None:
        """Grid search C (and gamma for non-linear kernels) with stratified CV.

        Falls back to the current parameters when the smallest class is too
        small to be split into folds.
        """
        X, y = _stack(patches), _labels(patches)
        _, counts = np.unique(y, return_counts=True)
        folds = min(self.cv_folds, int(counts.min()))
        if folds < 2:
            logger.warning(f"Skipping model selection: smallest class has {counts.min()} sample(s)")
            return

        grid: Dict[str, list] = {'C': list(config.SVM_C_GRID)}
        if self.kernel != 'linear':
            grid['gamma'] = list(config.SVM_GAMMA_GRID)
        search = GridSearchCV(
            self._build(self._resolve_gamma(X)),
            grid,
            cv=StratifiedKFold(n_splits=folds, shuffle=True, random_state=self.random_state),
            scoring='accuracy',
        )
        search.fit(X, y)
        self.C = float(search.best_params_['C'])
        if 'gamma' in search.best_params_:
            self.gamma = float(search.best_params_['gamma'])
        self.selection_score = float(search.best_score_)
        logger.info(f"Model selection: C={self.C}, gamma={self.gamma}, cv accuracy={self.selection_score:.3f}")

    def train(self, patches: Sequence[Patch]) -> None:
        X, y = _stack(patches), _labels(patches)
        gamma = self._resolve_gamma(X)
        model = self._build(gamma)
        model.fit(X, y)
        self.gamma = gamma
        self.model = model

    def _require_model(self) -> SVC:
        if self.model is None:
            raise SessionStateError("Classifier has not been trained")
        return self.model

    def classify(self, patch: Patch) -> Tuple[int, np.ndarray]:
        model = self._require_model()
        x = patch.features.reshape(1, -1)
        label = int(model.predict(x)[0])
        dec = np.atleast_1d(np.asarray(model.decision_function(x), dtype=float)[0])
        return label, dec

    def _kernel(self, X: np.ndarray, Y: np.ndarray) -> np.ndarray:
        gamma = self.gamma if self.gamma is not None else self._resolve_gamma(X)
        if self.kernel == 'rbf':
            return rbf_kernel(X, Y, gamma=gamma)
        if self.kernel == 'linear':
            return linear_kernel(X, Y)
        if self.kernel == 'poly':
            return polynomial_kernel(X, Y, degree=self.degree, gamma=gamma, coef0=self.coef0)
        if self.kernel == 'sigmoid':
            return sigmoid_kernel(X, Y, gamma=gamma, coef0=self.coef0)
        raise ValueError(f"Unsupported kernel: {self.kernel}")

    def kernel_value(self, a: Patch, b: Patch) -> float:
        return float(self._kernel(a.features.reshape(1, -1), b.features.reshape(1, -1))[0, 0])

    def kernel_matrix(self, patches: Sequence[Patch]) -> np.ndarray:
        X = _stack(patches)
        return self._kernel(X, X)

    @property
    def num_classes(self) -> int:
        return 0 if self.model is None else int(len(self.model.classes_))

    def save(self, filepath: str):
        joblib.dump({
            'model': self.model,
            'params': {
                'kernel': self.kernel,
                'C': self.C,
                'gamma': self.gamma,
                'degree': self.degree,
                'coef0': self.coef0,
            },
            'meta': {'version': '1.0', 'serialization': 'joblib'}
        }, filepath)

    @classmethod
    def load(cls, filepath: str) -> "SVMClassifier":
        saved = joblib.load(filepath)
        clf = cls(**saved['params'])
        clf.model = saved['model']
        return clf


__all__ = ['SVMClassifier']
