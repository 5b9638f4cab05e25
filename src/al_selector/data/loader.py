import os
import logging
import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Sequence, Tuple
from sklearn.preprocessing import LabelEncoder

from al_selector.patch import Patch

logger = logging.getLogger(__name__)


def load_patches(path: str, id_column: str = 'id', label_column: str = 'label',
                 feature_columns: Optional[Sequence[str]] = None) -> Tuple[List[Patch], Optional[LabelEncoder]]:
    """Read patches from a CSV of feature columns.

    Every numeric column other than the id and label columns is a feature
    unless ``feature_columns`` is given. Rows without a label become
    unlabeled patches. Non-integer labels are encoded and the fitted
    encoder is returned so callers can map predictions back.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Patch file not found: {path}")
    df = pd.read_csv(path)
    cols = {c.lower(): c for c in df.columns}

    if id_column not in df.columns and id_column.lower() in cols:
        id_column = cols[id_column.lower()]
    if id_column not in df.columns:
        df[id_column] = np.arange(len(df))

    has_labels = label_column in df.columns
    if feature_columns is None:
        excluded = {id_column, label_column}
        feature_columns = [c for c in df.select_dtypes(include=[np.number]).columns if c not in excluded]
    missing = [c for c in feature_columns if c not in df.columns]
    if missing:
        raise ValueError(f"Missing feature columns {missing} in {path}")
    if not feature_columns:
        raise ValueError(f"No numeric feature columns found in {path}")

    df = df.dropna(subset=list(feature_columns)).reset_index(drop=True)

    encoder: Optional[LabelEncoder] = None
    labels: List[Optional[int]] = [None] * len(df)
    if has_labels:
        present = df[label_column].notna()
        raw = df.loc[present, label_column]
        if pd.api.types.is_integer_dtype(raw) or (
            pd.api.types.is_float_dtype(raw) and bool((raw == raw.round()).all())
        ):
            encoded = raw.astype(int).to_numpy()
        else:
            encoder = LabelEncoder()
            encoded = encoder.fit_transform(raw.astype(str))
        for row, value in zip(np.flatnonzero(present.to_numpy()), encoded):
            labels[row] = int(value)

    X = df[list(feature_columns)].to_numpy(dtype=float)
    patches = [
        Patch(id=pid, features=X[i], label=labels[i])
        for i, pid in enumerate(df[id_column].tolist())
    ]
    logger.info(f"Loaded {len(patches)} patches ({sum(p.label is not None for p in patches)} labeled) from {path}")
    return patches, encoder


def split_seed_and_pool(patches: Sequence[Patch], seed_per_class: int = 3,
                        random_state: int = 42) -> Tuple[List[Patch], List[Patch]]:
    """Take ``seed_per_class`` labeled patches of every class as the seed set; the rest form the pool."""
    rng = np.random.default_rng(random_state)
    by_class: Dict[int, List[int]] = {}
    for i, p in enumerate(patches):
        if p.label is not None:
            by_class.setdefault(p.label, []).append(i)
    seed_idx = set()
    for label, idx in sorted(by_class.items()):
        take = min(seed_per_class, len(idx))
        seed_idx.update(int(i) for i in rng.choice(idx, size=take, replace=False))
    seed = [p for i, p in enumerate(patches) if i in seed_idx]
    pool = [p for i, p in enumerate(patches) if i not in seed_idx]
    return seed, pool


__all__ = ['load_patches', 'split_seed_and_pool']
