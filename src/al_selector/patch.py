"""Patch records and the id-indexed pools that hold them during a session."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple
import numpy as np


@dataclass(eq=False)
class Patch:
    id: Any
    features: np.ndarray
    label: Optional[int] = None
    confidence: Optional[float] = None  # set by uncertainty ranking
    distance: Optional[float] = None  # set by batch classification
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.features = np.asarray(self.features, dtype=float).ravel()

    @property
    def is_labeled(self) -> bool:
        return self.label is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'label': self.label,
            'confidence': self.confidence,
            'distance': self.distance,
        }


class PatchPool:
    """Insertion-ordered patch store with O(1) membership and removal by id.

    Entries are keyed by an internal sequence number so the same patch id can
    be held more than once.
    """

    def __init__(self, patches: Optional[Iterable[Patch]] = None):
        self._entries: Dict[int, Patch] = {}
        self._by_id: Dict[Any, List[int]] = {}
        self._next_key = 0
        if patches is not None:
            self.extend(patches)

    def add(self, patch: Patch) -> int:
        key = self._next_key
        self._next_key += 1
        self._entries[key] = patch
        self._by_id.setdefault(patch.id, []).append(key)
        return key

    def extend(self, patches: Iterable[Patch]) -> None:
        for p in patches:
            self.add(p)

    def pop_entry(self, key: int) -> Patch:
        patch = self._entries.pop(key)
        keys = self._by_id[patch.id]
        keys.remove(key)
        if not keys:
            del self._by_id[patch.id]
        return patch

    def entries(self) -> List[Tuple[int, Patch]]:
        return list(self._entries.items())

    def patches(self) -> List[Patch]:
        return list(self._entries.values())

    def labels(self) -> set:
        return {p.label for p in self._entries.values()}

    def __contains__(self, patch_id: Any) -> bool:
        return patch_id in self._by_id

    def __iter__(self) -> Iterator[Patch]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self):  # pragma: no cover
        return f"PatchPool(size={len(self)})"


def sort_by_distance(patches: Iterable[Patch], reverse: bool = False) -> List[Patch]:
    """Order classified patches by their distance to the hyperplane; unclassified last."""
    patches = list(patches)
    scored = [p for p in patches if p.distance is not None]
    unscored = [p for p in patches if p.distance is None]
    return sorted(scored, key=lambda p: p.distance, reverse=reverse) + unscored


__all__ = ['Patch', 'PatchPool', 'sort_by_distance']
