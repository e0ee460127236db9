# vision/matcher.py
# Nearest-reference lookup by Euclidean distance. Pure functions.
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Match:
    student_id: str
    name: str
    distance: float


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.linalg.norm(np.asarray(a, dtype=np.float32) - np.asarray(b, dtype=np.float32)))


def match(observed, candidates: Sequence, threshold: float) -> Optional[Match]:
    """
    Return the closest candidate whose distance is strictly below `threshold`.

    `candidates` are objects with `student_id`, `name` and `vector`
    (see descriptor_store.Reference). Equal distances keep the first
    candidate seen. Vectors whose length differs from `observed` are skipped.
    """
    q = np.asarray(observed, dtype=np.float32).reshape(-1)
    best: Optional[Match] = None
    for c in candidates:
        v = np.asarray(c.vector, dtype=np.float32).reshape(-1)
        if v.shape != q.shape:
            logger.debug("[match] skip %s: dim %d != %d", c.student_id, v.size, q.size)
            continue
        d = euclidean_distance(q, v)
        if best is None or d < best.distance:
            best = Match(c.student_id, c.name, d)
    if best is not None and best.distance < threshold:
        return best
    return None

