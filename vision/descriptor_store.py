# vision/descriptor_store.py
# ------------------------------------------------------------
# Read-only snapshot of reference descriptors, loaded once when a
# session starts. Students registered later appear in the next session.
# ------------------------------------------------------------
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Tuple

import numpy as np

from .errors import BackendError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reference:
    student_id: str
    name: str
    vector: np.ndarray


class DescriptorStore:
    def __init__(self, references: List[Reference] = None):
        self._refs: Tuple[Reference, ...] = tuple(references or ())

    @classmethod
    def from_rows(cls, rows) -> "DescriptorStore":
        """rows: [{"usn", "name", "faceData"}] as served by GET /api/students/<usn>."""
        refs = []
        for r in rows:
            face = r.get("faceData")
            if not face:
                logger.warning("[store] %s has no face data, skipped", r.get("usn"))
                continue
            vec = np.asarray(face, dtype=np.float32).reshape(-1)
            if vec.ndim != 1 or vec.size == 0:
                continue
            vec.setflags(write=False)
            refs.append(Reference(str(r["usn"]), r.get("name") or str(r["usn"]), vec))
        return cls(refs)

    @classmethod
    def load(cls, ledger) -> "DescriptorStore":
        """Fetch the roster, then each student's descriptor, through a LedgerClient."""
        rows = []
        for entry in ledger.fetch_roster():
            try:
                rows.append(ledger.fetch_student(entry["usn"]))
            except BackendError as e:
                logger.warning("[store] could not load %s: %s", entry.get("usn"), e)
        store = cls.from_rows(rows)
        logger.info("[store] Loaded %d student face profiles", len(store))
        return store

    def __len__(self) -> int:
        return len(self._refs)

    def __iter__(self) -> Iterator[Reference]:
        return iter(self._refs)

    @property
    def references(self) -> Tuple[Reference, ...]:
        return self._refs

    def name_of(self, student_id: str) -> str:
        for r in self._refs:
            if r.student_id == student_id:
                return r.name
        return student_id
