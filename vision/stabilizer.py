# vision/stabilizer.py
# ------------------------------------------------------------
# N-consecutive-frame confirm for recognised students.
#   hit  -> counter += 1; at N: confirm once, counter back to 0
#   miss -> counter = 0
#   confirmed students are terminal until the session resets
# ------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class SessionRecognitionState:
    """Per-session recognition bookkeeping. Never mutated in place."""
    confirmed: FrozenSet[str] = frozenset()
    hit_counters: Dict[str, int] = field(default_factory=dict)

    def is_confirmed(self, student_id: str) -> bool:
        return student_id in self.confirmed

    def hits(self, student_id: str) -> int:
        return self.hit_counters.get(student_id, 0)


def advance(
    state: SessionRecognitionState,
    matched_ids: Iterable[str],
    required_hits: int,
    commit: Optional[Callable[[str], bool]] = None,
) -> Tuple[SessionRecognitionState, List[str]]:
    """
    Feed one frame's matched student ids through the debouncer.

    `commit(student_id)` runs when a student reaches `required_hits`; if it
    returns False the student stays unconfirmed (eligible again after
    another full run). Returns the new state and the ids confirmed on this
    frame, in the order they were matched.
    """
    if required_hits < 1:
        raise ValueError("required_hits must be >= 1")

    matched = list(dict.fromkeys(matched_ids))
    matched_set = set(matched)
    confirmed = set(state.confirmed)

    # miss: every counter not hit this frame drops back to Unseen
    counters = {sid: n for sid, n in state.hit_counters.items() if sid in matched_set}

    newly: List[str] = []
    for sid in matched:
        if sid in confirmed:
            continue
        counters[sid] = counters.get(sid, 0) + 1
        if counters[sid] >= required_hits:
            if commit is None or commit(sid):
                confirmed.add(sid)
                newly.append(sid)
            counters[sid] = 0

    counters = {sid: n for sid, n in counters.items() if n > 0}
    return replace(state, confirmed=frozenset(confirmed), hit_counters=counters), newly


class RecognitionDebouncer:
    """Stateful wrapper over advance(), one instance per recognition session."""

    def __init__(self, required_hits: int = 3):
        self.required_hits = required_hits
        self.state = SessionRecognitionState()

    def reset(self):
        self.state = SessionRecognitionState()

    def step(self, matched_ids: Iterable[str],
             commit: Optional[Callable[[str], bool]] = None) -> List[str]:
        self.state, newly = advance(self.state, matched_ids, self.required_hits, commit)
        return newly
