# vision/session.py
# ------------------------------------------------------------
# Active attendance session on the recognition client.
# Owns the debouncer, the descriptor snapshot and the ledger client.
# One recognition pass per tick; a tick that arrives while a pass is
# still running is skipped, never queued.
# ------------------------------------------------------------
from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, List, Optional

from . import config
from .descriptor_store import DescriptorStore
from .ledger_client import LedgerClient
from .matcher import match
from .stabilizer import RecognitionDebouncer, SessionRecognitionState

logger = logging.getLogger(__name__)

END_WAIT_S = 10.0


class RecognitionSession:
    def __init__(self, ledger: LedgerClient,
                 threshold: float = config.DISTANCE_THRESHOLD,
                 required_hits: int = config.REQUIRED_RECOGNITIONS,
                 on_status: Optional[Callable[[str], None]] = None):
        self.ledger = ledger
        self.threshold = threshold
        self.on_status = on_status

        self.session_id: Optional[int] = None
        self.store = DescriptorStore()
        self.debouncer = RecognitionDebouncer(required_hits)
        self.last_matches: list = []   # (bbox or None, Match or None) of the last pass
        self.frames_processed = 0
        self._busy = threading.Lock()

    @property
    def required_hits(self) -> int:
        return self.debouncer.required_hits

    @property
    def state(self) -> SessionRecognitionState:
        return self.debouncer.state

    # -------------- lifecycle --------------
    @property
    def active(self) -> bool:
        return self.session_id is not None

    def start(self, semester: int, store: Optional[DescriptorStore] = None) -> int:
        """Create a backend session and take a fresh descriptor snapshot."""
        session_id = self.ledger.start_session(semester)
        self.store = store if store is not None else DescriptorStore.load(self.ledger)
        self.debouncer.reset()
        self.last_matches = []
        self.frames_processed = 0
        self.session_id = session_id
        self._status(f"Session {session_id} started for Semester {semester}")
        return session_id

    def end(self, timeout: float = END_WAIT_S):
        """Stop the session once any in-flight pass has finished."""
        if not self.active:
            return
        got = self._busy.acquire(timeout=timeout)
        if not got:
            logger.warning("[session] pass still running after %.1fs, ending anyway", timeout)
        try:
            logger.info("[session] %s ended, %d confirmed", self.session_id, len(self.state.confirmed))
            self.session_id = None
            self.debouncer.reset()
            self.last_matches = []
        finally:
            if got:
                self._busy.release()
        self._status("Session ended")

    # -------------- recognition --------------
    def process_descriptors(self, descriptors: Iterable, boxes: Optional[List] = None) -> List[str]:
        """
        One frame: match every observed descriptor, then debounce.
        Returns the student ids confirmed (and marked) on this frame.
        """
        if not self.active:
            return []

        descriptors = list(descriptors)
        boxes = list(boxes) if boxes is not None else [None] * len(descriptors)
        matches = [(b, match(d, self.store.references, self.threshold))
                   for b, d in zip(boxes, descriptors)]
        matched_ids = [m.student_id for _, m in matches if m is not None]

        session_id = self.session_id
        newly = self.debouncer.step(
            matched_ids, commit=lambda sid: self.ledger.on_confirmed(session_id, sid)
        )
        self.last_matches = matches
        self.frames_processed += 1

        for sid in newly:
            logger.info("[session] confirmed %s (%s)", sid, self.store.name_of(sid))
        if descriptors:
            self._status(f"Scanning... {len(self.state.confirmed)} students recognized")
        else:
            self._status("No faces detected")
        return newly

    def tick(self, describe: Callable[[], tuple]) -> bool:
        """
        Run one recognition pass unless the previous one is still running.
        `describe()` returns (descriptors, boxes) for the current frame.
        Returns False when the tick was skipped.
        """
        if not self._busy.acquire(blocking=False):
            logger.debug("[session] previous pass still running, tick skipped")
            return False
        try:
            if self.active:
                descriptors, boxes = describe()
                self.process_descriptors(descriptors, boxes)
        except Exception:
            logger.exception("[session] Error during face recognition")
            self._status("Error during face recognition")
        finally:
            self._busy.release()
        return True

    # -------------- helpers --------------
    @property
    def recognized(self) -> List[str]:
        return sorted(self.state.confirmed)

    def _status(self, message: str):
        logger.debug("[status] %s", message)
        if self.on_status is not None:
            self.on_status(message)
