# vision/run_loop.py
# ------------------------------------------------------------
# Attendance camera loop:
#   - starts a backend session for the given semester
#   - camera frames on the main thread (preview + overlays)
#   - one recognition pass per interval on a worker thread
#     (Haar faces -> descriptors -> matcher -> debouncer -> mark)
#   - passes never overlap; a late tick is dropped
# ESC to quit
# ------------------------------------------------------------
from __future__ import annotations

import argparse
import logging
import threading
import time
from typing import Optional

import cv2
import numpy as np

from server.logger_setup import setup_logging

from . import config
from .errors import BackendError, ModelError
from .extractor import DescriptorExtractor
from .ledger_client import LedgerClient
from .session import RecognitionSession

logger = logging.getLogger(__name__)


class LatestFrame:
    """Most recent camera frame, shared between preview and recognition."""

    def __init__(self):
        self._lock = threading.Lock()
        self._frame: Optional[np.ndarray] = None

    def set(self, frame: np.ndarray):
        with self._lock:
            self._frame = frame

    def get(self) -> Optional[np.ndarray]:
        with self._lock:
            return None if self._frame is None else self._frame.copy()


class StatusLine:
    def __init__(self):
        self.message = ""

    def update(self, message: str):
        if message != self.message:
            logger.info("[status] %s", message)
        self.message = message


class Ticker(threading.Thread):
    """Calls `fire` every `interval` seconds until stopped."""

    def __init__(self, interval: float, fire):
        super().__init__(daemon=True)
        self.interval = interval
        self.fire = fire
        self._stop_evt = threading.Event()

    def run(self):
        while not self._stop_evt.wait(self.interval):
            self.fire()

    def stop(self):
        self._stop_evt.set()


def draw_overlays(frame, session: RecognitionSession, status: StatusLine, font=cv2.FONT_HERSHEY_SIMPLEX):
    for bbox, m in list(session.last_matches):
        if bbox is None:
            continue
        x1, y1, x2, y2 = bbox
        if m is not None:
            color, label = (0, 220, 0), f"{m.name} ({m.student_id}) {m.distance:.2f}"
        else:
            color, label = (0, 0, 255), "Unknown"
        cv2.rectangle(frame, (x1, y1), (x2, y2), color, 2)
        cv2.putText(frame, label, (x1, max(20, y1 - 10)), font, 0.6, color, 2, cv2.LINE_AA)

    s = session.ledger.summary
    head = (f"session={session.session_id} present={s['present_count']}/{s['total_students']} "
            f"recognized={len(session.recognized)}")
    cv2.putText(frame, head, (12, 28), font, 0.6, (40, 200, 40), 2, cv2.LINE_AA)
    cv2.putText(frame, status.message, (12, frame.shape[0] - 16), font, 0.55, (255, 255, 255), 1, cv2.LINE_AA)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Run the face-recognition attendance camera loop")
    p.add_argument("--semester", type=int, required=True, help="Semester for the new session")
    p.add_argument("--backend", default=config.BACKEND_URL, help=f"Backend base URL (default: {config.BACKEND_URL})")
    p.add_argument("--cam", type=int, default=config.CAM_INDEX, help="Camera index")
    p.add_argument("--interval", type=float, default=config.RECOGNITION_INTERVAL_S,
                   help="Seconds between recognition passes")
    p.add_argument("--threshold", type=float, default=config.DISTANCE_THRESHOLD,
                   help="Match if descriptor distance is below this")
    p.add_argument("--required", type=int, default=config.REQUIRED_RECOGNITIONS,
                   help="Consecutive recognitions needed to mark attendance")
    p.add_argument("--no-window", action="store_true", help="Run without the preview window")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(config.LOG_LEVEL)

    status = StatusLine()
    try:
        extractor = DescriptorExtractor()
    except ModelError as e:
        status.update(f"Error initializing face recognition: {e}")
        return 2

    ledger = LedgerClient(args.backend)
    session = RecognitionSession(ledger, threshold=args.threshold,
                                 required_hits=args.required, on_status=status.update)

    cap = cv2.VideoCapture(args.cam)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, config.CAP_WIDTH)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, config.CAP_HEIGHT)
    if not cap.isOpened():
        status.update(f"No camera found at index {args.cam}")
        return 2

    try:
        session.start(args.semester)
    except BackendError as e:
        status.update(f"Failed to create session: {e}")
        cap.release()
        return 1

    latest = LatestFrame()

    def describe():
        frame = latest.get()
        if frame is None:
            return [], []
        faces = extractor.describe(frame)
        return [f.descriptor for f in faces], [f.bbox for f in faces]

    ticker = Ticker(args.interval,
                    lambda: threading.Thread(target=session.tick, args=(describe,), daemon=True).start())
    ticker.start()
    logger.info("[run] Camera opened. ESC to quit.")

    try:
        while True:
            ok, frame = cap.read()
            if not ok:
                status.update("Failed to read frame from camera")
                break
            frame = cv2.flip(frame, 1)
            latest.set(frame)

            if args.no_window:
                time.sleep(0.01)
                continue

            draw_overlays(frame, session, status)
            cv2.imshow("attendance", frame)
            if (cv2.waitKey(1) & 0xFF) == 27:
                break
    except KeyboardInterrupt:
        pass
    finally:
        ticker.stop()
        session.end()
        cap.release()
        cv2.destroyAllWindows()

    logger.info("[run] Closed. %d frames processed.", session.frames_processed)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
