# vision/tools/enrol_from_webcam.py
# SPACE captures the face in view and registers it with the backend.
from __future__ import annotations

import argparse
import logging

import cv2

from server.logger_setup import setup_logging

from .. import config
from ..errors import BackendError, ModelError
from ..extractor import DescriptorExtractor
from ..ledger_client import LedgerClient

logger = logging.getLogger(__name__)


def enrol(ledger: LedgerClient, extractor: DescriptorExtractor, frame, usn: str, name: str) -> bool:
    """Extract one descriptor from `frame` and register it. False on any user-facing failure."""
    try:
        descriptor = extractor.describe_single(frame)
    except ModelError as e:
        logger.warning("[enrol] %s", e)
        return False
    try:
        ledger.register_student(usn, name, descriptor.tolist())
    except BackendError as e:
        if e.status_code == 409:
            logger.warning("[enrol] Student with USN %s already exists", usn)
        else:
            logger.error("[enrol] registration failed: %s", e)
        return False
    logger.info("[enrol] saved: %s (%s) dim=%d", name, usn, descriptor.size)
    return True


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Enrol students from the webcam")
    p.add_argument("--backend", default=config.BACKEND_URL)
    p.add_argument("--cam", type=int, default=config.CAM_INDEX)
    args = p.parse_args(argv)
    setup_logging(config.LOG_LEVEL)

    extractor = DescriptorExtractor()
    ledger = LedgerClient(args.backend)

    cap = cv2.VideoCapture(args.cam)
    if not cap.isOpened():
        logger.error("[enrol] Cannot open camera %s", args.cam)
        return 2

    logger.info("[enrol] Press SPACE to capture a face, ESC to quit.")
    while True:
        ok, frame = cap.read()
        if not ok:
            break

        vis = frame.copy()
        for (x1, y1, x2, y2) in extractor.boxes(frame):
            cv2.rectangle(vis, (x1, y1), (x2, y2), (0, 255, 255), 2)
        cv2.putText(vis, "SPACE: capture | ESC: quit", (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 0), 2)
        cv2.imshow("enrol_from_webcam", vis)

        k = cv2.waitKey(1) & 0xFF
        if k == 27:
            break
        if k == 32:  # SPACE
            usn = input("Enter student USN: ").strip()
            name = input("Enter student name: ").strip()
            if not usn or not name:
                logger.info("[enrol] skipped (empty USN or name)")
                continue
            enrol(ledger, extractor, frame, usn, name)

    cap.release()
    cv2.destroyAllWindows()
    logger.info("[enrol] done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
