# vision/ledger_client.py
# ------------------------------------------------------------
# HTTP side of the recognition client.
# One mark request per confirm event; failures are logged and reported
# back (False) so the student stays eligible for a later confirm.
# The backend upserts by (sessionId, usn), so a repeated mark is safe.
# ------------------------------------------------------------
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import requests
from requests.utils import quote

from . import config
from .errors import BackendError

logger = logging.getLogger(__name__)


class LedgerClient:
    def __init__(self, base_url: str = config.BACKEND_URL, timeout: float = config.HTTP_TIMEOUT_S,
                 http: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()
        self.summary: Dict[str, int] = {"present_count": 0, "absent_count": 0, "total_students": 0}

    # -------------- low level --------------
    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            r = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise BackendError(f"{method} {path} failed: {e}") from e
        if not 200 <= r.status_code < 300:
            try:
                msg = r.json().get("error", r.text)
            except ValueError:
                msg = r.text
            raise BackendError(f"{method} {path} -> {r.status_code}: {msg}", r.status_code)
        return r

    # -------------- directory --------------
    def fetch_roster(self) -> List[dict]:
        return self._request("GET", "/api/students").json()

    def fetch_student(self, usn: str) -> dict:
        return self._request("GET", f"/api/students/{quote(str(usn), safe='')}").json()

    def register_student(self, usn: str, name: str, face_data) -> None:
        self._request("POST", "/api/students/register",
                      json={"usn": usn, "name": name, "faceData": [float(x) for x in face_data]})

    # -------------- sessions --------------
    def start_session(self, semester: int) -> int:
        session_id = int(self._request("POST", "/api/attendance/sessions",
                                       json={"semester": semester}).json()["sessionId"])
        self.summary = {"present_count": 0, "absent_count": 0, "total_students": 0}
        return session_id

    def mark(self, session_id: int, usn: str, status: str = config.DEFAULT_STATUS) -> bool:
        """POST one mark. True when the backend stored it (200 update / 201 insert)."""
        self._request("POST", "/api/attendance/mark",
                      json={"sessionId": session_id, "usn": usn, "status": status})
        return True

    def refresh_summary(self, session_id: int) -> Dict[str, int]:
        try:
            data = self._request("GET", f"/api/attendance/summary/{session_id}").json()
        except BackendError as e:
            logger.warning("[ledger] summary refresh failed: %s", e)
            return self.summary
        self.summary = {
            "present_count": int(data.get("present_count") or 0),
            "absent_count": int(data.get("absent_count") or 0),
            "total_students": int(data.get("total_students") or 0),
        }
        return self.summary

    # -------------- confirm hook --------------
    def on_confirmed(self, session_id: int, usn: str) -> bool:
        try:
            self.mark(session_id, usn)
        except BackendError as e:
            logger.warning("[ledger] mark failed for %s (session %s): %s", usn, session_id, e)
            return False
        logger.info("[ledger] Attendance marked for student %s", usn)
        self.refresh_summary(session_id)
        return True
