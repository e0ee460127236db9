# server/services/ledger_service.py
# ------------------------------------------------------------
# Attendance ledger: sessions + (session, student) -> status.
# Writes are upserts keyed by UNIQUE(session_id, usn); the database
# constraint is the only serialization point (last writer wins).
# ------------------------------------------------------------
import logging
from datetime import datetime, timezone

from ..db import connect, guarded
from ..errors import NotFoundError

logger = logging.getLogger(__name__)


def now_iso():
    return datetime.now(timezone.utc).isoformat()


def today_iso():
    return datetime.now(timezone.utc).date().isoformat()


def _session_row(r):
    return {
        "sessionId": r["id"],
        "sessionDate": r["session_date"],
        "semester": r["semester"],
    }


@guarded("create session")
def create_session(db_uri: str, semester: int) -> int:
    """Open a new attendance partition dated today. Never deduplicated."""
    conn = connect(db_uri)
    try:
        cur = conn.cursor()
        cur.execute(
            "INSERT INTO sessions(session_date, semester) VALUES (?, ?)",
            (today_iso(), semester),
        )
        session_id = cur.lastrowid
        conn.commit()
    finally:
        conn.close()

    logger.info("[session] created %s (semester %s)", session_id, semester)
    return session_id


@guarded("fetch sessions")
def sessions_on(db_uri: str, day: str) -> list:
    conn = connect(db_uri)
    try:
        rows = conn.cursor().execute(
            "SELECT id, session_date, semester FROM sessions WHERE session_date=? ORDER BY id",
            (day,),
        ).fetchall()
    finally:
        conn.close()
    return [_session_row(r) for r in rows]


@guarded("mark attendance")
def mark_attendance(db_uri: str, session_id: int, usn: str, status: str) -> bool:
    """
    Upsert one attendance record.

    Checks run in a fixed order (student, then session) because that order
    decides which 404 a bad request receives.
    Returns True when a new record was inserted, False when an existing
    record was overwritten.
    """
    conn = connect(db_uri)
    try:
        cur = conn.cursor()
        if cur.execute("SELECT id FROM students WHERE usn=?", (usn,)).fetchone() is None:
            raise NotFoundError("Student not found")
        if cur.execute("SELECT id FROM sessions WHERE id=?", (session_id,)).fetchone() is None:
            raise NotFoundError("Session not found")

        existing = cur.execute(
            "SELECT id FROM attendance WHERE session_id=? AND usn=?",
            (session_id, usn),
        ).fetchone()

        cur.execute(
            """
            INSERT INTO attendance(session_id, usn, status, marked_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(session_id, usn)
            DO UPDATE SET status = excluded.status
            """,
            (session_id, usn, status, now_iso()),
        )
        conn.commit()
    finally:
        conn.close()

    created = existing is None
    logger.info("[attendance] %s %s -> %s (session %s)",
                "marked" if created else "updated", usn, status, session_id)
    return created


@guarded("fetch attendance")
def get_session_attendance(db_uri: str, session_id: int) -> list:
    """Every registered student with this session's status (None when unmarked)."""
    conn = connect(db_uri)
    try:
        rows = conn.cursor().execute(
            """
            SELECT s.usn, s.name, a.status
            FROM students s
            LEFT JOIN attendance a ON s.usn = a.usn AND a.session_id = ?
            ORDER BY s.usn
            """,
            (session_id,),
        ).fetchall()
    finally:
        conn.close()
    return [{"usn": r["usn"], "name": r["name"], "status": r["status"]} for r in rows]


@guarded("fetch attendance report")
def student_report(db_uri: str, usn: str) -> list:
    conn = connect(db_uri)
    try:
        rows = conn.cursor().execute(
            """
            SELECT se.id, se.session_date, se.semester, a.status
            FROM attendance a
            JOIN sessions se ON a.session_id = se.id
            WHERE a.usn = ?
            ORDER BY se.session_date DESC, se.id DESC
            """,
            (usn,),
        ).fetchall()
    finally:
        conn.close()
    return [
        {
            "sessionId": r["id"],
            "sessionDate": r["session_date"],
            "semester": r["semester"],
            "status": r["status"],
        }
        for r in rows
    ]
