# server/services/student_service.py
# Student directory: registration and roster lookups.
import json
import logging
import sqlite3

import psycopg2

from ..db import connect, guarded
from ..errors import ConflictError, NotFoundError
from .ledger_service import now_iso

logger = logging.getLogger(__name__)


@guarded("register student")
def register_student(db_uri: str, usn: str, name: str, face_data: list) -> None:
    conn = connect(db_uri)
    try:
        cur = conn.cursor()
        if cur.execute("SELECT id FROM students WHERE usn=?", (usn,)).fetchone():
            raise ConflictError("Student with this USN already exists")
        try:
            cur.execute(
                "INSERT INTO students(usn, name, face_data, created_at) VALUES (?, ?, ?, ?)",
                (usn, name, json.dumps(face_data), now_iso()),
            )
        except (sqlite3.IntegrityError, psycopg2.IntegrityError):
            # lost a race with a concurrent registration of the same usn
            raise ConflictError("Student with this USN already exists") from None
        conn.commit()
    finally:
        conn.close()

    logger.info("[students] registered %s (%s), dim=%d", usn, name, len(face_data))


@guarded("fetch students")
def list_students(db_uri: str) -> list:
    conn = connect(db_uri)
    try:
        rows = conn.cursor().execute("SELECT usn, name FROM students ORDER BY usn").fetchall()
    finally:
        conn.close()
    return [{"usn": r["usn"], "name": r["name"]} for r in rows]


@guarded("fetch student")
def get_student(db_uri: str, usn: str) -> dict:
    conn = connect(db_uri)
    try:
        row = conn.cursor().execute(
            "SELECT usn, name, face_data FROM students WHERE usn=?", (usn,)
        ).fetchone()
    finally:
        conn.close()

    if row is None:
        raise NotFoundError("Student not found")
    return {"usn": row["usn"], "name": row["name"], "faceData": json.loads(row["face_data"])}
