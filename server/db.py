# server/db.py
# ------------------------------------------------------------
# One connect() for both back ends:
#   - sqlite file (default, tests, single-laptop deployments)
#   - PostgreSQL URI via psycopg2 (hosted deployments)
# Service code always writes "?" placeholders and reads rows by name.
# ------------------------------------------------------------
import functools
import logging
import os
import sqlite3

import psycopg2
import psycopg2.extras

from .errors import StorageError

logger = logging.getLogger(__name__)

DB_ERRORS = (sqlite3.Error, psycopg2.Error)


def is_postgres(db_uri: str) -> bool:
    return db_uri.startswith(("postgres://", "postgresql://"))


# -------------------- Database Wrapper --------------------
class PgCursorWrapper:
    def __init__(self, cursor):
        self.cursor = cursor
        self._last_insert_id = None

    def execute(self, sql, params=()):
        # sqlite-style placeholders -> psycopg2 placeholders
        sql = sql.replace("?", "%s")

        if sql.strip().upper().startswith("INSERT") and "RETURNING" not in sql.upper():
            sql += " RETURNING id"
            self.cursor.execute(sql, params)
            row = self.cursor.fetchone()
            self._last_insert_id = row[0] if row else None
        else:
            self.cursor.execute(sql, params)
            self._last_insert_id = None
        return self

    @property
    def lastrowid(self):
        return self._last_insert_id

    def fetchone(self):
        return self.cursor.fetchone()

    def fetchall(self):
        return self.cursor.fetchall()

    def __getattr__(self, name):
        return getattr(self.cursor, name)


class PgConnectionWrapper:
    def __init__(self, conn):
        self.conn = conn

    def cursor(self):
        return PgCursorWrapper(self.conn.cursor())

    def commit(self):
        self.conn.commit()

    def close(self):
        self.conn.close()

    def execute(self, sql, params=()):
        return self.cursor().execute(sql, params)


def connect(db_uri: str):
    """Open a connection; raises StorageError when the store is unreachable."""
    try:
        if is_postgres(db_uri):
            raw_conn = psycopg2.connect(db_uri, cursor_factory=psycopg2.extras.DictCursor)
            return PgConnectionWrapper(raw_conn)

        dir_name = os.path.dirname(db_uri)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)
        conn = sqlite3.connect(db_uri, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn
    except DB_ERRORS as e:
        logger.error("[db] connection failed: %s", e)
        raise StorageError("Database unreachable") from e


def init_db(db_uri: str) -> None:
    """Create the tables if missing. Safe to run repeatedly."""
    pk = "SERIAL PRIMARY KEY" if is_postgres(db_uri) else "INTEGER PRIMARY KEY AUTOINCREMENT"

    conn = connect(db_uri)
    try:
        cur = conn.cursor()
        cur.execute(f"""CREATE TABLE IF NOT EXISTS students (
            id {pk},
            usn TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            face_data TEXT NOT NULL,
            created_at TEXT NOT NULL)""")
        cur.execute(f"""CREATE TABLE IF NOT EXISTS sessions (
            id {pk},
            session_date TEXT NOT NULL,
            semester INTEGER NOT NULL)""")
        cur.execute(f"""CREATE TABLE IF NOT EXISTS attendance (
            id {pk},
            session_id INTEGER NOT NULL REFERENCES sessions(id),
            usn TEXT NOT NULL REFERENCES students(usn),
            status TEXT NOT NULL,
            marked_at TEXT NOT NULL,
            UNIQUE(session_id, usn))""")
        conn.commit()
    except DB_ERRORS as e:
        logger.exception("[db] init failed")
        raise StorageError("Failed to initialise database") from e
    finally:
        conn.close()

    logger.info("[db] ready (%s)", "postgresql" if is_postgres(db_uri) else db_uri)


def guarded(action):
    """Convert driver errors raised inside a service call into StorageError."""
    def deco(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except DB_ERRORS as e:
                logger.exception("[db] failed to %s", action)
                raise StorageError(f"Failed to {action}") from e
        return wrapper
    return deco
