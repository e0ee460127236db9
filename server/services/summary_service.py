from ..db import connect, guarded
from ..errors import NotFoundError


@guarded("fetch attendance summary")
def get_summary(db_uri: str, session_id: int):
    """
    Counts for one session.
    total_students is the whole directory, so a student without a record
    is implicitly absent without being written to the ledger.
    """
    conn = connect(db_uri)
    try:
        row = conn.cursor().execute(
            """
            SELECT
              COUNT(*) AS records,
              COUNT(CASE WHEN a.status = 'present' THEN 1 END) AS present_count,
              COUNT(CASE WHEN a.status = 'absent' THEN 1 END) AS absent_count,
              (SELECT COUNT(*) FROM students) AS total_students
            FROM attendance a
            WHERE a.session_id = ?
            """,
            (session_id,),
        ).fetchone()
    finally:
        conn.close()

    if not row or not row["records"]:
        raise NotFoundError("No data found for this session")

    return {
        "present_count": int(row["present_count"]),
        "absent_count": int(row["absent_count"]),
        "total_students": int(row["total_students"]),
    }
