import logging

from flask import Blueprint, current_app, jsonify, request

from ..errors import ValidationError
from ..extensions import socketio
from ..services import ledger_service, summary_service
from ..validation import json_object, parse_date, parse_semester, parse_session_id, parse_status

logger = logging.getLogger(__name__)

attendance_bp = Blueprint("attendance", __name__)


def _db():
    return current_app.config["DB_URI"]


# -------------------- Sessions --------------------
@attendance_bp.post("/sessions")
def create_session():
    data = json_object(request.get_json(silent=True))
    semester = parse_semester(data.get("semester"))

    session_id = ledger_service.create_session(_db(), semester)
    return jsonify({"message": "Session created successfully", "sessionId": session_id}), 201


@attendance_bp.get("/sessions/today")
def sessions_today():
    return jsonify(ledger_service.sessions_on(_db(), ledger_service.today_iso())), 200


@attendance_bp.get("/sessions/by-date/<day>")
def sessions_by_date(day):
    return jsonify(ledger_service.sessions_on(_db(), parse_date(day))), 200


@attendance_bp.get("/sessions/<session_id>")
def session_attendance(session_id):
    sid = parse_session_id(session_id)
    return jsonify(ledger_service.get_session_attendance(_db(), sid)), 200


# -------------------- Marking --------------------
@attendance_bp.post("/mark")
def mark():
    """
    Body: { "sessionId": 1, "usn": "S1", "status": "present|absent|excused" }
    200 when an existing record was overwritten, 201 when a new one was created.
    """
    data = json_object(request.get_json(silent=True))
    session_id = data.get("sessionId")
    usn = str(data.get("usn") or "").strip()
    status = data.get("status")

    if session_id in (None, "") or not usn or not status:
        raise ValidationError("Missing required fields")

    status = parse_status(status)
    session_id = parse_session_id(session_id)

    created = ledger_service.mark_attendance(_db(), session_id, usn, status)

    try:
        socketio.emit(
            "attendance",
            {"sessionId": session_id, "usn": usn, "status": status, "created": created},
        )
    except Exception as e:
        logger.warning("[attendance] live push failed: %s", e)

    if created:
        return jsonify({"message": "Attendance marked successfully"}), 201
    return jsonify({"message": "Attendance updated successfully"}), 200


# -------------------- Reporting --------------------
@attendance_bp.get("/summary/<session_id>")
def summary(session_id):
    sid = parse_session_id(session_id)
    return jsonify(summary_service.get_summary(_db(), sid)), 200


@attendance_bp.get("/report/<path:usn>")
def report(usn):
    return jsonify(ledger_service.student_report(_db(), usn)), 200
