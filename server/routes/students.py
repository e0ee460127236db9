from flask import Blueprint, current_app, jsonify, request

from ..errors import ValidationError
from ..services import student_service
from ..validation import json_object, parse_face_data

students_bp = Blueprint("students", __name__)


def _db():
    return current_app.config["DB_URI"]


# Register a new student with face data
@students_bp.post("/register")
def register():
    data = json_object(request.get_json(silent=True))
    usn = str(data.get("usn") or "").strip()
    name = str(data.get("name") or "").strip()
    face_data = data.get("faceData")

    if not usn or not name or face_data is None:
        raise ValidationError("Missing required fields")

    student_service.register_student(_db(), usn, name, parse_face_data(face_data))
    return jsonify({"message": "Student registered successfully"}), 201


# Roster without face data
@students_bp.get("")
def list_students():
    return jsonify(student_service.list_students(_db())), 200


# One student with face data (used by the recognition client)
@students_bp.get("/<path:usn>")
def get_student(usn):
    return jsonify(student_service.get_student(_db(), usn)), 200
