# server/validation.py
# Request-field parsing shared by routes and services.
import re
from datetime import date

from .config import VALID_STATUSES
from .errors import ValidationError

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# ids are INTEGER / SERIAL keys; anything past int64 can never exist
MAX_ID = 2 ** 63 - 1


def json_object(data) -> dict:
    """Request body as a dict; arrays and scalars are treated as missing fields."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Missing required fields")
    return data


def parse_int(value, what: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {what}")
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {what}") from None


def parse_session_id(value) -> int:
    session_id = parse_int(value, "session ID")
    if not 1 <= session_id <= MAX_ID:
        raise ValidationError("Invalid session ID")
    return session_id


def parse_semester(value) -> int:
    if value is None or value == "":
        raise ValidationError("Semester is required")
    semester = parse_int(value, "semester")
    if not 1 <= semester <= MAX_ID:
        raise ValidationError("Semester must be a positive integer")
    return semester


def parse_status(value) -> str:
    status = str(value).strip().lower()
    if status not in VALID_STATUSES:
        raise ValidationError("Invalid status value. Use present, absent, or excused")
    return status


def parse_date(value: str) -> str:
    if not value or not DATE_RE.match(value):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD") from None


def parse_face_data(value) -> list:
    if not isinstance(value, (list, tuple)) or not value:
        raise ValidationError("faceData must be a non-empty list of numbers")
    out = []
    for x in value:
        if isinstance(x, bool) or not isinstance(x, (int, float)):
            raise ValidationError("faceData must be a non-empty list of numbers")
        out.append(float(x))
    return out
